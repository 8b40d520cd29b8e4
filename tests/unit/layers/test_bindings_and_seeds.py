from __future__ import annotations

import pytest

from tokenlayers.core.layers.bindings import BindingRegistry, RepositoryBinding
from tokenlayers.core.layers.refs import CORE, PlatformLayer, ThemeLayer
from tokenlayers.core.layers.seeds import seed_document
from tokenlayers.core.schemas import LayerValidator

WEB = PlatformLayer("web")


def _binding(layer=WEB, branch="main") -> RepositoryBinding:
    return RepositoryBinding("acme/web-tokens", branch, "tokens/web.json", layer)


class TestBindingRegistry:
    def test_bind_and_get(self) -> None:
        registry = BindingRegistry()
        registry.bind(_binding())
        assert registry.get(WEB).file_path == "tokens/web.json"
        assert registry.get(CORE) is None

    def test_with_branch_and_restore(self) -> None:
        registry = BindingRegistry()
        registry.bind(_binding())
        registry.with_branch(WEB, "feature/x")
        assert registry.get(WEB).branch == "feature/x"

        registry.clear_branch_overrides()
        assert registry.get(WEB).branch == "main"

    def test_with_branch_requires_binding(self) -> None:
        with pytest.raises(KeyError):
            BindingRegistry().with_branch(WEB, "dev")

    def test_unbind_and_clear(self) -> None:
        registry = BindingRegistry()
        registry.bind(_binding())
        registry.bind(_binding(ThemeLayer("dark")))
        registry.unbind(WEB)
        assert [b.layer for b in registry.bindings()] == [ThemeLayer("dark")]
        registry.clear()
        assert registry.bindings() == []


class TestSeeds:
    def test_core_seed_is_schema_valid(self) -> None:
        seed = seed_document(CORE)
        assert seed["tokens"] == []
        assert LayerValidator().validate_core_data(seed).is_valid

    def test_platform_seed_names_platform(self, core_doc) -> None:
        seed = seed_document(WEB, system_id="acme")
        assert seed["platformId"] == "web"
        assert seed["systemId"] == "acme"
        assert LayerValidator().validate_platform_extension(seed, core_doc).is_valid

    def test_theme_seed(self, core_doc) -> None:
        seed = seed_document(ThemeLayer("dark"), system_id="acme")
        assert seed == {"systemId": "acme", "themeId": "dark", "tokenOverrides": []}
        assert LayerValidator().validate_theme_override_file(seed, core_doc).is_valid

    def test_seeds_are_fresh_objects(self) -> None:
        first = seed_document(CORE)
        first["tokens"].append({})
        assert seed_document(CORE)["tokens"] == []
