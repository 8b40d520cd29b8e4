"""Repository bindings: which repository/branch/file backs each layer instance."""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Dict, List, Optional

from .refs import LayerRef


@dataclass(frozen=True)
class RepositoryBinding:
    repository_uri: str
    branch: str
    file_path: str
    layer: LayerRef


class BindingRegistry:
    """Holds at most one binding per layer instance.

    A branch switch rebinds a layer to another branch while remembering the
    branch it was originally bound to, so ``clear_branch_overrides`` can
    restore it.
    """

    def __init__(self) -> None:
        self._bindings: Dict[LayerRef, RepositoryBinding] = {}
        self._default_branches: Dict[LayerRef, str] = {}

    def bind(self, binding: RepositoryBinding) -> None:
        self._bindings[binding.layer] = binding
        self._default_branches[binding.layer] = binding.branch

    def get(self, layer: LayerRef) -> Optional[RepositoryBinding]:
        return self._bindings.get(layer)

    def unbind(self, layer: LayerRef) -> None:
        self._bindings.pop(layer, None)
        self._default_branches.pop(layer, None)

    def bindings(self) -> List[RepositoryBinding]:
        return list(self._bindings.values())

    def with_branch(self, layer: LayerRef, branch: str) -> RepositoryBinding:
        """Point ``layer`` at ``branch``; raises KeyError when it is unbound."""
        binding = dataclasses.replace(self._bindings[layer], branch=branch)
        self._bindings[layer] = binding
        return binding

    def clear_branch_overrides(self) -> None:
        for layer, branch in self._default_branches.items():
            current = self._bindings.get(layer)
            if current is not None and current.branch != branch:
                self._bindings[layer] = dataclasses.replace(current, branch=branch)

    def clear(self) -> None:
        self._bindings.clear()
        self._default_branches.clear()


__all__ = ["RepositoryBinding", "BindingRegistry"]
