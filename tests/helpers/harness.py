"""A fully wired app over an in-memory repository holding the sample documents."""
from __future__ import annotations

from typing import Optional

from tokenlayers.adapters.memory import InMemoryRepository
from tokenlayers.core.app import AppSettings, TokenLayersApp
from tokenlayers.core.events import Event
from tokenlayers.core.layers.refs import CORE, PlatformLayer, ThemeLayer

from .samples import core_document, dark_theme, dump, ios_platform, web_platform

WEB = PlatformLayer("web")
IOS = PlatformLayer("ios")
DARK = ThemeLayer("dark")

CORE_REPO = "acme/tokens"
PLATFORM_REPO = "acme/platforms"
THEME_REPO = "acme/themes"


def seeded_repository() -> InMemoryRepository:
    repo = InMemoryRepository()
    repo.seed_file(CORE_REPO, "tokens/core.json", dump(core_document()))
    repo.seed_file(PLATFORM_REPO, "web.json", dump(web_platform()))
    repo.seed_file(PLATFORM_REPO, "ios.json", dump(ios_platform()))
    repo.seed_file(THEME_REPO, "dark.json", dump(dark_theme()))
    return repo


def build_app(
    repo: Optional[InMemoryRepository] = None,
    *,
    settings: Optional[AppSettings] = None,
    **kwargs,
) -> TokenLayersApp:
    app = TokenLayersApp.build(
        repo if repo is not None else seeded_repository(),
        config=settings or AppSettings(),
        **kwargs,
    )
    app.bind(CORE, CORE_REPO, "tokens/core.json")
    app.bind(WEB, PLATFORM_REPO, "web.json")
    app.bind(IOS, PLATFORM_REPO, "ios.json")
    app.bind(DARK, THEME_REPO, "dark.json")
    return app


def record_events(app: TokenLayersApp) -> list[Event]:
    seen: list[Event] = []
    app.events.subscribe(None, seen.append)
    return seen


__all__ = [
    "WEB",
    "IOS",
    "DARK",
    "CORE_REPO",
    "PLATFORM_REPO",
    "THEME_REPO",
    "seeded_repository",
    "build_app",
    "record_events",
]
