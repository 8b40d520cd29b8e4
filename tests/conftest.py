import sys
from pathlib import Path

import pytest

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'tokenlayers'
for p in (SRC_ROOT, TESTS_ROOT):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))


from helpers.cache_utils import reset_tokenlayers_caches
from helpers.samples import (
    core_document,
    dark_theme,
    ios_platform,
    web_platform,
)


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Run every test from an empty project root with no TOKENLAYERS_* env leaking in."""
    import os

    for key in list(os.environ):
        if key.startswith("TOKENLAYERS_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    reset_tokenlayers_caches()
    yield
    reset_tokenlayers_caches()


@pytest.fixture
def core_doc():
    return core_document()


@pytest.fixture
def web_doc():
    return web_platform()


@pytest.fixture
def ios_doc():
    return ios_platform()


@pytest.fixture
def dark_doc():
    return dark_theme()


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
