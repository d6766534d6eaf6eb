"""Shared test fixtures for rak.

Provides an isolated XDG environment, a controllable clock for cache
freshness, a scripted fetcher, and automatic reset of the global output
state.  These fixtures are discovered by pytest and available to all test
modules without explicit imports.
"""

from __future__ import annotations

from pathlib import Path
from typing import Union

import pytest

from rak.client import Fetcher
from rak.config import AppContext, build_context
from rak.exceptions import FetchError
from rak.output import OutputFormat, OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale.
    Resetting forces a fresh manager to be created on next use.
    """
    yield
    reset_output()


@pytest.fixture
def plain_output() -> OutputManager:
    """Install a colourless, plain-format OutputManager."""
    manager = OutputManager(format=OutputFormat.PLAIN, no_color=True)
    set_output(manager)
    return manager


# ---------------------------------------------------------------------------
# Isolated environment
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> AppContext:
    """Point every XDG directory at tmp_path and clear rak env vars."""
    monkeypatch.setattr("rak.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.delenv("RAK_MAX_AGE", raising=False)
    monkeypatch.delenv("RAK_USER_AGENT", raising=False)
    monkeypatch.delenv("NO_COLOR", raising=False)
    return build_context()


# ---------------------------------------------------------------------------
# Clock and fetcher doubles
# ---------------------------------------------------------------------------


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, minutes: float) -> None:
        self.now += minutes * 60


class ScriptedFetcher(Fetcher):
    """Fetcher returning canned bodies, or raising FetchError for unknown URLs."""

    def __init__(self) -> None:
        self.responses: dict[str, Union[bytes, Exception]] = {}
        self.calls: list[tuple[str, str]] = []

    def download(self, url: str, user_agent: str) -> bytes:
        self.calls.append((url, user_agent))
        result = self.responses.get(url)
        if result is None:
            raise FetchError(f"no route to {url}")
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fetcher() -> ScriptedFetcher:
    return ScriptedFetcher()
