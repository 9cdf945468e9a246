"""Shared test fixtures for mutauth.

Provides scripted browser surfaces and hosts for driving the flows without a
GUI toolkit, isolated config environments, output state management, and a
CLI runner. These fixtures are automatically discovered by pytest.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Optional, Union

import pytest

from mutauth.models import SurfaceOptions
from mutauth.output import OutputFormat, OutputManager, reset_output, set_output
from mutauth.surfaces.base import BrowserSurface, SurfaceHost


# ---------------------------------------------------------------------------
# Scripted surfaces
# ---------------------------------------------------------------------------

Observation = Union[str, None, BaseException]


class ScriptedSurface(BrowserSurface):
    """A surface whose URL follows a script, one entry per read.

    Entries are URL strings, ``None`` (unreadable) or exception instances
    (raised by :meth:`current_url`). Once the script is exhausted its last
    entry repeats forever.
    """

    def __init__(
        self,
        label: str,
        script: Iterable[Observation],
        *,
        close_error: Optional[BaseException] = None,
        navigate_error: Optional[BaseException] = None,
    ) -> None:
        super().__init__(label)
        self.script = list(script)
        self.reads = 0
        self.navigations: list[str] = []
        self.close_calls = 0
        self._closed = False
        self._close_error = close_error
        self._navigate_error = navigate_error

    @property
    def is_closed(self) -> bool:
        return self._closed

    async def current_url(self) -> Optional[str]:
        self.reads += 1
        if not self.script:
            return None
        entry = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(entry, BaseException):
            raise entry
        return entry

    async def navigate(self, url: str) -> None:
        if self._navigate_error is not None:
            raise self._navigate_error
        self.navigations.append(url)

    async def close(self) -> None:
        self.close_calls += 1
        if self._close_error is not None:
            raise self._close_error
        self._closed = True


class ScriptedHost(SurfaceHost):
    """Opens :class:`ScriptedSurface` instances from per-label scripts.

    Args:
        scripts: Label -> script for surfaces opened with that label. A
            label without a script shows the URL it was opened at.
        multiple: Value of :attr:`supports_multiple_surfaces`.
        open_error: Raised by every :meth:`open_surface` call when set.
        close_error: Raised by ``close()`` of every surface opened.
    """

    def __init__(
        self,
        scripts: Optional[dict[str, list[Observation]]] = None,
        *,
        multiple: bool = True,
        open_error: Optional[BaseException] = None,
        close_error: Optional[BaseException] = None,
    ) -> None:
        self.scripts = scripts or {}
        self.multiple = multiple
        self.open_error = open_error
        self.close_error = close_error
        self.open_calls: list[tuple[str, str, Optional[SurfaceOptions]]] = []
        self.surfaces: dict[str, ScriptedSurface] = {}

    @property
    def supports_multiple_surfaces(self) -> bool:
        return self.multiple

    async def open_surface(
        self,
        label: str,
        url: str,
        options: Optional[SurfaceOptions] = None,
    ) -> BrowserSurface:
        self.open_calls.append((label, url, options))
        if self.open_error is not None:
            raise self.open_error
        surface = ScriptedSurface(
            label, self.scripts.get(label, [url]), close_error=self.close_error
        )
        self.surfaces[label] = surface
        return surface

    def get_surface(self, label: str) -> Optional[BrowserSurface]:
        surface = self.surfaces.get(label)
        if surface is None or surface.is_closed:
            return None
        return surface


@pytest.fixture
def make_surface():
    """Factory for standalone :class:`ScriptedSurface` objects."""

    def _make(script: Iterable[Observation], label: str = "test-surface", **kwargs: Any) -> ScriptedSurface:
        return ScriptedSurface(label, script, **kwargs)

    return _make


@pytest.fixture
def make_host():
    """Factory for :class:`ScriptedHost` objects."""

    def _make(**kwargs: Any) -> ScriptedHost:
        return ScriptedHost(**kwargs)

    return _make


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration and data to a temporary directory.

    Points HOME and the XDG directories into tmp_path so that tests never
    touch real user config or remembered sessions, and clears all
    MUTAUTH_* environment variables.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in ["MUTAUTH_VARIANT", "MUTAUTH_BACKEND", "MUTAUTH_DEV"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
