"""Shared test fixtures for commitcam.

Provides isolated config environments, managed output state, a collection
of small plugin classes with recorded calls, and a CLI runner. These
fixtures are automatically discovered by pytest and available to all test
modules without explicit imports.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import pytest

from commitcam.config import ConfigStore
from commitcam.models import CaptureContext, Phase
from commitcam.output import OutputFormat, OutputManager, reset_output, set_output
from commitcam.plugins.base import Plugin


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during a
    test, the cached references become stale once the test finishes.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points the XDG directories at subdirectories of tmp_path, clears
    ``COMMITCAM_CONFIG`` and changes the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.delenv("COMMITCAM_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def store(tmp_path: Path) -> ConfigStore:
    """An empty configuration store backed by a file in tmp_path."""
    return ConfigStore(tmp_path / "config.yml")


@pytest.fixture
def ctx() -> CaptureContext:
    """A capture context for a made-up commit."""
    return CaptureContext(
        sha="0123456789abcdef0123456789abcdef01234567",
        message="Add tests",
        repo_name="demo",
        branch="main",
    )


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


@pytest.fixture
def plain_output() -> OutputManager:
    """Install a PLAIN-format, colourless OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, no_color=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# Recording plugins
# ---------------------------------------------------------------------------


class RecordingPlugin(Plugin):
    """Plugin that appends ``(name, phase)`` to a shared call log.

    The name and phase set are chosen per instance so a single class covers
    most dispatch scenarios.
    """

    def __init__(
        self,
        plugin_name: str,
        phases: frozenset[Phase],
        calls: list[tuple[str, str]],
        config: Optional[dict] = None,
        fail_in: frozenset[Phase] = frozenset(),
    ) -> None:
        self._plugin_name = plugin_name
        self._phases = phases
        self._calls = calls
        self._fail_in = fail_in
        super().__init__(config=config)

    @property
    def name(self) -> str:
        return self._plugin_name

    @property
    def runner_order(self) -> frozenset[Phase]:
        return self._phases

    def _record(self, phase: Phase) -> None:
        self._calls.append((self._plugin_name, phase.value))
        if phase in self._fail_in:
            raise RuntimeError(f"{self._plugin_name} exploded")

    def run_pre_capture(self, ctx: CaptureContext) -> None:
        self._record(Phase.PRE_CAPTURE)

    def run_post_capture(self, ctx: CaptureContext) -> None:
        self._record(Phase.POST_CAPTURE)

    def run_capture_ready(self, ctx: CaptureContext) -> None:
        self._record(Phase.CAPTURE_READY)


ALL_PHASES = frozenset(Phase)
ENABLED = {"enabled": True}


@pytest.fixture
def calls() -> list[tuple[str, str]]:
    """Shared call log for :class:`RecordingPlugin` instances."""
    return []


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
