"""Per-phase hook dispatch with admission checks and failure isolation.

This module provides:

* :class:`HookRunner` -- executes the hooks of one phase across all
  participating plugins in registration order. Before each dispatch it runs
  the plugin's admission check
  (:meth:`~commitcam.plugins.base.Plugin.valid_configuration`). A plugin
  that raises is reported and skipped; the remaining plugins still run.
* :class:`PhaseReport` / :class:`HookResult` -- what happened to each
  plugin during a phase, so callers and tests can inspect the outcome
  without scraping logs.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Optional

from commitcam.models import CaptureContext, Phase
from commitcam.output import warning
from commitcam.plugins.base import Plugin

logger = logging.getLogger(__name__)


class HookOutcome(str, enum.Enum):
    """What happened to one plugin during one phase."""

    INVOKED = "invoked"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class HookResult:
    """Outcome of dispatching a single hook.

    Attributes:
        plugin: Name of the plugin.
        phase: The phase being run.
        outcome: Whether the hook ran, was refused admission, or raised.
        error: The exception raised by the admission check or the hook.
    """

    plugin: str
    phase: Phase
    outcome: HookOutcome
    error: Optional[Exception] = None


@dataclass
class PhaseReport:
    """Ordered results of one phase, one entry per participating plugin."""

    phase: Phase
    results: list[HookResult] = field(default_factory=list)

    def _names(self, outcome: HookOutcome) -> list[str]:
        return [r.plugin for r in self.results if r.outcome == outcome]

    @property
    def invoked(self) -> list[str]:
        """Names of plugins whose hook ran to completion."""
        return self._names(HookOutcome.INVOKED)

    @property
    def skipped(self) -> list[str]:
        """Names of plugins that failed their admission check."""
        return self._names(HookOutcome.SKIPPED)

    @property
    def failed(self) -> list[str]:
        """Names of plugins whose admission check or hook raised."""
        return self._names(HookOutcome.FAILED)


class HookRunner:
    """Executes plugin hooks phase by phase, in registration order.

    The runner is created by
    :meth:`~commitcam.plugins.manager.PluginManager.get_hook_runner` and
    holds an immutable snapshot of the plugin list. Each plugin's
    :attr:`~commitcam.plugins.base.Plugin.runner_order` is read once, here,
    to build the per-phase dispatch lists.

    Hooks run one at a time on the calling thread. There is no timeout: a
    hook that never returns stalls the capture.
    """

    def __init__(self, plugins: list[Plugin]) -> None:
        """Initialize the hook runner with a list of plugins.

        Args:
            plugins: Ordered list of plugin instances. Hooks are executed
                in the order plugins appear in this list.
        """
        self._plugins = list(plugins)
        self._dispatch: dict[Phase, list[Plugin]] = {phase: [] for phase in Phase.ordered()}
        for plugin in self._plugins:
            order = plugin.runner_order or frozenset()
            for phase in Phase.ordered():
                if phase in order:
                    self._dispatch[phase].append(plugin)

    def plugins_for(self, phase: Phase) -> list[Plugin]:
        """Return the plugins participating in *phase*, in registration order."""
        return list(self._dispatch[phase])

    def run_phase(self, phase: Phase, ctx: CaptureContext) -> PhaseReport:
        """Run *phase* across every participating plugin.

        For each plugin the admission check is evaluated immediately before
        the hook. Exceptions from either are logged, surfaced as a warning,
        and recorded as :attr:`HookOutcome.FAILED`; they never stop the
        remaining plugins.

        Args:
            phase: The phase to run.
            ctx: Read-only state of the capture in flight.

        Returns:
            A :class:`PhaseReport` with one result per participating plugin.
        """
        report = PhaseReport(phase=phase)
        for plugin in self._dispatch[phase]:
            name = plugin.name
            try:
                if not plugin.valid_configuration():
                    logger.debug("Skipping %s for '%s': not admitted", phase.value, name)
                    report.results.append(HookResult(name, phase, HookOutcome.SKIPPED))
                    continue
                logger.debug("Running %s for '%s'", phase.value, name)
                plugin.hook_for(phase)(ctx)
            except Exception as exc:
                logger.exception("Plugin '%s' failed during %s", name, phase.value)
                warning(f"Plugin '{name}' failed during {phase.value}: {exc}")
                report.results.append(HookResult(name, phase, HookOutcome.FAILED, exc))
            else:
                report.results.append(HookResult(name, phase, HookOutcome.INVOKED))
        return report

    def run_pre_capture(self, ctx: CaptureContext) -> PhaseReport:
        """Run the ``pre_capture`` phase."""
        return self.run_phase(Phase.PRE_CAPTURE, ctx)

    def run_post_capture(self, ctx: CaptureContext) -> PhaseReport:
        """Run the ``post_capture`` phase."""
        return self.run_phase(Phase.POST_CAPTURE, ctx)

    def run_capture_ready(self, ctx: CaptureContext) -> PhaseReport:
        """Run the ``capture_ready`` phase."""
        return self.run_phase(Phase.CAPTURE_READY, ctx)
