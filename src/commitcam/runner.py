"""The capture sequence: pre-capture hooks, capture, post-capture, ready.

:class:`Runner` drives exactly one capture at a time on the calling thread:

1. ``pre_capture`` hooks of every admitted plugin, in registration order;
2. the capture callable (the camera itself is an external collaborator);
3. ``post_capture`` hooks, in registration order;
4. ``capture_ready`` hooks, strictly after every ``post_capture`` hook of
   every plugin has returned.

A failing hook is isolated by the
:class:`~commitcam.plugins.hooks.HookRunner`; only a failing capture step
aborts the cycle, because later phases would have no frame to work on.

:func:`current_commit` builds the :class:`~commitcam.models.CaptureContext`
for the HEAD commit of a git repository.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Union

from commitcam.config import ConfigStore
from commitcam.exceptions import CaptureError
from commitcam.models import CaptureContext, Phase
from commitcam.plugins.hooks import PhaseReport
from commitcam.plugins.manager import PluginManager

logger = logging.getLogger(__name__)

Capturer = Callable[[CaptureContext], Optional[Path]]
"""Produces a frame for the given commit and returns its path (or ``None``)."""


def no_capture(ctx: CaptureContext) -> Optional[Path]:
    """Capturer that produces no image, used when no camera is wired in."""
    return None


@dataclass
class CaptureResult:
    """Everything a capture cycle produced.

    Attributes:
        context: The final context, including ``image_path`` if a frame was
            captured.
        reports: One :class:`~commitcam.plugins.hooks.PhaseReport` per phase,
            in pipeline order.
    """

    context: CaptureContext
    reports: list[PhaseReport] = field(default_factory=list)

    @property
    def image_path(self) -> Optional[Path]:
        """Path of the captured frame, if any."""
        return self.context.image_path

    def report_for(self, phase: Phase) -> PhaseReport:
        """Return the report of *phase*."""
        for report in self.reports:
            if report.phase == phase:
                return report
        raise KeyError(phase)


class Runner:
    """Owns the capture sequence and the configuration store.

    Plugins created through :meth:`discover` read their configuration from
    :attr:`store`. The store is loaded once and not written during a
    capture.

    Args:
        store: Configuration store. Defaults to the user's store.
        capture: The capture step. Defaults to :func:`no_capture`.
        manager: A pre-populated plugin manager. When omitted an empty one
            bound to this runner is created; call :meth:`discover` to fill it.
    """

    def __init__(
        self,
        store: Optional[ConfigStore] = None,
        capture: Optional[Capturer] = None,
        manager: Optional[PluginManager] = None,
    ) -> None:
        self._store = store if store is not None else ConfigStore()
        self._capture = capture or no_capture
        self._manager = manager if manager is not None else PluginManager(self)
        self._context: Optional[CaptureContext] = None

    @property
    def store(self) -> ConfigStore:
        """The configuration store plugins read from."""
        return self._store

    @property
    def manager(self) -> PluginManager:
        """The plugin registry dispatched by this runner."""
        return self._manager

    @property
    def context(self) -> Optional[CaptureContext]:
        """The context of the capture in flight (or the last one)."""
        return self._context

    @property
    def sha(self) -> Optional[str]:
        """The commit identifier of the current capture."""
        return self._context.sha if self._context is not None else None

    def discover(self) -> list[str]:
        """Register built-in and entry-point plugins with the manager."""
        return self._manager.discover()

    def run(self, ctx: CaptureContext) -> CaptureResult:
        """Run one full capture cycle for *ctx*.

        Args:
            ctx: The commit being captured.

        Returns:
            The final context and the per-phase reports.

        Raises:
            CaptureError: If the capture step fails. ``pre_capture`` hooks
                have already run at that point; the later phases do not.
        """
        hooks = self._manager.get_hook_runner()
        self._context = ctx
        logger.info("Capturing commit %s", ctx.short_sha)

        reports = [hooks.run_pre_capture(ctx)]

        try:
            image = self._capture(ctx)
        except CaptureError:
            raise
        except Exception as exc:
            raise CaptureError(f"Capture failed for {ctx.short_sha}: {exc}") from exc

        if image is not None:
            ctx = ctx.model_copy(update={"image_path": Path(image)})
            self._context = ctx

        reports.append(hooks.run_post_capture(ctx))
        reports.append(hooks.run_capture_ready(ctx))
        return CaptureResult(context=ctx, reports=reports)


# --- git helpers ---


def _git(args: list[str], cwd: Path) -> str:
    """Run ``git`` with *args* in *cwd* and return stripped stdout."""
    try:
        proc = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=True,
        )
    except FileNotFoundError:
        raise CaptureError("git executable not found on PATH") from None
    except subprocess.CalledProcessError as exc:
        detail = (exc.stderr or "").strip() or f"exit status {exc.returncode}"
        raise CaptureError(f"git {' '.join(args)} failed: {detail}") from exc
    return proc.stdout.strip()


def current_commit(repo_dir: Union[str, Path, None] = None) -> CaptureContext:
    """Describe the HEAD commit of the repository at *repo_dir*.

    Args:
        repo_dir: Any directory inside the repository. Defaults to the
            current working directory.

    Returns:
        A context with ``sha``, ``message``, ``branch`` and ``repo_name``.

    Raises:
        CaptureError: If git is missing or *repo_dir* is not a repository
            with at least one commit.
    """
    cwd = Path(repo_dir) if repo_dir is not None else Path.cwd()
    sha = _git(["rev-parse", "HEAD"], cwd)
    message = _git(["log", "-1", "--pretty=%B"], cwd)
    branch = _git(["rev-parse", "--abbrev-ref", "HEAD"], cwd)
    toplevel = _git(["rev-parse", "--show-toplevel"], cwd)
    return CaptureContext(
        sha=sha,
        message=message,
        branch=None if branch == "HEAD" else branch,
        repo_name=Path(toplevel).name,
    )
