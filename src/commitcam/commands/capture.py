"""Capture command -- run one capture cycle for a commit.

Intended to be called from a git ``post-commit`` hook. Passing ``--sha``
skips the git lookup, which is handy for trying plugins out.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from commitcam.commands import load_runner
from commitcam.exceptions import CommitcamError, InvalidUsageError
from commitcam.models import CaptureContext
from commitcam.output import error, phase_report
from commitcam.runner import current_commit


def capture_command(
    ctx: typer.Context,
    sha: Optional[str] = typer.Option(
        None, "--sha", help="Commit identifier to use instead of asking git."
    ),
    message: str = typer.Option("", "--message", "-m", help="Commit message (with --sha)."),
    repo: Path = typer.Option(
        Path("."), "--repo", help="Repository directory.", file_okay=False
    ),
) -> None:
    """Run the plugin hooks for a single capture.

    Example::

        commitcam capture
        commitcam capture --sha 1a2b3c4d --message "test run"
    """
    runner = load_runner(ctx)
    try:
        if message and not sha:
            raise InvalidUsageError("--message only applies together with --sha")
        if sha:
            context = CaptureContext(sha=sha, message=message, repo_name=repo.resolve().name)
        else:
            context = current_commit(repo)
        result = runner.run(context)
    except CommitcamError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    for report in result.reports:
        phase_report(report)
