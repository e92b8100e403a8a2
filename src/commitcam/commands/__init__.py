"""Built-in CLI sub-commands for commitcam.

Each module exposes a Typer app or command function registered on the root
application in :mod:`commitcam.app`:

* :mod:`~commitcam.commands.plugins` -- ``commitcam plugins ...``
* :mod:`~commitcam.commands.capture` -- ``commitcam capture``
"""

from __future__ import annotations

from typing import Optional

import typer

from commitcam.config import ConfigStore
from commitcam.exceptions import CommitcamError
from commitcam.output import error
from commitcam.runner import Runner


def load_runner(ctx: typer.Context) -> Runner:
    """Build a runner on the configured store and discover plugins.

    Errors (unreadable store, duplicate plugin names) are reported and turned
    into a :class:`typer.Exit` carrying the error's exit code.
    """
    config_file: Optional[str] = ctx.obj.get("config") if ctx.obj else None
    try:
        runner = Runner(store=ConfigStore(config_file))
        runner.store.load()
        runner.discover()
    except CommitcamError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    return runner
