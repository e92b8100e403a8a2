"""Plugin commands -- list, configure, inspect, and reset plugins.

Provides the ``commitcam plugins`` sub-command group. ``configure`` is the
explicit setup mode: it is the only way a plugin moves from unconfigured to
configured, and each run replaces the plugin's previous settings.
"""

from __future__ import annotations

import typer

from commitcam.commands import load_runner
from commitcam.exceptions import PluginError
from commitcam.output import error, info, print_config, print_plugins, success, suggest, warning
from commitcam.plugins.base import Plugin
from commitcam.runner import Runner

plugins_app = typer.Typer(no_args_is_help=True)


def _get_plugin(runner: Runner, name: str) -> Plugin:
    try:
        return runner.manager.get_plugin(name)
    except PluginError as exc:
        error(str(exc))
        suggest("List installed plugins with: commitcam plugins list")
        raise typer.Exit(code=exc.exit_code) from None


@plugins_app.command("list")
def plugins_list(ctx: typer.Context) -> None:
    """List installed plugins with their phases and state.

    Example::

        commitcam plugins list
        commitcam --json plugins list
    """
    runner = load_runner(ctx)
    plugins = runner.manager.list_plugins()
    if not plugins:
        info("No plugins installed.")
        return
    print_plugins(plugins, title="Installed plugins")


@plugins_app.command("configure")
def plugins_configure(
    ctx: typer.Context,
    name: str = typer.Argument(help="Name of the plugin to configure."),
) -> None:
    """Interactively configure a plugin and save the result.

    Prompts for every option the plugin declares. The new settings fully
    replace whatever was stored for the plugin before.

    Example::

        commitcam plugins configure plugin-sample
    """
    runner = load_runner(ctx)
    plugin = _get_plugin(runner, name)

    info(f"Configuring plugin '{name}'")
    configuration = plugin.configure_options()
    runner.store.set(name, configuration)
    runner.store.save()

    success(f"Saved configuration for '{name}' to {runner.store.path}")
    if not configuration.enabled:
        warning(f"Plugin '{name}' is configured but disabled")


@plugins_app.command("show")
def plugins_show(
    ctx: typer.Context,
    name: str = typer.Argument(help="Name of the plugin."),
) -> None:
    """Show the stored configuration of a plugin."""
    runner = load_runner(ctx)
    _get_plugin(runner, name)

    stored = runner.store.raw(name)
    if not stored:
        warning(f"Plugin '{name}' has not been configured")
        suggest(f"Configure it with: commitcam plugins configure {name}")
        return
    print_config(name, stored)


@plugins_app.command("reset")
def plugins_reset(
    ctx: typer.Context,
    name: str = typer.Argument(help="Name of the plugin to reset."),
    force: bool = typer.Option(False, "--force", "-f", help="Skip the confirmation prompt."),
) -> None:
    """Delete the stored configuration of a plugin.

    Asks for confirmation unless ``--force`` is given here or on the root
    command.

    Example::

        commitcam plugins reset plugin-sample --force
    """
    runner = load_runner(ctx)

    if not (force or (ctx.obj or {}).get("force", False)):
        confirmed = typer.confirm(f"Remove the configuration of '{name}'?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    if runner.store.delete(name):
        runner.store.save()
        success(f"Removed configuration for '{name}'")
    else:
        info(f"Plugin '{name}' had no stored configuration")
