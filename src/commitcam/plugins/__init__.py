"""Plugin system for commitcam -- the contract, dispatch, and registry.

Third-party packages register plugins by declaring an entry point in the
``commitcam.plugins`` group. At runtime :class:`PluginManager` registers
them (refusing duplicate names) and :class:`HookRunner` dispatches each
capture phase to the plugins that declared it, after their admission check.

Key classes:

* :class:`Plugin` -- Abstract base class that all plugins must extend.
* :class:`PluginManager` -- Registers plugins and builds dispatch lists.
* :class:`HookRunner` -- Executes one phase across plugins in order.
* :class:`PhaseReport` -- What happened to each plugin during a phase.

Example:
    Dispatching one phase by hand::

        from commitcam.plugins import PluginManager

        manager = PluginManager(runner)
        manager.discover()
        report = manager.get_hook_runner().run_pre_capture(ctx)
"""

from commitcam.plugins.base import Plugin
from commitcam.plugins.hooks import HookOutcome, HookResult, HookRunner, PhaseReport
from commitcam.plugins.manager import PluginManager
from commitcam.plugins.options import ENABLED_OPTION, OptionValueError, parse_user_input

__all__ = [
    "ENABLED_OPTION",
    "HookOutcome",
    "HookResult",
    "HookRunner",
    "OptionValueError",
    "PhaseReport",
    "Plugin",
    "PluginManager",
    "parse_user_input",
]
