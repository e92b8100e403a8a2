"""Plugin manager -- discovery, registration, and dispatch-table building.

This module contains :class:`PluginManager`, the host-side registry. It
registers the built-in plugins, discovers third-party plugins registered as
Python entry points, refuses duplicate names, and provides a lazily-cached
:class:`~commitcam.plugins.hooks.HookRunner` for dispatching hooks.

The entry-point group used for discovery is ``commitcam.plugins``.
Third-party packages register plugins by declaring an entry point under this
group in their ``pyproject.toml``::

    [project.entry-points."commitcam.plugins"]
    my-plugin = "my_package.plugin:MyPlugin"
"""

from __future__ import annotations

import importlib.metadata
import logging
from typing import TYPE_CHECKING, Any, Optional

from commitcam.exceptions import DuplicatePluginError, PluginError
from commitcam.models import Phase
from commitcam.plugins.base import Plugin
from commitcam.plugins.hooks import HookRunner

if TYPE_CHECKING:
    from commitcam.runner import Runner

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "commitcam.plugins"
"""The entry-point group name used for plugin discovery."""


def _builtin_plugins() -> list[type[Plugin]]:
    """Import built-in plugin classes lazily to avoid circular imports."""
    from commitcam.plugins.sample import SamplePlugin

    return [SamplePlugin]


class PluginManager:
    """Registers plugins and builds the per-phase dispatch lists.

    Plugins are kept in registration order; that order is the dispatch
    order within every phase. Two plugins with the same
    :attr:`~commitcam.plugins.base.Plugin.name` are a fatal configuration
    error.

    Example:
        Typical usage::

            manager = PluginManager(runner)
            manager.discover()
            hooks = manager.get_hook_runner()

    Args:
        runner: Passed to each discovered plugin so it can read its
            configuration from the runner's store.
    """

    def __init__(self, runner: Optional[Runner] = None) -> None:
        self._runner = runner
        self._plugins: dict[str, Plugin] = {}
        self._hook_runner: Optional[HookRunner] = None

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, plugin: Plugin) -> None:
        """Register a plugin instance.

        Args:
            plugin: The plugin to add at the end of the dispatch order.

        Raises:
            PluginError: If the plugin's name is empty.
            DuplicatePluginError: If a plugin with the same name is already
                registered.
        """
        name = plugin.name
        if not name:
            raise PluginError(f"Plugin {type(plugin).__name__} has an empty name")
        if name in self._plugins:
            existing = type(self._plugins[name]).__name__
            raise DuplicatePluginError(
                f"Plugin name '{name}' is claimed by both {existing} "
                f"and {type(plugin).__name__}"
            )
        self._plugins[name] = plugin
        self._hook_runner = None
        logger.info(
            "Registered plugin '%s' v%s (phases: %s)",
            name,
            plugin.version,
            ", ".join(p.value for p in Phase.ordered() if p in plugin.runner_order) or "none",
        )

    def discover(self, include_builtins: bool = True) -> list[str]:
        """Register built-in plugins, then plugins found via entry points.

        An entry point that fails to import or instantiate is logged and
        skipped. Name conflicts are not: they propagate as
        :class:`~commitcam.exceptions.DuplicatePluginError`.

        Args:
            include_builtins: Also register the plugins shipped with
                commitcam.

        Returns:
            Names of the plugins registered by this call.
        """
        classes: list[tuple[str, type[Plugin]]] = []
        if include_builtins:
            classes.extend((cls.__name__, cls) for cls in _builtin_plugins())

        for ep in importlib.metadata.entry_points(group=ENTRY_POINT_GROUP):
            try:
                plugin_cls = ep.load()
            except Exception as exc:
                logger.warning("Failed to load plugin entry point '%s': %s", ep.name, exc)
                continue
            classes.append((ep.name, plugin_cls))

        loaded: list[str] = []
        for label, plugin_cls in classes:
            try:
                plugin = plugin_cls(runner=self._runner)
            except Exception as exc:
                logger.warning("Failed to instantiate plugin '%s': %s", label, exc)
                continue
            self.register(plugin)
            loaded.append(plugin.name)
        return loaded

    # ------------------------------------------------------------------
    # Querying
    # ------------------------------------------------------------------

    def get_plugin(self, name: str) -> Plugin:
        """Retrieve a registered plugin by name.

        Raises:
            PluginError: If no plugin with the given *name* is registered.
        """
        try:
            return self._plugins[name]
        except KeyError:
            raise PluginError(f"Plugin '{name}' is not installed") from None

    def plugin_names(self) -> list[str]:
        """Return registered plugin names in registration order."""
        return list(self._plugins)

    def list_plugins(self) -> list[dict[str, Any]]:
        """List registered plugins with their metadata and admission state.

        Returns:
            One dict per plugin with ``name``, ``version``, ``description``,
            ``phases``, ``configured`` and ``enabled`` keys.
        """
        return [
            {
                "name": plugin.name,
                "version": plugin.version,
                "description": plugin.description,
                "phases": [p.value for p in Phase.ordered() if p in plugin.runner_order],
                "configured": plugin.configured(),
                "enabled": plugin.enabled(),
            }
            for plugin in self._plugins.values()
        ]

    def dispatch_table(self) -> dict[Phase, list[str]]:
        """Return, per phase, the names of participating plugins in dispatch order."""
        hooks = self.get_hook_runner()
        return {
            phase: [p.name for p in hooks.plugins_for(phase)] for phase in Phase.ordered()
        }

    # ------------------------------------------------------------------
    # Hook runner
    # ------------------------------------------------------------------

    def get_hook_runner(self) -> HookRunner:
        """Return the :class:`~commitcam.plugins.hooks.HookRunner` for all plugins.

        Lazily created and cached; :meth:`register` invalidates the cache.
        """
        if self._hook_runner is None:
            self._hook_runner = HookRunner(list(self._plugins.values()))
        return self._hook_runner
