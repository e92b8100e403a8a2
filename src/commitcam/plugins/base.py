"""Abstract base class for commitcam plugins.

Every plugin must subclass :class:`Plugin` and implement the :attr:`name`
property. Everything else has a default:

* :attr:`~Plugin.runner_order` -- the phases the plugin runs in. Empty by
  default, which means the plugin is installed but never invoked.
* :attr:`~Plugin.options` -- the ordered option schema persisted for the
  plugin. Defaults to the single ``enabled`` flag.
* ``run_pre_capture`` / ``run_post_capture`` / ``run_capture_ready`` --
  no-op hooks.
* :meth:`~Plugin.configured`, :meth:`~Plugin.enabled` and
  :meth:`~Plugin.valid_configuration` -- the admission state machine the
  hook runner consults before every dispatch.
* :meth:`~Plugin.configure_options` -- the interactive setup flow.

Plugins are registered as entry points in the ``commitcam.plugins`` group
and discovered at runtime by :class:`~commitcam.plugins.manager.PluginManager`.

Example:
    Minimal plugin implementation::

        class ShoutPlugin(Plugin):
            @property
            def name(self) -> str:
                return "shout"

            @property
            def runner_order(self) -> frozenset[Phase]:
                return frozenset({Phase.CAPTURE_READY})

            def run_capture_ready(self, ctx: CaptureContext) -> None:
                print(f"NEW COMMIT {ctx.sha}!")
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional, Union

import typer

from commitcam.exceptions import ConfigError
from commitcam.models import (
    ENABLED_KEY,
    CaptureContext,
    OptionSpec,
    OptionValue,
    Phase,
    PluginConfiguration,
)
from commitcam.output import suggest, warning
from commitcam.plugins.options import (
    ENABLED_OPTION,
    OptionValueError,
    parse_option,
    parse_user_input,
)

if TYPE_CHECKING:
    from commitcam.runner import Runner

Hook = Callable[[CaptureContext], None]
Prompt = Callable[[str], str]


def _default_prompt(label: str) -> str:
    return typer.prompt(label, default="", show_default=False)


class Plugin(ABC):
    """Base class for all commitcam plugins.

    The plugin lifecycle is:

    1. Instantiation -- with an optional runner and an optional
       configuration. When the configuration is omitted it is read from the
       runner's :class:`~commitcam.config.ConfigStore`, keyed by
       :attr:`name`. The runner itself is not kept; hooks receive a
       :class:`~commitcam.models.CaptureContext` instead.
    2. Registration -- the manager reads :attr:`name` and
       :attr:`runner_order` once and builds its per-phase dispatch lists.
    3. Dispatch -- for every phase in :attr:`runner_order` the hook runner
       calls :meth:`valid_configuration` and, only if it returns ``True``,
       the matching ``run_*`` hook.

    Running a hook never changes the configuration state. Moving from
    unconfigured to configured happens only through
    :meth:`configure_options` and the host persisting its result.

    Args:
        runner: The runner whose configuration store supplies defaults.
        config: The plugin's configuration, either as a parsed record or as
            the raw mapping from the store. An empty mapping means
            unconfigured.
    """

    def __init__(
        self,
        runner: Optional[Runner] = None,
        config: Union[PluginConfiguration, Mapping[str, Any], None] = None,
    ) -> None:
        if config is None and runner is not None:
            try:
                config = runner.store.get(self.name)
            except ConfigError as exc:
                # An unreadable entry counts as unconfigured.
                warning(f"Ignoring stored configuration: {exc}")
                config = None
        if config is not None and not isinstance(config, PluginConfiguration):
            config = PluginConfiguration.from_mapping(config) if config else None
        self._configuration: Optional[PluginConfiguration] = config

    # ------------------------------------------------------------------
    # Identity & ordering
    # ------------------------------------------------------------------

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the unique plugin name.

        Used as the registry key and as the configuration-store key, so it
        must stay stable across releases.

        Returns:
            A short, non-empty identifier (e.g. ``"plugin-sample"``).
        """
        ...

    @property
    def runner_order(self) -> frozenset[Phase]:
        """Return the phases this plugin participates in.

        Read once at registration. An empty set means no hook of this plugin
        is ever invoked.
        """
        return frozenset()

    @property
    def version(self) -> str:
        """Return the plugin version string. Defaults to ``"0.1.0"``."""
        return "0.1.0"

    @property
    def description(self) -> str:
        """Return a one-line description of the plugin. Defaults to ``""``."""
        return ""

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def options(self) -> list[OptionSpec]:
        """Return the ordered option schema prompted for during setup.

        Override to add plugin-specific options. Keep ``ENABLED_OPTION`` in
        the list unless :meth:`enabled` is overridden too, otherwise the
        plugin can never be switched on.
        """
        return [ENABLED_OPTION]

    @property
    def configuration(self) -> Optional[PluginConfiguration]:
        """The persisted configuration, or ``None`` when never configured."""
        return self._configuration

    def configured(self) -> bool:
        """Return whether the plugin has been configured at least once.

        Override for stronger checks, e.g. that a required option is set.
        """
        return self._configuration is not None

    def enabled(self) -> bool:
        """Return whether the stored ``enabled`` flag is boolean ``True``."""
        return self._configuration is not None and self._configuration.enabled is True

    def valid_configuration(self) -> bool:
        """Admission check run by the host before every hook dispatch.

        An unconfigured plugin produces a warning with instructions on how
        to configure it. A configured but disabled plugin is skipped
        quietly.

        Returns:
            ``True`` only when the plugin is both configured and enabled.
        """
        if not self.configured():
            warning(f"Missing or invalid configuration for plugin '{self.name}'")
            suggest(f"Configure it with: commitcam plugins configure {self.name}")
            return False
        if not self.enabled():
            self.debug("disabled, skipping")
            return False
        return True

    def configure_options(self, prompt: Optional[Prompt] = None) -> PluginConfiguration:
        """Interactively build a fresh configuration for this plugin.

        Prompts for every option in :attr:`options`, in declared order,
        re-asking when a value does not parse. The result replaces any prior
        configuration wholesale; nothing from an earlier session is carried
        over. Persisting it is left to the host.

        Args:
            prompt: Callable taking a label and returning the typed text.
                Defaults to :func:`typer.prompt`.

        Returns:
            The new configuration.
        """
        ask = prompt or _default_prompt
        enabled = False
        values: dict[str, OptionValue] = {}
        for spec in self.options:
            while True:
                try:
                    value = parse_option(spec, ask(spec.prompt_label))
                except OptionValueError as exc:
                    warning(str(exc))
                    continue
                break
            if spec.key == ENABLED_KEY:
                enabled = value is True
            else:
                values[spec.key] = value
        return PluginConfiguration(enabled=enabled, options=values)

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def run_pre_capture(self, ctx: CaptureContext) -> None:
        """Called before the capture device produces a frame."""

    def run_post_capture(self, ctx: CaptureContext) -> None:
        """Called right after the frame is produced.

        Other plugins may still be mutating the image during this phase.
        """

    def run_capture_ready(self, ctx: CaptureContext) -> None:
        """Called once every plugin's post-capture hook has finished."""

    def hook_for(self, phase: Phase) -> Hook:
        """Return the bound hook for *phase*."""
        hooks: dict[Phase, Hook] = {
            Phase.PRE_CAPTURE: self.run_pre_capture,
            Phase.POST_CAPTURE: self.run_post_capture,
            Phase.CAPTURE_READY: self.run_capture_ready,
        }
        return hooks[phase]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    parse_user_input = staticmethod(parse_user_input)

    def debug(self, message: str) -> None:
        """Log *message* at debug level, prefixed with the plugin name."""
        logging.getLogger(type(self).__module__).debug("%s: %s", self.name, message)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r}>"
