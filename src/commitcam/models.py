"""Canonical Pydantic models shared across all commitcam modules.

The models fall into three groups:

**Descriptor models** -- declared by plugin authors and read once at
registration time: :class:`Phase`, :class:`OptionType`, :class:`OptionSpec`.

**Configuration models** -- persisted per plugin in the YAML configuration
store and reloaded on every process start: :class:`PluginConfiguration`.

**Run-scoped models** -- built by the runner for a single capture and handed
to every hook as read-only state: :class:`CaptureContext`.
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Any, Iterator, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

ENABLED_KEY = "enabled"
"""Reserved key holding the enabled flag inside a persisted plugin mapping."""

OptionValue = Optional[Union[bool, int, float, str]]
"""A persisted option value: string, boolean, number, or blank."""


# --- Descriptor Models ---


class Phase(str, enum.Enum):
    """A named point in the capture pipeline where hooks may run.

    Members are declared in pipeline order; :meth:`ordered` relies on it.
    """

    PRE_CAPTURE = "pre_capture"
    POST_CAPTURE = "post_capture"
    CAPTURE_READY = "capture_ready"

    @classmethod
    def ordered(cls) -> Iterator[Phase]:
        """Yield the phases in the order the runner executes them."""
        return iter(cls)


class OptionType(str, enum.Enum):
    """Expected value type of a declared plugin option."""

    STRING = "string"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    NUMBER = "number"


class OptionSpec(BaseModel):
    """One entry of a plugin's declarative option schema.

    Plugins return an ordered list of these from
    :attr:`~commitcam.plugins.base.Plugin.options`; the configuration flow
    prompts for each one in declared order.

    Example::

        OptionSpec(key="endpoint", type=OptionType.STRING, required=True)
    """

    model_config = ConfigDict(frozen=True)

    key: str
    type: OptionType = OptionType.STRING
    description: str = ""
    default: OptionValue = None
    required: bool = False

    @field_validator("key")
    @classmethod
    def _key_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("option key must not be blank")
        return value

    @property
    def prompt_label(self) -> str:
        """Label shown when prompting, e.g. ``enabled (true/false)``."""
        if self.type == OptionType.BOOLEAN:
            return f"{self.key} (true/false)"
        return self.key


# --- Configuration Models ---


class PluginConfiguration(BaseModel):
    """Persisted settings for a single plugin.

    On disk the enabled flag is a plain ``enabled`` key next to the options
    so the YAML file stays hand-editable. In memory it is promoted to the
    first-class :attr:`enabled` field and removed from :attr:`options`.

    Instances are frozen; the configuration flow builds a new one rather
    than mutating the current one.
    """

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    options: dict[str, OptionValue] = Field(default_factory=dict)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> PluginConfiguration:
        """Lift a raw store mapping into a configuration record.

        Only a literal boolean ``True`` enables the plugin; strings such as
        ``"true"`` leave it disabled.

        Args:
            mapping: The plugin's entry from the configuration store.

        Returns:
            The parsed configuration.
        """
        data = dict(mapping)
        enabled = data.pop(ENABLED_KEY, False)
        return cls(enabled=enabled is True, options=data)

    def to_mapping(self) -> dict[str, Any]:
        """Flatten back to the persisted layout (``enabled`` first)."""
        return {ENABLED_KEY: self.enabled, **self.options}

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value of option *key*, or *default* when absent."""
        if key == ENABLED_KEY:
            return self.enabled
        return self.options.get(key, default)


# --- Run-scoped Models ---


class CaptureContext(BaseModel):
    """Read-only state of the capture in flight, passed to every hook.

    The runner builds one per capture. Plugins may read any field but the
    model is frozen, so a hook cannot alter what later hooks observe.

    Attributes:
        sha: The commit identifier being captured.
        message: The commit message.
        repo_name: Name of the repository directory.
        branch: The checked-out branch, when known.
        image_path: Where the captured frame lives, once the capture ran.
    """

    model_config = ConfigDict(frozen=True)

    sha: str
    message: str = ""
    repo_name: str = ""
    branch: Optional[str] = None
    image_path: Optional[Path] = None

    @property
    def short_sha(self) -> str:
        """The first 11 characters of :attr:`sha`."""
        return self.sha[:11]
