"""Configuration store with XDG paths, atomic writes, and YAML persistence.

This module owns everything commitcam keeps on disk:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.commitcam/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Configuration store** -- a single YAML file mapping each plugin name to
  its option mapping. :class:`ConfigStore` loads it once, hands out
  :class:`~commitcam.models.PluginConfiguration` records keyed by plugin
  name, and writes it back only when the configuration flow (or a reset)
  changed something.

The file location is ``<config_dir>/config.yml`` unless the
``COMMITCAM_CONFIG`` environment variable (or the ``--config`` CLI flag)
points elsewhere.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) so a crash never leaves a half-written store behind.
"""

from __future__ import annotations

import logging
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import ValidationError

from commitcam.exceptions import ConfigError
from commitcam.models import PluginConfiguration

logger = logging.getLogger(__name__)

_APP_NAME = "commitcam"
_CONFIG_FILENAME = "config.yml"
CONFIG_ENV_VAR = "COMMITCAM_CONFIG"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/commitcam/`` (default ``~/.config/commitcam/``).
    On macOS/Windows: ``~/.commitcam/``.

    Returns:
        Absolute path to the configuration directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/commitcam/`` (default ``~/.local/share/commitcam/``).
    On macOS/Windows: ``~/.commitcam/data/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


def config_path() -> Path:
    """Return the path of the YAML configuration store.

    ``$COMMITCAM_CONFIG`` wins when set; otherwise the file lives in
    :func:`get_config_dir`.
    """
    override = os.environ.get(CONFIG_ENV_VAR, "")
    if override:
        return Path(override).expanduser()
    return get_config_dir() / _CONFIG_FILENAME


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is removed and the original file is left untouched.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Configuration store ---


class ConfigStore:
    """Process-wide mapping from plugin name to persisted plugin settings.

    The store is read once (lazily, on first access) and then treated as
    immutable for the duration of a capture. Only the configuration flow
    and resets call :meth:`set` / :meth:`delete` followed by :meth:`save`.

    Example::

        store = ConfigStore()
        cfg = store.get("plugin-sample")
        if cfg is None:
            print("not configured yet")

    Args:
        path: Location of the YAML file. Defaults to :func:`config_path`.
    """

    def __init__(self, path: Union[str, Path, None] = None) -> None:
        self._path = Path(path) if path is not None else config_path()
        self._data: Optional[dict[str, dict[str, Any]]] = None

    @property
    def path(self) -> Path:
        """The YAML file backing this store."""
        return self._path

    def load(self) -> dict[str, dict[str, Any]]:
        """Read the YAML file, replacing any state held in memory.

        A missing or empty file is an empty store.

        Returns:
            The raw ``{plugin_name: {option: value}}`` mapping.

        Raises:
            ConfigError: If the file is not valid YAML, its top level is not
                a mapping, or a plugin entry is not a mapping.
        """
        if not self._path.is_file():
            self._data = {}
            return self._data
        try:
            raw = yaml.safe_load(self._path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise ConfigError(f"Invalid config at {self._path}: {exc}") from exc

        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ConfigError(
                f"Invalid config at {self._path}: expected a mapping of plugin names"
            )
        data: dict[str, dict[str, Any]] = {}
        for name, entry in raw.items():
            if entry is None:
                entry = {}
            if not isinstance(entry, dict):
                raise ConfigError(
                    f"Invalid config for plugin '{name}' at {self._path}: "
                    "expected a mapping of options"
                )
            data[str(name)] = {str(k): v for k, v in entry.items()}
        self._data = data
        logger.debug("Loaded configuration for %d plugin(s) from %s", len(data), self._path)
        return self._data

    def _entries(self) -> dict[str, dict[str, Any]]:
        if self._data is None:
            self.load()
        assert self._data is not None
        return self._data

    def names(self) -> list[str]:
        """Return the names of every plugin with a stored entry, sorted."""
        return sorted(self._entries())

    def raw(self, name: str) -> dict[str, Any]:
        """Return a copy of the persisted mapping for *name* (empty if absent)."""
        return dict(self._entries().get(name, {}))

    def get(self, name: str) -> Optional[PluginConfiguration]:
        """Return the configuration stored for plugin *name*.

        Returns:
            ``None`` when the plugin has no entry or an empty one (it has
            never been configured), otherwise the parsed record.

        Raises:
            ConfigError: If the stored values are not strings, booleans or
                numbers.
        """
        entry = self._entries().get(name)
        if not entry:
            return None
        try:
            return PluginConfiguration.from_mapping(entry)
        except ValidationError as exc:
            raise ConfigError(
                f"Invalid config for plugin '{name}' at {self._path}: {exc}"
            ) from exc

    def set(self, name: str, configuration: PluginConfiguration) -> None:
        """Replace the entry for *name*. Prior options are discarded, not merged."""
        self._entries()[name] = configuration.to_mapping()

    def delete(self, name: str) -> bool:
        """Remove the entry for *name*.

        Returns:
            ``True`` if an entry existed and was removed.
        """
        return self._entries().pop(name, None) is not None

    def save(self) -> None:
        """Persist the store atomically as YAML."""
        text = yaml.safe_dump(self._entries(), default_flow_style=False, sort_keys=False)
        _atomic_write(self._path, text)
        logger.info("Saved configuration to %s", self._path)
