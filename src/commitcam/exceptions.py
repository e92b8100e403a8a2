"""Exception hierarchy for commitcam.

All exceptions inherit from :class:`CommitcamError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`commitcam.exit_codes`.
The top-level error handler in :func:`commitcam.app.main` catches
``CommitcamError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Plugins never raise these to stop the host. A plugin that is not configured
or not enabled simply fails its admission check, and a hook that raises is
isolated by the :class:`~commitcam.plugins.hooks.HookRunner`.

Subclass hierarchy::

    CommitcamError (exit 1)
    +-- InvalidUsageError        (exit 2)
    +-- ConfigError              (exit 1)
    +-- PluginError              (exit 10)
    |   +-- DuplicatePluginError (exit 11)
    +-- CaptureError             (exit 12)
"""

from commitcam.exit_codes import (
    EXIT_CAPTURE_ERROR,
    EXIT_DUPLICATE_PLUGIN,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_PLUGIN_ERROR,
)


class CommitcamError(Exception):
    """Base exception for all commitcam errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(CommitcamError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(CommitcamError):
    """Raised when the configuration store cannot be read or is malformed."""

    exit_code = EXIT_GENERIC_FAILURE


class PluginError(CommitcamError):
    """Raised when a plugin cannot be loaded or looked up."""

    exit_code = EXIT_PLUGIN_ERROR


class DuplicatePluginError(PluginError):
    """Raised at registration time when two plugins share a name.

    Dispatch would be ambiguous, so the conflict is never resolved silently.
    """

    exit_code = EXIT_DUPLICATE_PLUGIN


class CaptureError(CommitcamError):
    """Raised when the capture step itself cannot produce a frame."""

    exit_code = EXIT_CAPTURE_ERROR
