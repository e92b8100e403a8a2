"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~commitcam.exceptions.CommitcamError` subclass.
Git hooks and shell wrappers can inspect the exit code to determine the
failure class without parsing stderr.
"""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_PLUGIN_ERROR = 10
"""A plugin failed to load or could not be found."""

EXIT_DUPLICATE_PLUGIN = 11
"""Two installed plugins share the same name."""

EXIT_CAPTURE_ERROR = 12
"""The capture device (or the git lookup feeding it) failed."""

EXIT_INTERRUPTED = 130
"""The user cancelled with Ctrl-C."""
