"""commitcam -- snap a picture on every git commit and hand it to plugins.

The core of this package is the plugin contract: every plugin declares a
name, the capture phases it participates in, and the options it wants
persisted. A :class:`~commitcam.runner.Runner` drives one capture at a time
and dispatches the ``pre_capture``, ``post_capture`` and ``capture_ready``
hooks of every admitted plugin, in registration order.

Typical workflow::

    commitcam plugins configure plugin-sample   # one-time setup
    commitcam capture --sha deadbeef            # run a capture cycle

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models and enums shared across the package.
    config: XDG-aware configuration store backed by YAML.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
    runner: The capture sequence and its git helpers.
"""

__version__ = "0.1.0"
