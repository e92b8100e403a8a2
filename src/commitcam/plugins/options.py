"""Typed parsing of option values entered during the configuration flow.

Two layers live here:

* :func:`parse_user_input` -- the loose, shared string-to-value helper that
  guesses a type from the text itself (``"true"`` becomes ``True``,
  ``"42"`` becomes ``42``, blank becomes ``None``).
* :func:`parse_option` -- the strict parser used by
  :meth:`~commitcam.plugins.base.Plugin.configure_options`, which converts
  the text according to the :class:`~commitcam.models.OptionSpec` the plugin
  declared and raises :class:`OptionValueError` when it cannot.
"""

from __future__ import annotations

import re
from typing import Callable

from commitcam.models import ENABLED_KEY, OptionSpec, OptionType, OptionValue

ENABLED_OPTION = OptionSpec(
    key=ENABLED_KEY,
    type=OptionType.BOOLEAN,
    description="Run this plugin during captures",
    required=True,
)
"""The option every plugin declares unless it overrides ``options``."""

_TRUE_WORDS = frozenset({"true", "yes", "y", "1", "on"})
_FALSE_WORDS = frozenset({"false", "no", "n", "0", "off"})
_DIGITS = re.compile(r"^[0-9]+$")


class OptionValueError(ValueError):
    """Raised when prompt input cannot be converted to the declared type."""


def parse_user_input(text: str) -> OptionValue:
    """Convert raw user input into a bool, int, ``None`` or string.

    Args:
        text: The text as typed by the user.

    Returns:
        ``True``/``False`` for a case-insensitive ``true``/``false``, an
        ``int`` for an all-digit string, ``None`` for blank input, and the
        stripped string otherwise.
    """
    value = text.strip()
    if value.lower() == "true":
        return True
    if value.lower() == "false":
        return False
    if _DIGITS.match(value):
        return int(value)
    if not value:
        return None
    return value


def _parse_boolean(value: str) -> bool:
    lowered = value.lower()
    if lowered in _TRUE_WORDS:
        return True
    if lowered in _FALSE_WORDS:
        return False
    raise OptionValueError(f"expected true or false, got '{value}'")


def _parse_integer(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise OptionValueError(f"expected a whole number, got '{value}'") from None


def _parse_number(value: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise OptionValueError(f"expected a number, got '{value}'") from None


_PARSERS: dict[OptionType, Callable[[str], OptionValue]] = {
    OptionType.STRING: lambda value: value,
    OptionType.BOOLEAN: _parse_boolean,
    OptionType.INTEGER: _parse_integer,
    OptionType.NUMBER: _parse_number,
}


def parse_option(spec: OptionSpec, text: str) -> OptionValue:
    """Parse *text* according to the declared type of *spec*.

    Blank input falls back to ``spec.default``.

    Args:
        spec: The option being configured.
        text: Raw prompt input.

    Returns:
        The typed value.

    Raises:
        OptionValueError: If the value cannot be parsed, or it is blank for
            a required option that has no default.
    """
    value = text.strip()
    if not value:
        if spec.required and spec.default is None:
            raise OptionValueError(f"a value for '{spec.key}' is required")
        return spec.default
    return _PARSERS[spec.type](value)
