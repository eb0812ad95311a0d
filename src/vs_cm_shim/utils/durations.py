"""Parsing and formatting of Go-style duration strings such as ``2160h``."""

from __future__ import annotations

import re
from fractions import Fraction

NANOSECOND = 1
MICROSECOND = 1000 * NANOSECOND
MILLISECOND = 1000 * MICROSECOND
SECOND = 1000 * MILLISECOND
MINUTE = 60 * SECOND
HOUR = 60 * MINUTE

_MAX_DURATION = 2**63 - 1

_UNITS = {
    "ns": NANOSECOND,
    "us": MICROSECOND,
    "µs": MICROSECOND,  # micro sign
    "μs": MICROSECOND,  # greek mu
    "ms": MILLISECOND,
    "s": SECOND,
    "m": MINUTE,
    "h": HOUR,
}

_NUMBER = re.compile(r"(\d*)(?:\.(\d*))?")
_UNIT = re.compile(r"[^\d.]*")


def parse_duration(value: str) -> int:
    """Parse a duration string into nanoseconds.

    Accepts the same grammar as Go's ``time.ParseDuration``: an optional
    sign followed by one or more decimal numbers, each with an optional
    fraction and a mandatory unit suffix, e.g. ``"300ms"``, ``"-1.5h"`` or
    ``"2h45m"``.

    Args:
        value: Duration string

    Returns:
        Duration in nanoseconds

    Raises:
        ValueError: If the string is not a valid duration
    """
    text = value
    negative = False
    if text and text[0] in "+-":
        negative = text[0] == "-"
        text = text[1:]

    if text == "0":
        return 0
    if not text:
        raise ValueError(f'time: invalid duration "{value}"')

    total = Fraction(0)
    while text:
        number = _NUMBER.match(text)
        whole, fraction = number.group(1), number.group(2)
        if not whole and not fraction:
            raise ValueError(f'time: invalid duration "{value}"')
        text = text[number.end():]

        unit = _UNIT.match(text).group(0)
        if not unit:
            raise ValueError(f'time: missing unit in duration "{value}"')
        if unit not in _UNITS:
            raise ValueError(f'time: unknown unit "{unit}" in duration "{value}"')
        text = text[len(unit):]

        amount = Fraction(int(whole or "0"))
        if fraction:
            amount += Fraction(int(fraction), 10 ** len(fraction))
        total += amount * _UNITS[unit]
        if total > _MAX_DURATION:
            raise ValueError(f'time: invalid duration "{value}"')

    nanoseconds = int(total)
    return -nanoseconds if negative else nanoseconds


def _fixed(amount: int, precision: int) -> str:
    whole, fraction = divmod(amount, 10**precision)
    if not fraction:
        return str(whole)
    return f"{whole}.{fraction:0{precision}d}".rstrip("0")


def format_duration(nanoseconds: int) -> str:
    """Format nanoseconds the way Go's ``Duration.String`` does.

    ``format_duration(parse_duration("2160h")) == "2160h0m0s"``
    """
    if nanoseconds == 0:
        return "0s"

    sign = "-" if nanoseconds < 0 else ""
    remaining = abs(nanoseconds)

    if remaining < SECOND:
        if remaining < MICROSECOND:
            return f"{sign}{remaining}ns"
        if remaining < MILLISECOND:
            return f"{sign}{_fixed(remaining, 3)}µs"
        return f"{sign}{_fixed(remaining, 6)}ms"

    seconds, fraction = divmod(remaining, SECOND)
    text = str(seconds % 60)
    if fraction:
        text += f".{fraction:09d}".rstrip("0")
    text += "s"

    minutes = seconds // 60
    if minutes:
        text = f"{minutes % 60}m{text}"
        hours = minutes // 60
        if hours:
            text = f"{hours}h{text}"

    return sign + text
