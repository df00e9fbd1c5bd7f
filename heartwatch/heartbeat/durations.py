"""
Duration Helpers

Parsing and formatting of durations as they appear on the wire and on the
command line. Heartbeat publishers encode durations as integer nanoseconds;
humans write them as "15s", "1h30m" or "500ms".
"""

from __future__ import annotations

import re
from datetime import timedelta

_UNITS: dict[str, float] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
    "d": 86400.0,
}

_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h|d)")


def parse_duration(value: str | int | float | timedelta) -> timedelta:
    """
    Parse a duration.

    Accepts a timedelta, an integer number of nanoseconds, or a string made of
    one or more number/unit pairs ("15s", "1h30m", "250ms"). A bare number in a
    string is taken as seconds.

    Raises:
        ValueError: if the value cannot be parsed
    """
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        raise ValueError(f"invalid duration: {value!r}")
    if isinstance(value, int):
        return timedelta(microseconds=value / 1000)
    if isinstance(value, float):
        return timedelta(microseconds=value / 1000)

    text = value.strip().lower()
    if not text:
        raise ValueError("empty duration")

    sign = 1
    if text[0] in "+-":
        sign = -1 if text[0] == "-" else 1
        text = text[1:]

    try:
        return timedelta(seconds=sign * float(text))
    except ValueError:
        pass

    pos = 0
    seconds = 0.0
    for match in _PART.finditer(text):
        if match.start() != pos:
            raise ValueError(f"invalid duration: {value!r}")
        seconds += float(match.group(1)) * _UNITS[match.group(2)]
        pos = match.end()

    if pos == 0 or pos != len(text):
        raise ValueError(f"invalid duration: {value!r}")

    return timedelta(seconds=sign * seconds)


def to_nanoseconds(value: timedelta) -> int:
    """Convert a timedelta to integer nanoseconds."""
    return (value.days * 86400 + value.seconds) * 1_000_000_000 + value.microseconds * 1000


def format_duration(value: timedelta) -> str:
    """
    Format a duration the way Go prints time.Duration.

    Examples: "0s", "500ms", "1.5s", "1m30s", "12h0m0s".
    """
    micros = (value.days * 86400 + value.seconds) * 1_000_000 + value.microseconds
    if micros == 0:
        return "0s"

    sign = "-" if micros < 0 else ""
    micros = abs(micros)

    if micros < 1_000_000:
        if micros < 1000:
            return f"{sign}{micros}µs"
        return f"{sign}{_trim(micros / 1000)}ms"

    hours, rest = divmod(micros, 3_600_000_000)
    minutes, rest = divmod(rest, 60_000_000)
    seconds = _trim(rest / 1_000_000)

    if hours:
        return f"{sign}{hours}h{minutes}m{seconds}s"
    if minutes:
        return f"{sign}{minutes}m{seconds}s"
    return f"{sign}{seconds}s"


def _trim(number: float) -> str:
    """Render a number with up to six decimals and no trailing zeros."""
    text = f"{number:.6f}".rstrip("0").rstrip(".")
    return text or "0"
