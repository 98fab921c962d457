"""
Duration parsing for configuration values.

Accepts plain numbers (seconds) and compound unit strings in the style of
node command-line flags: "90s", "1h30m", "500ms", "1.5h".
"""

import re
from datetime import timedelta
from typing import Union

_UNIT_SECONDS = {
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_COMPONENT = re.compile(r"(\d+(?:\.\d+)?)(us|µs|ms|s|m|h)")


def parse_duration(value: Union[str, int, float, timedelta, None]) -> timedelta:
    """
    Parse a duration value.

    Raises:
        ValueError: value is not a valid duration
    """
    if value is None:
        return timedelta(0)
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        raise ValueError(f"invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        if value < 0:
            raise ValueError(f"negative duration: {value!r}")
        return timedelta(seconds=value)
    if not isinstance(value, str):
        raise ValueError(f"invalid duration: {value!r}")

    text = value.strip()
    if text in ("", "0"):
        return timedelta(0)

    total = 0.0
    pos = 0
    for match in _COMPONENT.finditer(text):
        if match.start() != pos:
            raise ValueError(f"invalid duration: {value!r}")
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()

    if pos == 0 or pos != len(text):
        raise ValueError(f"invalid duration: {value!r}")

    return timedelta(seconds=total)
