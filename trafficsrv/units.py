"""
units.py — size and duration strings
------------------------------------
Sizes:      "512", "10B", "64k", "10M", "2G"   (1024-based units)
Durations:  "250ms", "1.5s", "1h30m", "0"
"""

import re

from .errors import InvalidFormat

KILOBYTES = 1024
MEGABYTES = 1024 * KILOBYTES
GIGABYTES = 1024 * MEGABYTES

SIZE_UNITS = {
    "b": 1,
    "k": KILOBYTES,
    "m": MEGABYTES,
    "g": GIGABYTES,
}

MAX_INT64 = 2 ** 63 - 1

DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,  # U+00B5
    "μs": 1e-6,  # U+03BC
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_INTEGER = re.compile(r"\+?[0-9]+")
_DURATION_TOKEN = re.compile(r"([0-9]*(?:\.[0-9]*)?)(ns|us|µs|μs|ms|s|m|h)")


def parse_size(text: str) -> int:
    """Convert a size string into a number of bytes.

    A size string is an integer with an optional one-letter suffix: ``B`` for
    bytes, ``K`` for kilobytes, ``M`` for megabytes or ``G`` for gigabytes,
    in any case. Without a suffix the value is in bytes. An empty string
    returns 0 so the caller can substitute its own default.
    """
    if text == "":
        return 0

    digits = text
    unit = SIZE_UNITS.get(text[-1].lower())
    if unit is None:
        unit = 1
    else:
        digits = text[:-1]

    if digits.startswith("-") and _INTEGER.fullmatch(digits[1:]):
        raise InvalidFormat(f"negative size {text!r}")
    if not _INTEGER.fullmatch(digits):
        raise InvalidFormat(f"invalid size {text!r}")

    value = int(digits) * unit
    if value > MAX_INT64:
        raise InvalidFormat(f"size {text!r} out of range")
    return value


def parse_duration(text: str) -> float:
    """Convert a duration string such as ``"1h30m"`` into seconds.

    Accepts one or more ``<number><unit>`` tokens, with units ``ns``, ``us``,
    ``ms``, ``s``, ``m`` and ``h``. An empty string means no delay.
    """
    if text == "" or text in ("0", "+0"):
        return 0.0

    rest = text[1:] if text.startswith("+") else text
    if rest.startswith("-"):
        raise InvalidFormat(f"negative duration {text!r}")
    if rest == "":
        raise InvalidFormat(f"invalid duration {text!r}")

    total = 0.0
    pos = 0
    while pos < len(rest):
        match = _DURATION_TOKEN.match(rest, pos)
        if match is None:
            raise InvalidFormat(f"invalid duration {text!r}")
        number, unit = match.groups()
        if number in ("", "."):
            raise InvalidFormat(f"invalid duration {text!r}")
        total += float(number) * DURATION_UNITS[unit]
        pos = match.end()
    return total
