"""
Duration parsing for emission requests.

Accepts the same notation as Go's time.ParseDuration: an optional sign
followed by one or more decimal numbers, each with a unit suffix.

Examples:
    >>> parse_duration("30s")
    datetime.timedelta(seconds=30)
    >>> parse_duration("1h30m")
    datetime.timedelta(seconds=5400)
    >>> parse_duration("200ms")
    datetime.timedelta(microseconds=200000)
"""

import re
from datetime import timedelta
from decimal import Decimal

from logtestserver.errors import InvalidDuration

_NANOS = {
    "ns": Decimal(1),
    "us": Decimal(1_000),
    "µs": Decimal(1_000),  # U+00B5 micro sign
    "μs": Decimal(1_000),  # U+03BC greek mu
    "ms": Decimal(1_000_000),
    "s": Decimal(1_000_000_000),
    "m": Decimal(60_000_000_000),
    "h": Decimal(3_600_000_000_000),
}

_NUMBER = r"(?:\d+\.?\d*|\.\d+)"
_UNIT = r"(?:ns|us|µs|μs|ms|s|m|h)"
_DURATION_RE = re.compile(rf"([-+]?)((?:{_NUMBER}{_UNIT})+)")
_PART_RE = re.compile(rf"({_NUMBER})({_UNIT})")


def parse_duration(text: str) -> timedelta:
    """
    Parse a duration string such as "300ms", "1.5h" or "2h45m".

    A bare "0" is the only unitless value accepted.

    Raises:
        InvalidDuration: if the text is not a valid duration
    """
    if not isinstance(text, str):
        raise InvalidDuration(repr(text))
    if text in ("0", "+0", "-0"):
        return timedelta(0)

    match = _DURATION_RE.fullmatch(text)
    if match is None:
        raise InvalidDuration(text)

    sign, body = match.groups()
    nanos = sum(Decimal(number) * _NANOS[unit] for number, unit in _PART_RE.findall(body))
    if sign == "-":
        nanos = -nanos
    try:
        result = timedelta(microseconds=float(nanos / 1000))
    except OverflowError:
        raise InvalidDuration(text) from None
    # timedelta resolution is 1us; keep positive sub-microsecond values positive
    if nanos > 0 and result < timedelta(microseconds=1):
        return timedelta(microseconds=1)
    return result
