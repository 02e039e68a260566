"""Marketplace timestamps.

The wire format is ISO-8601 with an explicit offset, e.g.
``2016-05-26T14:43:03.0000000-07:00``. The marketplace sends up to seven
fractional digits; Python keeps six.
"""

import re
from datetime import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from marketplace.exceptions import ParseError

_WIRE_DATE = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<fraction>\d+))?"
    r"(?P<offset>Z|[+-]\d{2}:?\d{2})$"
)


def parse_date(text: str) -> datetime:
    """Parse a wire timestamp into an aware ``datetime``."""
    if not isinstance(text, str):
        raise ParseError(f"Invalid date: {text!r}")
    match = _WIRE_DATE.match(text.strip())
    if match is None:
        raise ParseError(f"Invalid date: {text!r}")

    fraction = (match["fraction"] or "0")[:6].ljust(6, "0")
    offset = match["offset"]
    if offset == "Z":
        offset = "+00:00"
    elif ":" not in offset:
        offset = f"{offset[:3]}:{offset[3:]}"

    try:
        return datetime.fromisoformat(f"{match['base']}.{fraction}{offset}")
    except ValueError as exc:
        raise ParseError(f"Invalid date: {text!r}") from exc


def format_date(value: datetime) -> str:
    """Serialize an aware ``datetime`` in the wire format."""
    if value.tzinfo is None:
        raise ValueError("Marketplace dates must be timezone-aware")
    return value.isoformat(timespec="microseconds")


def to_zone(value: datetime, zone: str) -> datetime:
    """Same instant, expressed in ``zone`` for display."""
    try:
        return value.astimezone(ZoneInfo(zone))
    except ZoneInfoNotFoundError as exc:
        raise ValueError(f"Unknown time zone: {zone}") from exc
