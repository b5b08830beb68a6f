"""
Timestamp helpers.

Report timestamps are UTC instants with seven fractional digits and a literal
``Z``, e.g. ``2024-03-01T09:15:02.1234560Z``. Directory timestamps arrive
either as datetimes (ldap3 with schema information) or as LDAP
GeneralizedTime strings (``20240301091502.0Z``).
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

_GENERALIZED_TIME = re.compile(
    r"^(?P<base>\d{14})(?:[.,](?P<fraction>\d+))?(?P<tz>Z|[+-]\d{4})?$"
)
_REPORT_TIME = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})\.(?P<fraction>\d{7})Z$"
)


def as_utc(value: datetime) -> datetime:
    """Convert to an aware UTC datetime. Naive values are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    # datetime carries microseconds; the seventh digit (100ns ticks) is always 0
    return as_utc(value).strftime("%Y-%m-%dT%H:%M:%S.%f") + "0Z"


def local_now() -> datetime:
    """Wall-clock capture in the local zone, aware so it converts to UTC exactly."""
    return datetime.now().astimezone()


def parse_generalized_time(text: str) -> datetime:
    """
    Parse an LDAP GeneralizedTime string into an aware UTC datetime.

    Raises ValueError for anything that is not GeneralizedTime.
    """
    match = _GENERALIZED_TIME.match(text.strip())
    if not match:
        raise ValueError(f"Not a GeneralizedTime value: {text!r}")
    parsed = datetime.strptime(match.group("base"), "%Y%m%d%H%M%S")
    fraction = match.group("fraction")
    if fraction:
        parsed += timedelta(microseconds=round(float(f"0.{fraction}") * 1_000_000))
    tz = match.group("tz")
    if tz and tz != "Z":
        sign = 1 if tz[0] == "+" else -1
        offset = timedelta(hours=int(tz[1:3]), minutes=int(tz[3:5]))
        return parsed.replace(tzinfo=timezone(sign * offset)).astimezone(timezone.utc)
    return parsed.replace(tzinfo=timezone.utc)


def parse_report_timestamp(text: str) -> datetime:
    """Inverse of format_timestamp."""
    match = _REPORT_TIME.match(text)
    if not match:
        raise ValueError(f"Not a report timestamp: {text!r}")
    parsed = datetime.strptime(match.group("base"), "%Y-%m-%dT%H:%M:%S")
    ticks = int(match.group("fraction"))
    return parsed.replace(microsecond=ticks // 10, tzinfo=timezone.utc)


def coerce_timestamp(value: Any) -> Optional[datetime]:
    """Normalise a raw directory attribute value to an aware datetime or None."""
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if value is None:
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, bytes):
        value = value.decode("utf-8")
    if isinstance(value, str):
        if not value.strip():
            return None
        return parse_generalized_time(value)
    raise TypeError(f"Unsupported timestamp value: {value!r}")


__all__ = [
    "as_utc",
    "coerce_timestamp",
    "format_timestamp",
    "local_now",
    "parse_generalized_time",
    "parse_report_timestamp",
]
