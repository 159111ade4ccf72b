"""Normalization of VCS-reported dates into offset-aware datetimes.

Both ``svn info --xml`` dates (``2021-03-04T10:11:12.123456Z``) and
``git log --date=iso`` dates (``2021-03-04 10:11:12 +0900``) fit one pattern:
date, any single separator, time with optional fraction, optional blanks,
then ``Z`` or a ``+HHMM``/``-HHMM`` offset.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone

from .errors import FormatError

logger = logging.getLogger(__name__)

TIMESTAMP_RE = re.compile(
    r"\A(\d+)-(\d+)-(\d+)\D(\d+):(\d+):(\d+)(?:\.(\d+))?\s*(?:Z|([-+])(\d\d)(\d\d))\Z"
)


def _offset_minutes(sign: str, hours: str, minutes: str) -> int:
    total = int(hours) * 60 + int(minutes)
    return -total if sign == "-" else total


def normalize(value: str) -> datetime:
    """Parse a VCS date string into a datetime carrying an explicit UTC offset.

    Args:
        value: Date string as printed by the VCS client

    Returns:
        Offset-aware datetime; ``Z`` becomes ``+00:00``

    Raises:
        FormatError: If the string has an unknown shape, or its fields do not
            form a valid instant
    """
    match = TIMESTAMP_RE.match(value)
    if not match:
        raise FormatError(f"unknown time format - {value}")

    year, month, day, hour, minute, second = (int(x) for x in match.group(1, 2, 3, 4, 5, 6))
    fraction = match.group(7)
    microsecond = int(fraction[:6].ljust(6, "0")) if fraction else 0
    sign, off_hours, off_minutes = match.group(8, 9, 10)
    offset = _offset_minutes(sign, off_hours, off_minutes) if sign else 0

    try:
        tz = timezone(timedelta(minutes=offset))
        return datetime(year, month, day, hour, minute, second, microsecond, tzinfo=tz)
    except (ValueError, OverflowError) as exc:
        logger.debug("Strict construction of %r failed (%s), retrying as UTC", value, exc)

    # Offsets outside what tzinfo accepts still denote a definite instant:
    # read the fields as UTC wall time and shift by the offset.
    try:
        base = datetime(year, month, day, hour, minute, second, microsecond, tzinfo=timezone.utc)
        return base - timedelta(minutes=offset)
    except (ValueError, OverflowError) as exc:
        raise FormatError(f"invalid time - {value}") from exc
