from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Callable, Optional

from dateutil import parser as date_parser

from logger import get_logger

log = get_logger("dates")

Clock = Callable[[], datetime]

ONE_DAY = timedelta(days=1)

# Relative words resolved against the clock (offset in days).
_RELATIVE_WORDS = {
    "now": 0,
    "today": 0,
    "yesterday": -1,
    "tomorrow": 1,
}


def _align_to_clock(parsed: datetime, now: datetime) -> datetime:
    """Bring a parsed value into the same naive/aware frame as ``now`` so they compare."""
    if now.tzinfo is None and parsed.tzinfo is not None:
        return parsed.astimezone().replace(tzinfo=None)
    if now.tzinfo is not None and parsed.tzinfo is None:
        return parsed.replace(tzinfo=now.tzinfo)
    return parsed


def normalize_date(
    raw: Optional[str],
    *,
    clock: Optional[Clock] = None,
    null_token: str = "null",
    dayfirst: bool = False,
) -> datetime:
    """
    Turn a free-form date string into a datetime. Never raises.

    Blank values and the ``null`` token mean "still ongoing" and resolve to the
    clock's current instant. Anything that can't be parsed also falls back to
    the current instant, with a warning.
    """
    now = (clock or datetime.now)()

    if raw is None:
        return now
    text = str(raw)
    if not text.strip() or text.strip().lower() == null_token.lower():
        return now

    cleaned = text.replace("'", "").replace('"', "").strip()

    offset = _RELATIVE_WORDS.get(cleaned.lower())
    if offset is not None:
        return now + offset * ONE_DAY

    if cleaned:
        # Missing parts (e.g. "March 2023" has no day) come from today's date.
        default = now.replace(hour=0, minute=0, second=0, microsecond=0)
        try:
            parsed = date_parser.parse(cleaned, default=default, dayfirst=dayfirst)
            # Shifting offsets near year 1 or 9999 can leave the datetime range.
            return _align_to_clock(parsed, now)
        except (ValueError, OverflowError):
            pass

    log.warning('Could not parse date: "%s". Using current date as fallback.', raw)
    return now


def overlap_days(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> int:
    """
    Days shared by [start_a, end_a] and [start_b, end_b].

    Partial days round up, so any positive overlap counts as at least one day.
    Disjoint (or inverted) ranges give 0, as do ranges that only touch at one instant.
    """
    overlap_start = max(start_a, start_b)
    overlap_end = min(end_a, end_b)
    if overlap_start <= overlap_end:
        return math.ceil((overlap_end - overlap_start) / ONE_DAY)
    return 0
