"""Date helpers. All timestamps are handled as timezone-aware UTC datetimes."""

import math
from datetime import datetime, timedelta, timezone
from typing import Literal

from seeyouagain.domain.constants import SECONDS_PER_DAY


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def date_scheduler(now: datetime, t: float, is_day: bool = False) -> datetime:
    """Offset `now` by `t` days (is_day) or `t` minutes."""
    if is_day:
        return now + timedelta(days=t)
    return now + timedelta(minutes=t)


def date_diff_in_days(last: datetime, cur: datetime) -> int:
    """
    Whole calendar days between two instants, compared on their UTC dates.

    A review at 23:59 and one at 00:01 the next day are one day apart.
    """
    return (ensure_utc(cur).date() - ensure_utc(last).date()).days


def date_diff(now: datetime, pre: datetime, unit: Literal["days", "minutes"]) -> int:
    """Elapsed time from `pre` to `now`, floored to whole days or minutes."""
    seconds = (ensure_utc(now) - ensure_utc(pre)).total_seconds()
    if unit == "days":
        return math.floor(seconds / SECONDS_PER_DAY)
    return math.floor(seconds / 60)
