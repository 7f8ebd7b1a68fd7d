"""Calendar-based Peak / Off-Peak classification."""
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Union

from rental_quotes.core.enums import Season

DateLike = Union[date, datetime]


@dataclass(frozen=True)
class SeasonSplit:
    peak_days: int
    off_peak_days: int

    @property
    def total_days(self) -> int:
        return self.peak_days + self.off_peak_days


def _as_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def classify(value: DateLike) -> Season:
    """Off-Peak runs April 6 - May 31 and October 1 - December 4; everything else is Peak."""
    day = _as_date(value)
    month = day.month

    if (month == 4 and day.day >= 6) or month == 5:
        return Season.OFF_PEAK
    if month in (10, 11) or (month == 12 and day.day <= 4):
        return Season.OFF_PEAK
    return Season.PEAK


def split_days_by_season(start: DateLike, end: DateLike) -> SeasonSplit:
    peak_days = 0
    off_peak_days = 0

    current = _as_date(start)
    last = _as_date(end)
    while current <= last:
        if classify(current) == Season.PEAK:
            peak_days += 1
        else:
            off_peak_days += 1
        current += timedelta(days=1)

    return SeasonSplit(peak_days=peak_days, off_peak_days=off_peak_days)


def rental_days(start: DateLike, end: DateLike) -> int:
    """Inclusive calendar-day count of the rental window."""
    return max((_as_date(end) - _as_date(start)).days + 1, 0)
