"""
Period Generator

Splits the calendar around today into daily, weekly, monthly or quarterly
periods. Weeks start on Monday.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Optional, Union

from dateutil.relativedelta import relativedelta

from .config import CapacityPolicy

logger = logging.getLogger(__name__)

# Labels are always English, whatever the process locale
MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


class Granularity(Enum):
    """How the calendar is partitioned."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"

    @classmethod
    def parse(cls, value: Union[str, "Granularity"]) -> "Granularity":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(
                f"Invalid period '{value}'. Must be: daily, weekly, monthly, or quarterly"
            ) from None


@dataclass(frozen=True)
class Period:
    """An inclusive calendar interval."""
    label: str
    start: date
    end: date

    def __post_init__(self):
        if self.end < self.start:
            raise ValueError(f"Period {self.label} ends before it starts")

    @property
    def days(self) -> int:
        """Number of calendar days covered, both ends included."""
        return (self.end - self.start).days + 1

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "startDate": self.start.isoformat(),
            "endDate": self.end.isoformat(),
        }


def as_date(value: Union[date, datetime]) -> date:
    """Calendar date of a date or datetime."""
    if isinstance(value, datetime):
        return value.date()
    return value


def week_start_of(day: Union[date, datetime]) -> date:
    """Monday of the week containing `day`."""
    day = as_date(day)
    return day - timedelta(days=day.weekday())


def _month_abbr(day: date) -> str:
    return MONTH_ABBREVIATIONS[day.month - 1]


def _quarter_start(day: date) -> date:
    return date(day.year, 3 * ((day.month - 1) // 3) + 1, 1)


def _daily(today: date, offset: int) -> Period:
    day = today + timedelta(days=offset)
    return Period(label=f"{_month_abbr(day)} {day.day}", start=day, end=day)


def _weekly(today: date, offset: int) -> Period:
    monday = week_start_of(today) + timedelta(weeks=offset)
    return Period(label=f"{_month_abbr(monday)} {monday.day}", start=monday, end=monday + timedelta(days=6))


def _monthly(today: date, offset: int) -> Period:
    first = today.replace(day=1) + relativedelta(months=offset)
    last = first + relativedelta(months=1) - timedelta(days=1)
    return Period(label=f"{_month_abbr(first)} {first.year}", start=first, end=last)


def _quarterly(today: date, offset: int) -> Period:
    first = _quarter_start(today) + relativedelta(months=3 * offset)
    last = first + relativedelta(months=3) - timedelta(days=1)
    quarter = (first.month - 1) // 3 + 1
    return Period(label=f"Q{quarter} {first.year}", start=first, end=last)


_BUILDERS = {
    Granularity.DAILY: _daily,
    Granularity.WEEKLY: _weekly,
    Granularity.MONTHLY: _monthly,
    Granularity.QUARTERLY: _quarterly,
}


def generate_periods(
    granularity: Union[str, Granularity],
    now: Optional[Union[date, datetime]] = None,
    policy: Optional[CapacityPolicy] = None
) -> list[Period]:
    """
    Generate the periods shown for a granularity, with today's period in the middle.

    Args:
        granularity: daily, weekly, monthly or quarterly
        now: Reference instant (defaults to the current time)
        policy: Supplies how many periods to show on each side

    Returns:
        Ordered, non-overlapping periods
    """
    granularity = Granularity.parse(granularity)
    policy = policy or CapacityPolicy()
    today = as_date(now or datetime.now())
    window = policy.window_for(granularity.value)

    build = _BUILDERS[granularity]
    periods = [build(today, offset) for offset in range(-window, window + 1)]

    logger.debug(
        "Generated %d %s periods from %s to %s",
        len(periods), granularity.value, periods[0].start, periods[-1].end
    )
    return periods


def date_range_of(periods: list[Period]) -> tuple[date, date]:
    """First start and last end of an ordered period list."""
    if not periods:
        raise ValueError("No periods given")
    return periods[0].start, periods[-1].end
