"""
Availability Aggregator

Turns weekly availability declarations into available hours for any
period: a fifth of the week for a day, the week itself for a week, and
every week starting inside a month or quarter.
"""

from datetime import date, timedelta
from typing import Iterable, Mapping, Optional, Union

from .config import CapacityPolicy
from .integrations import AvailabilityRecord
from .periods import Granularity, Period, week_start_of


class AvailabilityIndex:
    """Lookup of declared hours by (user, Monday)."""

    def __init__(self, records: Iterable[AvailabilityRecord] = ()):
        self._hours: dict[tuple[str, date], float] = {}
        for record in records:
            # Last row read wins for duplicate user/week pairs
            self._hours[(record.user_id, record.week_start_date)] = record.available_hours or 0.0

    def __len__(self) -> int:
        return len(self._hours)

    def hours(self, user_id: str, week_start: date) -> float:
        """Declared hours for the user's week, 0 when nothing was declared."""
        return self._hours.get((user_id, week_start), 0.0)


def mondays_within(period: Period) -> list[date]:
    """Mondays falling inside the period, both ends inclusive."""
    monday = week_start_of(period.start)
    if monday < period.start:
        monday += timedelta(weeks=1)

    mondays = []
    while monday <= period.end:
        mondays.append(monday)
        monday += timedelta(weeks=1)
    return mondays


def available_hours(
    index: AvailabilityIndex,
    user_ids: Iterable[str],
    period: Period,
    granularity: Union[str, Granularity],
    policy: Optional[CapacityPolicy] = None,
    weights: Optional[Mapping[str, float]] = None
) -> float:
    """
    Sum available hours across users for one period.

    Args:
        index: Availability lookup for the snapshot
        user_ids: Users in scope
        period: Target period
        granularity: How the period was generated
        policy: Supplies the workdays-per-week divisor
        weights: Optional per-user multiplier (defaults to 1.0)

    Returns:
        Total available hours
    """
    granularity = Granularity.parse(granularity)
    policy = policy or CapacityPolicy()
    weights = weights or {}

    if granularity is Granularity.DAILY:
        weeks = [week_start_of(period.start)]
        factor = 1.0 / policy.workdays_per_week
    elif granularity is Granularity.WEEKLY:
        weeks = [week_start_of(period.start)]
        factor = 1.0
    else:
        weeks = mondays_within(period)
        factor = 1.0

    total = 0.0
    for user_id in user_ids:
        user_hours = sum(index.hours(user_id, week) for week in weeks)
        total += user_hours * factor * weights.get(user_id, 1.0)
    return total
