"""
Allocation Spreader

Distributes a work item's remaining effort across calendar periods.

Three cases, checked in order:

* overdue: everything lands in the period containing today, never in
  history and never in the future;
* no due date: spread evenly over a fixed horizon starting at the later
  of the item's start and today;
* future due date: spread evenly from that start to the due date.

Day counts are inclusive at both ends. A period overlapping the window on
a single day gets one day's share.
"""

import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Iterable, Optional, Union

from .config import CapacityPolicy
from .periods import Period, as_date


class WorkItemKind(Enum):
    """What a work item was projected from."""
    TASK = "task"
    PROJECT = "project"


@dataclass(frozen=True)
class WorkItem:
    """Effort still to be done, with the dates needed to place it."""
    id: str
    hours: float
    start_date: date
    effective_due_date: Optional[date] = None
    kind: WorkItemKind = WorkItemKind.TASK
    owner_id: Optional[str] = None
    project_id: Optional[str] = None

    def is_overdue(self, today: date) -> bool:
        return self.effective_due_date is not None and self.effective_due_date < today


def days_between(start: date, end: date) -> int:
    """Whole days from start to end, rounded up; negative when end precedes start."""
    return math.ceil((end - start) / timedelta(days=1))


def overlap_days(window_start: date, window_end: date, period: Period) -> int:
    """Days shared by a window and a period, counting both boundary days."""
    overlap_start = max(window_start, period.start)
    overlap_end = min(window_end, period.end)
    return max(0, days_between(overlap_start, overlap_end) + 1)


class AllocationSpreader:
    """
    Attributes work item hours to periods.

    Usage:
        spreader = AllocationSpreader()
        hours = spreader.spread(item, period, now=datetime.now())
    """

    def __init__(self, policy: Optional[CapacityPolicy] = None):
        self.policy = policy or CapacityPolicy()

    def spread(
        self,
        item: WorkItem,
        period: Period,
        now: Union[date, datetime]
    ) -> float:
        """
        Hours of `item` attributable to `period`.

        Args:
            item: Work item to place
            period: Target period
            now: Reference instant; only its calendar date is used

        Returns:
            Hours (never negative)
        """
        if item.hours <= 0:
            return 0.0

        today = as_date(now)

        if item.is_overdue(today):
            return float(item.hours) if period.contains(today) else 0.0

        effective_start = max(item.start_date, today)

        if item.effective_due_date is None:
            window_end = effective_start + timedelta(days=self.policy.no_due_date_window_days)
            if effective_start > period.end or window_end < period.start:
                return 0.0

            # The rate uses the window length while the overlap counts both
            # boundary days, so a full window adds up to one extra day's share.
            window_days = max(1, days_between(effective_start, window_end))
            daily_rate = item.hours / window_days
            return daily_rate * overlap_days(effective_start, window_end, period)

        if effective_start > period.end:
            return 0.0

        due = item.effective_due_date
        remaining_days = max(1, days_between(effective_start, due) + 1)
        daily_rate = item.hours / remaining_days
        return daily_rate * overlap_days(effective_start, due, period)

    def spread_over(
        self,
        item: WorkItem,
        periods: Iterable[Period],
        now: Union[date, datetime]
    ) -> list[float]:
        """Hours of `item` for each period, in order."""
        return [self.spread(item, period, now) for period in periods]

    def allocated_hours(
        self,
        items: Iterable[WorkItem],
        period: Period,
        now: Union[date, datetime]
    ) -> float:
        """Total hours of all items attributable to one period."""
        return sum((self.spread(item, period, now) for item in items), 0.0)
