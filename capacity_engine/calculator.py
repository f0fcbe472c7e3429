"""
Capacity Calculator

Computes available, allocated and actual hours for every period of a
granularity, from one immutable snapshot of the scope's data.
"""

import logging
import math
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Mapping, Optional, Union

from .actuals import actual_hours
from .allocation import AllocationSpreader, WorkItem
from .availability import AvailabilityIndex, available_hours
from .config import CapacityPolicy
from .integrations import AvailabilityRecord, TimeEntry
from .periods import Granularity, Period, generate_periods

logger = logging.getLogger(__name__)


def utilization_of(actual: float, available: float) -> int:
    """Actual hours as a whole percentage of available hours."""
    if available <= 0:
        return 0
    return int(math.floor(actual / available * 100 + 0.5))


@dataclass(frozen=True)
class CapacityPoint:
    """Capacity figures for one period."""
    period: Period
    available: float = 0.0
    allocated: float = 0.0
    actual: float = 0.0
    utilization: int = 0

    @classmethod
    def build(cls, period: Period, available: float, allocated: float, actual: float) -> "CapacityPoint":
        return cls(
            period=period,
            available=available,
            allocated=allocated,
            actual=actual,
            utilization=utilization_of(actual, available),
        )

    @property
    def remaining(self) -> float:
        """Available hours not yet consumed by logged time."""
        return self.available - self.actual

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            **self.period.to_dict(),
            "available": round(self.available, 2),
            "allocated": round(self.allocated, 2),
            "actual": round(self.actual, 2),
            "utilization": self.utilization,
        }


@dataclass(frozen=True)
class CapacitySummary:
    """Totals over a capacity series."""
    total_available: float = 0.0
    total_allocated: float = 0.0
    total_actual: float = 0.0
    periods: int = 0

    @property
    def utilization(self) -> int:
        return utilization_of(self.total_actual, self.total_available)

    @property
    def remaining(self) -> float:
        return self.total_available - self.total_actual

    def to_dict(self) -> dict:
        return {
            "periods": self.periods,
            "totalAvailable": round(self.total_available, 2),
            "totalAllocated": round(self.total_allocated, 2),
            "totalActual": round(self.total_actual, 2),
            "utilization": self.utilization,
            "remainingCapacity": round(self.remaining, 2),
        }


@dataclass(frozen=True)
class CapacitySnapshot:
    """
    Everything the calculator reads for one scope.

    Built fresh for each request and never mutated. `availability_weights`
    scales a user's declared hours (account scope splits a person across
    the accounts they work on). `project_ids`, when set, limits which time
    entries count.
    """
    user_ids: tuple[str, ...] = ()
    availability: tuple[AvailabilityRecord, ...] = ()
    work_items: tuple[WorkItem, ...] = ()
    time_entries: tuple[TimeEntry, ...] = ()
    availability_weights: Mapping[str, float] = field(default_factory=dict)
    project_ids: Optional[frozenset] = None

    @property
    def is_empty(self) -> bool:
        return not self.user_ids

    def for_user(self, user_id: str) -> "CapacitySnapshot":
        """
        The part of the snapshot that belongs to one user.

        Keeps the user's availability, the work items they own and the time
        they logged. Weights and the project filter carry over unchanged.
        """
        return replace(
            self,
            user_ids=(user_id,),
            availability=tuple(a for a in self.availability if a.user_id == user_id),
            work_items=tuple(i for i in self.work_items if i.owner_id == user_id),
            time_entries=tuple(e for e in self.time_entries if e.user_id == user_id),
        )


class CapacityCalculator:
    """
    Produces the capacity series for a snapshot.

    Usage:
        calculator = CapacityCalculator()
        points = calculator.compute(snapshot, "weekly", now=datetime.now())
        for point in points:
            print(f"{point.period.label}: {point.utilization}%")
    """

    def __init__(self, policy: Optional[CapacityPolicy] = None):
        self.policy = policy or CapacityPolicy()
        self.spreader = AllocationSpreader(self.policy)

    def compute(
        self,
        snapshot: CapacitySnapshot,
        granularity: Union[str, Granularity],
        now: Optional[Union[date, datetime]] = None,
        periods: Optional[list[Period]] = None
    ) -> list[CapacityPoint]:
        """
        Compute capacity points for each period.

        Args:
            snapshot: Scope data
            granularity: daily, weekly, monthly or quarterly
            now: Reference instant (defaults to the current time)
            periods: Precomputed periods for `now`; generated when omitted

        Returns:
            One CapacityPoint per period, in calendar order
        """
        granularity = Granularity.parse(granularity)
        now = now or datetime.now()
        if periods is None:
            periods = generate_periods(granularity, now, self.policy)

        if snapshot.is_empty:
            return [CapacityPoint(period=period) for period in periods]

        index = AvailabilityIndex(snapshot.availability)
        logger.debug(
            "Computing %s capacity for %d users: %d availability rows, %d work items, %d time entries",
            granularity.value, len(snapshot.user_ids), len(index),
            len(snapshot.work_items), len(snapshot.time_entries)
        )

        points = []
        for period in periods:
            available = available_hours(
                index,
                snapshot.user_ids,
                period,
                granularity,
                policy=self.policy,
                weights=snapshot.availability_weights
            )
            allocated = self.spreader.allocated_hours(snapshot.work_items, period, now)
            actual = actual_hours(
                snapshot.time_entries,
                period,
                user_ids=snapshot.user_ids,
                project_ids=snapshot.project_ids
            )
            points.append(CapacityPoint.build(period, available, allocated, actual))

        return points

    @staticmethod
    def summarize(points: list[CapacityPoint]) -> CapacitySummary:
        """Totals over a series."""
        return CapacitySummary(
            total_available=sum((p.available for p in points), 0.0),
            total_allocated=sum((p.allocated for p in points), 0.0),
            total_actual=sum((p.actual for p in points), 0.0),
            periods=len(points),
        )
