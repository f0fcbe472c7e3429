"""
Actuals Aggregator

Logged hours are historical fact: they are summed on the day they were
logged and never spread.
"""

from typing import Iterable, Optional

from .integrations import TimeEntry
from .periods import Period


def actual_hours(
    entries: Iterable[TimeEntry],
    period: Period,
    user_ids: Optional[Iterable[str]] = None,
    project_ids: Optional[Iterable[str]] = None
) -> float:
    """
    Sum hours logged within a period.

    Args:
        entries: Time entries of the snapshot
        period: Target period, both ends inclusive
        user_ids: Only count these users, when given
        project_ids: Only count these projects, when given

    Returns:
        Total logged hours
    """
    users = set(user_ids) if user_ids is not None else None
    projects = set(project_ids) if project_ids is not None else None

    total = 0.0
    for entry in entries:
        if not period.contains(entry.entry_date):
            continue
        if users is not None and entry.user_id not in users:
            continue
        if projects is not None and entry.project_id not in projects:
            continue
        total += entry.hours_logged or 0.0
    return total
