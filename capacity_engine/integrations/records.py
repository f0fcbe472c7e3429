"""
Records read from the platform database.

Every row crosses into the engine through one of these dataclasses. The
`from_row` constructors accept raw relational rows (as returned by the
REST layer) and validate them: numbers may be missing or arrive as
strings, dates must parse or the row is rejected.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional, Union

from dateutil.parser import isoparse


class MalformedDateError(ValueError):
    """A stored date could not be parsed."""

    def __init__(self, field_name: str, value: Any):
        super().__init__(f"Malformed date in field '{field_name}': {value!r}")
        self.field_name = field_name
        self.value = value


def parse_date(value: Union[str, date, datetime, None], field_name: str = "date") -> Optional[date]:
    """
    Parse an ISO date or timestamp into a calendar date.

    `None` and empty strings mean "no date". Anything else that is not a
    valid ISO date raises MalformedDateError.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise MalformedDateError(field_name, value)

    text = value.strip()
    try:
        return isoparse(text).date()
    except (ValueError, OverflowError):
        raise MalformedDateError(field_name, value) from None


def parse_hours(value: Any) -> Optional[float]:
    """Numeric column as float; Postgres numerics may arrive as strings."""
    if value is None or value == "":
        return None
    return float(value)


def _id(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


def embedded_one(value: Any) -> Optional[dict]:
    """
    An embedded relation as a single row.

    Joined relations come back either as an object or as a one-element
    list depending on the relationship's cardinality.
    """
    if isinstance(value, list):
        return value[0] if value else None
    return value


@dataclass(frozen=True)
class AvailabilityRecord:
    """Hours a user declared available for one ISO week."""
    user_id: str
    week_start_date: date
    available_hours: float = 0.0

    @classmethod
    def from_row(cls, row: dict) -> "AvailabilityRecord":
        week = parse_date(row.get("week_start_date"), "week_start_date")
        if week is None:
            raise MalformedDateError("week_start_date", None)
        return cls(
            user_id=str(row["user_id"]),
            week_start_date=week,
            available_hours=parse_hours(row.get("available_hours")) or 0.0,
        )


@dataclass(frozen=True)
class Task:
    """A task row."""
    id: str
    status: str = "todo"
    project_id: Optional[str] = None
    assigned_to: Optional[str] = None
    estimated_hours: Optional[float] = None
    remaining_hours: Optional[float] = None
    start_date: Optional[date] = None
    due_date: Optional[date] = None
    created_at: Optional[date] = None

    @property
    def hours(self) -> float:
        """Remaining effort: remaining hours, else the estimate, else nothing."""
        if self.remaining_hours is not None:
            return self.remaining_hours
        if self.estimated_hours is not None:
            return self.estimated_hours
        return 0.0

    @classmethod
    def from_row(cls, row: dict) -> "Task":
        return cls(
            id=str(row["id"]),
            status=row.get("status") or "todo",
            project_id=_id(row.get("project_id")),
            assigned_to=_id(row.get("assigned_to")),
            estimated_hours=parse_hours(row.get("estimated_hours")),
            remaining_hours=parse_hours(row.get("remaining_hours")),
            start_date=parse_date(row.get("start_date"), "start_date"),
            due_date=parse_date(row.get("due_date"), "due_date"),
            created_at=parse_date(row.get("created_at"), "created_at"),
        )


@dataclass(frozen=True)
class Project:
    """A project row."""
    id: str
    status: str = "planning"
    account_id: Optional[str] = None
    estimated_hours: Optional[float] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @classmethod
    def from_row(cls, row: dict) -> "Project":
        return cls(
            id=str(row["id"]),
            status=row.get("status") or "planning",
            account_id=_id(row.get("account_id")),
            estimated_hours=parse_hours(row.get("estimated_hours")),
            start_date=parse_date(row.get("start_date"), "start_date"),
            end_date=parse_date(row.get("end_date"), "end_date"),
        )


@dataclass(frozen=True)
class ProjectAssignment:
    """A user's membership on a project."""
    user_id: str
    project_id: str
    removed_at: Optional[date] = None
    account_id: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.removed_at is None

    @classmethod
    def from_row(cls, row: dict) -> "ProjectAssignment":
        project = embedded_one(row.get("projects")) or {}
        return cls(
            user_id=str(row["user_id"]),
            project_id=str(row["project_id"]),
            removed_at=parse_date(row.get("removed_at"), "removed_at"),
            account_id=_id(project.get("account_id")),
        )


@dataclass(frozen=True)
class TimeEntry:
    """Hours a user logged on a given day."""
    user_id: str
    entry_date: date
    hours_logged: float = 0.0
    project_id: Optional[str] = None
    task_id: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict) -> "TimeEntry":
        entry_date = parse_date(row.get("entry_date"), "entry_date")
        if entry_date is None:
            raise MalformedDateError("entry_date", None)
        return cls(
            user_id=str(row["user_id"]),
            entry_date=entry_date,
            hours_logged=parse_hours(row.get("hours_logged")) or 0.0,
            project_id=_id(row.get("project_id")),
            task_id=_id(row.get("task_id")),
        )
