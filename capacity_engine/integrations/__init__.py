"""
Capacity Engine - Integrations

Read-only access to the platform's capacity data:
- Records: validated availability, task, project, assignment and time entry rows
- DataSource: the interface the engine reads through
- InMemoryDataSource: records held in memory
- PostgrestDataSource: Supabase/PostgREST over HTTP
"""

from .records import (
    AvailabilityRecord,
    Task,
    Project,
    ProjectAssignment,
    TimeEntry,
    MalformedDateError,
    parse_date,
    parse_hours
)
from .base import DataSource
from .memory import InMemoryDataSource
from .postgrest import PostgrestDataSource

__all__ = [
    # Records
    "AvailabilityRecord",
    "Task",
    "Project",
    "ProjectAssignment",
    "TimeEntry",
    "MalformedDateError",
    "parse_date",
    "parse_hours",

    # Sources
    "DataSource",
    "InMemoryDataSource",
    "PostgrestDataSource",
]
