"""
In-memory data source.

Holds already-validated records and answers the DataSource queries by
filtering them. Useful for embedding the engine next to another store and
for tests.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional

from .base import DataSource
from .records import AvailabilityRecord, Project, ProjectAssignment, Task, TimeEntry


@dataclass
class InMemoryDataSource(DataSource):
    """
    DataSource backed by plain lists.

    Usage:
        source = InMemoryDataSource(
            users=["alice"],
            availability=[AvailabilityRecord("alice", date(2026, 10, 19), 40)],
        )
        points = await compute_capacity(source, Scope.user("alice"), "weekly")
    """
    users: list[str] = field(default_factory=list)
    department_roles: dict[str, list[str]] = field(default_factory=dict)
    availability_records: list[AvailabilityRecord] = field(default_factory=list)
    tasks: list[Task] = field(default_factory=list)
    project_rows: list[Project] = field(default_factory=list)
    assignments: list[ProjectAssignment] = field(default_factory=list)
    entries: list[TimeEntry] = field(default_factory=list)

    async def user_exists(self, user_id: str) -> bool:
        return user_id in self.users

    async def list_user_ids(self) -> list[str]:
        return list(self.users)

    async def department_user_ids(self, department_id: str) -> list[str]:
        return list(dict.fromkeys(self.department_roles.get(department_id, [])))

    async def account_project_ids(self, account_id: str) -> list[str]:
        return [p.id for p in self.project_rows if p.account_id == account_id]

    async def availability(
        self,
        user_ids: Iterable[str],
        start: date,
        end: date
    ) -> list[AvailabilityRecord]:
        wanted = set(user_ids)
        return [
            a for a in self.availability_records
            if a.user_id in wanted and start <= a.week_start_date <= end
        ]

    async def assigned_tasks(self, user_ids: Iterable[str]) -> list[Task]:
        wanted = set(user_ids)
        return [t for t in self.tasks if t.assigned_to in wanted]

    async def project_assignments(
        self,
        user_ids: Optional[Iterable[str]] = None,
        project_ids: Optional[Iterable[str]] = None
    ) -> list[ProjectAssignment]:
        users = set(user_ids) if user_ids is not None else None
        projects = set(project_ids) if project_ids is not None else None
        account_of = {p.id: p.account_id for p in self.project_rows}

        result = []
        for pa in self.assignments:
            if not pa.is_active:
                continue
            if users is not None and pa.user_id not in users:
                continue
            if projects is not None and pa.project_id not in projects:
                continue
            if pa.account_id is None and account_of.get(pa.project_id):
                pa = ProjectAssignment(
                    user_id=pa.user_id,
                    project_id=pa.project_id,
                    removed_at=pa.removed_at,
                    account_id=account_of[pa.project_id],
                )
            result.append(pa)
        return result

    async def projects(self, project_ids: Iterable[str]) -> list[Project]:
        wanted = set(project_ids)
        return [p for p in self.project_rows if p.id in wanted]

    async def project_tasks(self, project_ids: Iterable[str]) -> list[Task]:
        wanted = set(project_ids)
        return [t for t in self.tasks if t.project_id in wanted]

    async def time_entries(
        self,
        user_ids: Iterable[str],
        start: date,
        end: date,
        project_ids: Optional[Iterable[str]] = None
    ) -> list[TimeEntry]:
        users = set(user_ids)
        projects = set(project_ids) if project_ids is not None else None
        return [
            e for e in self.entries
            if e.user_id in users
            and start <= e.entry_date <= end
            and (projects is None or e.project_id in projects)
        ]
