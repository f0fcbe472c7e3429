"""
PostgREST Integration for the Capacity Engine

Reads availability, tasks, projects, assignments and time entries from a
Supabase/PostgREST endpoint.
"""

import logging
import os
from datetime import date
from typing import Iterable, Optional

import httpx

from .base import DataSource
from .records import AvailabilityRecord, Project, ProjectAssignment, Task, TimeEntry

logger = logging.getLogger(__name__)


TASK_COLUMNS = (
    "id,project_id,assigned_to,estimated_hours,remaining_hours,"
    "status,start_date,due_date,created_at"
)
PROJECT_COLUMNS = "id,account_id,estimated_hours,status,start_date,end_date"


def _in(values: Iterable[str]) -> str:
    """PostgREST `in` filter for a list of ids."""
    quoted = ",".join(f'"{v}"' for v in values)
    return f"in.({quoted})"


class PostgrestDataSource(DataSource):
    """
    Supabase REST (PostgREST) client for capacity data.

    Usage:
        source = PostgrestDataSource(
            url="https://project.supabase.co",
            key="service_role_key"
        )
        records = await source.availability(["user-1"], start, end)
    """

    def __init__(
        self,
        url: Optional[str] = None,
        key: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.url = (url or os.getenv("SUPABASE_URL", "")).rstrip("/")
        self.key = key or os.getenv("SUPABASE_KEY")
        self.timeout = timeout
        self.transport = transport

        if not all([self.url, self.key]):
            raise ValueError(
                "Supabase credentials required. Set SUPABASE_URL and SUPABASE_KEY env vars "
                "or pass them as parameters."
            )

        self.headers = {
            "apikey": self.key,
            "Authorization": f"Bearer {self.key}",
            "Accept": "application/json"
        }

    async def _select(self, table: str, params: list[tuple[str, str]]) -> list[dict]:
        """Run a read-only select against a table."""
        async with httpx.AsyncClient(transport=self.transport) as client:
            response = await client.get(
                f"{self.url}/rest/v1/{table}",
                headers=self.headers,
                params=params,
                timeout=self.timeout
            )
            response.raise_for_status()
            rows = response.json() if response.content else []

        logger.debug("Fetched %d rows from %s", len(rows), table)
        return rows

    async def user_exists(self, user_id: str) -> bool:
        rows = await self._select("user_profiles", [("select", "id"), ("id", f"eq.{user_id}")])
        return bool(rows)

    async def list_user_ids(self) -> list[str]:
        rows = await self._select("user_profiles", [("select", "id")])
        return [str(r["id"]) for r in rows]

    async def department_user_ids(self, department_id: str) -> list[str]:
        rows = await self._select("user_roles", [
            ("select", "user_id,roles!inner(department_id)"),
            ("roles.department_id", f"eq.{department_id}"),
        ])
        return list(dict.fromkeys(str(r["user_id"]) for r in rows))

    async def account_project_ids(self, account_id: str) -> list[str]:
        rows = await self._select("projects", [("select", "id"), ("account_id", f"eq.{account_id}")])
        return [str(r["id"]) for r in rows]

    async def availability(
        self,
        user_ids: Iterable[str],
        start: date,
        end: date
    ) -> list[AvailabilityRecord]:
        user_ids = list(user_ids)
        if not user_ids:
            return []
        rows = await self._select("user_availability", [
            ("select", "user_id,week_start_date,available_hours"),
            ("user_id", _in(user_ids)),
            ("week_start_date", f"gte.{start.isoformat()}"),
            ("week_start_date", f"lte.{end.isoformat()}"),
        ])
        return [AvailabilityRecord.from_row(r) for r in rows]

    async def assigned_tasks(self, user_ids: Iterable[str]) -> list[Task]:
        user_ids = list(user_ids)
        if not user_ids:
            return []
        rows = await self._select("tasks", [
            ("select", TASK_COLUMNS),
            ("assigned_to", _in(user_ids)),
        ])
        return [Task.from_row(r) for r in rows]

    async def project_assignments(
        self,
        user_ids: Optional[Iterable[str]] = None,
        project_ids: Optional[Iterable[str]] = None
    ) -> list[ProjectAssignment]:
        params = [
            ("select", "user_id,project_id,removed_at,projects!inner(account_id)"),
            ("removed_at", "is.null"),
        ]
        if user_ids is not None:
            user_ids = list(user_ids)
            if not user_ids:
                return []
            params.append(("user_id", _in(user_ids)))
        if project_ids is not None:
            project_ids = list(project_ids)
            if not project_ids:
                return []
            params.append(("project_id", _in(project_ids)))

        rows = await self._select("project_assignments", params)
        return [ProjectAssignment.from_row(r) for r in rows]

    async def projects(self, project_ids: Iterable[str]) -> list[Project]:
        project_ids = list(project_ids)
        if not project_ids:
            return []
        rows = await self._select("projects", [
            ("select", PROJECT_COLUMNS),
            ("id", _in(project_ids)),
        ])
        return [Project.from_row(r) for r in rows]

    async def project_tasks(self, project_ids: Iterable[str]) -> list[Task]:
        project_ids = list(project_ids)
        if not project_ids:
            return []
        rows = await self._select("tasks", [
            ("select", TASK_COLUMNS),
            ("project_id", _in(project_ids)),
        ])
        return [Task.from_row(r) for r in rows]

    async def time_entries(
        self,
        user_ids: Iterable[str],
        start: date,
        end: date,
        project_ids: Optional[Iterable[str]] = None
    ) -> list[TimeEntry]:
        user_ids = list(user_ids)
        if not user_ids:
            return []
        params = [
            ("select", "user_id,project_id,task_id,hours_logged,entry_date"),
            ("user_id", _in(user_ids)),
            ("entry_date", f"gte.{start.isoformat()}"),
            ("entry_date", f"lte.{end.isoformat()}"),
        ]
        if project_ids is not None:
            project_ids = list(project_ids)
            if not project_ids:
                return []
            params.append(("project_id", _in(project_ids)))

        rows = await self._select("time_entries", params)
        return [TimeEntry.from_row(r) for r in rows]
