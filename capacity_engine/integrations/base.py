"""
Data source interface for the Capacity Engine.

The engine only reads. Every method returns validated records for the
requested ids and date range; unknown ids simply produce no rows.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Iterable, Optional

from .records import AvailabilityRecord, Project, ProjectAssignment, Task, TimeEntry


class DataSource(ABC):
    """Abstract base class for capacity data providers."""

    @abstractmethod
    async def user_exists(self, user_id: str) -> bool:
        """Whether a user profile exists."""
        pass

    @abstractmethod
    async def list_user_ids(self) -> list[str]:
        """All users in the organization."""
        pass

    @abstractmethod
    async def department_user_ids(self, department_id: str) -> list[str]:
        """Users holding a role in the department."""
        pass

    @abstractmethod
    async def account_project_ids(self, account_id: str) -> list[str]:
        """Projects belonging to a client account."""
        pass

    @abstractmethod
    async def availability(
        self,
        user_ids: Iterable[str],
        start: date,
        end: date
    ) -> list[AvailabilityRecord]:
        """Availability rows whose week starts within [start, end]."""
        pass

    @abstractmethod
    async def assigned_tasks(self, user_ids: Iterable[str]) -> list[Task]:
        """Tasks directly assigned to any of the users."""
        pass

    @abstractmethod
    async def project_assignments(
        self,
        user_ids: Optional[Iterable[str]] = None,
        project_ids: Optional[Iterable[str]] = None
    ) -> list[ProjectAssignment]:
        """Active (not removed) project assignments matching the filters."""
        pass

    @abstractmethod
    async def projects(self, project_ids: Iterable[str]) -> list[Project]:
        """Projects by id."""
        pass

    @abstractmethod
    async def project_tasks(self, project_ids: Iterable[str]) -> list[Task]:
        """All tasks of the given projects, whatever their assignee."""
        pass

    @abstractmethod
    async def time_entries(
        self,
        user_ids: Iterable[str],
        start: date,
        end: date,
        project_ids: Optional[Iterable[str]] = None
    ) -> list[TimeEntry]:
        """Time entries logged by the users with entry_date within [start, end]."""
        pass
