"""
Capacity Service

Resolves a scope to its users, fetches the scope's data once in parallel,
and runs the calculator over the resulting snapshot.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional, Union

from .calculator import CapacityCalculator, CapacityPoint, CapacitySnapshot, CapacitySummary
from .config import CapacityPolicy
from .integrations import DataSource
from .periods import Granularity, Period, date_range_of, generate_periods, week_start_of
from .resolver import WorkItemResolver

logger = logging.getLogger(__name__)


class ScopeKind(Enum):
    """Whose capacity is aggregated."""
    USER = "user"
    DEPARTMENT = "department"
    ACCOUNT = "account"
    ORG = "org"


@dataclass(frozen=True)
class Scope:
    """A user, a department, a client account, or the whole organization."""
    kind: ScopeKind
    id: Optional[str] = None

    def __post_init__(self):
        if self.kind is not ScopeKind.ORG and not self.id:
            raise ValueError(f"{self.kind.value.capitalize()} ID is required")

    @classmethod
    def user(cls, user_id: str) -> "Scope":
        return cls(ScopeKind.USER, user_id)

    @classmethod
    def department(cls, department_id: str) -> "Scope":
        return cls(ScopeKind.DEPARTMENT, department_id)

    @classmethod
    def account(cls, account_id: str) -> "Scope":
        return cls(ScopeKind.ACCOUNT, account_id)

    @classmethod
    def org(cls) -> "Scope":
        return cls(ScopeKind.ORG)

    @classmethod
    def parse(cls, kind: str, id: Optional[str] = None) -> "Scope":
        try:
            scope_kind = ScopeKind(kind)
        except ValueError:
            raise ValueError(
                f"Invalid scope '{kind}'. Must be: user, department, account, or org"
            ) from None
        return cls(scope_kind, id)

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "id": self.id}


@dataclass(frozen=True)
class MemberCapacity:
    """One user's series inside a scope."""
    user_id: str
    points: tuple[CapacityPoint, ...] = ()

    @property
    def summary(self) -> CapacitySummary:
        return CapacityCalculator.summarize(list(self.points))

    def to_dict(self) -> dict:
        return {
            "userId": self.user_id,
            "data": [p.to_dict() for p in self.points],
            "summary": self.summary.to_dict(),
        }


@dataclass(frozen=True)
class CapacityBreakdown:
    """
    A scope's series together with one series per member.

    Member series add up to the scope series for available and actual
    hours. Allocated hours only reach a member for work they own, so work
    that is unassigned or owned outside the scope shows in the scope series
    alone.
    """
    scope: Scope
    points: tuple[CapacityPoint, ...] = ()
    members: tuple[MemberCapacity, ...] = ()

    @property
    def team_size(self) -> int:
        return len(self.members)

    @property
    def summary(self) -> CapacitySummary:
        return CapacityCalculator.summarize(list(self.points))

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "scope": self.scope.to_dict(),
            "teamSize": self.team_size,
            "data": [p.to_dict() for p in self.points],
            "summary": self.summary.to_dict(),
            "members": [m.to_dict() for m in self.members],
        }


class CapacityService:
    """
    Computes capacity series for scopes read from a DataSource.

    Usage:
        service = CapacityService(PostgrestDataSource())
        points = await service.compute_capacity(Scope.department("design"), "monthly")
    """

    def __init__(
        self,
        source: DataSource,
        policy: Optional[CapacityPolicy] = None
    ):
        self.source = source
        self.policy = policy or CapacityPolicy()
        self.calculator = CapacityCalculator(self.policy)
        self.resolver = WorkItemResolver(self.policy)

    async def resolve_users(self, scope: Scope) -> list[str]:
        """User ids in scope; unknown ids resolve to nobody."""
        if scope.kind is ScopeKind.USER:
            return [scope.id] if await self.source.user_exists(scope.id) else []
        if scope.kind is ScopeKind.DEPARTMENT:
            return await self.source.department_user_ids(scope.id)
        if scope.kind is ScopeKind.ACCOUNT:
            project_ids = await self.source.account_project_ids(scope.id)
            if not project_ids:
                return []
            assignments = await self.source.project_assignments(project_ids=project_ids)
            return list(dict.fromkeys(pa.user_id for pa in assignments))
        return await self.source.list_user_ids()

    async def load_snapshot(
        self,
        scope: Scope,
        periods: list[Period],
        now: Union[date, datetime]
    ) -> CapacitySnapshot:
        """
        Fetch everything the calculator needs for a scope and date range.

        The independent reads run concurrently; computation starts only once
        all of them have returned.
        """
        user_ids = await self.resolve_users(scope)
        if not user_ids:
            logger.info("Scope %s/%s resolved to no users", scope.kind.value, scope.id)
            return CapacitySnapshot()

        start, end = date_range_of(periods)
        account_project_ids = None
        if scope.kind is ScopeKind.ACCOUNT:
            account_project_ids = set(await self.source.account_project_ids(scope.id))

        availability, assigned_tasks, assignments, entries = await asyncio.gather(
            # Weeks that start before the first period still cover its first days
            self.source.availability(user_ids, week_start_of(start), end),
            self.source.assigned_tasks(user_ids),
            self.source.project_assignments(user_ids=user_ids),
            self.source.time_entries(user_ids, start, end, project_ids=account_project_ids),
        )

        weights = {}
        if account_project_ids is not None:
            weights = self._account_weights(user_ids, assignments)
            assignments = [pa for pa in assignments if pa.project_id in account_project_ids]

        project_ids = list(dict.fromkeys(pa.project_id for pa in assignments))
        referenced = list(dict.fromkeys(
            project_ids + [t.project_id for t in assigned_tasks if t.project_id]
        ))
        projects, project_tasks = await asyncio.gather(
            self.source.projects(referenced),
            self.source.project_tasks(project_ids),
        )

        work_items = self.resolver.resolve(
            assigned_tasks=assigned_tasks,
            assignments=assignments,
            projects=projects,
            project_tasks=project_tasks,
            now=now,
            allowed_project_ids=account_project_ids,
            allowed_assignees=set(user_ids) if account_project_ids is not None else None,
        )

        return CapacitySnapshot(
            user_ids=tuple(user_ids),
            availability=tuple(availability),
            work_items=tuple(work_items),
            time_entries=tuple(entries),
            availability_weights=weights,
            project_ids=frozenset(account_project_ids) if account_project_ids is not None else None,
        )

    @staticmethod
    def _account_weights(user_ids, assignments) -> dict[str, float]:
        """Split each user's availability evenly across the accounts they work on."""
        accounts: dict[str, set] = {}
        for pa in assignments:
            accounts.setdefault(pa.user_id, set()).add(pa.account_id)
        return {
            user_id: 1.0 / max(1, len(accounts.get(user_id, ())))
            for user_id in user_ids
        }

    async def compute_capacity(
        self,
        scope: Scope,
        granularity: Union[str, Granularity],
        now: Optional[Union[date, datetime]] = None
    ) -> list[CapacityPoint]:
        """
        Capacity series for a scope.

        Args:
            scope: User, department, account or org
            granularity: daily, weekly, monthly or quarterly
            now: Reference instant (defaults to the current time)

        Returns:
            One CapacityPoint per generated period; all zeros when the
            scope has no users
        """
        granularity = Granularity.parse(granularity)
        now = now or datetime.now()
        periods = generate_periods(granularity, now, self.policy)

        snapshot = await self.load_snapshot(scope, periods, now)
        return self.calculator.compute(snapshot, granularity, now=now, periods=periods)

    async def compute_breakdown(
        self,
        scope: Scope,
        granularity: Union[str, Granularity],
        now: Optional[Union[date, datetime]] = None
    ) -> CapacityBreakdown:
        """
        Capacity series for a scope and for each of its members.

        The scope's data is fetched once; each member's series is computed
        from that user's part of the same snapshot.

        Args:
            scope: User, department, account or org
            granularity: daily, weekly, monthly or quarterly
            now: Reference instant (defaults to the current time)

        Returns:
            CapacityBreakdown with the combined series and one MemberCapacity
            per user in scope
        """
        granularity = Granularity.parse(granularity)
        now = now or datetime.now()
        periods = generate_periods(granularity, now, self.policy)

        snapshot = await self.load_snapshot(scope, periods, now)
        points = self.calculator.compute(snapshot, granularity, now=now, periods=periods)
        members = tuple(
            MemberCapacity(
                user_id=user_id,
                points=tuple(self.calculator.compute(
                    snapshot.for_user(user_id), granularity, now=now, periods=periods
                )),
            )
            for user_id in snapshot.user_ids
        )

        logger.debug(
            "Computed breakdown for %s/%s across %d members",
            scope.kind.value, scope.id, len(members)
        )
        return CapacityBreakdown(scope=scope, points=tuple(points), members=members)


# Convenience function
async def compute_capacity(
    source: DataSource,
    scope: Scope,
    granularity: Union[str, Granularity],
    now: Optional[Union[date, datetime]] = None,
    policy: Optional[CapacityPolicy] = None
) -> list[CapacityPoint]:
    """
    Quick function to compute a capacity series.

    Example:
        points = await compute_capacity(
            source=InMemoryDataSource(users=["alice"]),
            scope=Scope.user("alice"),
            granularity="weekly"
        )

        for point in points:
            print(f"{point.period.label}: {point.allocated:.1f}h allocated")
    """
    service = CapacityService(source, policy=policy)
    return await service.compute_capacity(scope, granularity, now=now)
