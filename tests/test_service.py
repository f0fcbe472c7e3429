"""
Tests for the capacity service over an in-memory data source.
"""

import asyncio
import pytest
from datetime import date

from capacity_engine.integrations import (
    AvailabilityRecord,
    InMemoryDataSource,
    Project,
    ProjectAssignment,
    Task,
    TimeEntry
)
from capacity_engine.service import CapacityService, Scope, ScopeKind, compute_capacity


TODAY = date(2026, 10, 19)
WEDNESDAY = date(2026, 10, 21)


def _run(source, scope, granularity="weekly", now=TODAY):
    return asyncio.run(CapacityService(source).compute_capacity(scope, granularity, now=now))


@pytest.fixture
def agency():
    """Three people across two client accounts."""
    return InMemoryDataSource(
        users=["alice", "bob", "carol"],
        department_roles={"design": ["alice", "bob", "alice"], "ops": ["carol"]},
        availability_records=[
            AvailabilityRecord("alice", TODAY, 40),
            AvailabilityRecord("bob", TODAY, 40),
            AvailabilityRecord("carol", TODAY, 40),
        ],
        project_rows=[
            Project(id="p1", account_id="acme", status="in_progress"),
            Project(id="p2", account_id="globex", status="in_progress"),
        ],
        assignments=[
            ProjectAssignment(user_id="alice", project_id="p1"),
            ProjectAssignment(user_id="alice", project_id="p2"),
            ProjectAssignment(user_id="bob", project_id="p1"),
        ],
        tasks=[
            Task(id="t1", project_id="p1", assigned_to="alice", estimated_hours=7,
                 start_date=TODAY, due_date=date(2026, 10, 25)),
            Task(id="t2", project_id="p2", assigned_to="alice", estimated_hours=14,
                 start_date=TODAY, due_date=date(2026, 10, 25)),
            Task(id="t3", project_id="p1", assigned_to="carol", estimated_hours=21,
                 start_date=TODAY, due_date=date(2026, 10, 25)),
        ],
        entries=[
            TimeEntry("alice", date(2026, 10, 20), 4, project_id="p1"),
            TimeEntry("alice", date(2026, 10, 20), 6, project_id="p2"),
            TimeEntry("bob", date(2026, 10, 21), 5, project_id="p1"),
            TimeEntry("carol", date(2026, 10, 21), 10),
        ],
    )


class TestScope:
    """Tests for Scope."""

    def test_constructors(self):
        assert Scope.user("alice") == Scope(ScopeKind.USER, "alice")
        assert Scope.org().id is None
        assert Scope.account("acme").to_dict() == {"kind": "account", "id": "acme"}

    @pytest.mark.parametrize("kind,message", [
        (ScopeKind.USER, "User ID is required"),
        (ScopeKind.DEPARTMENT, "Department ID is required"),
        (ScopeKind.ACCOUNT, "Account ID is required"),
    ])
    def test_id_required(self, kind, message):
        with pytest.raises(ValueError, match=message):
            Scope(kind, None)

    def test_parse(self):
        assert Scope.parse("department", "design") == Scope.department("design")

        with pytest.raises(ValueError, match="Invalid scope"):
            Scope.parse("team", "x")


class TestCapacityService:
    """Tests for CapacityService."""

    def test_unknown_user_returns_zero_points(self, agency):
        """Test an unknown user yields a full series of zeros."""
        points = _run(agency, Scope.user("nonexistent"))

        assert len(points) == 9
        assert all(p.available == 0 and p.allocated == 0 and p.actual == 0 for p in points)
        assert all(p.utilization == 0 for p in points)

    def test_unknown_department_and_account(self, agency):
        assert all(p.available == 0 for p in _run(agency, Scope.department("legal")))
        assert all(p.available == 0 for p in _run(agency, Scope.account("initech")))

    def test_user_scope(self, agency):
        """Test a user's own tasks plus their projects' tasks are allocated."""
        current = _run(agency, Scope.user("alice"))[4]

        assert current.available == 40
        # t1 and t2 directly, t3 through p1
        assert current.allocated == pytest.approx(42.0)
        assert current.actual == 10
        assert current.utilization == 25

    def test_dedup_across_sources(self):
        """Test a task both assigned and reached through its project counts once."""
        source = InMemoryDataSource(
            users=["alice"],
            project_rows=[Project(id="p1")],
            assignments=[ProjectAssignment(user_id="alice", project_id="p1")],
            tasks=[Task(id="t1", project_id="p1", assigned_to="alice", estimated_hours=7,
                        start_date=TODAY, due_date=date(2026, 10, 25))],
        )

        points = _run(source, Scope.user("alice"))

        assert points[4].allocated == pytest.approx(7.0)
        assert sum(p.allocated for p in points) == pytest.approx(7.0)

    def test_taskless_project_estimate(self):
        source = InMemoryDataSource(
            users=["alice"],
            project_rows=[Project(id="p9", estimated_hours=14, start_date=TODAY,
                                  end_date=date(2026, 11, 1))],
            assignments=[ProjectAssignment(user_id="alice", project_id="p9")],
        )

        points = _run(source, Scope.user("alice"))

        assert points[4].allocated == pytest.approx(7.0)
        assert points[5].allocated == pytest.approx(7.0)

    def test_department_scope(self, agency):
        """Test department members are counted once each."""
        current = _run(agency, Scope.department("design"))[4]

        assert current.available == 80
        assert current.actual == 15

    def test_org_scope(self, agency):
        current = _run(agency, Scope.org())[4]

        assert current.available == 120
        assert current.actual == 25
        assert current.allocated == pytest.approx(42.0)

    def test_account_scope(self, agency):
        """Test account scope splits people across accounts and keeps to its projects."""
        current = _run(agency, Scope.account("acme"))[4]

        # alice works on two accounts, bob on one
        assert current.available == pytest.approx(60.0)
        # carol's task on p1 belongs to someone outside the account team
        assert current.allocated == pytest.approx(7.0)
        assert current.actual == 9
        assert current.utilization == 15

    def test_availability_before_first_period(self):
        """Test the week covering a mid-week first day is fetched."""
        source = InMemoryDataSource(
            users=["alice"],
            availability_records=[AvailabilityRecord("alice", date(2026, 10, 12), 40)],
        )

        points = _run(source, Scope.user("alice"), "daily", now=WEDNESDAY)

        assert points[0].period.start == date(2026, 10, 14)
        assert points[0].available == pytest.approx(8.0)

    def test_invalid_granularity(self, agency):
        with pytest.raises(ValueError, match="Invalid period"):
            _run(agency, Scope.user("alice"), "yearly")

    def test_repeated_calls_are_independent(self, agency):
        """Test nothing carries over between computations."""
        service = CapacityService(agency)

        first = asyncio.run(service.compute_capacity(Scope.user("alice"), "weekly", now=TODAY))
        asyncio.run(service.compute_capacity(Scope.org(), "weekly", now=TODAY))
        again = asyncio.run(service.compute_capacity(Scope.user("alice"), "weekly", now=TODAY))

        assert first == again


class TestCapacityBreakdown:
    """Tests for per-member breakdowns."""

    @pytest.mark.parametrize("scope", [
        Scope.department("design"),
        Scope.account("acme"),
        Scope.org(),
    ])
    def test_members_add_up(self, agency, scope):
        """Test member series add up to the scope series for available and actual hours."""
        breakdown = asyncio.run(
            CapacityService(agency).compute_breakdown(scope, "weekly", now=TODAY)
        )

        for index, point in enumerate(breakdown.points):
            members = [m.points[index] for m in breakdown.members]
            assert sum(p.available for p in members) == pytest.approx(point.available)
            assert sum(p.actual for p in members) == pytest.approx(point.actual)

    def test_breakdown_matches_scope_series(self, agency):
        """Test the combined series equals the plain scope series."""
        service = CapacityService(agency)

        breakdown = asyncio.run(service.compute_breakdown(Scope.org(), "weekly", now=TODAY))
        points = asyncio.run(service.compute_capacity(Scope.org(), "weekly", now=TODAY))

        assert list(breakdown.points) == points

    def test_department_members(self, agency):
        breakdown = asyncio.run(
            CapacityService(agency).compute_breakdown(Scope.department("design"), "weekly", now=TODAY)
        )
        by_user = {m.user_id: m.points[4] for m in breakdown.members}

        assert breakdown.team_size == 2
        assert by_user["alice"].available == 40
        assert by_user["alice"].actual == 10
        assert by_user["alice"].allocated == pytest.approx(21.0)
        assert by_user["bob"].actual == 5
        assert by_user["bob"].utilization == 13

    def test_account_members_are_weighted(self, agency):
        breakdown = asyncio.run(
            CapacityService(agency).compute_breakdown(Scope.account("acme"), "weekly", now=TODAY)
        )
        by_user = {m.user_id: m.points[4] for m in breakdown.members}

        assert by_user["alice"].available == pytest.approx(20.0)
        assert by_user["alice"].actual == 4
        assert by_user["bob"].available == pytest.approx(40.0)

    def test_empty_scope(self, agency):
        breakdown = asyncio.run(
            CapacityService(agency).compute_breakdown(Scope.user("nonexistent"), "monthly", now=TODAY)
        )

        assert breakdown.team_size == 0
        assert len(breakdown.points) == 7
        assert breakdown.summary.total_available == 0

    def test_to_dict(self, agency):
        breakdown = asyncio.run(
            CapacityService(agency).compute_breakdown(Scope.department("ops"), "weekly", now=TODAY)
        )

        data = breakdown.to_dict()

        assert data["teamSize"] == 1
        assert data["scope"] == {"kind": "department", "id": "ops"}
        assert data["members"][0]["userId"] == "carol"
        assert data["members"][0]["summary"]["totalAvailable"] == 40
        assert len(data["members"][0]["data"]) == 9


class TestComputeCapacity:
    """Tests for the convenience function."""

    def test_compute_capacity(self, agency):
        points = asyncio.run(compute_capacity(
            source=agency,
            scope=Scope.user("bob"),
            granularity="monthly",
            now=TODAY
        ))

        assert len(points) == 7
        assert points[3].period.label == "Oct 2026"
        assert points[3].available == 40
        assert points[3].actual == 5
