"""
Tests for the work-item resolver.
"""

import pytest
from datetime import date

from capacity_engine.allocation import WorkItemKind
from capacity_engine.integrations import Project, ProjectAssignment, Task
from capacity_engine.resolver import WorkItemResolver


TODAY = date(2026, 10, 19)


class TestWorkItemResolver:
    """Tests for WorkItemResolver."""

    def test_dedup_direct_and_project_task(self):
        """Test a task reached twice is resolved once."""
        task = Task(id="t1", project_id="p1", assigned_to="alice", estimated_hours=10)
        resolver = WorkItemResolver()

        items = resolver.resolve(
            assigned_tasks=[task],
            assignments=[ProjectAssignment(user_id="alice", project_id="p1")],
            projects=[Project(id="p1", estimated_hours=100)],
            project_tasks=[task],
            now=TODAY
        )

        assert [i.id for i in items] == ["t1"]
        assert items[0].kind is WorkItemKind.TASK

    def test_project_tasks_of_teammates_included(self):
        """Test tasks of an assigned project count whoever they are assigned to."""
        resolver = WorkItemResolver()

        items = resolver.resolve(
            assignments=[ProjectAssignment(user_id="alice", project_id="p1")],
            projects=[Project(id="p1")],
            project_tasks=[
                Task(id="t1", project_id="p1", assigned_to="bob", estimated_hours=4),
                Task(id="t2", project_id="p1", estimated_hours=6),
            ],
            now=TODAY
        )

        assert sorted(i.id for i in items) == ["t1", "t2"]

    def test_remaining_hours_preferred(self):
        resolver = WorkItemResolver()
        tasks = [Task(id="t1", estimated_hours=10, remaining_hours=3, assigned_to="alice")]

        items = resolver.resolve(assigned_tasks=tasks, now=TODAY)

        assert items[0].hours == 3

    def test_due_date_inherited_from_project(self):
        """Test a task without a due date uses its project's end date."""
        resolver = WorkItemResolver()

        items = resolver.resolve(
            assigned_tasks=[
                Task(id="t1", project_id="p1", assigned_to="alice", estimated_hours=5),
                Task(id="t2", project_id="p1", assigned_to="alice", estimated_hours=5,
                     due_date=date(2026, 11, 1)),
            ],
            projects=[Project(id="p1", end_date=date(2026, 11, 30))],
            now=TODAY
        )
        due = {i.id: i.effective_due_date for i in items}

        assert due["t1"] == date(2026, 11, 30)
        assert due["t2"] == date(2026, 11, 1)

    def test_start_date_fallbacks(self):
        """Test start falls back to creation date, then today."""
        resolver = WorkItemResolver()

        items = resolver.resolve(
            assigned_tasks=[
                Task(id="t1", assigned_to="alice", estimated_hours=5, start_date=date(2026, 10, 1),
                     created_at=date(2026, 9, 1)),
                Task(id="t2", assigned_to="alice", estimated_hours=5, created_at=date(2026, 9, 1)),
                Task(id="t3", assigned_to="alice", estimated_hours=5),
            ],
            now=TODAY
        )
        start = {i.id: i.start_date for i in items}

        assert start == {
            "t1": date(2026, 10, 1),
            "t2": date(2026, 9, 1),
            "t3": TODAY,
        }

    def test_done_tasks_excluded(self):
        resolver = WorkItemResolver()

        items = resolver.resolve(
            assigned_tasks=[
                Task(id="t1", status="done", assigned_to="alice", estimated_hours=5),
                Task(id="t2", status="in_progress", assigned_to="alice", estimated_hours=5),
            ],
            now=TODAY
        )

        assert [i.id for i in items] == ["t2"]

    def test_zero_hour_tasks_skipped(self):
        resolver = WorkItemResolver()

        items = resolver.resolve(
            assigned_tasks=[
                Task(id="t1", assigned_to="alice"),
                Task(id="t2", assigned_to="alice", estimated_hours=8, remaining_hours=0),
            ],
            now=TODAY
        )

        assert items == []

    def test_taskless_project_uses_estimate(self):
        """Test a project with no tasks stands in for its own estimate."""
        resolver = WorkItemResolver()

        items = resolver.resolve(
            assignments=[ProjectAssignment(user_id="alice", project_id="p1")],
            projects=[Project(id="p1", estimated_hours=20, end_date=date(2026, 12, 31))],
            now=TODAY
        )

        assert len(items) == 1
        assert items[0].kind is WorkItemKind.PROJECT
        assert items[0].hours == 20
        assert items[0].start_date == TODAY
        assert items[0].effective_due_date == date(2026, 12, 31)

    def test_project_with_only_done_tasks_not_estimated(self):
        """Test a project whose tasks are all done contributes nothing."""
        resolver = WorkItemResolver()

        items = resolver.resolve(
            assignments=[ProjectAssignment(user_id="alice", project_id="p1")],
            projects=[Project(id="p1", estimated_hours=20)],
            project_tasks=[Task(id="t1", project_id="p1", status="done", estimated_hours=20)],
            now=TODAY
        )

        assert items == []

    def test_complete_project_skipped(self):
        resolver = WorkItemResolver()

        items = resolver.resolve(
            assignments=[ProjectAssignment(user_id="alice", project_id="p1")],
            projects=[Project(id="p1", status="complete", estimated_hours=20)],
            now=TODAY
        )

        assert items == []

    def test_removed_assignment_ignored(self):
        """Test a removed assignment reaches neither tasks nor the estimate."""
        resolver = WorkItemResolver()

        items = resolver.resolve(
            assignments=[ProjectAssignment(user_id="alice", project_id="p1", removed_at=date(2026, 10, 1))],
            projects=[Project(id="p1", estimated_hours=20)],
            project_tasks=[Task(id="t1", project_id="p1", estimated_hours=5)],
            now=TODAY
        )

        assert items == []

    def test_allowed_projects_filter(self):
        """Test work outside the allowed projects is dropped."""
        resolver = WorkItemResolver()

        items = resolver.resolve(
            assigned_tasks=[
                Task(id="t1", project_id="p1", assigned_to="alice", estimated_hours=5),
                Task(id="t2", project_id="p2", assigned_to="alice", estimated_hours=5),
                Task(id="t3", assigned_to="alice", estimated_hours=5),
            ],
            now=TODAY,
            allowed_project_ids={"p1"}
        )

        assert [i.id for i in items] == ["t1"]

    def test_allowed_assignees_keeps_unassigned(self):
        resolver = WorkItemResolver()

        items = resolver.resolve(
            assignments=[ProjectAssignment(user_id="alice", project_id="p1")],
            projects=[Project(id="p1")],
            project_tasks=[
                Task(id="t1", project_id="p1", assigned_to="alice", estimated_hours=5),
                Task(id="t2", project_id="p1", assigned_to="zed", estimated_hours=5),
                Task(id="t3", project_id="p1", estimated_hours=5),
            ],
            now=TODAY,
            allowed_assignees={"alice"}
        )

        assert sorted(i.id for i in items) == ["t1", "t3"]

    @pytest.mark.parametrize("status", ["done", "Done", "complete"])
    def test_done_statuses(self, status):
        resolver = WorkItemResolver()
        tasks = [Task(id="t1", status=status, assigned_to="alice", estimated_hours=5)]

        assert resolver.resolve(assigned_tasks=tasks, now=TODAY) == []
