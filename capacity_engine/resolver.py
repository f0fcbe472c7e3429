"""
Work-Item Resolver

Builds the set of in-flight work items for a scope from task, project and
assignment rows. A task reachable both by direct assignment and through a
project the user is assigned to is counted once; projects with no tasks at
all stand in for their own estimate.
"""

import logging
from datetime import date, datetime
from typing import Iterable, Optional, Union

from .allocation import WorkItem, WorkItemKind
from .config import CapacityPolicy
from .integrations import Project, ProjectAssignment, Task
from .periods import as_date

logger = logging.getLogger(__name__)


class WorkItemResolver:
    """
    Turns task and project rows into deduplicated work items.

    Usage:
        resolver = WorkItemResolver()
        items = resolver.resolve(
            assigned_tasks=tasks,
            assignments=assignments,
            projects=projects,
            project_tasks=project_tasks,
            now=date.today()
        )
    """

    def __init__(self, policy: Optional[CapacityPolicy] = None):
        self.policy = policy or CapacityPolicy()

    def resolve(
        self,
        assigned_tasks: Iterable[Task] = (),
        assignments: Iterable[ProjectAssignment] = (),
        projects: Iterable[Project] = (),
        project_tasks: Iterable[Task] = (),
        now: Optional[Union[date, datetime]] = None,
        allowed_project_ids: Optional[set[str]] = None,
        allowed_assignees: Optional[set[str]] = None
    ) -> list[WorkItem]:
        """
        Resolve the work items for a scope.

        Args:
            assigned_tasks: Tasks whose assignee is in scope
            assignments: Project assignments of users in scope
            projects: Projects referenced by the tasks or assignments
            project_tasks: Every task of the assigned projects
            now: Reference instant, used as the start of undated work
            allowed_project_ids: Only keep work on these projects (account scope)
            allowed_assignees: Drop tasks assigned to anyone else; unassigned tasks are kept

        Returns:
            Work items with positive hours, each task at most once
        """
        today = as_date(now or datetime.now())
        project_by_id = {p.id: p for p in projects}
        project_tasks = list(project_tasks)

        active_project_ids = list(dict.fromkeys(
            pa.project_id for pa in assignments if pa.is_active
        ))
        active = set(active_project_ids)

        # Direct assignments first, then tasks reached through projects
        unique: dict[str, Task] = {}
        candidates = 0
        for task in list(assigned_tasks) + [t for t in project_tasks if t.project_id in active]:
            candidates += 1
            unique.setdefault(task.id, task)

        items = []
        for task in unique.values():
            if self.policy.is_task_done(task.status):
                continue
            if allowed_project_ids is not None and task.project_id not in allowed_project_ids:
                continue
            if allowed_assignees is not None and task.assigned_to and task.assigned_to not in allowed_assignees:
                continue
            item = self._task_item(task, project_by_id.get(task.project_id), today)
            if item is not None:
                items.append(item)

        projects_with_tasks = {t.project_id for t in project_tasks if t.project_id}
        for project_id in active_project_ids:
            project = project_by_id.get(project_id)
            if project is None or project_id in projects_with_tasks:
                continue
            if allowed_project_ids is not None and project_id not in allowed_project_ids:
                continue
            item = self._project_item(project, today)
            if item is not None:
                items.append(item)

        logger.debug(
            "Resolved %d work items (%d duplicate task rows removed)",
            len(items), candidates - len(unique)
        )
        return items

    def _task_item(self, task: Task, project: Optional[Project], today: date) -> Optional[WorkItem]:
        hours = task.hours
        if hours == 0:
            return None

        due = task.due_date
        if due is None and project is not None:
            due = project.end_date

        return WorkItem(
            id=task.id,
            hours=hours,
            start_date=task.start_date or task.created_at or today,
            effective_due_date=due,
            kind=WorkItemKind.TASK,
            owner_id=task.assigned_to,
            project_id=task.project_id,
        )

    def _project_item(self, project: Project, today: date) -> Optional[WorkItem]:
        if self.policy.is_project_complete(project.status):
            return None
        hours = project.estimated_hours or 0.0
        if hours == 0:
            return None

        return WorkItem(
            id=project.id,
            hours=hours,
            start_date=project.start_date or today,
            effective_due_date=project.end_date,
            kind=WorkItemKind.PROJECT,
            project_id=project.id,
        )
