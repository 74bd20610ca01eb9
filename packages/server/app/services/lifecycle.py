"""
Project and task lifecycle as pure functions over domain events.

No endpoint sets a project status directly. Every change happens as a side
effect of another operation (a request, an assignment, a new task, a
submission or its review) and is modelled here as a named event:

    next_status = apply_project_event(current_status, event)

Gating events raise ``InvalidTransition`` when the current status does not
admit them. Propagation events leave the status unchanged when they do not
apply. Nothing in this module touches the database.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional

from marketplace_shared.schemas.common import (
    OPEN_FOR_REQUESTS,
    ProjectStatus,
    TaskStatus,
)
from marketplace_shared.schemas.tasks import validate_task_edit

class InvalidTransition(ValueError):
    """Raised when an event or direct edit is not allowed from the current status."""

class ProjectEvent(str, Enum):
    SOLVER_REQUESTED = "SOLVER_REQUESTED"
    SOLVER_ASSIGNED = "SOLVER_ASSIGNED"
    TASK_CREATED = "TASK_CREATED"
    ALL_TASKS_SUBMITTED = "ALL_TASKS_SUBMITTED"
    SUBMISSION_REJECTED = "SUBMISSION_REJECTED"
    ALL_TASKS_COMPLETED = "ALL_TASKS_COMPLETED"

class TaskEvent(str, Enum):
    SUBMISSION_CREATED = "SUBMISSION_CREATED"
    SUBMISSION_ACCEPTED = "SUBMISSION_ACCEPTED"
    SUBMISSION_REJECTED = "SUBMISSION_REJECTED"

# ---------------------------------------------------------------------------
# Project events
# ---------------------------------------------------------------------------

TASK_CREATION_STATUSES = frozenset(
    {
        ProjectStatus.ASSIGNED,
        ProjectStatus.IN_PROGRESS,
        ProjectStatus.SUBMITTED,
        ProjectStatus.REJECTED,
    }
)

# event -> (statuses it applies in, resulting status, error if gating else None)
_PROJECT_RULES: dict[ProjectEvent, tuple[frozenset, ProjectStatus, Optional[str]]] = {
    ProjectEvent.SOLVER_REQUESTED: (
        OPEN_FOR_REQUESTS,
        ProjectStatus.REQUESTED,
        "Project is not open for requests",
    ),
    ProjectEvent.SOLVER_ASSIGNED: (
        frozenset({ProjectStatus.REQUESTED}),
        ProjectStatus.ASSIGNED,
        "Project must be in REQUESTED state to assign solver",
    ),
    ProjectEvent.TASK_CREATED: (
        TASK_CREATION_STATUSES,
        ProjectStatus.IN_PROGRESS,
        "Project must be ASSIGNED, IN_PROGRESS, SUBMITTED, or REJECTED to add tasks",
    ),
    ProjectEvent.ALL_TASKS_SUBMITTED: (
        frozenset(
            {ProjectStatus.IN_PROGRESS, ProjectStatus.REJECTED, ProjectStatus.SUBMITTED}
        ),
        ProjectStatus.SUBMITTED,
        None,
    ),
    ProjectEvent.SUBMISSION_REJECTED: (
        frozenset({ProjectStatus.SUBMITTED}),
        ProjectStatus.IN_PROGRESS,
        None,
    ),
    ProjectEvent.ALL_TASKS_COMPLETED: (
        frozenset(
            {ProjectStatus.SUBMITTED, ProjectStatus.IN_PROGRESS, ProjectStatus.REJECTED}
        ),
        ProjectStatus.COMPLETED,
        None,
    ),
}

def apply_project_event(current: ProjectStatus, event: ProjectEvent) -> ProjectStatus:
    """Return the project status after ``event``."""
    current = ProjectStatus(current)
    applies_in, result, error = _PROJECT_RULES[event]
    if current in applies_in:
        return result
    if error is not None:
        raise InvalidTransition(error)
    return current

def aggregate_project_event(task_statuses: Iterable[TaskStatus]) -> Optional[ProjectEvent]:
    """The propagation event implied by a project's task statuses, if any.

    ALL_TASKS_COMPLETED when every task is COMPLETED, ALL_TASKS_SUBMITTED when
    every task is SUBMITTED or COMPLETED, otherwise None. A project with no
    tasks implies nothing.
    """
    statuses = [TaskStatus(s) for s in task_statuses]
    if not statuses:
        return None
    if all(s == TaskStatus.COMPLETED for s in statuses):
        return ProjectEvent.ALL_TASKS_COMPLETED
    if all(s in (TaskStatus.SUBMITTED, TaskStatus.COMPLETED) for s in statuses):
        return ProjectEvent.ALL_TASKS_SUBMITTED
    return None

# ---------------------------------------------------------------------------
# Task events
# ---------------------------------------------------------------------------

_TASK_RULES: dict[TaskEvent, tuple[frozenset, TaskStatus, str]] = {
    TaskEvent.SUBMISSION_CREATED: (
        frozenset({TaskStatus.CREATED, TaskStatus.IN_PROGRESS}),
        TaskStatus.SUBMITTED,
        "Task must be CREATED or IN_PROGRESS to submit",
    ),
    TaskEvent.SUBMISSION_ACCEPTED: (
        frozenset({TaskStatus.SUBMITTED}),
        TaskStatus.COMPLETED,
        "Task has no submission awaiting review",
    ),
    TaskEvent.SUBMISSION_REJECTED: (
        frozenset({TaskStatus.SUBMITTED}),
        TaskStatus.IN_PROGRESS,
        "Task has no submission awaiting review",
    ),
}

def apply_task_event(current: TaskStatus, event: TaskEvent) -> TaskStatus:
    """Return the task status after ``event``; raise if it does not apply."""
    current = TaskStatus(current)
    applies_in, result, error = _TASK_RULES[event]
    if current not in applies_in:
        raise InvalidTransition(error)
    return result

def apply_task_edit(current: TaskStatus, target: TaskStatus) -> TaskStatus:
    """Status change requested through the task update operation."""
    ok, msg = validate_task_edit(TaskStatus(current), TaskStatus(target))
    if not ok:
        raise InvalidTransition(msg)
    return TaskStatus(target)
