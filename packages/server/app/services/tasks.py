"""
Task service layer: business logic for a project's tasks.

Handles:
- Task creation by the assigned solver (append-only order_index numbering)
- Direct status edits restricted to CREATED -> IN_PROGRESS -> SUBMITTED
- Propagation of aggregate task status to the owning project
- Enrichment of task data (with submissions) for API responses
"""

from __future__ import annotations

import uuid
from collections import defaultdict
from typing import Iterable, Sequence

import structlog
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import AuthenticatedUser
from app.core.errors import BadRequestError
from app.models.project import Project
from app.models.submission import TaskSubmission
from app.models.task import Task
from app.services.access import (
    ensure_assigned_solver,
    ensure_participant,
    get_project_or_404,
    get_task_or_404,
)
from app.services.lifecycle import (
    InvalidTransition,
    ProjectEvent,
    aggregate_project_event,
    apply_project_event,
    apply_task_edit,
)
from marketplace_shared.schemas.common import ProjectStatus, TaskStatus
from marketplace_shared.schemas.tasks import (
    SubmissionRead,
    TaskCreate,
    TaskRead,
    TaskUpdate,
)

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def enrich_tasks(session: AsyncSession, tasks: Sequence[Task]) -> list[TaskRead]:
    """Convert Task rows to TaskRead with their submissions, newest first."""
    if not tasks:
        return []

    result = await session.execute(
        select(TaskSubmission)
        .where(TaskSubmission.task_id.in_([t.id for t in tasks]))
        .order_by(TaskSubmission.created_at.desc())
    )
    by_task: dict[uuid.UUID, list[SubmissionRead]] = defaultdict(list)
    for sub in result.scalars().all():
        by_task[sub.task_id].append(SubmissionRead.model_validate(sub))

    return [
        TaskRead(
            id=t.id,
            project_id=t.project_id,
            title=t.title,
            description=t.description,
            due_date=t.due_date,
            status=t.status,
            order_index=t.order_index,
            submissions=by_task.get(t.id, []),
            created_at=t.created_at,
            updated_at=t.updated_at,
        )
        for t in tasks
    ]


async def _next_order_index(session: AsyncSession, project_id: uuid.UUID) -> int:
    result = await session.execute(
        select(func.max(Task.order_index)).where(Task.project_id == project_id)
    )
    current = result.scalar()
    return (current or 0) + 1


async def sync_project_status(
    session: AsyncSession,
    project: Project,
    *,
    on: Iterable[ProjectEvent] = (ProjectEvent.ALL_TASKS_SUBMITTED,),
) -> ProjectStatus:
    """Apply the aggregate event implied by the project's tasks.

    Only events listed in ``on`` are applied; anything else leaves the
    project as it is.
    """
    await session.flush()
    result = await session.execute(select(Task.status).where(Task.project_id == project.id))
    event = aggregate_project_event(result.scalars().all())
    current = ProjectStatus(project.status)
    if event is None or event not in set(on):
        return current

    new_status = apply_project_event(current, event)
    if new_status != current:
        project.status = new_status.value
        session.add(project)
        await session.flush()
        log.info(
            "project.status_propagated",
            project_id=str(project.id),
            lifecycle_event=event.value,
            from_status=current.value,
            to_status=new_status.value,
        )
    return new_status


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


async def list_tasks(
    session: AsyncSession, project_id: uuid.UUID, auth: AuthenticatedUser
) -> list[TaskRead]:
    project = await get_project_or_404(session, project_id)
    ensure_participant(project, auth)

    result = await session.execute(
        select(Task).where(Task.project_id == project_id).order_by(Task.order_index)
    )
    return await enrich_tasks(session, list(result.scalars().all()))


async def create_task(
    session: AsyncSession,
    project_id: uuid.UUID,
    auth: AuthenticatedUser,
    task_in: TaskCreate,
) -> Task:
    """Create a task as the assigned solver; moves the project to IN_PROGRESS."""
    project = await get_project_or_404(session, project_id)
    ensure_assigned_solver(project, auth, "Only assigned solver can create tasks")

    try:
        new_status = apply_project_event(project.status, ProjectEvent.TASK_CREATED)
    except InvalidTransition as exc:
        raise BadRequestError(str(exc))

    task = Task(
        project_id=project.id,
        title=task_in.title,
        description=task_in.description,
        due_date=task_in.due_date,
        order_index=await _next_order_index(session, project.id),
        status=TaskStatus.CREATED.value,
    )
    session.add(task)

    if project.status != new_status.value:
        project.status = new_status.value
        session.add(project)
    await session.flush()

    log.info(
        "task.created",
        task_id=str(task.id),
        project_id=str(project.id),
        order_index=task.order_index,
        project_status=project.status,
    )
    return task


async def update_task(
    session: AsyncSession,
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    auth: AuthenticatedUser,
    task_in: TaskUpdate,
) -> Task:
    """Edit task fields; status edits go through the task edit table."""
    task = await get_task_or_404(session, project_id, task_id)
    project = await get_project_or_404(session, project_id)
    ensure_assigned_solver(project, auth, "Only assigned solver can update task")

    update_data = task_in.model_dump(exclude_unset=True)
    target = update_data.pop("status", None)

    for field, value in update_data.items():
        if field == "title" and value is None:
            continue
        setattr(task, field, value)

    if target is not None:
        try:
            task.status = apply_task_edit(task.status, target).value
        except InvalidTransition as exc:
            raise BadRequestError(str(exc))

    session.add(task)
    await session.flush()

    if target == TaskStatus.SUBMITTED:
        await sync_project_status(session, project)

    log.info("task.updated", task_id=str(task.id), status=task.status)
    return task
