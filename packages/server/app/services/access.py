"""
Row loaders and the ownership checks shared by the project, task and
submission services.
"""

from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import AuthenticatedUser
from app.core.errors import ForbiddenError, NotFoundError
from app.models.project import Project
from app.models.project_request import ProjectRequest
from app.models.submission import TaskSubmission
from app.models.task import Task
from marketplace_shared.schemas.common import OPEN_FOR_REQUESTS, ProjectStatus, Role


# ---------------------------------------------------------------------------
# Loaders
# ---------------------------------------------------------------------------


async def get_project_or_404(session: AsyncSession, project_id: uuid.UUID) -> Project:
    project = await session.get(Project, project_id)
    if not project:
        raise NotFoundError("Project not found")
    return project


async def get_task_or_404(
    session: AsyncSession, project_id: uuid.UUID, task_id: uuid.UUID
) -> Task:
    """Load a task that must belong to ``project_id``."""
    task = await session.get(Task, task_id)
    if not task or task.project_id != project_id:
        raise NotFoundError("Task not found")
    return task


async def get_submission_or_404(
    session: AsyncSession, task_id: uuid.UUID, submission_id: uuid.UUID
) -> TaskSubmission:
    submission = await session.get(TaskSubmission, submission_id)
    if not submission or submission.task_id != task_id:
        raise NotFoundError("Submission not found")
    return submission


async def has_requested(
    session: AsyncSession, project_id: uuid.UUID, user_id: uuid.UUID
) -> bool:
    result = await session.execute(
        select(ProjectRequest.id).where(
            ProjectRequest.project_id == project_id,
            ProjectRequest.user_id == user_id,
        )
    )
    return result.first() is not None


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------


def is_participant(project: Project, auth: AuthenticatedUser) -> bool:
    """Admin, owning buyer or assigned solver."""
    return (
        auth.is_admin
        or project.buyer_id == auth.user_id
        or project.solver_id == auth.user_id
    )


def ensure_participant(project: Project, auth: AuthenticatedUser) -> None:
    if not is_participant(project, auth):
        raise ForbiddenError("Access denied")


async def ensure_can_view_project(
    session: AsyncSession, project: Project, auth: AuthenticatedUser
) -> None:
    """Participants, anyone who requested it, and solvers while it is open."""
    if is_participant(project, auth):
        return
    if auth.role == Role.PROBLEM_SOLVER and ProjectStatus(project.status) in OPEN_FOR_REQUESTS:
        return
    if await has_requested(session, project.id, auth.user_id):
        return
    raise ForbiddenError("Access denied")


def ensure_owner(project: Project, auth: AuthenticatedUser, message: str) -> None:
    """Buyer-only mutations; admins are not owners."""
    if project.buyer_id != auth.user_id:
        raise ForbiddenError(message)


def ensure_assigned_solver(project: Project, auth: AuthenticatedUser, message: str) -> None:
    """Solver-only mutations; admins are not the assigned solver."""
    if project.solver_id is None or project.solver_id != auth.user_id:
        raise ForbiddenError(message)
