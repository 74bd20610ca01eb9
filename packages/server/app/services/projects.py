"""
Project service layer: creation, role-filtered listing, detail, solver
assignment and request verdicts.
"""

from __future__ import annotations

import uuid
from typing import Sequence

import structlog
from sqlalchemy import distinct, func, or_, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import AuthenticatedUser
from app.core.errors import BadRequestError
from app.models.project import Project
from app.models.project_request import ProjectRequest
from app.models.task import Task
from app.models.user import User
from app.services.access import (
    ensure_can_view_project,
    ensure_owner,
    get_project_or_404,
)
from app.services.lifecycle import (
    InvalidTransition,
    ProjectEvent,
    apply_project_event,
)
from app.services.tasks import enrich_tasks
from marketplace_shared.schemas.common import (
    OPEN_FOR_REQUESTS,
    ProjectStatus,
    RequestStatus,
    Role,
)
from marketplace_shared.schemas.projects import (
    ProjectCreate,
    ProjectDetail,
    ProjectRead,
    ProjectRequestRead,
)
from marketplace_shared.schemas.users import SolverSummary, UserSummary

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def load_users(
    session: AsyncSession, user_ids: set[uuid.UUID]
) -> dict[uuid.UUID, User]:
    user_ids = {uid for uid in user_ids if uid is not None}
    if not user_ids:
        return {}
    result = await session.execute(select(User).where(User.id.in_(user_ids)))
    return {u.id: u for u in result.scalars().all()}


async def solver_stats(
    session: AsyncSession, user_ids: set[uuid.UUID]
) -> dict[uuid.UUID, dict[str, int]]:
    """Completed projects per solver, and the total task count of those projects."""
    if not user_ids:
        return {}
    result = await session.execute(
        select(
            Project.solver_id,
            func.count(distinct(Project.id)).label("projects"),
            func.count(Task.id).label("tasks"),
        )
        .outerjoin(Task, Task.project_id == Project.id)
        .where(
            Project.solver_id.in_(user_ids),
            Project.status == ProjectStatus.COMPLETED.value,
        )
        .group_by(Project.solver_id)
    )
    stats = {uid: {"completed_projects": 0, "completed_tasks": 0} for uid in user_ids}
    for row in result:
        stats[row.solver_id] = {
            "completed_projects": row.projects,
            "completed_tasks": row.tasks,
        }
    return stats


async def _count_by_project(
    session: AsyncSession, column, project_ids: list[uuid.UUID]
) -> dict[uuid.UUID, int]:
    result = await session.execute(
        select(column, func.count().label("cnt"))
        .where(column.in_(project_ids))
        .group_by(column)
    )
    return {row[0]: row.cnt for row in result}


def _summary(user: User | None, *, with_verified: bool = False) -> UserSummary | None:
    if user is None:
        return None
    return UserSummary(
        id=user.id,
        email=user.email,
        name=user.name,
        verified=user.verified if with_verified else None,
    )


async def enrich_projects(
    session: AsyncSession, projects: Sequence[Project]
) -> list[ProjectRead]:
    """Add buyer/solver summaries and request/task counts."""
    if not projects:
        return []

    project_ids = [p.id for p in projects]
    request_counts = await _count_by_project(session, ProjectRequest.project_id, project_ids)
    task_counts = await _count_by_project(session, Task.project_id, project_ids)
    users = await load_users(
        session, {p.buyer_id for p in projects} | {p.solver_id for p in projects}
    )

    return [
        ProjectRead(
            id=p.id,
            title=p.title,
            description=p.description,
            status=p.status,
            buyer_id=p.buyer_id,
            solver_id=p.solver_id,
            buyer=_summary(users.get(p.buyer_id)),
            solver=_summary(users.get(p.solver_id)) if p.solver_id else None,
            request_count=request_counts.get(p.id, 0),
            task_count=task_counts.get(p.id, 0),
            created_at=p.created_at,
            updated_at=p.updated_at,
        )
        for p in projects
    ]


def request_read(
    req: ProjectRequest,
    *,
    user: SolverSummary | None = None,
    project: Project | None = None,
) -> ProjectRequestRead:
    return ProjectRequestRead(
        id=req.id,
        project_id=req.project_id,
        user_id=req.user_id,
        message=req.message,
        status=req.status,
        user=user,
        project=(
            {"id": project.id, "title": project.title, "status": project.status}
            if project is not None
            else None
        ),
        created_at=req.created_at,
    )


async def enrich_requests(
    session: AsyncSession, requests: Sequence[ProjectRequest]
) -> list[ProjectRequestRead]:
    """Requests with requester summaries and their delivery track record."""
    user_ids = {r.user_id for r in requests}
    users = await load_users(session, user_ids)
    stats = await solver_stats(session, user_ids)

    items = []
    for r in requests:
        user = users.get(r.user_id)
        summary = (
            SolverSummary(
                id=user.id,
                email=user.email,
                name=user.name,
                verified=user.verified,
                **stats.get(user.id, {}),
            )
            if user
            else None
        )
        items.append(request_read(r, user=summary))
    return items


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


async def create_project(
    session: AsyncSession, auth: AuthenticatedUser, project_in: ProjectCreate
) -> Project:
    project = Project(
        title=project_in.title,
        description=project_in.description,
        status=ProjectStatus.OPEN.value,
        buyer_id=auth.user_id,
    )
    session.add(project)
    await session.flush()
    log.info("project.created", project_id=str(project.id), buyer_id=str(auth.user_id))
    return project


async def list_projects(
    session: AsyncSession, auth: AuthenticatedUser
) -> list[ProjectRead]:
    """ADMIN sees everything, BUYER their own, PROBLEM_SOLVER open + involved."""
    stmt = select(Project)
    if auth.role == Role.BUYER:
        stmt = stmt.where(Project.buyer_id == auth.user_id)
    elif auth.role == Role.PROBLEM_SOLVER:
        requested = select(ProjectRequest.project_id).where(
            ProjectRequest.user_id == auth.user_id
        )
        stmt = stmt.where(
            or_(
                Project.status.in_([s.value for s in OPEN_FOR_REQUESTS]),
                Project.solver_id == auth.user_id,
                Project.id.in_(requested),
            )
        )
    stmt = stmt.order_by(Project.updated_at.desc())

    result = await session.execute(stmt)
    return await enrich_projects(session, list(result.scalars().all()))


async def get_project_detail(
    session: AsyncSession, project_id: uuid.UUID, auth: AuthenticatedUser
) -> ProjectDetail:
    project = await get_project_or_404(session, project_id)
    await ensure_can_view_project(session, project, auth)

    [base] = await enrich_projects(session, [project])
    if base.solver is not None:
        solver = await session.get(User, project.solver_id)
        base.solver = _summary(solver, with_verified=True)

    req_result = await session.execute(
        select(ProjectRequest)
        .where(ProjectRequest.project_id == project.id)
        .order_by(ProjectRequest.created_at.desc())
    )
    task_result = await session.execute(
        select(Task).where(Task.project_id == project.id).order_by(Task.order_index)
    )

    return ProjectDetail(
        **base.model_dump(),
        requests=await enrich_requests(session, list(req_result.scalars().all())),
        tasks=await enrich_tasks(session, list(task_result.scalars().all())),
    )


async def assign_solver(
    session: AsyncSession,
    project_id: uuid.UUID,
    auth: AuthenticatedUser,
    solver_id: uuid.UUID,
) -> Project:
    """Assign one requesting solver to a REQUESTED project.

    The project row is moved with a compare-and-swap on its status, so a
    concurrent assignment that already won leaves this one with zero rows
    updated. Request verdicts are written in the same transaction.
    """
    project = await get_project_or_404(session, project_id)
    ensure_owner(project, auth, "Only project owner can assign solver")

    try:
        new_status = apply_project_event(project.status, ProjectEvent.SOLVER_ASSIGNED)
    except InvalidTransition as exc:
        raise BadRequestError(str(exc))

    result = await session.execute(
        select(ProjectRequest).where(
            ProjectRequest.project_id == project.id,
            ProjectRequest.user_id == solver_id,
            ProjectRequest.status == RequestStatus.PENDING.value,
        )
    )
    chosen = result.scalar_one_or_none()
    if not chosen:
        raise BadRequestError("Invalid solver or no pending request")

    swapped = await session.execute(
        update(Project)
        .where(
            Project.id == project.id,
            Project.status == ProjectStatus.REQUESTED.value,
        )
        .values(status=new_status.value, solver_id=solver_id)
        .execution_options(synchronize_session=False)
    )
    if swapped.rowcount != 1:
        raise BadRequestError("Project must be in REQUESTED state to assign solver")

    await session.execute(
        update(ProjectRequest)
        .where(ProjectRequest.project_id == project.id)
        .values(status=RequestStatus.REJECTED.value)
        .execution_options(synchronize_session=False)
    )
    await session.execute(
        update(ProjectRequest)
        .where(ProjectRequest.id == chosen.id)
        .values(status=RequestStatus.APPROVED.value)
        .execution_options(synchronize_session=False)
    )
    await session.flush()
    await session.refresh(project)

    log.info(
        "project.assigned",
        project_id=str(project.id),
        solver_id=str(solver_id),
        request_id=str(chosen.id),
    )
    return project
