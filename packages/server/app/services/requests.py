"""
Solver request service: bids on projects.
"""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import AuthenticatedUser
from app.core.errors import BadRequestError, ConflictError
from app.models.project import Project
from app.models.project_request import ProjectRequest
from app.models.user import User
from app.services.access import ensure_can_view_project, get_project_or_404, is_participant
from app.services.lifecycle import InvalidTransition, ProjectEvent, apply_project_event
from app.services.projects import enrich_requests, request_read
from marketplace_shared.schemas.projects import ProjectRequestCreate, ProjectRequestRead
from marketplace_shared.schemas.users import SolverSummary

log = structlog.get_logger()

DUPLICATE_REQUEST = "You have already requested to work on this project"


async def create_request(
    session: AsyncSession,
    project_id: uuid.UUID,
    auth: AuthenticatedUser,
    request_in: ProjectRequestCreate,
) -> ProjectRequestRead:
    """Insert the request and move the project to REQUESTED in one transaction."""
    project = await get_project_or_404(session, project_id)

    try:
        new_status = apply_project_event(project.status, ProjectEvent.SOLVER_REQUESTED)
    except InvalidTransition as exc:
        raise BadRequestError(str(exc))

    existing = await session.execute(
        select(ProjectRequest.id).where(
            ProjectRequest.project_id == project.id,
            ProjectRequest.user_id == auth.user_id,
        )
    )
    if existing.first() is not None:
        raise ConflictError(DUPLICATE_REQUEST)

    req = ProjectRequest(
        project_id=project.id,
        user_id=auth.user_id,
        message=request_in.message,
    )
    session.add(req)
    project.status = new_status.value
    session.add(project)
    try:
        await session.flush()
    except IntegrityError:
        raise ConflictError(DUPLICATE_REQUEST)

    log.info(
        "request.created",
        request_id=str(req.id),
        project_id=str(project.id),
        user_id=str(auth.user_id),
    )

    user: User = auth.user
    return request_read(
        req,
        user=SolverSummary(id=user.id, email=user.email, name=user.name, verified=user.verified),
        project=project,
    )


async def list_project_requests(
    session: AsyncSession, project_id: uuid.UUID, auth: AuthenticatedUser
) -> list[ProjectRequestRead]:
    """Participants see every request; other viewers only their own."""
    project = await get_project_or_404(session, project_id)
    await ensure_can_view_project(session, project, auth)

    stmt = select(ProjectRequest).where(ProjectRequest.project_id == project.id)
    if not is_participant(project, auth):
        stmt = stmt.where(ProjectRequest.user_id == auth.user_id)
    result = await session.execute(stmt.order_by(ProjectRequest.created_at.desc()))
    return await enrich_requests(session, list(result.scalars().all()))


async def list_my_requests(
    session: AsyncSession, auth: AuthenticatedUser
) -> list[ProjectRequestRead]:
    result = await session.execute(
        select(ProjectRequest, Project)
        .join(Project, Project.id == ProjectRequest.project_id)
        .where(ProjectRequest.user_id == auth.user_id)
        .order_by(ProjectRequest.created_at.desc())
    )
    return [request_read(req, project=project) for req, project in result.all()]
