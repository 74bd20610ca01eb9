"""
Project endpoints: creation, role-filtered listing, detail, solver requests
and solver assignment.

Lifecycle: OPEN → REQUESTED → ASSIGNED → IN_PROGRESS → SUBMITTED → COMPLETED
- A solver request moves OPEN to REQUESTED
- The owning buyer assigns one requesting solver (REQUESTED → ASSIGNED)
- Later stages follow from tasks and submission reviews
"""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import (
    AuthenticatedUser,
    require_buyer,
    require_member,
    require_project_creator,
    require_solver,
)
from app.core.database import get_session
from app.services import projects as project_service
from app.services import requests as request_service
from marketplace_shared.schemas.common import APIResponse
from marketplace_shared.schemas.projects import (
    AssignSolverRequest,
    ProjectCreate,
    ProjectDetail,
    ProjectRead,
    ProjectRequestCreate,
    ProjectRequestRead,
)

router = APIRouter()


async def _read(session: AsyncSession, project) -> ProjectRead:
    [item] = await project_service.enrich_projects(session, [project])
    return item


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------


@router.get("", response_model=APIResponse[List[ProjectRead]])
async def list_projects(
    auth: AuthenticatedUser = Depends(require_member),
    session: AsyncSession = Depends(get_session),
):
    """List the projects visible to the caller, most recently updated first."""
    return APIResponse(data=await project_service.list_projects(session, auth))


@router.post("", response_model=APIResponse[ProjectRead], status_code=201)
async def create_project(
    project_in: ProjectCreate,
    auth: AuthenticatedUser = Depends(require_project_creator),
    session: AsyncSession = Depends(get_session),
):
    """Post a new OPEN project owned by the caller (Buyer or Admin)."""
    project = await project_service.create_project(session, auth, project_in)
    await session.commit()
    await session.refresh(project)
    return APIResponse(data=await _read(session, project))


@router.get("/{project_id}", response_model=APIResponse[ProjectDetail])
async def get_project(
    project_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_member),
    session: AsyncSession = Depends(get_session),
):
    return APIResponse(
        data=await project_service.get_project_detail(session, project_id, auth)
    )


@router.put("/{project_id}/assign", response_model=APIResponse[ProjectRead])
async def assign_solver(
    project_id: uuid.UUID,
    body: AssignSolverRequest,
    auth: AuthenticatedUser = Depends(require_buyer),
    session: AsyncSession = Depends(get_session),
):
    """Assign a requesting solver; every other request is rejected."""
    project = await project_service.assign_solver(session, project_id, auth, body.solver_id)
    await session.commit()
    return APIResponse(data=await _read(session, project))


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


@router.post(
    "/{project_id}/requests",
    response_model=APIResponse[ProjectRequestRead],
    status_code=201,
)
async def create_request(
    project_id: uuid.UUID,
    body: ProjectRequestCreate,
    auth: AuthenticatedUser = Depends(require_solver),
    session: AsyncSession = Depends(get_session),
):
    """Ask to work on a project."""
    item = await request_service.create_request(session, project_id, auth, body)
    await session.commit()
    return APIResponse(data=item)


@router.get("/{project_id}/requests", response_model=APIResponse[List[ProjectRequestRead]])
async def list_requests(
    project_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_member),
    session: AsyncSession = Depends(get_session),
):
    return APIResponse(
        data=await request_service.list_project_requests(session, project_id, auth)
    )
