"""
Task endpoints, nested under a project.

Status: CREATED → IN_PROGRESS → SUBMITTED → COMPLETED
- Only the assigned solver creates or edits tasks.
- Direct status edits allow CREATED → IN_PROGRESS and IN_PROGRESS → SUBMITTED.
- COMPLETED (and reopening a SUBMITTED task) happen through submission review.
"""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, require_member, require_solver
from app.core.database import get_session
from app.services.tasks import create_task, enrich_tasks, list_tasks, update_task
from marketplace_shared.schemas.common import APIResponse
from marketplace_shared.schemas.tasks import TaskCreate, TaskRead, TaskUpdate

router = APIRouter()


@router.get("", response_model=APIResponse[List[TaskRead]])
async def list_tasks_endpoint(
    project_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_member),
    session: AsyncSession = Depends(get_session),
):
    """List a project's tasks in order, each with its submissions."""
    return APIResponse(data=await list_tasks(session, project_id, auth))


@router.post("", response_model=APIResponse[TaskRead], status_code=201)
async def create_task_endpoint(
    project_id: uuid.UUID,
    task_in: TaskCreate,
    auth: AuthenticatedUser = Depends(require_solver),
    session: AsyncSession = Depends(get_session),
):
    task = await create_task(session, project_id, auth, task_in)
    await session.commit()
    [item] = await enrich_tasks(session, [task])
    return APIResponse(data=item)


@router.patch("/{task_id}", response_model=APIResponse[TaskRead])
async def update_task_endpoint(
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    task_in: TaskUpdate,
    auth: AuthenticatedUser = Depends(require_solver),
    session: AsyncSession = Depends(get_session),
):
    task = await update_task(session, project_id, task_id, auth, task_in)
    await session.commit()
    [item] = await enrich_tasks(session, [task])
    return APIResponse(data=item)
