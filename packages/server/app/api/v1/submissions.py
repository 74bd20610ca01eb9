"""
Submission endpoints, nested under a task.

POST   .../submissions                   Upload a ZIP deliverable (assigned solver)
GET    .../submissions                   List a task's submissions, newest first
PUT    .../submissions/{sid}/review      Accept or reject (owning buyer)
GET    .../submissions/{sid}/download    Stream the archive under its original name
"""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, require_buyer, require_member, require_solver
from app.core.config import Settings, get_app_settings
from app.core.database import get_session
from app.services import submissions as submission_service
from marketplace_shared.schemas.common import APIResponse
from marketplace_shared.schemas.tasks import SubmissionRead, SubmissionReview

router = APIRouter()


@router.get("", response_model=APIResponse[List[SubmissionRead]])
async def list_submissions(
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_member),
    session: AsyncSession = Depends(get_session),
):
    items = await submission_service.list_submissions(session, project_id, task_id, auth)
    return APIResponse(data=[SubmissionRead.model_validate(s) for s in items])


@router.post("", response_model=APIResponse[SubmissionRead], status_code=201)
async def create_submission(
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    file: UploadFile = File(...),
    auth: AuthenticatedUser = Depends(require_solver),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
):
    submission = await submission_service.create_submission(
        session, project_id, task_id, auth, file, settings
    )
    await session.commit()
    return APIResponse(data=SubmissionRead.model_validate(submission))


@router.put("/{submission_id}/review", response_model=APIResponse[SubmissionRead])
async def review_submission(
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    submission_id: uuid.UUID,
    body: SubmissionReview,
    auth: AuthenticatedUser = Depends(require_buyer),
    session: AsyncSession = Depends(get_session),
):
    """Record a final verdict; the task and project statuses follow."""
    submission = await submission_service.review_submission(
        session, project_id, task_id, submission_id, auth, body
    )
    await session.commit()
    return APIResponse(data=SubmissionRead.model_validate(submission))


@router.get("/{submission_id}/download")
async def download_submission(
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    submission_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_member),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
):
    path, file_name = await submission_service.get_download(
        session, project_id, task_id, submission_id, auth, settings
    )
    return FileResponse(path, media_type="application/zip", filename=file_name)
