"""
Submission service layer: ZIP deliverable uploads and their review.

A new submission moves its task to SUBMITTED and, once every task of the
project is SUBMITTED or COMPLETED, the project too. A review is final:
ACCEPTED completes the task (and the project when it was the last one),
REJECTED reopens the task and pulls a SUBMITTED project back to IN_PROGRESS.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from pathlib import Path

import structlog
from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import AuthenticatedUser
from app.core.config import Settings
from app.core.errors import BadRequestError
from app.core.storage import discard, resolve_stored_path, save_upload
from app.models.notification import Notification
from app.models.submission import TaskSubmission
from app.services.access import (
    ensure_assigned_solver,
    ensure_owner,
    ensure_participant,
    get_project_or_404,
    get_submission_or_404,
    get_task_or_404,
)
from app.services.lifecycle import (
    InvalidTransition,
    ProjectEvent,
    TaskEvent,
    apply_project_event,
    apply_task_event,
)
from app.services.tasks import sync_project_status
from marketplace_shared.schemas.common import (
    NotificationType,
    ProjectStatus,
    SubmissionStatus,
)
from marketplace_shared.schemas.tasks import SubmissionReview

log = structlog.get_logger()


async def list_submissions(
    session: AsyncSession,
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    auth: AuthenticatedUser,
) -> list[TaskSubmission]:
    project = await get_project_or_404(session, project_id)
    ensure_participant(project, auth)
    task = await get_task_or_404(session, project_id, task_id)

    result = await session.execute(
        select(TaskSubmission)
        .where(TaskSubmission.task_id == task.id)
        .order_by(TaskSubmission.created_at.desc())
    )
    return list(result.scalars().all())


async def create_submission(
    session: AsyncSession,
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    auth: AuthenticatedUser,
    upload: UploadFile,
    settings: Settings,
) -> TaskSubmission:
    """Store the archive, record the submission and propagate statuses."""
    project = await get_project_or_404(session, project_id)
    task = await get_task_or_404(session, project_id, task_id)
    ensure_assigned_solver(project, auth, "Only assigned solver can submit")

    try:
        new_task_status = apply_task_event(task.status, TaskEvent.SUBMISSION_CREATED)
    except InvalidTransition as exc:
        raise BadRequestError(str(exc))

    stored = await save_upload(upload, settings.upload_dir, settings.max_upload_bytes)
    try:
        submission = TaskSubmission(
            task_id=task.id,
            file_path=stored.path,
            file_name=stored.original_name,
            file_size=stored.size,
            status=SubmissionStatus.PENDING.value,
        )
        session.add(submission)
        task.status = new_task_status.value
        session.add(task)

        await sync_project_status(session, project)

        solver_name = auth.user.name
        session.add(
            Notification(
                user_id=project.buyer_id,
                type=NotificationType.TASK_SUBMISSION.value,
                project_id=project.id,
                task_id=task.id,
                title=f"{solver_name or 'Solver'} submitted a task for review",
                solver_name=solver_name,
            )
        )
        await session.flush()
    except Exception:
        discard(stored)
        raise

    log.info(
        "submission.created",
        submission_id=str(submission.id),
        task_id=str(task.id),
        project_id=str(project.id),
        file_size=stored.size,
    )
    return submission


async def review_submission(
    session: AsyncSession,
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    submission_id: uuid.UUID,
    auth: AuthenticatedUser,
    review: SubmissionReview,
) -> TaskSubmission:
    project = await get_project_or_404(session, project_id)
    task = await get_task_or_404(session, project_id, task_id)
    submission = await get_submission_or_404(session, task.id, submission_id)
    ensure_owner(project, auth, "Only project owner can review submissions")

    if SubmissionStatus(submission.status) != SubmissionStatus.PENDING:
        raise BadRequestError("Submission already reviewed")

    accepted = review.status == SubmissionStatus.ACCEPTED
    task_event = TaskEvent.SUBMISSION_ACCEPTED if accepted else TaskEvent.SUBMISSION_REJECTED
    try:
        new_task_status = apply_task_event(task.status, task_event)
    except InvalidTransition as exc:
        raise BadRequestError(str(exc))

    submission.status = review.status.value
    submission.feedback = review.feedback
    submission.reviewed_at = datetime.now(timezone.utc)
    task.status = new_task_status.value
    session.add(submission)
    session.add(task)
    await session.flush()

    if accepted:
        await sync_project_status(session, project, on=(ProjectEvent.ALL_TASKS_COMPLETED,))
    else:
        current = ProjectStatus(project.status)
        new_status = apply_project_event(current, ProjectEvent.SUBMISSION_REJECTED)
        if new_status != current:
            project.status = new_status.value
            session.add(project)
            await session.flush()

    log.info(
        "submission.reviewed",
        submission_id=str(submission.id),
        verdict=submission.status,
        task_status=task.status,
        project_status=project.status,
    )
    return submission


async def get_download(
    session: AsyncSession,
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    submission_id: uuid.UUID,
    auth: AuthenticatedUser,
    settings: Settings,
) -> tuple[Path, str]:
    """Resolve a submission's archive for a participant: (path, original name)."""
    project = await get_project_or_404(session, project_id)
    task = await get_task_or_404(session, project_id, task_id)
    submission = await get_submission_or_404(session, task.id, submission_id)
    ensure_participant(project, auth)

    path = resolve_stored_path(submission.file_path, settings.upload_dir)
    return path, submission.file_name
