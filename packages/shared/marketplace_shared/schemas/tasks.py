"""Task and submission schemas shared by the server and API clients."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic import UUID4

from .common import SubmissionStatus, TaskStatus


# ---------------------------------------------------------------------------
# Submissions
# ---------------------------------------------------------------------------

class SubmissionRead(BaseModel):
    id: UUID4
    task_id: UUID4
    file_name: str
    file_size: int
    status: SubmissionStatus
    feedback: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class SubmissionReview(BaseModel):
    """Request body for PUT .../submissions/{submissionId}/review."""
    status: SubmissionStatus
    feedback: Optional[str] = Field(default=None, max_length=1000)

    @field_validator("status")
    @classmethod
    def _must_be_verdict(cls, v: SubmissionStatus) -> SubmissionStatus:
        if v == SubmissionStatus.PENDING:
            raise ValueError("status must be ACCEPTED or REJECTED")
        return v


# ---------------------------------------------------------------------------
# Task CRUD
# ---------------------------------------------------------------------------

class TaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    due_date: Optional[datetime] = None


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    due_date: Optional[datetime] = None
    status: Optional[TaskStatus] = None


class TaskRead(BaseModel):
    id: UUID4
    project_id: UUID4
    title: str
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    status: TaskStatus
    order_index: int
    submissions: List[SubmissionRead] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Direct status edits
# ---------------------------------------------------------------------------

# COMPLETED and the SUBMITTED -> IN_PROGRESS reopen are only reachable
# through submission review.
TASK_EDIT_TRANSITIONS: dict[TaskStatus, list[TaskStatus]] = {
    TaskStatus.CREATED: [TaskStatus.IN_PROGRESS],
    TaskStatus.IN_PROGRESS: [TaskStatus.SUBMITTED],
    TaskStatus.SUBMITTED: [],
    TaskStatus.COMPLETED: [],
}


def validate_task_edit(current: TaskStatus, target: TaskStatus) -> tuple[bool, str]:
    """Validate a status change made through the task update operation."""
    if target in TASK_EDIT_TRANSITIONS.get(current, []):
        return True, ""
    return False, f"Invalid status transition from {current.value} to {target.value}"
