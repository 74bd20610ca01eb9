"""Task submission model: one uploaded deliverable attempt."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class TaskSubmission(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "task_submissions"

    task_id: uuid.UUID = Field(foreign_key="tasks.id", nullable=False, index=True)
    file_path: str = Field(nullable=False)
    file_name: str = Field(nullable=False)  # original upload name
    file_size: int = Field(nullable=False)
    status: str = Field(default="PENDING", nullable=False)  # PENDING | ACCEPTED | REJECTED
    feedback: Optional[str] = None
    reviewed_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
