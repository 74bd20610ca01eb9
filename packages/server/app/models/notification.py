"""Persisted notifications (task submissions only; other kinds are derived on read)."""

from typing import Optional
import uuid

from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, UUIDMixin


class Notification(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "notifications"

    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    type: str = Field(nullable=False)  # TASK_SUBMISSION
    project_id: uuid.UUID = Field(foreign_key="projects.id", nullable=False)
    task_id: Optional[uuid.UUID] = Field(default=None, foreign_key="tasks.id")
    title: str = Field(nullable=False)
    solver_name: Optional[str] = None
