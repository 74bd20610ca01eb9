"""Task model."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Task(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "tasks"
    __table_args__ = (
        sa.UniqueConstraint("project_id", "order_index", name="uq_tasks_project_order"),
    )

    project_id: uuid.UUID = Field(foreign_key="projects.id", nullable=False, index=True)
    title: str = Field(nullable=False)
    description: Optional[str] = None
    due_date: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
    order_index: int = Field(nullable=False)
    status: str = Field(nullable=False, default="CREATED")  # CREATED | IN_PROGRESS | SUBMITTED | COMPLETED
