"""Solver requests (bids) on projects."""

from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class ProjectRequest(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "project_requests"
    __table_args__ = (
        sa.UniqueConstraint("project_id", "user_id", name="uq_project_requests_project_user"),
    )

    project_id: uuid.UUID = Field(foreign_key="projects.id", nullable=False, index=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    message: Optional[str] = None
    status: str = Field(default="PENDING", nullable=False)  # PENDING | APPROVED | REJECTED
