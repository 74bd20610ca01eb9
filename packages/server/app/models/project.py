"""Project model."""

from typing import Optional
import uuid

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Project(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "projects"

    title: str = Field(nullable=False)
    description: Optional[str] = None
    # OPEN | REQUESTED | ASSIGNED | IN_PROGRESS | SUBMITTED | COMPLETED | REJECTED
    status: str = Field(default="OPEN", nullable=False, index=True)
    buyer_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    solver_id: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id", index=True)
