"""User model."""

from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class User(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "users"

    email: str = Field(unique=True, index=True, nullable=False)
    password_hash: str = Field(nullable=False)  # bcrypt
    name: str = Field(nullable=False)
    role: str = Field(nullable=False, default="PROBLEM_SOLVER")  # ADMIN | BUYER | PROBLEM_SOLVER
    verified: bool = Field(default=False, nullable=False)
    # Notification seen-cursor: items timestamped at or before it count as seen
    last_seen_notifications_at: Optional[datetime] = Field(
        default=None, sa_type=sa.DateTime(timezone=True)
    )
