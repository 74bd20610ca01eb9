from datetime import datetime
from enum import Enum
from typing import Any, Dict, List
from uuid import UUID

from pydantic import BaseModel, Field


class NotificationKind(str, Enum):
    REQUEST = "REQUEST"
    SUBMISSION = "SUBMISSION"
    ASSIGNMENT = "ASSIGNMENT"


class NotificationItem(BaseModel):
    id: str  # "req-<project>", "sub-<notification>", "assign-<project>"
    type: NotificationKind
    title: str
    project_id: UUID
    project_title: str
    created_at: datetime
    seen: bool
    meta: Dict[str, Any] = Field(default_factory=dict)


class NotificationFeed(BaseModel):
    count: int
    new_count: int
    items: List[NotificationItem] = Field(default_factory=list)
