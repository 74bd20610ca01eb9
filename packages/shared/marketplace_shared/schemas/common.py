from enum import Enum
from typing import Generic, List, Optional, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


class Role(str, Enum):
    ADMIN = "ADMIN"
    BUYER = "BUYER"
    PROBLEM_SOLVER = "PROBLEM_SOLVER"


class ProjectStatus(str, Enum):
    OPEN = "OPEN"
    REQUESTED = "REQUESTED"
    ASSIGNED = "ASSIGNED"
    IN_PROGRESS = "IN_PROGRESS"
    SUBMITTED = "SUBMITTED"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"


# Statuses in which solvers may still bid on a project
OPEN_FOR_REQUESTS: frozenset["ProjectStatus"] = frozenset(
    {ProjectStatus.OPEN, ProjectStatus.REQUESTED}
)


class TaskStatus(str, Enum):
    CREATED = "CREATED"
    IN_PROGRESS = "IN_PROGRESS"
    SUBMITTED = "SUBMITTED"
    COMPLETED = "COMPLETED"


class RequestStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class SubmissionStatus(str, Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class NotificationType(str, Enum):
    TASK_SUBMISSION = "TASK_SUBMISSION"


class ErrorDetail(BaseModel):
    path: str
    message: str


class APIResponse(BaseModel, Generic[T]):
    success: bool = True
    data: Optional[T] = None
    error: Optional[str] = None
    code: Optional[str] = None
    details: Optional[List[ErrorDetail]] = None
