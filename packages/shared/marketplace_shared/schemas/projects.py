from typing import Optional, List
from pydantic import BaseModel, Field
from uuid import UUID
from datetime import datetime
from .common import ProjectStatus, RequestStatus
from .tasks import TaskRead
from .users import SolverSummary, UserSummary


class ProjectCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)


class AssignSolverRequest(BaseModel):
    solver_id: UUID


class ProjectSummary(BaseModel):
    id: UUID
    title: str
    status: ProjectStatus

    model_config = {"from_attributes": True}


class ProjectRead(BaseModel):
    id: UUID
    title: str
    description: Optional[str] = None
    status: ProjectStatus
    buyer_id: UUID
    solver_id: Optional[UUID] = None
    buyer: Optional[UserSummary] = None
    solver: Optional[UserSummary] = None
    request_count: int = 0
    task_count: int = 0
    created_at: datetime
    updated_at: datetime


class ProjectRequestCreate(BaseModel):
    message: Optional[str] = Field(default=None, max_length=500)


class ProjectRequestRead(BaseModel):
    id: UUID
    project_id: UUID
    user_id: UUID
    message: Optional[str] = None
    status: RequestStatus
    user: Optional[SolverSummary] = None
    project: Optional[ProjectSummary] = None
    created_at: datetime


class ProjectDetail(ProjectRead):
    requests: List[ProjectRequestRead] = Field(default_factory=list)
    tasks: List[TaskRead] = Field(default_factory=list)


# The project lifecycle graph, for clients that render it. Statuses only move
# through the domain events in app.services.lifecycle.
PROJECT_TRANSITIONS: dict[ProjectStatus, list[ProjectStatus]] = {
    ProjectStatus.OPEN: [ProjectStatus.REQUESTED],
    ProjectStatus.REQUESTED: [ProjectStatus.ASSIGNED],
    ProjectStatus.ASSIGNED: [ProjectStatus.IN_PROGRESS],
    ProjectStatus.IN_PROGRESS: [ProjectStatus.SUBMITTED],
    ProjectStatus.SUBMITTED: [ProjectStatus.COMPLETED, ProjectStatus.REJECTED],
    ProjectStatus.REJECTED: [ProjectStatus.SUBMITTED],
    ProjectStatus.COMPLETED: [],
}


def validate_transition(current: ProjectStatus, target: ProjectStatus) -> tuple[bool, str]:
    """Validate a direct project status transition against PROJECT_TRANSITIONS.

    Returns (is_valid, error_message).
    """
    allowed = PROJECT_TRANSITIONS.get(current, [])
    if target in allowed:
        return True, ""

    if not allowed:
        return False, f"Project is {current.value}; no further transitions are allowed"

    return False, (
        f"Invalid transition from {current.value} to {target.value}. "
        f"Allowed: {[s.value for s in allowed]}"
    )
