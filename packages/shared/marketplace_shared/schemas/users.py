"""User and authentication schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, UUID4

from .common import Role


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    name: str = Field(min_length=1, max_length=200)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(min_length=1)


class ProfileUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)


class RoleUpdateRequest(BaseModel):
    """Admin-only role change."""
    role: Role


class VerifiedUpdateRequest(BaseModel):
    """Admin-only verification toggle."""
    verified: bool


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class UserSummary(BaseModel):
    """Compact user reference embedded in project/request payloads."""
    id: UUID4
    email: str
    name: str
    verified: Optional[bool] = None

    model_config = {"from_attributes": True}


class SolverSummary(UserSummary):
    """Requester summary with their delivery track record."""
    completed_projects: int = 0
    completed_tasks: int = 0


class UserResponse(BaseModel):
    id: UUID4
    email: str
    name: str
    role: Role
    verified: bool = False
    created_at: datetime

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    """Returned by register, login and refresh."""
    user: UserResponse
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int  # access token lifetime in seconds
