"""
User Management API endpoints (Admin only).

GET    /api/users                  List users
GET    /api/users/{userId}         Get a user
PUT    /api/users/{userId}/role    Change a user's role
PUT    /api/users/{userId}/verify  Set or clear the verified flag
"""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, require_admin
from app.core.database import get_session
from app.services import users as user_service
from marketplace_shared.schemas.common import APIResponse
from marketplace_shared.schemas.users import (
    RoleUpdateRequest,
    UserResponse,
    VerifiedUpdateRequest,
)

router = APIRouter()


@router.get("", response_model=APIResponse[List[UserResponse]], tags=["Users"])
async def list_users(
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    users = await user_service.list_users(session)
    return APIResponse(data=[UserResponse.model_validate(u) for u in users])


@router.get("/{userId}", response_model=APIResponse[UserResponse], tags=["Users"])
async def get_user(
    userId: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    user = await user_service.get_user_or_404(session, userId)
    return APIResponse(data=UserResponse.model_validate(user))


@router.put("/{userId}/role", response_model=APIResponse[UserResponse], tags=["Users"])
async def update_role(
    userId: uuid.UUID,
    body: RoleUpdateRequest,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    user = await user_service.set_role(session, userId, body.role)
    await session.commit()
    return APIResponse(data=UserResponse.model_validate(user))


@router.put("/{userId}/verify", response_model=APIResponse[UserResponse], tags=["Users"])
async def update_verified(
    userId: uuid.UUID,
    body: VerifiedUpdateRequest,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """Mark a user as verified (or revoke it)."""
    user = await user_service.set_verified(session, userId, body.verified)
    await session.commit()
    return APIResponse(data=UserResponse.model_validate(user))
