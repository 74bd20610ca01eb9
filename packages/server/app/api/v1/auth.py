"""
Authentication endpoints.

- Email/Password registration & login
- JWT access/refresh token pair (refresh reissues both)
- Current user and profile update
"""

from __future__ import annotations

import uuid

import jwt
import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import (
    AuthenticatedUser,
    decode_token,
    issue_token_pair,
    require_member,
)
from app.core.config import Settings, get_app_settings
from app.core.database import get_session
from app.core.errors import UnauthorizedError
from app.models.user import User
from app.services import users as user_service
from marketplace_shared.schemas.common import APIResponse
from marketplace_shared.schemas.users import (
    AuthResponse,
    LoginRequest,
    ProfileUpdateRequest,
    RefreshRequest,
    RegisterRequest,
    UserResponse,
)

log = structlog.get_logger()
router = APIRouter()


def _auth_payload(user: User, settings: Settings) -> AuthResponse:
    return AuthResponse(
        user=UserResponse.model_validate(user),
        **issue_token_pair(user, settings),
    )


@router.post("/register", response_model=APIResponse[AuthResponse], status_code=201)
async def register(
    body: RegisterRequest,
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
):
    """Register a new user with email/password. New accounts are problem solvers."""
    user = await user_service.register_user(
        session, body, bcrypt_rounds=settings.bcrypt_rounds
    )
    await session.commit()
    return APIResponse(data=_auth_payload(user, settings))


@router.post("/login", response_model=APIResponse[AuthResponse])
async def login(
    body: LoginRequest,
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
):
    """Exchange email/password for an access/refresh token pair."""
    user = await user_service.authenticate(session, body.email, body.password)
    log.info("auth.login", user_id=str(user.id))
    return APIResponse(data=_auth_payload(user, settings))


@router.post("/refresh", response_model=APIResponse[AuthResponse])
async def refresh(
    body: RefreshRequest,
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
):
    """Reissue both tokens from a valid refresh token."""
    try:
        payload = decode_token(body.refresh_token, "refresh", settings)
        user_id = uuid.UUID(payload["sub"])
    except (jwt.PyJWTError, KeyError, ValueError):
        raise UnauthorizedError("Invalid refresh token")

    user = await session.get(User, user_id)
    if not user:
        raise UnauthorizedError("Invalid refresh token")
    return APIResponse(data=_auth_payload(user, settings))


@router.get("/me", response_model=APIResponse[UserResponse])
async def me(auth: AuthenticatedUser = Depends(require_member)):
    return APIResponse(data=UserResponse.model_validate(auth.user))


@router.put("/profile", response_model=APIResponse[UserResponse])
async def update_profile(
    body: ProfileUpdateRequest,
    auth: AuthenticatedUser = Depends(require_member),
    session: AsyncSession = Depends(get_session),
):
    user = await user_service.update_profile(session, auth.user, body)
    await session.commit()
    return APIResponse(data=UserResponse.model_validate(user))
