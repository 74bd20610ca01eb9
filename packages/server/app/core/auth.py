"""
Authentication and Authorization for the marketplace.

Supports:
- Email/Password credentials with bcrypt hashes
- Short-lived JWT access tokens and long-lived refresh tokens (separate secrets)
- Bearer token authentication dependency
- Role-based authorization dependencies
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Literal, Optional

import bcrypt
import jwt
import structlog
from fastapi import Depends
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, get_app_settings
from app.core.database import get_session
from app.core.errors import ForbiddenError, UnauthorizedError
from app.models.user import User
from marketplace_shared.schemas.common import Role

log = structlog.get_logger()

api_key_header = APIKeyHeader(name="Authorization", auto_error=False)

TokenType = Literal["access", "refresh"]

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------

def hash_password(password: str, rounds: int = 12) -> str:
    """Hash a password using bcrypt (cost factor 12 unless configured otherwise)."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=rounds)).decode()


def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against a bcrypt hash."""
    return bcrypt.checkpw(password.encode(), hashed.encode())


# ---------------------------------------------------------------------------
# JWT
# ---------------------------------------------------------------------------

def _signing_key(token_type: TokenType, settings: Settings) -> str:
    return settings.secret_key if token_type == "access" else settings.refresh_secret_key


def create_token(
    user_id: uuid.UUID,
    email: str,
    role: str,
    token_type: TokenType,
    settings: Settings,
    *,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed JWT of the given type."""
    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = (
            timedelta(minutes=settings.access_token_expire_minutes)
            if token_type == "access"
            else timedelta(days=settings.refresh_token_expire_days)
        )
    payload = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "type": token_type,
        "iat": now,
        "exp": now + expires_delta,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(payload, _signing_key(token_type, settings), algorithm=settings.jwt_algorithm)


def decode_token(token: str, token_type: TokenType, settings: Settings) -> dict:
    """Decode and verify a JWT. Raises jwt.PyJWTError on failure or wrong type."""
    payload = jwt.decode(
        token, _signing_key(token_type, settings), algorithms=[settings.jwt_algorithm]
    )
    if payload.get("type") != token_type:
        raise jwt.InvalidTokenError(f"Expected a {token_type} token")
    return payload


def issue_token_pair(user: User, settings: Settings) -> dict:
    """Access + refresh tokens for a user, shaped for AuthResponse."""
    return {
        "access_token": create_token(user.id, user.email, user.role, "access", settings),
        "refresh_token": create_token(user.id, user.email, user.role, "refresh", settings),
        "expires_in": settings.access_token_expire_minutes * 60,
    }


# ---------------------------------------------------------------------------
# Authentication dependencies
# ---------------------------------------------------------------------------

class AuthenticatedUser:
    """Container for an authenticated user."""

    def __init__(self, user: User):
        self.user = user
        self.user_id = user.id
        self.role = Role(user.role)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


async def get_authenticated_user(
    authorization: Optional[str] = Depends(api_key_header),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
) -> AuthenticatedUser:
    """Main authentication dependency: ``Authorization: Bearer <access token>``."""
    if not authorization or not authorization.startswith("Bearer "):
        raise UnauthorizedError("No token provided")

    token = authorization[7:].strip()
    try:
        payload = decode_token(token, "access", settings)
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Token expired")
    except jwt.PyJWTError:
        raise UnauthorizedError("Invalid token")

    try:
        user_id = uuid.UUID(payload["sub"])
    except (KeyError, ValueError):
        raise UnauthorizedError("Invalid token")

    user = await session.get(User, user_id)
    if not user:
        raise UnauthorizedError("User not found")

    return AuthenticatedUser(user)


# ---------------------------------------------------------------------------
# Authorization dependencies (role checks)
# ---------------------------------------------------------------------------

def require_roles(*roles: Role):
    """Build a dependency that admits only the given roles."""

    async def _check(
        auth: AuthenticatedUser = Depends(get_authenticated_user),
    ) -> AuthenticatedUser:
        if auth.role not in roles:
            raise ForbiddenError("Insufficient permissions")
        return auth

    return _check


async def require_member(
    auth: AuthenticatedUser = Depends(get_authenticated_user),
) -> AuthenticatedUser:
    """Any authenticated user can access this endpoint."""
    return auth


require_admin = require_roles(Role.ADMIN)
require_buyer = require_roles(Role.BUYER)
require_solver = require_roles(Role.PROBLEM_SOLVER)
require_project_creator = require_roles(Role.BUYER, Role.ADMIN)
