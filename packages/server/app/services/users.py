"""
User service: registration, credential checks, profile and admin management.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import hash_password, verify_password
from app.core.errors import BadRequestError, NotFoundError, UnauthorizedError
from app.models.user import User
from marketplace_shared.schemas.common import Role
from marketplace_shared.schemas.users import ProfileUpdateRequest, RegisterRequest

log = structlog.get_logger()


def _normalize_email(email: str) -> str:
    return email.strip().lower()


async def get_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    result = await session.execute(select(User).where(User.email == _normalize_email(email)))
    return result.scalar_one_or_none()


async def get_user_or_404(session: AsyncSession, user_id: uuid.UUID) -> User:
    user = await session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


async def register_user(
    session: AsyncSession, body: RegisterRequest, *, bcrypt_rounds: int = 12
) -> User:
    """Create a PROBLEM_SOLVER account; roles are granted later by an admin."""
    if await get_user_by_email(session, body.email):
        raise BadRequestError("Email already registered")

    user = User(
        email=_normalize_email(body.email),
        password_hash=hash_password(body.password, rounds=bcrypt_rounds),
        name=body.name,
        role=Role.PROBLEM_SOLVER.value,
    )
    session.add(user)
    try:
        await session.flush()
    except IntegrityError:
        raise BadRequestError("Email already registered")

    log.info("user.registered", user_id=str(user.id))
    return user


async def authenticate(session: AsyncSession, email: str, password: str) -> User:
    user = await get_user_by_email(session, email)
    if not user or not verify_password(password, user.password_hash):
        log.warning("auth.login_failed", email=email)
        raise UnauthorizedError("Invalid credentials")
    return user


async def update_profile(
    session: AsyncSession, user: User, body: ProfileUpdateRequest
) -> User:
    if body.name is not None:
        user.name = body.name
    session.add(user)
    await session.flush()
    log.info("user.profile_updated", user_id=str(user.id))
    return user


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


async def list_users(session: AsyncSession) -> list[User]:
    result = await session.execute(select(User).order_by(User.created_at.desc()))
    return list(result.scalars().all())


async def set_role(session: AsyncSession, user_id: uuid.UUID, role: Role) -> User:
    user = await get_user_or_404(session, user_id)
    previous = user.role
    user.role = role.value
    session.add(user)
    await session.flush()
    log.info("user.role_changed", user_id=str(user.id), from_role=previous, to_role=user.role)
    return user


async def set_verified(session: AsyncSession, user_id: uuid.UUID, verified: bool) -> User:
    user = await get_user_or_404(session, user_id)
    user.verified = verified
    session.add(user)
    await session.flush()
    log.info("user.verified_changed", user_id=str(user.id), verified=verified)
    return user
