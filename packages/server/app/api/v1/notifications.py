"""Notification feed for the current user."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, require_member
from app.core.database import get_session
from app.services import notifications as notification_service
from marketplace_shared.schemas.common import APIResponse
from marketplace_shared.schemas.notifications import NotificationFeed

router = APIRouter()


class SeenResponse(BaseModel):
    last_seen_notifications_at: datetime


@router.get("", response_model=APIResponse[NotificationFeed])
async def get_notifications(
    auth: AuthenticatedUser = Depends(require_member),
    session: AsyncSession = Depends(get_session),
):
    return APIResponse(data=await notification_service.get_feed(session, auth))


@router.post("/seen", response_model=APIResponse[SeenResponse])
async def mark_seen(
    auth: AuthenticatedUser = Depends(require_member),
    session: AsyncSession = Depends(get_session),
):
    """Mark everything up to now as seen."""
    seen_at = await notification_service.mark_seen(session, auth)
    await session.commit()
    return APIResponse(data=SeenResponse(last_seen_notifications_at=seen_at))
