"""
Notification feed, assembled at read time.

Only task submissions are stored as rows. "Solvers requested" items (for
buyers) and "you were assigned" items (for solvers) are derived from current
project state. There is no per-item read flag: an item counts as seen when
its timestamp is at or before the viewer's ``last_seen_notifications_at``
cursor, and marking seen moves that cursor to now.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import structlog
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import AuthenticatedUser
from app.models.notification import Notification
from app.models.project import Project
from app.models.project_request import ProjectRequest
from marketplace_shared.schemas.common import NotificationType, ProjectStatus, Role
from marketplace_shared.schemas.notifications import (
    NotificationFeed,
    NotificationItem,
    NotificationKind,
)

log = structlog.get_logger()

ASSIGNMENT_STATUSES = (ProjectStatus.ASSIGNED.value, ProjectStatus.IN_PROGRESS.value)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _seen(created_at: datetime, last_seen: Optional[datetime]) -> bool:
    return last_seen is not None and _as_utc(created_at) <= _as_utc(last_seen)


async def _buyer_items(
    session: AsyncSession, auth: AuthenticatedUser, last_seen: Optional[datetime]
) -> list[NotificationItem]:
    items: list[NotificationItem] = []

    result = await session.execute(
        select(Project, func.count(ProjectRequest.id).label("request_count"))
        .outerjoin(ProjectRequest, ProjectRequest.project_id == Project.id)
        .where(
            Project.buyer_id == auth.user_id,
            Project.status == ProjectStatus.REQUESTED.value,
        )
        .group_by(Project.id)
    )
    for project, request_count in result.all():
        items.append(
            NotificationItem(
                id=f"req-{project.id}",
                type=NotificationKind.REQUEST,
                title=f"{request_count} problem solver(s) requested to work",
                project_id=project.id,
                project_title=project.title,
                created_at=_as_utc(project.updated_at),
                seen=_seen(project.updated_at, last_seen),
                meta={"request_count": request_count},
            )
        )

    result = await session.execute(
        select(Notification, Project.title)
        .join(Project, Project.id == Notification.project_id)
        .where(
            Notification.user_id == auth.user_id,
            Notification.type == NotificationType.TASK_SUBMISSION.value,
        )
    )
    for note, project_title in result.all():
        items.append(
            NotificationItem(
                id=f"sub-{note.id}",
                type=NotificationKind.SUBMISSION,
                title=note.title,
                project_id=note.project_id,
                project_title=project_title,
                created_at=_as_utc(note.created_at),
                seen=_seen(note.created_at, last_seen),
                meta={"solver_name": note.solver_name},
            )
        )
    return items


async def _solver_items(
    session: AsyncSession, auth: AuthenticatedUser, last_seen: Optional[datetime]
) -> list[NotificationItem]:
    result = await session.execute(
        select(Project).where(
            Project.solver_id == auth.user_id,
            Project.status.in_(ASSIGNMENT_STATUSES),
        )
    )
    return [
        NotificationItem(
            id=f"assign-{project.id}",
            type=NotificationKind.ASSIGNMENT,
            title="You are assigned to this project",
            project_id=project.id,
            project_title=project.title,
            created_at=_as_utc(project.updated_at),
            seen=_seen(project.updated_at, last_seen),
        )
        for project in result.scalars().all()
    ]


async def get_feed(session: AsyncSession, auth: AuthenticatedUser) -> NotificationFeed:
    last_seen = auth.user.last_seen_notifications_at

    if auth.role in (Role.BUYER, Role.ADMIN):
        items = await _buyer_items(session, auth, last_seen)
    else:
        items = await _solver_items(session, auth, last_seen)

    items.sort(key=lambda item: item.created_at, reverse=True)
    return NotificationFeed(
        count=len(items),
        new_count=sum(1 for item in items if not item.seen),
        items=items,
    )


async def mark_seen(session: AsyncSession, auth: AuthenticatedUser) -> datetime:
    """Advance the viewer's seen-cursor to now."""
    now = datetime.now(timezone.utc)
    user = auth.user
    user.last_seen_notifications_at = now
    session.add(user)
    await session.flush()
    log.info("notifications.seen", user_id=str(user.id))
    return now
