# This project was developed with assistance from AI tools.
"""Per-user notifications raised by reviewer rejections."""

import logging

from registry_db import Notification
from registry_db.enums import NotificationType
from registry_db.models import utcnow
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.auth import UserContext
from .errors import Forbidden, NotFound

logger = logging.getLogger(__name__)


async def create_notification(
    session: AsyncSession,
    *,
    user_id: str,
    type: NotificationType,  # noqa: A002
    title: str,
    message: str,
    application_id: int | None = None,
    document_id: int | None = None,
) -> Notification:
    """Add an unread notification to the current transaction and flush it."""
    notification = Notification(
        user_id=user_id,
        type=type,
        title=title,
        message=message,
        application_id=application_id,
        document_id=document_id,
        read=False,
    )
    session.add(notification)
    await session.flush()
    return notification


async def list_notifications(
    session: AsyncSession,
    user: UserContext,
    *,
    unread_only: bool = False,
) -> list[Notification]:
    """Return the caller's notifications, newest first."""
    stmt = select(Notification).where(Notification.user_id == user.user_id)
    if unread_only:
        stmt = stmt.where(Notification.read.is_(False))
    stmt = stmt.order_by(Notification.created_at.desc(), Notification.id.desc())
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_unread_count(session: AsyncSession, user: UserContext) -> int:
    stmt = select(func.count(Notification.id)).where(
        Notification.user_id == user.user_id,
        Notification.read.is_(False),
    )
    return (await session.execute(stmt)).scalar_one()


async def mark_as_read(
    session: AsyncSession,
    user: UserContext,
    notification_id: int,
) -> Notification:
    """Mark one of the caller's notifications as read. Idempotent."""
    notification = await session.get(Notification, notification_id)
    if notification is None:
        raise NotFound(f"Notification {notification_id} not found")
    if notification.user_id != user.user_id:
        raise Forbidden("Notification belongs to another user")

    if not notification.read:
        notification.read = True
        notification.read_at = utcnow()
        await session.commit()
    return notification


async def mark_all_as_read(session: AsyncSession, user: UserContext) -> int:
    """Mark every unread notification of the caller as read; return how many changed."""
    unread = await list_notifications(session, user, unread_only=True)
    now = utcnow()
    for notification in unread:
        notification.read = True
        notification.read_at = now
    await session.commit()
    return len(unread)
