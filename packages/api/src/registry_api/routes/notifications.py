# This project was developed with assistance from AI tools.
"""Notification routes for the signed-in user."""

from fastapi import APIRouter, Depends, Query
from registry_db import get_db
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..middleware.auth import CurrentUser
from ..schemas.notification import (
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationResponse,
    UnreadCountResponse,
)
from ..services import notification as notification_service

router = APIRouter()


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    user: CurrentUser,
    unread_only: bool = Query(default=False),
    session: AsyncSession = Depends(get_db),
) -> NotificationListResponse:
    rows = await notification_service.list_notifications(session, user, unread_only=unread_only)
    items = [NotificationResponse.model_validate(n) for n in rows]
    return NotificationListResponse(data=items, count=len(items))


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> UnreadCountResponse:
    """Badge count. Clients poll this at the advertised interval."""
    count = await notification_service.get_unread_count(session, user)
    return UnreadCountResponse(
        unread=count,
        poll_interval_seconds=settings.NOTIFICATION_POLL_INTERVAL_SECONDS,
    )


@router.post("/read-all", response_model=MarkAllReadResponse)
async def mark_all_read(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> MarkAllReadResponse:
    updated = await notification_service.mark_all_as_read(session, user)
    return MarkAllReadResponse(updated=updated)


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> NotificationResponse:
    notification = await notification_service.mark_as_read(session, user, notification_id)
    return NotificationResponse.model_validate(notification)
