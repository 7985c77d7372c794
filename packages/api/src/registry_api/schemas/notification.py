# This project was developed with assistance from AI tools.
"""Notification response schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from registry_db.enums import NotificationType


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    application_id: int | None = None
    document_id: int | None = None
    type: NotificationType
    title: str
    message: str
    read: bool
    read_at: datetime | None = None
    created_at: datetime


class NotificationListResponse(BaseModel):
    data: list[NotificationResponse]
    count: int


class UnreadCountResponse(BaseModel):
    """Unread badge count plus the interval clients should poll at."""

    unread: int
    poll_interval_seconds: float


class MarkAllReadResponse(BaseModel):
    updated: int
