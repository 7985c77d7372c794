# This project was developed with assistance from AI tools.
"""Pydantic response schemas for audit trail endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from . import Pagination


class AuditLogItem(BaseModel):
    """Single audit entry in a query response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    timestamp: datetime
    actor_id: str
    actor_name: str | None = None
    actor_role: str
    action: str
    resource_type: str
    resource_id: str
    details: dict | None = None


class AuditLogListResponse(BaseModel):
    data: list[AuditLogItem]
    pagination: Pagination
