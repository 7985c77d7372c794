# This project was developed with assistance from AI tools.
"""Audit trail service.

Writes append-only entries for privileged actions. ``append_audit_entry``
only adds and flushes; the caller owns the transaction, which is what lets a
direct decision and its entry commit or roll back together.
"""

import logging
from datetime import datetime

from registry_db import AuditLog
from registry_db.enums import AuditAction
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.auth import UserContext

logger = logging.getLogger(__name__)


async def append_audit_entry(
    session: AsyncSession,
    *,
    actor: UserContext,
    action: AuditAction,
    resource_type: str,
    resource_id: int | str,
    details: dict | None = None,
) -> AuditLog:
    """Add an audit entry to the current transaction.

    Args:
        session: Database session.
        actor: The user performing the action.
        action: What was done.
        resource_type: Kind of entity acted on ('application', 'document', ...).
        resource_id: Identifier of that entity.
        details: Arbitrary JSON-serializable payload (reason, changed fields).

    Returns:
        The flushed AuditLog row.
    """
    entry = AuditLog(
        actor_id=actor.user_id,
        actor_name=actor.name or None,
        actor_role=actor.role.value,
        action=action.value,
        resource_type=resource_type,
        resource_id=str(resource_id),
        details=details,
    )
    session.add(entry)
    await session.flush()
    return entry


async def list_audit_entries(
    session: AsyncSession,
    *,
    actor_id: str | None = None,
    actor_role: str | None = None,
    action: str | None = None,
    resource_type: str | None = None,
    resource_id: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    offset: int = 0,
    limit: int = 50,
) -> tuple[list[AuditLog], int]:
    """Return audit entries matching every given filter, newest first, and the total."""
    filters = []
    if actor_id is not None:
        filters.append(AuditLog.actor_id == actor_id)
    if actor_role is not None:
        filters.append(AuditLog.actor_role == actor_role)
    if action is not None:
        filters.append(AuditLog.action == action)
    if resource_type is not None:
        filters.append(AuditLog.resource_type == resource_type)
    if resource_id is not None:
        filters.append(AuditLog.resource_id == str(resource_id))
    if start is not None:
        filters.append(AuditLog.timestamp >= start)
    if end is not None:
        filters.append(AuditLog.timestamp <= end)

    total = (
        await session.execute(select(func.count(AuditLog.id)).where(*filters))
    ).scalar_one()

    stmt = (
        select(AuditLog)
        .where(*filters)
        .order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())
        .offset(offset)
        .limit(limit)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all()), total
