# This project was developed with assistance from AI tools.
"""Workflow error taxonomy.

Services raise these; ``main.py`` turns any ``WorkflowError`` into an
RFC 7807 response using ``status_code``.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

logger = logging.getLogger(__name__)


class WorkflowError(Exception):
    """Base class for expected workflow failures."""

    status_code = 500


class NotFound(WorkflowError):
    status_code = 404


class InvalidState(WorkflowError):
    """Operation is illegal for the entity's current status."""

    status_code = 409


class ConcurrentUpdate(InvalidState):
    """Another writer changed the row between read and write."""


class ValidationFailed(WorkflowError):
    status_code = 422


class Forbidden(WorkflowError):
    status_code = 403


class StorageFailure(WorkflowError):
    """Object store read/write failed."""

    status_code = 502


class DependencyFailure(WorkflowError):
    """A collaborator (audit, notification, email) failed."""

    status_code = 503


async def flush_or_conflict(session: AsyncSession) -> None:
    """Flush pending changes, mapping a version mismatch to ConcurrentUpdate."""
    try:
        await session.flush()
    except StaleDataError as exc:
        await session.rollback()
        raise ConcurrentUpdate("Record was modified by another request; reload and retry") from exc


async def commit_or_conflict(session: AsyncSession) -> None:
    """Commit, mapping a version mismatch to ConcurrentUpdate."""
    try:
        await session.commit()
    except StaleDataError as exc:
        await session.rollback()
        raise ConcurrentUpdate("Record was modified by another request; reload and retry") from exc
