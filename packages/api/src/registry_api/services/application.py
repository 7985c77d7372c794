# This project was developed with assistance from AI tools.
"""Application record service.

Owners hold exactly one application, created lazily as a draft. Owner writes
go through ``update_draft`` until ``submit``; after that only the review
workflow changes the record.
"""

import logging

from registry_db import Application
from registry_db.enums import ApplicationStatus
from registry_db.models import utcnow
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.application import ApplicationSections
from ..schemas.auth import UserContext
from .errors import InvalidState, NotFound, commit_or_conflict, flush_or_conflict
from .progress import refresh_progress_cache

logger = logging.getLogger(__name__)

SECTION_FIELDS = tuple(ApplicationSections.model_fields)


def check_transition(application: Application, new_status: ApplicationStatus) -> None:
    """Raise InvalidState unless ``new_status`` is reachable from the current status."""
    current = application.status
    allowed = ApplicationStatus.valid_transitions().get(current, frozenset())
    if new_status not in allowed:
        raise InvalidState(
            f"Cannot transition from '{current.value}' to '{new_status.value}'. "
            f"Allowed: {sorted(s.value for s in allowed) if allowed else 'none (terminal status)'}."
        )


def merge_sections(application: Application, sections: ApplicationSections) -> list[str]:
    """Merge provided sections field by field into the application.

    Only sections present in the request are touched, and inside a section
    only keys with a non-null value overwrite. Returns the names of sections
    whose stored value actually changed.
    """
    patch = sections.model_dump(mode="json", exclude_unset=True)
    changed = []
    for name in SECTION_FIELDS:
        values = patch.get(name)
        if not values:
            continue
        current = getattr(application, name) or {}
        merged = {**current, **{k: v for k, v in values.items() if v is not None}}
        if merged != current:
            # New dict instance so the JSON column is flagged dirty
            setattr(application, name, merged)
            changed.append(name)
    return changed


async def _find_for_owner(session: AsyncSession, owner_id: str) -> Application | None:
    result = await session.execute(select(Application).where(Application.owner_id == owner_id))
    return result.scalar_one_or_none()


async def create_draft(session: AsyncSession, user: UserContext) -> Application:
    """Return the caller's application, creating an empty draft if none exists."""
    existing = await _find_for_owner(session, user.user_id)
    if existing is not None:
        return existing

    application = Application(
        owner_id=user.user_id,
        status=ApplicationStatus.DRAFT,
        progress_percent=0,
    )
    session.add(application)
    try:
        await session.commit()
    except IntegrityError:
        # Lost a create race on the unique owner_id; the winner's row is ours
        await session.rollback()
        existing = await _find_for_owner(session, user.user_id)
        if existing is None:
            raise
        return existing

    logger.info("Draft application %s created for owner %s", application.id, user.user_id)
    return application


async def get_own_application(session: AsyncSession, user: UserContext) -> Application:
    application = await _find_for_owner(session, user.user_id)
    if application is None:
        raise NotFound("No application exists for this user")
    return application


async def update_draft(
    session: AsyncSession,
    user: UserContext,
    sections: ApplicationSections,
) -> Application:
    """Merge owner-provided sections into the draft and refresh the progress cache."""
    application = await get_own_application(session, user)
    if application.status != ApplicationStatus.DRAFT:
        raise InvalidState(
            f"Application is '{application.status.value}'; only drafts can be edited"
        )

    changed = merge_sections(application, sections)
    if changed:
        await flush_or_conflict(session)
    await refresh_progress_cache(session, application)
    await commit_or_conflict(session)
    return application


async def submit(session: AsyncSession, user: UserContext) -> Application:
    """Submit the caller's draft for review.

    Completeness is not enforced here; the step projection guides owners.
    """
    application = await get_own_application(session, user)
    if application.status != ApplicationStatus.DRAFT:
        raise InvalidState(
            f"Application is '{application.status.value}'; only drafts can be submitted"
        )

    application.status = ApplicationStatus.SUBMITTED
    application.progress_percent = 100
    application.submitted_at = utcnow()
    await commit_or_conflict(session)
    logger.info("Application %s submitted by %s", application.id, user.user_id)
    return application


async def list_applications(
    session: AsyncSession,
    *,
    status: ApplicationStatus | None = None,
    verified: bool | None = None,
    offset: int = 0,
    limit: int = 20,
) -> tuple[list[Application], int]:
    """Reviewer listing, most recently updated first."""
    filters = []
    if status is not None:
        filters.append(Application.status == status)
    if verified is not None:
        filters.append(Application.verified.is_(verified))

    total = (
        await session.execute(select(func.count(Application.id)).where(*filters))
    ).scalar_one()
    stmt = (
        select(Application)
        .where(*filters)
        .order_by(Application.last_updated_at.desc(), Application.id.desc())
        .offset(offset)
        .limit(limit)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all()), total


async def get_application_by_id(session: AsyncSession, application_id: int) -> Application:
    application = await session.get(Application, application_id)
    if application is None:
        raise NotFound(f"Application {application_id} not found")
    return application
