# This project was developed with assistance from AI tools.
"""Tests for the application record service (draft lifecycle)."""

import pytest
from registry_db import Application
from registry_db.enums import ApplicationStatus
from sqlalchemy import select

from registry_api.schemas.application import ApplicationSections
from registry_api.services import application as app_service
from registry_api.services import review as review_service
from registry_api.services.errors import ConcurrentUpdate, InvalidState, NotFound
from tests.factories import seed_application

# ---------------------------------------------------------------------------
# create_draft / get_own_application
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_create_draft_is_idempotent(db_session, owner):
    """Two create_draft calls for one owner return the same application."""
    first = await app_service.create_draft(db_session, owner)
    second = await app_service.create_draft(db_session, owner)

    assert first.id == second.id
    assert first.status == ApplicationStatus.DRAFT
    assert first.progress_percent == 0
    count = (await db_session.execute(select(Application))).scalars().all()
    assert len(count) == 1


@pytest.mark.asyncio
async def test_create_draft_from_two_sessions_yields_one_row(session_factory, owner):
    async with session_factory() as a, session_factory() as b:
        first = await app_service.create_draft(a, owner)
        second = await app_service.create_draft(b, owner)
    assert first.id == second.id


@pytest.mark.asyncio
async def test_get_own_application_without_draft_is_not_found(db_session, owner):
    with pytest.raises(NotFound):
        await app_service.get_own_application(db_session, owner)


@pytest.mark.asyncio
async def test_owners_do_not_share_applications(db_session, owner, other_owner):
    mine = await app_service.create_draft(db_session, owner)
    theirs = await app_service.create_draft(db_session, other_owner)
    assert mine.id != theirs.id


# ---------------------------------------------------------------------------
# update_draft
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_update_draft_merges_fields_within_a_section(db_session, owner):
    """A later partial write keeps earlier fields of the same section."""
    await app_service.create_draft(db_session, owner)
    await app_service.update_draft(
        db_session, owner,
        ApplicationSections.model_validate({"owner_details": {"first_name": "Rahul"}}),
    )
    application = await app_service.update_draft(
        db_session, owner,
        ApplicationSections.model_validate({"owner_details": {"last_name": "Sen"}}),
    )

    assert application.owner_details == {"first_name": "Rahul", "last_name": "Sen"}


@pytest.mark.asyncio
async def test_update_draft_leaves_omitted_sections_untouched(db_session, owner):
    await app_service.create_draft(db_session, owner)
    await app_service.update_draft(
        db_session, owner,
        ApplicationSections.model_validate({"owner_address": {"street": "Main Road"}}),
    )
    application = await app_service.update_draft(
        db_session, owner,
        ApplicationSections.model_validate({"declarations": {"consent": True}}),
    )

    assert application.owner_address == {"street": "Main Road"}
    assert application.declarations == {"consent": True}
    assert application.progress_percent == 40


@pytest.mark.asyncio
async def test_update_draft_keeps_unknown_keys(db_session, owner):
    await app_service.create_draft(db_session, owner)
    application = await app_service.update_draft(
        db_session, owner,
        ApplicationSections.model_validate({"partner_details": {"religion": "Hindu"}}),
    )
    assert application.partner_details == {"religion": "Hindu"}


@pytest.mark.asyncio
async def test_update_draft_without_application_is_not_found(db_session, owner):
    with pytest.raises(NotFound):
        await app_service.update_draft(db_session, owner, ApplicationSections())


# ---------------------------------------------------------------------------
# submit
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_submit_complete_draft(db_session, owner, storage):
    await seed_application(db_session, owner)

    application = await app_service.submit(db_session, owner)

    assert application.status == ApplicationStatus.SUBMITTED
    assert application.progress_percent == 100
    assert application.submitted_at is not None


@pytest.mark.asyncio
async def test_submit_twice_is_invalid_state(db_session, owner):
    await app_service.create_draft(db_session, owner)
    await app_service.submit(db_session, owner)

    with pytest.raises(InvalidState):
        await app_service.submit(db_session, owner)


@pytest.mark.asyncio
async def test_submitted_application_rejects_owner_edits(db_session, owner):
    await app_service.create_draft(db_session, owner)
    await app_service.submit(db_session, owner)

    with pytest.raises(InvalidState):
        await app_service.update_draft(
            db_session, owner,
            ApplicationSections.model_validate({"owner_details": {"first_name": "X"}}),
        )


# ---------------------------------------------------------------------------
# Reviewer listing
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_list_applications_filters_by_status(db_session, owner, other_owner):
    await app_service.create_draft(db_session, owner)
    await app_service.create_draft(db_session, other_owner)
    await app_service.submit(db_session, other_owner)

    submitted, total = await app_service.list_applications(
        db_session, status=ApplicationStatus.SUBMITTED,
    )
    assert total == 1
    assert submitted[0].owner_id == other_owner.user_id


@pytest.mark.asyncio
async def test_get_application_by_id_missing(db_session):
    with pytest.raises(NotFound):
        await app_service.get_application_by_id(db_session, 999)


# ---------------------------------------------------------------------------
# Optimistic concurrency
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_reviewer_edit_loses_to_concurrent_owner_edit(
    session_factory, owner, reviewer,
):
    """Reviewer and owner both read version 1; the second writer gets ConcurrentUpdate."""
    async with session_factory() as owner_session, session_factory() as reviewer_session:
        application = await app_service.create_draft(owner_session, owner)
        stale = await app_service.get_application_by_id(reviewer_session, application.id)
        assert stale.version == 1

        await app_service.update_draft(
            owner_session, owner,
            ApplicationSections.model_validate({"owner_details": {"first_name": "Rahul"}}),
        )

        with pytest.raises(ConcurrentUpdate):
            await review_service.update_application_fields(
                reviewer_session, reviewer, application.id,
                ApplicationSections.model_validate({"owner_details": {"first_name": "Rohit"}}),
            )

    async with session_factory() as check:
        stored = await check.get(Application, application.id)
        assert stored.owner_details == {"first_name": "Rahul"}
        assert stored.version == 2
