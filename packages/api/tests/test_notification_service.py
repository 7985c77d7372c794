# This project was developed with assistance from AI tools.
"""Tests for user notifications."""

import pytest
from registry_db.enums import NotificationType

from registry_api.services import notification as notification_service
from registry_api.services.errors import Forbidden, NotFound


async def _notify(session, user_id, title="Document Rejected: Groom's Aadhaar Card"):
    notification = await notification_service.create_notification(
        session,
        user_id=user_id,
        type=NotificationType.DOCUMENT_REJECTED,
        title=title,
        message="Please upload a clearer scan",
    )
    await session.commit()
    return notification


@pytest.mark.asyncio
async def test_list_is_scoped_to_caller_newest_first(db_session, owner, other_owner):
    first = await _notify(db_session, owner.user_id, "first")
    second = await _notify(db_session, owner.user_id, "second")
    await _notify(db_session, other_owner.user_id, "not mine")

    listed = await notification_service.list_notifications(db_session, owner)

    assert [n.id for n in listed] == [second.id, first.id]


@pytest.mark.asyncio
async def test_unread_count_and_mark_as_read(db_session, owner):
    notification = await _notify(db_session, owner.user_id)
    await _notify(db_session, owner.user_id)
    assert await notification_service.get_unread_count(db_session, owner) == 2

    marked = await notification_service.mark_as_read(db_session, owner, notification.id)

    assert marked.read is True
    assert marked.read_at is not None
    assert await notification_service.get_unread_count(db_session, owner) == 1
    unread = await notification_service.list_notifications(db_session, owner, unread_only=True)
    assert notification.id not in [n.id for n in unread]


@pytest.mark.asyncio
async def test_mark_as_read_is_idempotent(db_session, owner):
    notification = await _notify(db_session, owner.user_id)
    first = await notification_service.mark_as_read(db_session, owner, notification.id)
    read_at = first.read_at

    again = await notification_service.mark_as_read(db_session, owner, notification.id)

    assert again.read is True
    assert again.read_at == read_at


@pytest.mark.asyncio
async def test_mark_someone_elses_notification(db_session, owner, other_owner):
    notification = await _notify(db_session, owner.user_id)

    with pytest.raises(Forbidden):
        await notification_service.mark_as_read(db_session, other_owner, notification.id)
    with pytest.raises(NotFound):
        await notification_service.mark_as_read(db_session, owner, notification.id + 100)


@pytest.mark.asyncio
async def test_mark_all_as_read_touches_only_caller(db_session, owner, other_owner):
    await _notify(db_session, owner.user_id)
    await _notify(db_session, owner.user_id)
    await _notify(db_session, other_owner.user_id)

    updated = await notification_service.mark_all_as_read(db_session, owner)

    assert updated == 2
    assert await notification_service.get_unread_count(db_session, owner) == 0
    assert await notification_service.get_unread_count(db_session, other_owner) == 1
    assert await notification_service.mark_all_as_read(db_session, owner) == 0
