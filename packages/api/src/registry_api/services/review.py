# This project was developed with assistance from AI tools.
"""Reviewer workflow.

Direct decisions (begin review, approve, reject, verify, unverify, field
edits, document approval) commit together with their audit entry: if the
entry cannot be written the decision is rolled back and DependencyFailure
surfaces. Document rejection is the exception. The rejection itself is
authoritative and commits first, then notification, email and audit each
run on their own and only log when they fail.
"""

import logging
from datetime import date

from registry_db import Application
from registry_db.enums import (
    ApplicationStatus,
    AuditAction,
    DocumentOwner,
    DocumentStatus,
    NotificationType,
)
from registry_db.models import utcnow
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.application import ApplicationSections
from ..schemas.auth import UserContext
from .application import check_transition, get_application_by_id, merge_sections
from .audit import append_audit_entry
from .certificate import validate_certificate_number
from .document import set_document_status, validate_rejection_reason
from .email import document_type_label, get_email_service
from .errors import DependencyFailure, ValidationFailed, flush_or_conflict
from .notification import create_notification
from .side_effects import get_side_effect_queue

logger = logging.getLogger(__name__)

_PARTY_LABELS = {
    DocumentOwner.OWNER: "Groom's",
    DocumentOwner.PARTNER: "Bride's",
    DocumentOwner.JOINT: "Joint",
}


async def _record_decision(
    session: AsyncSession,
    actor: UserContext,
    *,
    action: AuditAction,
    resource_type: str,
    resource_id: int,
    details: dict | None = None,
) -> None:
    """Flush the pending decision, append its audit entry, and commit both."""
    await flush_or_conflict(session)
    try:
        await append_audit_entry(
            session,
            actor=actor,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            details=details,
        )
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error(
            "Audit write failed for %s on %s %s; decision rolled back",
            action.value, resource_type, resource_id,
        )
        raise DependencyFailure(
            f"Audit trail unavailable; {action.value} was not recorded"
        ) from exc


async def _transition(
    session: AsyncSession,
    actor: UserContext,
    application_id: int,
    new_status: ApplicationStatus,
    action: AuditAction,
    details: dict | None = None,
) -> Application:
    application = await get_application_by_id(session, application_id)
    check_transition(application, new_status)
    previous = application.status

    application.status = new_status
    await _record_decision(
        session,
        actor,
        action=action,
        resource_type="application",
        resource_id=application_id,
        details={"from_status": previous.value, **(details or {})},
    )
    logger.info(
        "Application %s: %s -> %s by %s",
        application_id, previous.value, new_status.value, actor.user_id,
    )
    return application


async def begin_review(session: AsyncSession, actor: UserContext, application_id: int) -> Application:
    return await _transition(
        session, actor, application_id,
        ApplicationStatus.UNDER_REVIEW, AuditAction.APPLICATION_REVIEW_STARTED,
    )


async def approve_application(
    session: AsyncSession, actor: UserContext, application_id: int,
) -> Application:
    """Close the application as approved. Verification is a separate step."""
    return await _transition(
        session, actor, application_id,
        ApplicationStatus.APPROVED, AuditAction.APPLICATION_APPROVED,
    )


async def reject_application(
    session: AsyncSession, actor: UserContext, application_id: int, reason: str,
) -> Application:
    """Close the application as rejected and notify the owner (best effort)."""
    cleaned = (reason or "").strip()
    if not cleaned:
        raise ValidationFailed("A rejection reason is required")

    application = await _transition(
        session, actor, application_id,
        ApplicationStatus.REJECTED, AuditAction.APPLICATION_REJECTED,
        details={"reason": cleaned},
    )
    owner_id = application.owner_id

    try:
        await create_notification(
            session,
            user_id=owner_id,
            type=NotificationType.APPLICATION_REJECTED,
            title="Application Rejected",
            message=cleaned,
            application_id=application_id,
        )
        await session.commit()
    except Exception:
        await session.rollback()
        await session.refresh(application)
        logger.warning(
            "Could not notify %s of rejection of application %s",
            owner_id, application_id, exc_info=True,
        )
    return application


async def verify_application(
    session: AsyncSession,
    actor: UserContext,
    application_id: int,
    *,
    certificate_number: str,
    registration_date: date,
) -> Application:
    """Mark the registration verified. Independent of review status."""
    number = validate_certificate_number(certificate_number)
    application = await get_application_by_id(session, application_id)

    application.verified = True
    application.verified_at = utcnow()
    application.verified_by = actor.user_id
    application.certificate_number = number
    application.registration_date = registration_date
    await _record_decision(
        session,
        actor,
        action=AuditAction.APPLICATION_VERIFIED,
        resource_type="application",
        resource_id=application_id,
        details={
            "certificate_number": number,
            "registration_date": registration_date.isoformat(),
        },
    )
    return application


async def unverify_application(
    session: AsyncSession, actor: UserContext, application_id: int,
) -> Application:
    application = await get_application_by_id(session, application_id)

    application.verified = False
    application.verified_at = None
    application.verified_by = None
    application.certificate_number = None
    application.registration_date = None
    await _record_decision(
        session,
        actor,
        action=AuditAction.APPLICATION_UNVERIFIED,
        resource_type="application",
        resource_id=application_id,
    )
    return application


async def update_application_fields(
    session: AsyncSession,
    actor: UserContext,
    application_id: int,
    sections: ApplicationSections,
) -> Application:
    """Reviewer edit of owner sections, at any status.

    Shares the version check with owner draft edits, so a simultaneous
    owner write makes one side fail with ConcurrentUpdate.
    """
    application = await get_application_by_id(session, application_id)
    changed = merge_sections(application, sections)
    if not changed:
        return application

    await _record_decision(
        session,
        actor,
        action=AuditAction.APPLICATION_UPDATED,
        resource_type="application",
        resource_id=application_id,
        details={"updated_sections": changed},
    )
    return application


async def approve_document(session: AsyncSession, actor: UserContext, document_id: int):
    document = await set_document_status(session, document_id, DocumentStatus.APPROVED)
    await _record_decision(
        session,
        actor,
        action=AuditAction.DOCUMENT_APPROVED,
        resource_type="document",
        resource_id=document_id,
    )
    return document


def _display_name(owner_details: dict | None) -> str | None:
    details = owner_details or {}
    first = details.get("first_name")
    if not first:
        return None
    return f"{first} {details.get('last_name') or ''}".strip()


async def reject_document(
    session: AsyncSession,
    actor: UserContext,
    document_id: int,
    reason: str,
    *,
    notify_by_email: bool = False,
    recipient_email: str | None = None,
):
    """Reject a document and fan out to the owner.

    1. Reject and commit -- any failure here aborts everything
    2. In-app notification for the owner -- logged on failure
    3. Optional email, queued with retry -- logged on failure
    4. Audit entry -- logged on failure
    """
    cleaned = validate_rejection_reason(reason)
    document = await set_document_status(session, document_id, DocumentStatus.REJECTED)
    application = await get_application_by_id(session, document.application_id)
    await session.commit()

    application_id = application.id
    owner_id = application.owner_id
    owner_details = dict(application.owner_details or {})
    doc_type = document.doc_type.value
    file_name = document.file_name or doc_type
    type_label = document_type_label(doc_type)
    degraded = False

    try:
        await create_notification(
            session,
            user_id=owner_id,
            type=NotificationType.DOCUMENT_REJECTED,
            title=f"Document Rejected: {_PARTY_LABELS[document.belongs_to]} {type_label}",
            message=cleaned,
            application_id=application_id,
            document_id=document_id,
        )
        await session.commit()
    except Exception:
        await session.rollback()
        degraded = True
        logger.warning(
            "Could not notify %s of rejected document %s", owner_id, document_id, exc_info=True,
        )

    if notify_by_email:
        recipient = recipient_email or owner_details.get("email")
        if not recipient:
            logger.info("No email on record for %s; rejection email skipped", owner_id)
        else:
            display_name = _display_name(owner_details)
            try:
                email = get_email_service()
                get_side_effect_queue().enqueue(
                    f"rejection-email:{document_id}",
                    lambda: email.send_rejection_email(
                        recipient, doc_type, file_name, cleaned, display_name,
                    ),
                )
            except RuntimeError:
                logger.warning(
                    "Email pipeline unavailable; rejection email for document %s dropped",
                    document_id, exc_info=True,
                )

    try:
        await append_audit_entry(
            session,
            actor=actor,
            action=AuditAction.DOCUMENT_REJECTED,
            resource_type="document",
            resource_id=document_id,
            details={"reason": cleaned, "application_id": application_id},
        )
        await session.commit()
    except Exception:
        await session.rollback()
        degraded = True
        logger.warning("Audit entry for rejected document %s failed", document_id, exc_info=True)

    if degraded:
        await session.refresh(document)
    logger.info("Document %s rejected by %s", document_id, actor.user_id)
    return document
