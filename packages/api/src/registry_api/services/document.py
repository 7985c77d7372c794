# This project was developed with assistance from AI tools.
"""Document store: uploads, review status, and replace-in-place.

Blob and row are never written in one transaction, so every path orders the
two writes and compensates: upload writes the blob first and deletes it if
the row insert fails. Replace, delete and review decisions guard the row
with a compare-and-swap on (status, storage_ref).
"""

import logging

from registry_db import Application, Document
from registry_db.enums import (
    ApplicationStatus,
    AuditAction,
    DocumentOwner,
    DocumentStatus,
    DocumentType,
    UserRole,
)
from registry_db.models import utcnow
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from ..core.config import settings
from ..schemas.auth import UserContext
from .audit import append_audit_entry
from .errors import ConcurrentUpdate, Forbidden, InvalidState, NotFound, ValidationFailed
from .progress import refresh_progress_cache
from .storage import get_storage_service

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {
    "application/pdf",
    "image/jpeg",
    "image/png",
}


def _validate_file(file_data: bytes, content_type: str) -> None:
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise ValidationFailed(
            f"Unsupported content type: {content_type}. "
            f"Allowed: {', '.join(sorted(ALLOWED_CONTENT_TYPES))}"
        )
    if not file_data:
        raise ValidationFailed("Uploaded file is empty")
    max_bytes = settings.UPLOAD_MAX_SIZE_MB * 1024 * 1024
    if len(file_data) > max_bytes:
        raise ValidationFailed(
            f"File size {len(file_data)} exceeds maximum of {settings.UPLOAD_MAX_SIZE_MB}MB"
        )


def validate_rejection_reason(reason: str | None) -> str:
    """Return the trimmed reason or raise ValidationFailed if it is too short."""
    cleaned = (reason or "").strip()
    if len(cleaned) < settings.REJECTION_REASON_MIN_LENGTH:
        raise ValidationFailed(
            f"Rejection reason must be at least {settings.REJECTION_REASON_MIN_LENGTH} characters"
        )
    return cleaned


def _ensure_access(user: UserContext, application: Application) -> None:
    if user.role == UserRole.ADMIN:
        return
    if application.owner_id != user.user_id:
        raise Forbidden("Document belongs to another applicant")


async def _discard_blob(object_key: str) -> None:
    """Best-effort removal of a blob whose row was never written."""
    try:
        await get_storage_service().delete_file(object_key)
    except Exception:
        logger.warning("Could not remove orphaned blob %s", object_key, exc_info=True)


async def _load_application(session: AsyncSession, application_id: int) -> Application:
    application = await session.get(Application, application_id)
    if application is None:
        raise NotFound(f"Application {application_id} not found")
    return application


async def _load_document(
    session: AsyncSession, document_id: int,
) -> tuple[Document, Application]:
    document = await session.get(Document, document_id)
    if document is None:
        raise NotFound(f"Document {document_id} not found")
    application = await _load_application(session, document.application_id)
    return document, application


async def upload_document(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
    *,
    doc_type: DocumentType,
    belongs_to: DocumentOwner,
    filename: str,
    content_type: str,
    file_data: bytes,
) -> Document:
    """Store the blob, then insert the row.

    1. Validate content type and size
    2. Verify the caller may write to the application
    3. Upload the blob (StorageFailure leaves nothing behind)
    4. Insert the row and refresh the progress cache; on failure delete the blob
    """
    _validate_file(file_data, content_type)
    application = await _load_application(session, application_id)
    _ensure_access(user, application)

    storage = get_storage_service()
    object_key = storage.build_document_key(application_id, filename)
    await storage.upload_file(file_data, object_key, content_type)

    try:
        document = Document(
            application_id=application_id,
            belongs_to=belongs_to,
            doc_type=doc_type,
            status=DocumentStatus.PENDING,
            is_reuploaded=False,
            storage_ref=object_key,
            file_name=filename,
            content_type=content_type,
            size_bytes=len(file_data),
            uploaded_by=user.user_id,
        )
        session.add(document)
        await session.flush()
        await refresh_progress_cache(session, application)
        await session.commit()
    except Exception:
        await session.rollback()
        await _discard_blob(object_key)
        raise

    logger.info(
        "Document %s (%s/%s) uploaded to application %s",
        document.id, belongs_to.value, doc_type.value, application_id,
    )
    return document


async def list_documents(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
) -> list[Document]:
    """Return every document of the application, newest first."""
    application = await _load_application(session, application_id)
    _ensure_access(user, application)
    stmt = (
        select(Document)
        .where(Document.application_id == application_id)
        .order_by(Document.uploaded_at.desc(), Document.id.desc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_document(session: AsyncSession, user: UserContext, document_id: int) -> Document:
    document, application = await _load_document(session, document_id)
    _ensure_access(user, application)
    return document


async def get_download_url(
    session: AsyncSession, user: UserContext, document_id: int,
) -> tuple[str, int]:
    """Return a signed URL for the document blob and its lifetime in seconds."""
    document = await get_document(session, user, document_id)
    ttl = settings.SIGNED_URL_TTL_SECONDS
    url = await get_storage_service().get_download_url(document.storage_ref, expires_in=ttl)
    return url, ttl


async def delete_document(session: AsyncSession, user: UserContext, document_id: int) -> None:
    """Delete a document while the application is still editable.

    The row delete is staged first as a compare-and-swap, the blob is removed,
    then the row delete commits. A lost race or a blob failure leaves the row.
    """
    document, application = await _load_document(session, document_id)
    _ensure_access(user, application)
    if application.status in ApplicationStatus.locked_statuses():
        raise Forbidden(
            f"Documents cannot be deleted once the application is '{application.status.value}'"
        )

    storage_ref = document.storage_ref
    result = await session.execute(
        delete(Document)
        .where(
            Document.id == document_id,
            Document.status == document.status,
            Document.storage_ref == storage_ref,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        await session.rollback()
        raise ConcurrentUpdate(f"Document {document_id} changed while being deleted")

    try:
        await get_storage_service().delete_file(storage_ref)
    except Exception:
        await session.rollback()
        raise

    session.expunge(document)
    await refresh_progress_cache(session, application)
    await session.commit()
    logger.info("Document %s deleted by %s", document_id, user.user_id)


async def set_document_status(
    session: AsyncSession,
    document_id: int,
    new_status: DocumentStatus,
) -> Document:
    """Move a document to approved or rejected; the caller commits.

    The write is a compare-and-swap on the (status, storage_ref) the reviewer
    loaded, so a decision never lands on a file replaced in the meantime.
    """
    document = await session.get(Document, document_id)
    if document is None:
        raise NotFound(f"Document {document_id} not found")
    if document.status == new_status:
        raise InvalidState(f"Document {document_id} is already '{new_status.value}'")

    now = utcnow()
    result = await session.execute(
        update(Document)
        .where(
            Document.id == document_id,
            Document.status == document.status,
            Document.storage_ref == document.storage_ref,
        )
        .values(status=new_status, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        await session.rollback()
        raise ConcurrentUpdate(f"Document {document_id} changed since it was loaded")

    set_committed_value(document, "status", new_status)
    set_committed_value(document, "updated_at", now)
    return document


async def replace_document(
    session: AsyncSession,
    user: UserContext,
    document_id: int,
    *,
    filename: str,
    content_type: str,
    file_data: bytes,
) -> Document:
    """Resubmit a rejected document in place: same id, new blob, status pending.

    The previous blob is kept; its key goes into the ``document_replaced``
    audit entry.
    """
    _validate_file(file_data, content_type)
    document, application = await _load_document(session, document_id)
    _ensure_access(user, application)
    if document.status != DocumentStatus.REJECTED:
        raise InvalidState(
            f"Only rejected documents can be replaced; document {document_id} "
            f"is '{document.status.value}'"
        )

    previous_ref = document.storage_ref
    storage = get_storage_service()
    new_ref = storage.build_document_key(application.id, filename)
    await storage.upload_file(file_data, new_ref, content_type)

    try:
        result = await session.execute(
            update(Document)
            .where(
                Document.id == document_id,
                Document.status == DocumentStatus.REJECTED,
                Document.storage_ref == previous_ref,
            )
            .values(
                storage_ref=new_ref,
                status=DocumentStatus.PENDING,
                is_reuploaded=True,
                file_name=filename,
                content_type=content_type,
                size_bytes=len(file_data),
                uploaded_by=user.user_id,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ConcurrentUpdate(f"Document {document_id} changed while being replaced")
        await session.commit()
    except Exception:
        await session.rollback()
        await _discard_blob(new_ref)
        raise

    await session.refresh(document)

    try:
        await append_audit_entry(
            session,
            actor=user,
            action=AuditAction.DOCUMENT_REPLACED,
            resource_type="document",
            resource_id=document_id,
            details={"previous_storage_ref": previous_ref, "storage_ref": new_ref},
        )
        await session.commit()
    except Exception:
        await session.rollback()
        await session.refresh(document)
        logger.warning("Audit entry for replacement of document %s failed", document_id, exc_info=True)

    logger.info("Document %s replaced by %s", document_id, user.user_id)
    return document
