# This project was developed with assistance from AI tools.
"""Reviewer routes: application decisions, document review, audit, certificates."""

from datetime import datetime

from fastapi import APIRouter, Depends, File, Query, UploadFile
from registry_db import get_db
from registry_db.enums import ApplicationStatus
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import Reviewer
from ..schemas import Pagination
from ..schemas.application import (
    ApplicationListResponse,
    ApplicationResponse,
    ApplicationSections,
    RejectApplicationRequest,
    VerificationRequest,
)
from ..schemas.audit import AuditLogItem, AuditLogListResponse
from ..schemas.certificate import CertificateResponse
from ..schemas.document import DocumentResponse, RejectDocumentRequest
from ..services import application as app_service
from ..services import certificate as certificate_service
from ..services import review as review_service
from ..services.audit import list_audit_entries

router = APIRouter()


@router.get("/applications", response_model=ApplicationListResponse)
async def list_applications(
    _user: Reviewer,
    status: ApplicationStatus | None = Query(default=None),
    verified: bool | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=100),
    session: AsyncSession = Depends(get_db),
) -> ApplicationListResponse:
    applications, total = await app_service.list_applications(
        session, status=status, verified=verified, offset=offset, limit=limit,
    )
    return ApplicationListResponse(
        data=[ApplicationResponse.model_validate(a) for a in applications],
        pagination=Pagination(
            total=total, offset=offset, limit=limit, has_more=offset + limit < total,
        ),
    )


@router.get("/applications/{application_id}", response_model=ApplicationResponse)
async def get_application(
    application_id: int,
    _user: Reviewer,
    session: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    application = await app_service.get_application_by_id(session, application_id)
    return ApplicationResponse.model_validate(application)


@router.patch("/applications/{application_id}", response_model=ApplicationResponse)
async def update_application(
    application_id: int,
    body: ApplicationSections,
    user: Reviewer,
    session: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    """Edit owner sections on behalf of the applicant (audited)."""
    application = await review_service.update_application_fields(
        session, user, application_id, body,
    )
    return ApplicationResponse.model_validate(application)


@router.post("/applications/{application_id}/review", response_model=ApplicationResponse)
async def begin_review(
    application_id: int,
    user: Reviewer,
    session: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    application = await review_service.begin_review(session, user, application_id)
    return ApplicationResponse.model_validate(application)


@router.post("/applications/{application_id}/approve", response_model=ApplicationResponse)
async def approve_application(
    application_id: int,
    user: Reviewer,
    session: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    application = await review_service.approve_application(session, user, application_id)
    return ApplicationResponse.model_validate(application)


@router.post("/applications/{application_id}/reject", response_model=ApplicationResponse)
async def reject_application(
    application_id: int,
    body: RejectApplicationRequest,
    user: Reviewer,
    session: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    application = await review_service.reject_application(
        session, user, application_id, body.reason,
    )
    return ApplicationResponse.model_validate(application)


@router.post("/applications/{application_id}/verify", response_model=ApplicationResponse)
async def verify_application(
    application_id: int,
    body: VerificationRequest,
    user: Reviewer,
    session: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    application = await review_service.verify_application(
        session,
        user,
        application_id,
        certificate_number=body.certificate_number,
        registration_date=body.registration_date,
    )
    return ApplicationResponse.model_validate(application)


@router.post("/applications/{application_id}/unverify", response_model=ApplicationResponse)
async def unverify_application(
    application_id: int,
    user: Reviewer,
    session: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    application = await review_service.unverify_application(session, user, application_id)
    return ApplicationResponse.model_validate(application)


@router.post(
    "/applications/{application_id}/certificate",
    response_model=CertificateResponse,
    status_code=201,
)
async def issue_certificate(
    application_id: int,
    user: Reviewer,
    file: UploadFile = File(...),
    session: AsyncSession = Depends(get_db),
) -> CertificateResponse:
    """Store a rendered certificate PDF for a verified application."""
    pdf_bytes = await file.read()
    certificate = await certificate_service.issue_certificate(
        session, user, application_id, pdf_bytes,
    )
    return CertificateResponse.model_validate(certificate)


@router.post("/documents/{document_id}/approve", response_model=DocumentResponse)
async def approve_document(
    document_id: int,
    user: Reviewer,
    session: AsyncSession = Depends(get_db),
) -> DocumentResponse:
    document = await review_service.approve_document(session, user, document_id)
    return DocumentResponse.model_validate(document)


@router.post("/documents/{document_id}/reject", response_model=DocumentResponse)
async def reject_document(
    document_id: int,
    body: RejectDocumentRequest,
    user: Reviewer,
    session: AsyncSession = Depends(get_db),
) -> DocumentResponse:
    """Reject a document; the owner is notified and optionally emailed."""
    document = await review_service.reject_document(
        session,
        user,
        document_id,
        body.reason,
        notify_by_email=body.notify_by_email,
        recipient_email=body.recipient_email,
    )
    return DocumentResponse.model_validate(document)


@router.get("/audit", response_model=AuditLogListResponse)
async def search_audit(
    _user: Reviewer,
    actor_id: str | None = Query(default=None),
    actor_role: str | None = Query(default=None),
    action: str | None = Query(default=None),
    resource_type: str | None = Query(default=None),
    resource_id: str | None = Query(default=None),
    start: datetime | None = Query(default=None),
    end: datetime | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=500),
    session: AsyncSession = Depends(get_db),
) -> AuditLogListResponse:
    """Search the audit trail, newest first."""
    entries, total = await list_audit_entries(
        session,
        actor_id=actor_id,
        actor_role=actor_role,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        start=start,
        end=end,
        offset=offset,
        limit=limit,
    )
    return AuditLogListResponse(
        data=[AuditLogItem.model_validate(e) for e in entries],
        pagination=Pagination(
            total=total, offset=offset, limit=limit, has_more=offset + limit < total,
        ),
    )
