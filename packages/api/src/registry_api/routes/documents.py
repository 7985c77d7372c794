# This project was developed with assistance from AI tools.
"""Document routes shared by owners and reviewers."""

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile
from registry_db import get_db
from registry_db.enums import DocumentOwner, DocumentType
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentUser
from ..schemas.document import DocumentListResponse, DocumentResponse, DocumentUrlResponse
from ..services import document as doc_service

router = APIRouter()


@router.post(
    "/applications/{application_id}/documents",
    response_model=DocumentResponse,
    status_code=201,
)
async def upload_document(
    application_id: int,
    user: CurrentUser,
    file: UploadFile = File(...),
    doc_type: DocumentType = Form(...),
    belongs_to: DocumentOwner = Form(...),
    session: AsyncSession = Depends(get_db),
) -> DocumentResponse:
    """Upload a document for an application."""
    file_data = await file.read()
    document = await doc_service.upload_document(
        session,
        user,
        application_id,
        doc_type=doc_type,
        belongs_to=belongs_to,
        filename=file.filename or "document",
        content_type=file.content_type or "",
        file_data=file_data,
    )
    return DocumentResponse.model_validate(document)


@router.get("/applications/{application_id}/documents", response_model=DocumentListResponse)
async def list_documents(
    application_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> DocumentListResponse:
    """List documents for an application, newest first."""
    documents = await doc_service.list_documents(session, user, application_id)
    items = [DocumentResponse.model_validate(doc) for doc in documents]
    return DocumentListResponse(data=items, count=len(items))


@router.get("/documents/{document_id}", response_model=DocumentResponse)
async def get_document(
    document_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> DocumentResponse:
    document = await doc_service.get_document(session, user, document_id)
    return DocumentResponse.model_validate(document)


@router.get("/documents/{document_id}/url", response_model=DocumentUrlResponse)
async def get_document_url(
    document_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> DocumentUrlResponse:
    """Signed, time-limited download link."""
    url, ttl = await doc_service.get_download_url(session, user, document_id)
    return DocumentUrlResponse(url=url, expires_in=ttl)


@router.delete("/documents/{document_id}", status_code=204)
async def delete_document(
    document_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> Response:
    await doc_service.delete_document(session, user, document_id)
    return Response(status_code=204)


@router.post("/documents/{document_id}/replace", response_model=DocumentResponse)
async def replace_document(
    document_id: int,
    user: CurrentUser,
    file: UploadFile = File(...),
    session: AsyncSession = Depends(get_db),
) -> DocumentResponse:
    """Resubmit a rejected document; the document keeps its id."""
    file_data = await file.read()
    document = await doc_service.replace_document(
        session,
        user,
        document_id,
        filename=file.filename or "document",
        content_type=file.content_type or "",
        file_data=file_data,
    )
    return DocumentResponse.model_validate(document)
