# This project was developed with assistance from AI tools.
"""Document request/response schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from registry_db.enums import DocumentOwner, DocumentStatus, DocumentType


class DocumentResponse(BaseModel):
    """Document metadata response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    application_id: int
    belongs_to: DocumentOwner
    doc_type: DocumentType
    status: DocumentStatus
    is_reuploaded: bool = False
    file_name: str | None = None
    content_type: str | None = None
    size_bytes: int | None = None
    uploaded_by: str | None = None
    uploaded_at: datetime
    updated_at: datetime


class DocumentListResponse(BaseModel):
    """All documents of one application, newest first."""

    data: list[DocumentResponse]
    count: int


class DocumentUrlResponse(BaseModel):
    """Time-limited download link for a stored blob."""

    url: str
    expires_in: int


class RejectDocumentRequest(BaseModel):
    """Reviewer rejection of a single document."""

    reason: str
    notify_by_email: bool = False
    recipient_email: str | None = Field(
        default=None,
        description="Overrides the owner's email on record.",
    )
