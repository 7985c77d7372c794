# This project was developed with assistance from AI tools.
"""
Marriage registry -- domain models

Registration applications, supporting documents, the reviewer audit trail,
user notifications, and issued certificates.
"""

from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    event,
    func,
)
from sqlalchemy.orm import relationship

from .database import Base
from .enums import (
    ApplicationStatus,
    DocumentOwner,
    DocumentStatus,
    DocumentType,
    NotificationType,
)


def utcnow() -> datetime:
    return datetime.now(UTC)


def _enum(enum_cls, name: str) -> Enum:
    """Non-native enum column persisting member values, not names."""
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        values_callable=lambda members: [m.value for m in members],
    )


class Application(Base):
    """Marriage registration application -- one per owner."""

    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(String(255), unique=True, nullable=False, index=True)
    status = Column(
        _enum(ApplicationStatus, "application_status"),
        nullable=False,
        default=ApplicationStatus.DRAFT,
    )
    # Write-through cache; reads recompute from the sections and documents.
    progress_percent = Column(Integer, nullable=False, default=0)

    # Owner-writable sections
    owner_details = Column(JSON, nullable=True)
    partner_details = Column(JSON, nullable=True)
    owner_address = Column(JSON, nullable=True)
    owner_current_address = Column(JSON, nullable=True)
    partner_address = Column(JSON, nullable=True)
    partner_current_address = Column(JSON, nullable=True)
    declarations = Column(JSON, nullable=True)

    # Reviewer-only verification fields
    verified = Column(Boolean, nullable=False, default=False)
    verified_at = Column(DateTime(timezone=True), nullable=True)
    verified_by = Column(String(255), nullable=True)
    certificate_number = Column(String(100), nullable=True, index=True)
    registration_date = Column(Date, nullable=True)

    submitted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    last_updated_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
        nullable=False,
    )
    version = Column(Integer, nullable=False)

    documents = relationship(
        "Document", back_populates="application", cascade="all, delete-orphan",
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<Application(id={self.id}, status='{self.status}')>"


class Document(Base):
    """Document uploaded for an application.

    Replacing a rejected document rewrites this row in place, so the id
    stays stable across resubmissions.
    """

    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    application_id = Column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    belongs_to = Column(_enum(DocumentOwner, "document_owner"), nullable=False)
    doc_type = Column(_enum(DocumentType, "document_type"), nullable=False)
    status = Column(
        _enum(DocumentStatus, "document_status"),
        nullable=False,
        default=DocumentStatus.PENDING,
    )
    is_reuploaded = Column(Boolean, nullable=False, default=False)
    storage_ref = Column(String(500), nullable=False)
    file_name = Column(String(255), nullable=True)
    content_type = Column(String(100), nullable=True)
    size_bytes = Column(Integer, nullable=True)
    uploaded_by = Column(String(255), nullable=True)
    uploaded_at = Column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    application = relationship("Application", back_populates="documents")

    def __repr__(self):
        return f"<Document(id={self.id}, type='{self.doc_type}', status='{self.status}')>"


class AuditLog(Base):
    """Append-only audit trail. INSERT + SELECT only -- no UPDATE or DELETE."""

    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    timestamp = Column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False,
        index=True,
    )
    actor_id = Column(String(255), nullable=False, index=True)
    actor_name = Column(String(255), nullable=True)
    actor_role = Column(String(50), nullable=False)
    action = Column(String(100), nullable=False, index=True)
    resource_type = Column(String(50), nullable=False)
    resource_id = Column(String(100), nullable=False, index=True)
    details = Column(JSON, nullable=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}')>"


class AuditLogImmutableError(RuntimeError):
    """Raised when code attempts to modify or remove an audit entry."""


@event.listens_for(AuditLog, "before_update")
def _block_audit_update(mapper, connection, target):
    raise AuditLogImmutableError(f"audit entry {target.id} is append-only")


@event.listens_for(AuditLog, "before_delete")
def _block_audit_delete(mapper, connection, target):
    raise AuditLogImmutableError(f"audit entry {target.id} is append-only")


class Notification(Base):
    """Per-user alert raised by a rejection. Only read/read_at ever change."""

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(255), nullable=False, index=True)
    application_id = Column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=True, index=True,
    )
    document_id = Column(
        Integer, ForeignKey("documents.id", ondelete="SET NULL"), nullable=True,
    )
    type = Column(_enum(NotificationType, "notification_type"), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    read = Column(Boolean, nullable=False, default=False)
    read_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    def __repr__(self):
        return f"<Notification(id={self.id}, user='{self.user_id}', read={self.read})>"


class Certificate(Base):
    """Issued marriage registration certificate."""

    __tablename__ = "certificates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(String(255), nullable=False, index=True)
    application_id = Column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    verification_id = Column(String(50), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False, default="Marriage Registration Certificate")
    storage_ref = Column(String(500), nullable=False)
    issued_by = Column(String(255), nullable=True)
    issued_on = Column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    def __repr__(self):
        return f"<Certificate(id={self.id}, verification_id='{self.verification_id}')>"
