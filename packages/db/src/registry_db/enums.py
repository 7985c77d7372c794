# This project was developed with assistance from AI tools.
"""
Domain enums for the marriage-registration lifecycle.

Shared domain types used by both SQLAlchemy models (registry_db package)
and Pydantic schemas (registry_api package).
"""

import enum


class ApplicationStatus(str, enum.Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"

    @classmethod
    def terminal_statuses(cls) -> frozenset["ApplicationStatus"]:
        """Statuses with no outgoing transition."""
        return frozenset({cls.APPROVED, cls.REJECTED})

    @classmethod
    def locked_statuses(cls) -> frozenset["ApplicationStatus"]:
        """Statuses in which the owner may no longer delete documents."""
        return frozenset({cls.SUBMITTED, cls.UNDER_REVIEW, cls.APPROVED})

    @classmethod
    def valid_transitions(cls) -> dict["ApplicationStatus", frozenset["ApplicationStatus"]]:
        """Allowed status transitions.

        A reviewer may close an application straight from draft; nothing
        ever returns to draft.
        """
        return {
            cls.DRAFT: frozenset({cls.SUBMITTED, cls.APPROVED, cls.REJECTED}),
            cls.SUBMITTED: frozenset({cls.UNDER_REVIEW, cls.APPROVED, cls.REJECTED}),
            cls.UNDER_REVIEW: frozenset({cls.APPROVED, cls.REJECTED}),
            cls.APPROVED: frozenset(),
            cls.REJECTED: frozenset(),
        }


class UserRole(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class DocumentType(str, enum.Enum):
    AADHAAR = "aadhaar"
    TENTH_CERTIFICATE = "tenth_certificate"
    VOTER_ID = "voter_id"
    ID = "id"
    PHOTO = "photo"
    CERTIFICATE = "certificate"
    OTHER = "other"


class DocumentOwner(str, enum.Enum):
    """Which party a document belongs to."""

    OWNER = "owner"
    PARTNER = "partner"
    JOINT = "joint"


class DocumentStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class NotificationType(str, enum.Enum):
    DOCUMENT_REJECTED = "document_rejected"
    APPLICATION_REJECTED = "application_rejected"


class AuditAction(str, enum.Enum):
    APPLICATION_REVIEW_STARTED = "application_review_started"
    APPLICATION_APPROVED = "application_approved"
    APPLICATION_REJECTED = "application_rejected"
    APPLICATION_VERIFIED = "application_verified"
    APPLICATION_UNVERIFIED = "application_unverified"
    APPLICATION_UPDATED = "application_updated"
    DOCUMENT_APPROVED = "document_approved"
    DOCUMENT_REJECTED = "document_rejected"
    DOCUMENT_REPLACED = "document_replaced"
    CERTIFICATE_ISSUED = "certificate_issued"
