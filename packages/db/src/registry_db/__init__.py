# This project was developed with assistance from AI tools.
__version__ = "0.1.0"

from .database import Base, DatabaseService, SessionLocal, get_db, get_db_service
from .enums import (
    ApplicationStatus,
    AuditAction,
    DocumentOwner,
    DocumentStatus,
    DocumentType,
    NotificationType,
    UserRole,
)
from .models import (
    Application,
    AuditLog,
    AuditLogImmutableError,
    Certificate,
    Document,
    Notification,
)

__all__ = [
    "Base",
    "DatabaseService",
    "SessionLocal",
    "get_db",
    "get_db_service",
    "__version__",
    # Enums
    "ApplicationStatus",
    "AuditAction",
    "UserRole",
    "DocumentOwner",
    "DocumentType",
    "DocumentStatus",
    "NotificationType",
    # Models
    "Application",
    "AuditLog",
    "AuditLogImmutableError",
    "Certificate",
    "Document",
    "Notification",
]
