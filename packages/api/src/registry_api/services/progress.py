# This project was developed with assistance from AI tools.
"""Progress projection for registration applications.

Everything here is derived from the application sections and its documents
and is recomputed on every read. ``applications.progress_percent`` is only a
cache of ``compute_progress_percent`` refreshed after owner writes.
"""

import enum
import logging
from collections.abc import Iterable
from dataclasses import dataclass

from registry_db import Application, Document
from registry_db.enums import ApplicationStatus, DocumentOwner, DocumentType
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from ..schemas.auth import UserContext
from .errors import NotFound

logger = logging.getLogger(__name__)

PROGRESS_GATE_POINTS = 20
MIN_DOCUMENTS_FOR_PROGRESS = 4


class ApplicationStep(enum.IntEnum):
    OWNER_DETAILS = 0
    PARTNER_DETAILS = 1
    DOCUMENTS = 2
    DECLARATIONS = 3
    REVIEW = 4

    @property
    def label(self) -> str:
        return self.name.replace("_", " ").title()


@dataclass(frozen=True)
class RequiredDocument:
    """One required slot: any of ``doc_types`` uploaded for ``belongs_to``."""

    belongs_to: DocumentOwner
    doc_types: frozenset[DocumentType]
    label: str


REQUIRED_DOCUMENTS: tuple[RequiredDocument, ...] = (
    RequiredDocument(DocumentOwner.OWNER, frozenset({DocumentType.AADHAAR}), "Groom's Aadhaar Card"),
    RequiredDocument(
        DocumentOwner.OWNER,
        frozenset({DocumentType.TENTH_CERTIFICATE, DocumentType.VOTER_ID}),
        "Groom's 10th Certificate or Voter ID",
    ),
    RequiredDocument(
        DocumentOwner.PARTNER, frozenset({DocumentType.AADHAAR}), "Bride's Aadhaar Card",
    ),
    RequiredDocument(
        DocumentOwner.PARTNER,
        frozenset({DocumentType.TENTH_CERTIFICATE, DocumentType.VOTER_ID}),
        "Bride's 10th Certificate or Voter ID",
    ),
    RequiredDocument(DocumentOwner.JOINT, frozenset({DocumentType.PHOTO}), "Joint Photograph"),
)

_DECLARATION_FLAGS = ("consent", "accuracy", "legal")


def _filled(section: dict | None, *keys: str) -> bool:
    if not section:
        return False
    return all(section.get(k) not in (None, "") for k in keys)


def _has_street(section: dict | None) -> bool:
    return _filled(section, "street") or _filled(section, "village_street")


def owner_identity_complete(application: Application) -> bool:
    """Owner names, birth date, aadhaar, mobile, both addresses, marriage date."""
    return (
        _filled(
            application.owner_details,
            "first_name", "last_name", "date_of_birth", "aadhaar_number", "mobile_number",
        )
        and _has_street(application.owner_address)
        and _has_street(application.owner_current_address)
        and _filled(application.declarations, "marriage_date")
    )


def partner_identity_complete(application: Application) -> bool:
    """Partner names, birth date, aadhaar or id number, both addresses."""
    details = application.partner_details
    return (
        _filled(details, "first_name", "last_name", "date_of_birth")
        and (_filled(details, "aadhaar_number") or _filled(details, "id_number"))
        and _has_street(application.partner_address)
        and _has_street(application.partner_current_address)
    )


def missing_required_documents(documents: Iterable[Document]) -> list[RequiredDocument]:
    """Required slots with no uploaded document, whatever the document's review status."""
    present = {(d.belongs_to, d.doc_type) for d in documents}
    return [
        req for req in REQUIRED_DOCUMENTS
        if not any((req.belongs_to, t) in present for t in req.doc_types)
    ]


def declarations_complete(application: Application) -> bool:
    declarations = application.declarations or {}
    return all(declarations.get(flag) is True for flag in _DECLARATION_FLAGS)


def compute_step(application: Application, documents: Iterable[Document]) -> ApplicationStep:
    """Return the first step whose gate is unmet, or REVIEW when all are met."""
    if not owner_identity_complete(application):
        return ApplicationStep.OWNER_DETAILS
    if not partner_identity_complete(application):
        return ApplicationStep.PARTNER_DETAILS
    if missing_required_documents(documents):
        return ApplicationStep.DOCUMENTS
    if not declarations_complete(application):
        return ApplicationStep.DECLARATIONS
    return ApplicationStep.REVIEW


def compute_progress_percent(application: Application, documents: Iterable[Document]) -> int:
    """Five 20-point gates; anything past draft counts as complete."""
    if application.status != ApplicationStatus.DRAFT:
        return 100

    gates = (
        bool(application.owner_details),
        bool(application.partner_details),
        any(
            (
                application.owner_address,
                application.owner_current_address,
                application.partner_address,
                application.partner_current_address,
            )
        ),
        len(list(documents)) >= MIN_DOCUMENTS_FOR_PROGRESS,
        bool(application.declarations),
    )
    return PROGRESS_GATE_POINTS * sum(gates)


async def load_documents(session: AsyncSession, application_id: int) -> list[Document]:
    result = await session.execute(
        select(Document).where(Document.application_id == application_id)
    )
    return list(result.scalars().all())


async def refresh_progress_cache(session: AsyncSession, application: Application) -> int:
    """Recompute and store progress_percent without bumping the row version.

    Caller commits.
    """
    documents = await load_documents(session, application.id)
    percent = compute_progress_percent(application, documents)
    if percent != application.progress_percent:
        await session.execute(
            update(Application.__table__)
            .where(Application.__table__.c.id == application.id)
            .values(progress_percent=percent)
        )
        set_committed_value(application, "progress_percent", percent)
    return percent


async def get_progress(session: AsyncSession, user: UserContext) -> dict:
    """Derived progress for the caller's application."""
    result = await session.execute(
        select(Application).where(Application.owner_id == user.user_id)
    )
    application = result.scalar_one_or_none()
    if application is None:
        raise NotFound("No application exists for this user")

    documents = await load_documents(session, application.id)
    step = compute_step(application, documents)
    return {
        "application_id": application.id,
        "progress_percent": compute_progress_percent(application, documents),
        "step": int(step),
        "step_label": step.label,
        "missing_documents": [
            {
                "belongs_to": req.belongs_to.value,
                "doc_types": sorted(t.value for t in req.doc_types),
                "label": req.label,
            }
            for req in missing_required_documents(documents)
        ],
    }
