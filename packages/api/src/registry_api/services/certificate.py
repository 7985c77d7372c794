# This project was developed with assistance from AI tools.
"""Certificate registry.

Certificate numbers follow the district register layout::

    WB-MSD-BRW-{book}-{volNum}-{volLetter}-{volYear}-{serialNum}-{serialYear}-{page}

Issued certificates carry a public verification id of the form
``MMR-BW-{year}-{6 digits}``.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime

from registry_db import Application, Certificate
from registry_db.enums import AuditAction
from registry_db.models import utcnow
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..schemas.auth import UserContext
from .audit import append_audit_entry
from .errors import DependencyFailure, InvalidState, NotFound, ValidationFailed
from .storage import get_storage_service

logger = logging.getLogger(__name__)

CERTIFICATE_PREFIX = "WB-MSD-BRW"
VERIFICATION_PREFIX = "MMR-BW"

_CERT_NUMBER_RE = re.compile(
    r"^WB-MSD-BRW"
    r"-(?P<book>[IVXLCDM]+)"
    r"-(?P<volume_number>\d+)"
    r"-(?P<volume_letter>[A-Z])"
    r"-(?P<volume_year>\d{4})"
    r"-(?P<serial_number>\d+)"
    r"-(?P<serial_year>\d{4})"
    r"-(?P<page_number>\d+)$"
)


@dataclass(frozen=True)
class CertificateNumber:
    book: str
    volume_number: str
    volume_letter: str
    volume_year: str
    serial_number: str
    serial_year: str
    page_number: str

    @property
    def volume(self) -> str:
        return f"{self.volume_number}-{self.volume_letter}/{self.volume_year}"

    @property
    def serial(self) -> str:
        return f"{self.serial_number}/{self.serial_year}"

    def __str__(self) -> str:
        return "-".join((
            CERTIFICATE_PREFIX,
            self.book,
            self.volume_number,
            self.volume_letter,
            self.volume_year,
            self.serial_number,
            self.serial_year,
            self.page_number,
        ))


def parse_certificate_number(value: str) -> CertificateNumber:
    """Parse a certificate number, raising ValidationFailed when malformed."""
    match = _CERT_NUMBER_RE.match((value or "").strip().upper())
    if match is None:
        raise ValidationFailed(
            f"Invalid certificate number '{value}'; expected "
            f"{CERTIFICATE_PREFIX}-{{book}}-{{volNum}}-{{volLetter}}-{{volYear}}"
            "-{serialNum}-{serialYear}-{page}"
        )
    return CertificateNumber(**match.groupdict())


def validate_certificate_number(value: str) -> str:
    """Return the normalised certificate number."""
    return str(parse_certificate_number(value))


def generate_verification_id(now: datetime | None = None) -> str:
    now = now or utcnow()
    millis = int(now.timestamp() * 1000)
    return f"{VERIFICATION_PREFIX}-{now.year}-{millis % 1_000_000:06d}"


async def issue_certificate(
    session: AsyncSession,
    actor: UserContext,
    application_id: int,
    pdf_bytes: bytes,
) -> Certificate:
    """Store the certificate PDF and record its issuance.

    Requires a verified application without a certificate. The blob is written
    first and removed again if the row or its audit entry cannot be committed.
    """
    application = await session.get(Application, application_id)
    if application is None:
        raise NotFound(f"Application {application_id} not found")
    if not application.verified:
        raise InvalidState(f"Application {application_id} must be verified before issuance")
    if not pdf_bytes:
        raise ValidationFailed("Certificate PDF is empty")

    existing = await session.execute(
        select(Certificate.id).where(Certificate.application_id == application_id)
    )
    if existing.first() is not None:
        raise InvalidState(f"A certificate was already issued for application {application_id}")

    owner_id = application.owner_id
    certificate_number = application.certificate_number
    verification_id = generate_verification_id()
    storage = get_storage_service()
    object_key = storage.build_certificate_key(application_id, verification_id)
    await storage.upload_file(pdf_bytes, object_key, "application/pdf")

    try:
        certificate = Certificate(
            owner_id=owner_id,
            application_id=application_id,
            verification_id=verification_id,
            storage_ref=object_key,
            issued_by=actor.user_id,
        )
        session.add(certificate)
        await session.flush()
        await append_audit_entry(
            session,
            actor=actor,
            action=AuditAction.CERTIFICATE_ISSUED,
            resource_type="application",
            resource_id=application_id,
            details={
                "verification_id": verification_id,
                "certificate_number": certificate_number,
            },
        )
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        await _discard_blob(object_key)
        raise DependencyFailure("Certificate issuance could not be recorded") from exc

    logger.info("Certificate %s issued for application %s", verification_id, application_id)
    return certificate


async def _discard_blob(object_key: str) -> None:
    try:
        await get_storage_service().delete_file(object_key)
    except Exception:
        logger.warning("Could not remove orphaned certificate blob %s", object_key, exc_info=True)


async def get_own_certificate(session: AsyncSession, user: UserContext) -> Certificate:
    result = await session.execute(
        select(Certificate)
        .where(Certificate.owner_id == user.user_id)
        .order_by(Certificate.issued_on.desc())
        .limit(1)
    )
    certificate = result.scalar_one_or_none()
    if certificate is None:
        raise NotFound("No certificate has been issued for this user")
    return certificate


async def get_certificate_download_url(
    session: AsyncSession, user: UserContext,
) -> tuple[str, int]:
    certificate = await get_own_certificate(session, user)
    ttl = settings.SIGNED_URL_TTL_SECONDS
    url = await get_storage_service().get_download_url(certificate.storage_ref, expires_in=ttl)
    return url, ttl


def _full_name(section: dict | None) -> str | None:
    if not section:
        return None
    name = f"{section.get('first_name') or ''} {section.get('last_name') or ''}".strip()
    return name or None


def _public_view(application: Application, certificate: Certificate | None) -> dict:
    return {
        "verified": True,
        "certificate_number": application.certificate_number,
        "registration_date": application.registration_date,
        "verification_id": certificate.verification_id if certificate else None,
        "owner_name": _full_name(application.owner_details),
        "partner_name": _full_name(application.partner_details),
    }


async def lookup_by_verification_id(session: AsyncSession, verification_id: str) -> dict:
    """Public lookup by verification id. Only verified registrations are found."""
    result = await session.execute(
        select(Certificate, Application)
        .join(Application, Application.id == Certificate.application_id)
        .where(
            Certificate.verification_id == verification_id.strip().upper(),
            Application.verified.is_(True),
        )
    )
    row = result.first()
    if row is None:
        raise NotFound(f"No verified registration for '{verification_id}'")
    certificate, application = row
    return _public_view(application, certificate)


async def lookup_by_certificate_number(session: AsyncSession, certificate_number: str) -> dict:
    """Public lookup by certificate number. Only verified registrations are found."""
    number = validate_certificate_number(certificate_number)
    result = await session.execute(
        select(Application).where(
            Application.certificate_number == number,
            Application.verified.is_(True),
        )
    )
    application = result.scalars().first()
    if application is None:
        raise NotFound(f"No verified registration for '{certificate_number}'")

    cert_result = await session.execute(
        select(Certificate)
        .where(Certificate.application_id == application.id)
        .order_by(Certificate.issued_on.desc())
        .limit(1)
    )
    return _public_view(application, cert_result.scalar_one_or_none())
