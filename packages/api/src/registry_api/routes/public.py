# This project was developed with assistance from AI tools.
"""Unauthenticated verification routes."""

from fastapi import APIRouter, Depends
from registry_db import get_db
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.certificate import CertificateNumberResponse, PublicVerificationResponse
from ..services import certificate as certificate_service

router = APIRouter()


@router.get("/verify/{verification_id}", response_model=PublicVerificationResponse)
async def verify_by_id(
    verification_id: str,
    session: AsyncSession = Depends(get_db),
) -> PublicVerificationResponse:
    """Confirm a certificate by the verification id printed on it."""
    result = await certificate_service.lookup_by_verification_id(session, verification_id)
    return PublicVerificationResponse(**result)


@router.get("/certificates/{certificate_number}", response_model=PublicVerificationResponse)
async def verify_by_number(
    certificate_number: str,
    session: AsyncSession = Depends(get_db),
) -> PublicVerificationResponse:
    result = await certificate_service.lookup_by_certificate_number(session, certificate_number)
    return PublicVerificationResponse(**result)


@router.get("/certificate-numbers/{certificate_number}", response_model=CertificateNumberResponse)
async def parse_certificate_number(certificate_number: str) -> CertificateNumberResponse:
    """Break a certificate number into its register fields."""
    parsed = certificate_service.parse_certificate_number(certificate_number)
    return CertificateNumberResponse(
        prefix=certificate_service.CERTIFICATE_PREFIX,
        book_number=parsed.book,
        volume=parsed.volume,
        serial=parsed.serial,
        page_number=parsed.page_number,
    )
