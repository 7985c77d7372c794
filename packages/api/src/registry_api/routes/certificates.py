# This project was developed with assistance from AI tools.
"""Certificate routes for the signed-in applicant."""

from fastapi import APIRouter, Depends
from registry_db import get_db
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentUser
from ..schemas.certificate import CertificateResponse
from ..schemas.document import DocumentUrlResponse
from ..services import certificate as certificate_service

router = APIRouter()


@router.get("/me", response_model=CertificateResponse)
async def get_my_certificate(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> CertificateResponse:
    certificate = await certificate_service.get_own_certificate(session, user)
    return CertificateResponse.model_validate(certificate)


@router.get("/me/url", response_model=DocumentUrlResponse)
async def get_my_certificate_url(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> DocumentUrlResponse:
    url, ttl = await certificate_service.get_certificate_download_url(session, user)
    return DocumentUrlResponse(url=url, expires_in=ttl)
