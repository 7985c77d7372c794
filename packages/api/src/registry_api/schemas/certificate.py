# This project was developed with assistance from AI tools.
"""Certificate and public verification schemas."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict


class CertificateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    application_id: int
    verification_id: str
    name: str
    issued_on: datetime
    issued_by: str | None = None


class CertificateNumberResponse(BaseModel):
    """Parsed certificate number fields."""

    prefix: str
    book_number: str
    volume: str
    serial: str
    page_number: str


class PublicVerificationResponse(BaseModel):
    """What an anonymous verifier may learn about a registration."""

    verified: bool
    certificate_number: str | None = None
    registration_date: date | None = None
    verification_id: str | None = None
    owner_name: str | None = None
    partner_name: str | None = None
