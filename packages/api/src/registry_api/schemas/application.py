# This project was developed with assistance from AI tools.
"""Application request/response schemas.

Writer partition: ``ApplicationSections`` is the only shape the owner can
write. Verification fields travel exclusively in ``VerificationRequest``
and are accepted on reviewer routes only.
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field
from registry_db.enums import ApplicationStatus

from . import Pagination


class PersonDetails(BaseModel):
    """Identity section for the owner or the partner. Unknown keys are kept."""

    model_config = ConfigDict(extra="allow")

    first_name: str | None = None
    last_name: str | None = None
    father_name: str | None = None
    date_of_birth: date | None = None
    aadhaar_number: str | None = Field(default=None, pattern=r"^\d{12}$")
    id_number: str | None = None
    mobile_number: str | None = None
    email: str | None = None


class AddressDetails(BaseModel):
    """Postal address section. Unknown keys are kept."""

    model_config = ConfigDict(extra="allow")

    village_street: str | None = None
    street: str | None = None
    post_office: str | None = None
    police_station: str | None = None
    district: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None


class ApplicationSections(BaseModel):
    """Owner-writable sections. Omitted sections are left untouched."""

    owner_details: PersonDetails | None = None
    partner_details: PersonDetails | None = None
    owner_address: AddressDetails | None = None
    owner_current_address: AddressDetails | None = None
    partner_address: AddressDetails | None = None
    partner_current_address: AddressDetails | None = None
    declarations: dict[str, bool | str] | None = None


class VerificationRequest(BaseModel):
    """Reviewer-only verification of an application."""

    certificate_number: str = Field(min_length=1)
    registration_date: date


class RejectApplicationRequest(BaseModel):
    reason: str = Field(min_length=1)


class ApplicationResponse(BaseModel):
    """Single application response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_id: str
    status: ApplicationStatus
    progress_percent: int
    owner_details: dict | None = None
    partner_details: dict | None = None
    owner_address: dict | None = None
    owner_current_address: dict | None = None
    partner_address: dict | None = None
    partner_current_address: dict | None = None
    declarations: dict | None = None
    verified: bool = False
    verified_at: datetime | None = None
    verified_by: str | None = None
    certificate_number: str | None = None
    registration_date: date | None = None
    submitted_at: datetime | None = None
    created_at: datetime
    last_updated_at: datetime
    version: int


class ApplicationListResponse(BaseModel):
    """Paginated list of applications."""

    data: list[ApplicationResponse]
    pagination: Pagination
