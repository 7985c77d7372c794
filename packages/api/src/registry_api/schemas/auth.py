# This project was developed with assistance from AI tools.
"""Caller identity and token claims."""

from pydantic import BaseModel, ConfigDict, Field
from registry_db.enums import UserRole


class UserContext(BaseModel):
    """The authenticated caller: an applicant (``user``) or a reviewer (``admin``)."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    role: UserRole
    email: str
    name: str


class TokenPayload(BaseModel):
    """Decoded JWT token claims from Keycloak."""

    sub: str
    email: str = ""
    preferred_username: str = ""
    name: str = ""
    realm_access: dict = Field(default_factory=dict)
