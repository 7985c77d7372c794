# This project was developed with assistance from AI tools.
"""
Bearer-token authentication against the Keycloak realm.

Applicants carry the realm role ``user`` and reviewers ``admin``. Tokens are
RS256-signed; signing keys come from the realm's JWKS endpoint and are
cached per key id.

Set AUTH_DISABLED=true to act as a fixed local reviewer (local dev only).
"""

import logging
import time
from typing import Annotated

import httpx
import jwt
from fastapi import Depends, HTTPException, Request, status
from registry_db.enums import UserRole

from ..core.config import settings
from ..schemas.auth import TokenPayload, UserContext

logger = logging.getLogger(__name__)


def _realm_url() -> str:
    return f"{settings.KEYCLOAK_URL}/realms/{settings.KEYCLOAK_REALM}"


class _RealmKeys:
    """Signing keys by kid; reloaded after JWKS_CACHE_TTL or on an unknown kid."""

    def __init__(self):
        self._keys: dict[str, jwt.PyJWK] = {}
        self._loaded_at = 0.0

    def _load(self) -> None:
        response = httpx.get(f"{_realm_url()}/protocol/openid-connect/certs", timeout=5)
        response.raise_for_status()
        keyset = jwt.PyJWKSet.from_dict(response.json())
        self._keys = {key.key_id: key for key in keyset.keys}
        self._loaded_at = time.monotonic()

    def get(self, kid: str | None) -> jwt.PyJWK:
        expired = time.monotonic() - self._loaded_at > settings.JWKS_CACHE_TTL
        if expired or kid not in self._keys:
            self._load()
        key = self._keys.get(kid)
        if key is None:
            raise jwt.InvalidTokenError(f"Unknown signing key {kid!r}")
        return key


_realm_keys = _RealmKeys()


def _read_claims(token: str) -> TokenPayload:
    try:
        key = _realm_keys.get(jwt.get_unverified_header(token).get("kid"))
    except httpx.HTTPError as exc:
        logger.error("Could not load realm signing keys: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication service unavailable",
        ) from exc

    claims = jwt.decode(
        token,
        key.key,
        algorithms=["RS256"],
        issuer=_realm_url(),
        options={"verify_aud": False},
    )
    return TokenPayload(**claims)


def _resolve_role(claims: TokenPayload) -> UserRole:
    """Reviewer if the token has ``admin``, else applicant if it has ``user``."""
    roles = set(claims.realm_access.get("roles", []))
    for role in (UserRole.ADMIN, UserRole.USER):
        if role.value in roles:
            return role
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="No registry role assigned",
    )


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


_LOCAL_REVIEWER = UserContext(
    user_id="dev-user",
    role=UserRole.ADMIN,
    email="dev@marriage-registry.local",
    name="Dev User",
)


async def get_current_user(request: Request) -> UserContext:
    if settings.AUTH_DISABLED:
        return _LOCAL_REVIEWER

    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme != "Bearer" or not token:
        raise _unauthorized("Missing authentication token")

    try:
        claims = _read_claims(token)
    except jwt.ExpiredSignatureError as exc:
        raise _unauthorized("Token has expired") from exc
    except jwt.InvalidTokenError as exc:
        raise _unauthorized("Invalid token") from exc

    return UserContext(
        user_id=claims.sub,
        role=_resolve_role(claims),
        email=claims.email,
        name=claims.name or claims.preferred_username,
    )


CurrentUser = Annotated[UserContext, Depends(get_current_user)]


def require_roles(*allowed_roles: UserRole):
    """Dependency factory admitting only callers with one of ``allowed_roles``."""

    async def _check(user: CurrentUser) -> UserContext:
        if user.role not in allowed_roles:
            logger.warning(
                "Denied %s (%s) on a route for %s",
                user.user_id, user.role.value, ", ".join(r.value for r in allowed_roles),
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return _check


Reviewer = Annotated[UserContext, Depends(require_roles(UserRole.ADMIN))]
