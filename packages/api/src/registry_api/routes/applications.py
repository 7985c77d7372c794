# This project was developed with assistance from AI tools.
"""Owner-facing application routes."""

from fastapi import APIRouter, Depends
from registry_db import get_db
from registry_db.enums import UserRole
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import require_roles
from ..schemas.application import ApplicationResponse, ApplicationSections
from ..schemas.auth import UserContext
from ..schemas.progress import ProgressResponse
from ..services import application as app_service
from ..services.progress import get_progress

router = APIRouter()

_owner = require_roles(UserRole.USER)


@router.post("/draft", response_model=ApplicationResponse)
async def create_draft(
    user: UserContext = Depends(_owner),
    session: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    """Return the caller's application, creating an empty draft on first use."""
    application = await app_service.create_draft(session, user)
    return ApplicationResponse.model_validate(application)


@router.get("/me", response_model=ApplicationResponse)
async def get_my_application(
    user: UserContext = Depends(_owner),
    session: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    application = await app_service.get_own_application(session, user)
    return ApplicationResponse.model_validate(application)


@router.patch("/me", response_model=ApplicationResponse)
async def update_my_draft(
    body: ApplicationSections,
    user: UserContext = Depends(_owner),
    session: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    """Merge the provided sections into the caller's draft."""
    application = await app_service.update_draft(session, user, body)
    return ApplicationResponse.model_validate(application)


@router.post("/me/submit", response_model=ApplicationResponse)
async def submit_my_application(
    user: UserContext = Depends(_owner),
    session: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    application = await app_service.submit(session, user)
    return ApplicationResponse.model_validate(application)


@router.get("/me/progress", response_model=ProgressResponse)
async def get_my_progress(
    user: UserContext = Depends(_owner),
    session: AsyncSession = Depends(get_db),
) -> ProgressResponse:
    """Completion percent, current step, and missing required documents."""
    return ProgressResponse(**await get_progress(session, user))
