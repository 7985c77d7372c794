# This project was developed with assistance from AI tools.
"""Health check routes."""

from fastapi import APIRouter, Depends
from registry_db import DatabaseService, get_db_service

router = APIRouter()


@router.get("/")
async def health(db: DatabaseService = Depends(get_db_service)) -> dict[str, str]:
    """Liveness plus a database round trip."""
    database_ok = await db.health_check()
    return {
        "status": "ok" if database_ok else "degraded",
        "database": "ok" if database_ok else "unavailable",
    }
