"""
Health check endpoints.

Provides basic health and status information about the server.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from usermanager.config import get_settings
from usermanager.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter()
settings = get_settings()


async def _database_status(db: AsyncSession) -> str:
    try:
        await db.execute(text("SELECT 1"))
        return "ok"
    except Exception as e:
        logger.error(f"Database probe failed: {str(e)}")
        return f"error: {str(e)}"


@router.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)) -> dict:
    """
    Basic health check endpoint.

    Example response:
        {
            "status": "healthy",
            "app_name": "UserManager",
            "version": "0.1.0",
            "timestamp": "2024-12-11T23:00:00Z",
            "database": "connected"
        }
    """
    db_status = await _database_status(db)

    return {
        "status": "healthy",
        "app_name": settings.APP_NAME,
        "version": settings.VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "database": "connected" if db_status == "ok" else db_status,
    }


@router.get("/health/ready")
async def readiness_check(db: AsyncSession = Depends(get_db)) -> dict:
    """
    Readiness check: the service can take requests once the database answers.
    """
    db_status = await _database_status(db)

    return {
        "ready": db_status == "ok",
        "checks": {
            "database": db_status,
        },
    }
