from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import datetime, timezone
from typing import Dict, Any

from app.db.database import get_db, check_db
from app.core.config import settings

router = APIRouter()


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/", response_model=Dict[str, Any])
async def health_check():
    return {
        "status": "healthy",
        "service": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "timestamp": _timestamp(),
    }


@router.get("/ready", response_model=Dict[str, Any])
async def readiness_check(db: AsyncSession = Depends(get_db)):
    """Ready only when the transaction database answers."""
    try:
        await check_db(db)
    except Exception as e:
        return {
            "status": "not_ready",
            "service": settings.PROJECT_NAME,
            "version": settings.VERSION,
            "database": "disconnected",
            "error": str(e),
            "timestamp": _timestamp(),
        }
    return {
        "status": "ready",
        "service": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "database": "connected",
        "timestamp": _timestamp(),
    }


@router.get("/live", response_model=Dict[str, Any])
async def liveness_check():
    return {
        "status": "alive",
        "timestamp": _timestamp(),
    }
