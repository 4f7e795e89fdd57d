"""
Liveness probe
"""
from datetime import datetime, timezone

from fastapi import APIRouter

from app.config import settings

router = APIRouter()


def health_payload() -> dict:
    return {
        "status": "ok",
        "version": settings.APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/health")
def health_check():
    """Unauthenticated; no database access"""
    return health_payload()
