"""
Health endpoints for deployment readiness checks.
"""

import logging

from fastapi import APIRouter, HTTPException

from fixit.config.firebase import get_db
from fixit.core import collections
from fixit.core.settings import settings
from fixit.utils.firestore_helpers import utcnow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])

CHECKED_COLLECTIONS = (
    collections.REPORTS,
    collections.RESOLVED_REPORTS,
    collections.USERS,
    collections.SUSPENDED_USERS,
)


@router.get("")
async def health_check():
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": utcnow().isoformat(),
    }


@router.get("/db")
async def database_health():
    """
    Read one document from each FixIt collection.

    Responds 503 when any collection cannot be read. An empty collection
    is reachable.
    """
    try:
        db = get_db()
    except Exception as e:
        raise HTTPException(status_code=503, detail=f"Database connection failed: {str(e)}")

    checks = {}
    for name in CHECKED_COLLECTIONS:
        try:
            sample = list(db.collection(name).limit(1).stream())
            checks[name] = {"reachable": True, "empty": not sample}
        except Exception as e:
            logger.error(f"❌ Health check could not read {name}: {e}")
            checks[name] = {"reachable": False, "error": str(e)}

    if not all(c["reachable"] for c in checks.values()):
        raise HTTPException(
            status_code=503,
            detail={"status": "unhealthy", "database": "firestore", "collections": checks},
        )

    return {
        "status": "healthy",
        "database": "firestore",
        "collections": checks,
        "timestamp": utcnow().isoformat(),
    }
