"""
Health check endpoints.
"""

import logging
from typing import Any, Dict
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.database import get_db

router = APIRouter(tags=["Health"])
logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _check_database(db: Session) -> Dict[str, str]:
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        return {"status": "unhealthy", "message": "Database error"}
    return {"status": "healthy", "message": "Database connection successful"}


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check() -> Dict[str, str]:
    """Liveness check for load balancers and uptime monitors."""
    return {"status": "healthy", "timestamp": _now()}


@router.get("/health/detailed", status_code=status.HTTP_200_OK)
def detailed_health_check(db: Session = Depends(get_db)) -> Dict[str, Any]:
    """Health check including database connectivity."""
    checks = {"database": _check_database(db)}
    overall = "healthy" if all(c["status"] == "healthy" for c in checks.values()) else "unhealthy"
    return {"status": overall, "timestamp": _now(), "checks": checks}
