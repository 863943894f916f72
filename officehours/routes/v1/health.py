# officehours/routes/v1/health.py
"""
Health check endpoint for monitoring and load balancer checks.
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...api.dependencies import get_db
from ...core.config import settings
from ...core.constants import SERVICE_NAME
from ...schemas.health import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("", response_model=HealthResponse)
def health_check(db: Session = Depends(get_db)) -> HealthResponse:
    """
    Health check endpoint.

    Reports ``degraded`` when the database cannot be reached.
    """
    database = "ok"
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.warning("Health check database ping failed: %s", exc)
        database = "unavailable"

    return HealthResponse(
        status="healthy" if database == "ok" else "degraded",
        service=SERVICE_NAME,
        environment=settings.environment,
        timestamp=datetime.now(timezone.utc),
        database=database,
    )
