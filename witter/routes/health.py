"""
Witter API — Health Check Route
================================

What:  GET /health for container and load balancer health checks.
How:   Runs SELECT 1 against the database. The service is "healthy" when the
       database answers, "unhealthy" otherwise. Always responds 200 so the
       body can be read; monitors key off `status`.
"""

import logging
import time

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from witter import __version__
from witter.database import engine
from witter.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check() -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
