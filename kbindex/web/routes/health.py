"""Health check API routes.

Provides endpoints for monitoring application health and connectivity.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from kbindex.db.connection import get_db
from kbindex.models import HealthStatus

router = APIRouter(prefix="/api/health", tags=["Health"])


@router.get("", status_code=status.HTTP_200_OK)
async def health_check(db: AsyncSession = Depends(get_db)):
    """Check application health.

    Verifies database connectivity; answers 503 when the database is unreachable.
    """
    now = datetime.now(timezone.utc)
    try:
        await db.execute(text("SELECT 1"))
        health = HealthStatus(status="ok", database="connected", timestamp=now)
    except SQLAlchemyError as e:
        health = HealthStatus(
            status="error", database="disconnected", timestamp=now, detail=str(e)
        )

    healthy = health.status == "ok"
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"success": healthy, "data": health.model_dump(mode="json", exclude_none=True)},
    )
