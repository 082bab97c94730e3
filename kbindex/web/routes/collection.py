"""Data collection routes.

Routes:
- POST /api/collect-data       - Run one weekly collection now
- GET  /api/collection-status  - Whether the current week still needs collecting
"""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError

from kbindex.core.errors import UpstreamError
from kbindex.ingestion.collector import WeeklyCollector
from kbindex.models import ApiResponse
from kbindex.web.dependencies import envelope, get_collector

router = APIRouter(prefix="/api", tags=["collection"])


@router.post("/collect-data")
async def collect_data(collector: WeeklyCollector = Depends(get_collector)):
    """Trigger the weekly collection manually."""
    result = await collector.collect()
    return envelope(result)


@router.get("/collection-status")
async def collection_status(collector: WeeklyCollector = Depends(get_collector)):
    try:
        check = await collector.check_for_new_data()
    except SQLAlchemyError as e:
        return envelope(ApiResponse.fail(str(e), UpstreamError.error_type))

    payload = check.model_dump(by_alias=True)
    payload["lastCheck"] = datetime.now(timezone.utc).isoformat()
    return envelope(ApiResponse.ok(payload))
