"""Shared dependencies for KB Index web routes.

Dependencies are injected using FastAPI's Depends() system.

Usage:
    from fastapi import Depends
    from kbindex.web.dependencies import get_collector

    @router.post("/collect-data")
    async def collect(collector: WeeklyCollector = Depends(get_collector)):
        ...
"""

from __future__ import annotations

from fastapi.responses import JSONResponse

from kbindex.core.errors import KBIndexError
from kbindex.ingestion.collector import WeeklyCollector
from kbindex.models import ApiResponse

# HTTP status per error type reported in ApiResponse.error_type
ERROR_STATUS = {
    cls.error_type: cls.status_code for cls in (KBIndexError, *KBIndexError.__subclasses__())
}


def get_collector() -> WeeklyCollector:
    """Get a collector bound to the application session factory."""
    return WeeklyCollector()


def envelope(result: ApiResponse) -> JSONResponse:
    """Render an ApiResponse, choosing the status code from its error type."""
    status_code = 200 if result.success else ERROR_STATUS.get(result.error_type, 500)
    return JSONResponse(
        status_code=status_code,
        content=result.model_dump(mode="json", by_alias=True, exclude_none=True),
    )
