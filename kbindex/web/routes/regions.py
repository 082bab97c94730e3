"""Region time series and statistics routes.

Routes:
- GET /api/regions                          - Regions with stored data
- GET /api/regions/{region_code}/timeseries - Series rebased to a custom or publisher baseline
- GET /api/regions/{region_code}/statistics - Latest sample and week-over-week change
"""

from __future__ import annotations

from fastapi import APIRouter, Query

from kbindex.db.connection import get_session
from kbindex.indexing.service import (
    get_available_regions,
    get_region_statistics,
    recalculate_indexes,
)
from kbindex.models import RebaseQuery
from kbindex.web.dependencies import envelope

router = APIRouter(prefix="/api", tags=["regions"])


@router.get("/regions")
async def regions_list():
    """List regions that have at least one stored sample."""
    async with get_session() as session:
        result = await get_available_regions(session)

    return envelope(result)


@router.get("/regions/{region_code}/timeseries")
async def region_timeseries(
    region_code: str,
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    use_custom_base: bool | None = Query(default=None, alias="useCustomBase"),
    base_period_years: int | None = Query(default=None, alias="basePeriodYears", ge=1, le=10),
):
    """Return the region's series, rebased when a custom baseline applies.

    ``useCustomBase`` and ``basePeriodYears`` override the stored settings only
    when supplied. ``endDate`` doubles as the reference date of the lookback.
    """
    query = RebaseQuery(
        region_code=region_code,
        start_date=start_date,
        end_date=end_date,
        use_custom_base=use_custom_base,
        base_period_years=base_period_years,
    )

    async with get_session() as session:
        result = await recalculate_indexes(session, query)

    return envelope(result)


@router.get("/regions/{region_code}/statistics")
async def region_statistics(region_code: str):
    """Latest sample for a region with sale and lease change rates in percent."""
    async with get_session() as session:
        result = await get_region_statistics(session, region_code)

    return envelope(result)
