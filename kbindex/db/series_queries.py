"""Read-only time series queries.

Dates are converted to 8-digit week keys before comparison; since keys are
fixed-width, string ordering equals chronological ordering.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from kbindex.db.models import TimeSeriesModel
from kbindex.indexing.weeks import week_key
from kbindex.models import RegionSummary, TimeSeriesPoint


async def query_series(
    session: AsyncSession,
    region_code: str,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> list[TimeSeriesPoint]:
    """Get a region's series over an inclusive date range.

    The range applies only when both dates are given; a single date leaves the
    series unfiltered (an end date alone is just the lookback reference).

    Args:
        session: Database session
        region_code: Canonical region identifier
        start_date: First day included
        end_date: Last day included

    Returns:
        Points in ascending week order (empty when nothing matches)
    """
    stmt = select(TimeSeriesModel).where(TimeSeriesModel.region_code == region_code)

    if start_date is not None and end_date is not None:
        stmt = stmt.where(
            TimeSeriesModel.week >= week_key(start_date),
            TimeSeriesModel.week <= week_key(end_date),
        )

    stmt = stmt.order_by(TimeSeriesModel.week.asc())

    result = await session.execute(stmt)
    return [_row_to_point(row) for row in result.scalars().all()]


async def get_latest_point(
    session: AsyncSession,
    region_code: str,
) -> Optional[TimeSeriesPoint]:
    """Get the most recent sample for a region, None when the region is empty."""
    stmt = (
        select(TimeSeriesModel)
        .where(TimeSeriesModel.region_code == region_code)
        .order_by(TimeSeriesModel.week.desc())
        .limit(1)
    )

    result = await session.execute(stmt)
    row = result.scalars().first()

    return _row_to_point(row) if row is not None else None


async def get_previous_point(
    session: AsyncSession,
    region_code: str,
    before_week: str,
) -> Optional[TimeSeriesPoint]:
    """Get the greatest week strictly earlier than ``before_week``."""
    stmt = (
        select(TimeSeriesModel)
        .where(
            TimeSeriesModel.region_code == region_code,
            TimeSeriesModel.week < before_week,
        )
        .order_by(TimeSeriesModel.week.desc())
        .limit(1)
    )

    result = await session.execute(stmt)
    row = result.scalars().first()

    return _row_to_point(row) if row is not None else None


async def list_regions(session: AsyncSession) -> list[RegionSummary]:
    """List regions with stored data, ordered by region code."""
    stmt = (
        select(
            TimeSeriesModel.region_code,
            func.max(TimeSeriesModel.region_name),
            func.max(TimeSeriesModel.week),
            func.count(),
        )
        .group_by(TimeSeriesModel.region_code)
        .order_by(TimeSeriesModel.region_code)
    )

    result = await session.execute(stmt)
    return [
        RegionSummary(
            region_code=code,
            region_name=name,
            latest_week=latest_week,
            point_count=count,
        )
        for code, name, latest_week, count in result.all()
    ]


def _row_to_point(row: TimeSeriesModel) -> TimeSeriesPoint:
    """Convert database row to Pydantic model."""
    return TimeSeriesPoint(
        week=row.week,
        region_code=row.region_code,
        region_name=row.region_name,
        sale_index=row.sale_index,
        lease_index=row.lease_index,
        base_date=row.base_date,
    )
