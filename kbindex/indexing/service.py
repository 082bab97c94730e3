"""Index service: settings → series → rebase, with typed failures.

Every function here returns an ``ApiResponse``; failures from the engine or
its collaborators are converted to ``success=False`` results carrying the
error type and a readable message, never partial data. Nothing is retried.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from kbindex.core.errors import (
    ComputationError,
    KBIndexError,
    NoDataError,
    UpstreamError,
    ValidationError,
)
from kbindex.db.series_queries import (
    get_latest_point,
    get_previous_point,
    list_regions,
    query_series,
)
from kbindex.db.settings_store import SettingsStore
from kbindex.indexing.rebase import non_finite_fields, rebase
from kbindex.indexing.statistics import compute_statistics, has_non_finite_change
from kbindex.indexing.weeks import parse_iso_date
from kbindex.models import (
    ApiResponse,
    RebasedPoint,
    RebaseQuery,
    RegionStatistics,
    RegionSummary,
    UserSettings,
)

logger = logging.getLogger(__name__)


async def _failure(session: AsyncSession, exc: Exception, operation: str) -> ApiResponse:
    if isinstance(exc, KBIndexError):
        logger.warning(f"{operation} failed ({exc.error_type}): {exc.message}")
        return ApiResponse.fail(exc.message, exc.error_type)

    await session.rollback()
    logger.error(f"{operation} failed with database error: {exc}", exc_info=True)
    return ApiResponse.fail(f"Database error during {operation}: {exc}", UpstreamError.error_type)


async def recalculate_indexes(
    session: AsyncSession,
    query: RebaseQuery,
) -> ApiResponse[list[RebasedPoint]]:
    """Rebase a region's series using the query's overrides or stored settings.

    The end of the requested range is the reference date the lookback is
    measured from; without it the current date is used.
    """
    try:
        start_date = parse_iso_date(query.start_date, "startDate")
        end_date = parse_iso_date(query.end_date, "endDate")
        if start_date and end_date and start_date > end_date:
            raise ValidationError(
                f"startDate {start_date.isoformat()} is after endDate {end_date.isoformat()}"
            )

        settings = await SettingsStore(session).get()
        use_custom_base = (
            settings.use_custom_base if query.use_custom_base is None else query.use_custom_base
        )
        base_period_years = (
            settings.base_period_years
            if query.base_period_years is None
            else query.base_period_years
        )

        series = await query_series(session, query.region_code, start_date, end_date)
        if not series:
            raise NoDataError(
                f"No data exists for region '{query.region_code}' in the requested range"
            )

        points = rebase(series, end_date, base_period_years, use_custom_base)

        bad_fields = non_finite_fields(points)
        if bad_fields:
            raise ComputationError(
                f"Base sample for custom base date {points[0].custom_base_date} has a zero "
                f"{' and '.join(bad_fields)}; rebased values are not finite"
            )

        logger.info(
            f"Recalculated {len(points)} points for region {query.region_code} "
            f"(custom_base={use_custom_base}, years={base_period_years})"
        )
        return ApiResponse.ok(points, message=f"Processed {len(points)} records")

    except (KBIndexError, SQLAlchemyError) as e:
        return await _failure(session, e, "index recalculation")


async def get_region_statistics(
    session: AsyncSession,
    region_code: str,
) -> ApiResponse[RegionStatistics]:
    """Latest sample of a region and its change against the previous week."""
    try:
        latest = await get_latest_point(session, region_code)
        if latest is None:
            raise NoDataError(f"No data exists for region '{region_code}'")

        previous = await get_previous_point(session, region_code, latest.week)
        stats = compute_statistics(latest, previous)

        if has_non_finite_change(stats):
            raise ComputationError(
                f"Previous sample {stats.previous_week} for region '{region_code}' has a zero "
                "index; change rate is not finite"
            )

        return ApiResponse.ok(stats)

    except (KBIndexError, SQLAlchemyError) as e:
        return await _failure(session, e, "statistics lookup")


async def get_available_regions(session: AsyncSession) -> ApiResponse[list[RegionSummary]]:
    try:
        return ApiResponse.ok(await list_regions(session))
    except SQLAlchemyError as e:
        return await _failure(session, e, "region listing")


async def get_user_settings(session: AsyncSession) -> ApiResponse[UserSettings]:
    try:
        return ApiResponse.ok(await SettingsStore(session).get())
    except SQLAlchemyError as e:
        return await _failure(session, e, "settings lookup")


async def update_user_settings(
    session: AsyncSession,
    settings: UserSettings,
) -> ApiResponse[UserSettings]:
    try:
        saved = await SettingsStore(session).update(settings)
        return ApiResponse.ok(saved, message="Settings updated")
    except SQLAlchemyError as e:
        return await _failure(session, e, "settings update")
