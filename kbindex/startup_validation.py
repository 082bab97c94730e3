"""Startup validation for KB Index.

Fail fast and loud when configuration or the database is unusable, instead of
failing on the first request.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from kbindex.config import get_config
from kbindex.db.models import TimeSeriesModel

logger = logging.getLogger(__name__)


class StartupValidationError(Exception):
    """Raised when startup validation fails."""
    pass


def validate_config() -> None:
    """Validate configuration loads and the data directory is usable.

    Raises:
        StartupValidationError: If required configuration is missing
    """
    try:
        config = get_config()
    except (KeyError, ValueError) as e:
        raise StartupValidationError(f"Invalid configuration: {e}") from e

    data_dir = config.ingestion.data_dir
    if not data_dir.exists():
        logger.warning(f"⚠ Data directory {data_dir} does not exist; creating it")
        data_dir.mkdir(parents=True, exist_ok=True)


async def validate_database_connection(session: AsyncSession) -> None:
    """Validate database connection and schema.

    Raises:
        StartupValidationError: If database connection or schema is invalid
    """
    try:
        result = await session.execute(select(func.count()).select_from(TimeSeriesModel))
        point_count = result.scalar()

        logger.info(f"✓ Database connection OK ({point_count} time series rows)")

        if point_count == 0:
            logger.warning("⚠ No time series rows stored yet. Run a collection first.")

    except Exception as e:
        raise StartupValidationError(
            f"Database connection failed: {e}. "
            "Check DATABASE_URL and ensure the schema exists (kbindex init)."
        ) from e


async def run_startup_validation(session: AsyncSession) -> None:
    """Run all startup checks.

    Raises:
        StartupValidationError: If any check fails
    """
    logger.info("Running startup validation...")
    validate_config()
    await validate_database_connection(session)
    logger.info("✓ Startup validation passed")
