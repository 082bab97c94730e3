"""arq worker running the weekly KB collection.

Start with:
    arq kbindex.worker.WorkerSettings

The weekly job runs Monday 09:00 in the configured timezone (KB publishes
its weekly series on Monday). In development an hourly job also reports
whether the current week is still missing.
"""

from __future__ import annotations

import logging
from typing import Any
from zoneinfo import ZoneInfo

from arq.connections import RedisSettings
from arq.cron import cron

from kbindex.config import get_config
from kbindex.core.logging import configure_logging
from kbindex.db.connection import close_db
from kbindex.ingestion.collector import WeeklyCollector

logger = logging.getLogger(__name__)

WEEKDAYS = {"mon": 0, "tue": 1, "wed": 2, "thu": 3, "fri": 4, "sat": 5, "sun": 6}


async def startup(ctx: dict[str, Any]) -> None:
    """Initialize resources when worker starts."""
    config = get_config()
    configure_logging(config.log_level, config.log_format)
    ctx["collector"] = WeeklyCollector()
    logger.info("Worker started")


async def shutdown(ctx: dict[str, Any]) -> None:
    """Cleanup resources when worker stops."""
    await close_db()
    logger.info("Worker stopped. Database connection closed.")


async def collect_weekly_data(ctx: dict[str, Any]) -> dict[str, Any]:
    """Run the weekly collection and return its envelope as a dict."""
    collector: WeeklyCollector = ctx.get("collector") or WeeklyCollector()

    logger.info("Weekly KB data collection started")
    result = await collector.collect()

    if result.success:
        logger.info(f"Weekly collection finished: {result.message}")
    else:
        logger.error(f"Weekly collection failed ({result.error_type}): {result.error}")

    return result.model_dump(mode="json", by_alias=True, exclude_none=True)


async def check_new_data(ctx: dict[str, Any]) -> dict[str, Any]:
    """Report whether the current week still needs collecting (development only)."""
    collector: WeeklyCollector = ctx.get("collector") or WeeklyCollector()
    check = await collector.check_for_new_data()

    if check.has_new_data:
        logger.info(f"[dev] New data expected: {check.file_name} ({check.week})")
    else:
        logger.info("[dev] No new data")

    return check.model_dump(mode="json", by_alias=True, exclude_none=True)


def build_cron_jobs() -> list:
    config = get_config()
    if not config.scheduler.enabled:
        return []

    scheduler = config.scheduler
    jobs = [
        cron(
            collect_weekly_data,
            weekday=WEEKDAYS[scheduler.weekday],
            hour=scheduler.hour,
            minute=scheduler.minute,
            run_at_startup=False,
        )
    ]
    if config.is_development:
        jobs.append(cron(check_new_data, minute=0))
    return jobs


class WorkerSettings:
    functions = [collect_weekly_data, check_new_data]
    cron_jobs = build_cron_jobs()
    on_startup = startup
    on_shutdown = shutdown
    redis_settings = RedisSettings.from_dsn(get_config().scheduler.redis_url)
    timezone = ZoneInfo(get_config().scheduler.timezone)
