"""Weekly KB data collection.

Coordinates one ingestion run per reporting week:

1. Skip when a SUCCESS log entry already exists for the current week
2. Record a PROCESSING log entry
3. Locate the week's workbook in the data directory and parse it
4. Replace the week's rows (delete-then-insert) in a single transaction and
   mark the log entry SUCCESS, or mark it FAILED on any error

Files are expected to be dropped into the data directory by an external
process; this module does not download anything.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable, Sequence
from contextlib import AbstractAsyncContextManager
from datetime import date
from pathlib import Path
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from kbindex.config import IngestionConfig, get_config
from kbindex.core.errors import KBIndexError, NoDataError, UpstreamError, ValidationError
from kbindex.db.connection import get_session
from kbindex.db.models import DataCollectionLogModel, TimeSeriesModel
from kbindex.ingestion.workbook import parse_workbook
from kbindex.indexing.weeks import current_week, parse_week_key
from kbindex.models import (
    ApiResponse,
    CollectionResult,
    CollectionStatus,
    NewDataCheck,
    TimeSeriesPoint,
)

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class WeeklyCollector:
    """Runs the weekly ingestion with a per-week idempotency guarantee."""

    def __init__(
        self,
        session_factory: SessionFactory = get_session,
        config: IngestionConfig | None = None,
        today: Callable[[], date] = date.today,
    ):
        """Initialize collector.

        Args:
            session_factory: Callable returning an async session context manager
                that commits on exit and rolls back on error
            config: Ingestion settings (defaults to the app config)
            today: Clock used to determine the current reporting week
        """
        self.session_factory = session_factory
        self.config = config or get_config().ingestion
        self.today = today

    def expected_file_name(self, week: str) -> str:
        return self.config.file_template.format(week=week)

    async def check_for_new_data(self) -> NewDataCheck:
        """Report whether the current week still needs collecting."""
        week = current_week(self.today())

        async with self.session_factory() as session:
            result = await session.execute(
                select(DataCollectionLogModel.id)
                .where(
                    DataCollectionLogModel.week == week,
                    DataCollectionLogModel.status == CollectionStatus.SUCCESS.value,
                )
                .limit(1)
            )
            already_collected = result.first() is not None

        if already_collected:
            return NewDataCheck(has_new_data=False, week=week)

        return NewDataCheck(
            has_new_data=True,
            week=week,
            file_name=self.expected_file_name(week),
        )

    def locate_file(self, file_name: str) -> Path:
        """Find a workbook in the data directory.

        Raises:
            UpstreamError: If the file has not been delivered
        """
        path = self.config.data_dir / file_name
        if not path.exists():
            raise UpstreamError(
                f"Workbook {file_name} not found in {self.config.data_dir} "
                f"(publisher: {self.config.source_url})"
            )
        return path

    async def save_batch(
        self,
        rows: Sequence[TimeSeriesPoint],
        week: str,
        source: str,
        log_id: UUID | None = None,
    ) -> int:
        """Replace the week's rows with ``rows`` atomically.

        Existing rows for ``week`` are deleted, as are existing rows for any
        (region, week) pair present in the batch, so re-running the same batch
        is idempotent. The collection log entry is marked SUCCESS in the same
        transaction (a new entry is created when ``log_id`` is None).

        Returns:
            Number of rows inserted
        """
        other_weeks: dict[str, set[str]] = defaultdict(set)
        for row in rows:
            if row.week != week:
                other_weeks[row.week].add(row.region_code)

        async with self.session_factory() as session:
            await session.execute(delete(TimeSeriesModel).where(TimeSeriesModel.week == week))
            for other_week, region_codes in other_weeks.items():
                await session.execute(
                    delete(TimeSeriesModel).where(
                        TimeSeriesModel.week == other_week,
                        TimeSeriesModel.region_code.in_(region_codes),
                    )
                )

            session.add_all(
                TimeSeriesModel(
                    week=row.week,
                    region_code=row.region_code,
                    region_name=row.region_name,
                    sale_index=row.sale_index,
                    lease_index=row.lease_index,
                    base_date=row.base_date,
                    data_source=source,
                )
                for row in rows
            )

            log = await session.get(DataCollectionLogModel, log_id) if log_id else None
            if log is None:
                log = DataCollectionLogModel(week=week, file_name=source)
                session.add(log)
            log.status = CollectionStatus.SUCCESS.value
            log.record_count = len(rows)
            log.error_message = None

        logger.info(f"Saved {len(rows)} records for week {week} from {source}")
        return len(rows)

    async def _start_log(self, week: str, file_name: str) -> UUID:
        async with self.session_factory() as session:
            log = DataCollectionLogModel(
                week=week,
                file_name=file_name,
                status=CollectionStatus.PROCESSING.value,
            )
            session.add(log)
            await session.flush()
            return log.id

    async def _fail_log(self, log_id: UUID, message: str) -> None:
        async with self.session_factory() as session:
            log = await session.get(DataCollectionLogModel, log_id)
            if log is not None:
                log.status = CollectionStatus.FAILED.value
                log.error_message = message

    async def ingest_file(
        self,
        file_path: Path,
        week: str,
    ) -> ApiResponse[CollectionResult]:
        """Parse and store one workbook under ``week``, logging the outcome.

        A malformed week key is rejected before anything is logged or written.
        """
        file_name = file_path.name
        try:
            parse_week_key(week)
        except ValidationError as e:
            logger.warning(f"Rejected ingestion of {file_name}: {e.message}")
            return ApiResponse.fail(e.message, e.error_type)

        log_id = await self._start_log(week, file_name)

        try:
            points, skipped = parse_workbook(
                file_path,
                base_date=self.config.publisher_base_date,
                max_file_size_mb=self.config.max_file_size_mb,
                max_rows=self.config.max_rows,
            )
            if not points:
                raise NoDataError(f"Workbook {file_name} contains no readable rows")
            record_count = await self.save_batch(points, week, file_name, log_id=log_id)

        except Exception as e:
            error_type = e.error_type if isinstance(e, KBIndexError) else UpstreamError.error_type
            message = e.message if isinstance(e, KBIndexError) else str(e)
            logger.error(f"Collection failed for week {week} ({file_name}): {message}")
            await self._fail_log(log_id, message)
            return ApiResponse.fail(message, error_type)

        return ApiResponse.ok(
            CollectionResult(
                week=week,
                file_name=file_name,
                record_count=record_count,
                skipped_rows=skipped,
            ),
            message="Data collection completed",
        )

    async def collect(self) -> ApiResponse[CollectionResult]:
        """Run the full collection for the current week."""
        try:
            check = await self.check_for_new_data()
        except SQLAlchemyError as e:
            logger.error(f"New data check failed: {e}", exc_info=True)
            return ApiResponse.fail(str(e), UpstreamError.error_type)

        if not check.has_new_data:
            logger.info(f"Week {check.week} already collected")
            return ApiResponse.ok(message="Latest data already exists")

        try:
            file_path = self.locate_file(check.file_name)
        except UpstreamError as e:
            log_id = await self._start_log(check.week, check.file_name)
            await self._fail_log(log_id, e.message)
            logger.warning(e.message)
            return ApiResponse.fail(e.message, e.error_type)

        return await self.ingest_file(file_path, check.week)
