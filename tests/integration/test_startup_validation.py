"""Integration tests for startup validation."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from kbindex.config import get_config
from kbindex.startup_validation import StartupValidationError, run_startup_validation


@pytest.mark.asyncio
async def test_passes_and_creates_data_dir(db_session):
    data_dir = get_config().ingestion.data_dir
    assert not data_dir.exists()

    await run_startup_validation(db_session)

    assert data_dir.is_dir()


@pytest.mark.asyncio
async def test_database_failure_is_reported():
    session = AsyncMock()
    session.execute.side_effect = OperationalError("SELECT", {}, Exception("no such table"))

    with pytest.raises(StartupValidationError) as exc_info:
        await run_startup_validation(session)

    assert "kbindex init" in str(exc_info.value)
