"""Pytest configuration and fixtures for KB Index tests.

Provides common fixtures for testing.
"""

from __future__ import annotations

import os

import pytest

# kbindex.web.app reads the config at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from kbindex.config import reset_config  # noqa: E402
from kbindex.models import TimeSeriesPoint  # noqa: E402


def make_point(
    week: str,
    sale: float,
    lease: float | None = None,
    region_code: str = "11110",
    region_name: str = "종로구",
) -> TimeSeriesPoint:
    """Build a point with the publisher's 2022.1.10 baseline."""
    return TimeSeriesPoint(
        week=week,
        region_code=region_code,
        region_name=region_name,
        sale_index=sale,
        lease_index=sale if lease is None else lease,
        base_date="2022.1.10",
    )


@pytest.fixture
def point_factory():
    """Factory building TimeSeriesPoint objects (see make_point)."""
    return make_point


@pytest.fixture
def region_code() -> str:
    """Test region code (Jongno-gu, Seoul)."""
    return "11110"


@pytest.fixture
def sample_point() -> TimeSeriesPoint:
    """A single published sample."""
    return make_point("20240101", 102.5, 98.3)


@pytest.fixture
def sample_series() -> list[TimeSeriesPoint]:
    """Three years of samples, one per January, in week order."""
    return [
        make_point("20210104", 80.0, 90.0),
        make_point("20220103", 100.0, 100.0),
        make_point("20230102", 110.0, 105.0),
        make_point("20240101", 120.0, 108.0),
    ]


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch, tmp_path):
    """Set up test environment variables."""
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("KB_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.delenv("DEFAULT_BASE_PERIOD_YEARS", raising=False)
    monkeypatch.delenv("DEFAULT_USE_CUSTOM_BASE", raising=False)
    reset_config()
    yield
    reset_config()
