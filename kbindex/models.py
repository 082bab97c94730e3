"""KB Index Pydantic models for type-safe data validation.

Field names are snake_case in Python and camelCase on the wire
(``regionCode``, ``recalculatedSaleIndex``, ...). Both spellings are accepted
on input.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base model serialising with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class CollectionStatus(str, Enum):
    """Outcome of a weekly ingestion run, keyed by week."""

    PROCESSING = "PROCESSING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class TimeSeriesPoint(CamelModel):
    """One region, one reporting week, as published."""

    week: str
    region_code: str
    region_name: str
    sale_index: float = Field(ge=0)
    lease_index: float = Field(ge=0)
    base_date: str

    @field_validator("week")
    @classmethod
    def validate_week(cls, v: str) -> str:
        if len(v) != 8 or not v.isdigit():
            raise ValueError(f"week must be an 8-digit YYYYMMDD key, got {v!r}")
        return v


class RebasedPoint(CamelModel):
    """Derived point carrying original and recalculated indices (never persisted)."""

    week: str
    region_code: str
    region_name: str
    original_sale_index: float
    original_lease_index: float
    recalculated_sale_index: float
    recalculated_lease_index: float
    base_date: str
    custom_base_date: str | None = None


class UserSettings(CamelModel):
    """Single global settings record."""

    base_period_years: int = Field(default=3, ge=1, le=10)
    use_custom_base: bool = True


class RegionStatistics(CamelModel):
    """Latest sample for a region plus period-over-period change in percent."""

    region_code: str
    region_name: str
    week: str
    sale_index: float
    lease_index: float
    sale_change_rate: float
    lease_change_rate: float
    previous_week: str | None = None


class RegionSummary(CamelModel):
    """Region listed in the region selector."""

    region_code: str
    region_name: str
    latest_week: str
    point_count: int


class RebaseQuery(CamelModel):
    """Parameters accepted by the rebase entry point.

    ``use_custom_base`` and ``base_period_years`` override the stored settings
    only when given.
    """

    region_code: str = Field(min_length=1)
    start_date: str | None = None
    end_date: str | None = None
    use_custom_base: bool | None = None
    base_period_years: int | None = Field(default=None, ge=1, le=10)


class NewDataCheck(CamelModel):
    """Result of checking whether the current week still needs collecting."""

    has_new_data: bool
    week: str | None = None
    file_name: str | None = None


class CollectionResult(CamelModel):
    """Summary of a completed ingestion batch."""

    week: str
    file_name: str
    record_count: int
    skipped_rows: list[str] = Field(default_factory=list)


class ApiResponse(CamelModel, Generic[T]):
    """Discriminated success/failure envelope returned by every core operation.

    A failure always carries ``error`` and never carries ``data``.
    """

    success: bool
    data: T | None = None
    message: str | None = None
    error: str | None = None
    error_type: str | None = None

    @classmethod
    def ok(cls, data: T | None = None, message: str | None = None) -> ApiResponse[T]:
        return cls(success=True, data=data, message=message)

    @classmethod
    def fail(cls, error: str, error_type: str = "KBIndexError") -> ApiResponse[T]:
        return cls(success=False, error=error, error_type=error_type)


class HealthStatus(CamelModel):
    status: str
    database: str
    timestamp: datetime
    detail: str | None = None
