"""SQLAlchemy async database models for KB Index.

Weekly time series, the single global settings row, and the per-week
collection log that keeps ingestion idempotent.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class TimeSeriesModel(Base):
    """One published weekly sample for one region."""

    __tablename__ = "kb_time_series"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)

    # Business key (region_code + week)
    week: Mapped[str] = mapped_column(String(8), nullable=False, index=True)  # YYYYMMDD
    region_code: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    region_name: Mapped[str] = mapped_column(Text, nullable=False)

    # Publisher indices (100 = publisher base date)
    sale_index: Mapped[float] = mapped_column(Float, nullable=False)
    lease_index: Mapped[float] = mapped_column(Float, nullable=False)
    base_date: Mapped[str] = mapped_column(Text, nullable=False)

    # Provenance
    data_source: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("region_code", "week", name="uq_kb_time_series_region_week"),
        CheckConstraint("sale_index >= 0", name="check_sale_index_non_negative"),
        CheckConstraint("lease_index >= 0", name="check_lease_index_non_negative"),
        Index("idx_kb_time_series_region_week", "region_code", "week"),
    )


class UserSettingsModel(Base):
    """Rebasing preferences, one row per user (in practice only "default")."""

    __tablename__ = "user_settings"

    user_id: Mapped[str] = mapped_column(Text, primary_key=True)
    base_period_years: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    use_custom_base: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint(
            "base_period_years BETWEEN 1 AND 10", name="check_base_period_years_range"
        ),
    )


class DataCollectionLogModel(Base):
    """Outcome of one weekly ingestion attempt.

    A SUCCESS row for a week means that week is already collected.
    """

    __tablename__ = "data_collection_log"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    week: Mapped[str] = mapped_column(String(8), nullable=False, index=True)
    file_name: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    record_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    error_message: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('PROCESSING', 'SUCCESS', 'FAILED')",
            name="check_collection_status_valid",
        ),
        CheckConstraint("record_count >= 0", name="check_record_count_non_negative"),
        Index("idx_collection_week_status", "week", "status"),
    )
