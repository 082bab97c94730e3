"""KB weekly time series workbook parsing.

Reads the publisher's fixed layout: one header row, then one row per
(week, region) with columns

    주차 (week) | 지역코드 (region code) | 지역명 (region name) | 매매지수 (sale) | 전세지수 (lease)

Columns are read by position, not by header text. No layout detection is
attempted.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from pathlib import Path

import pandas as pd

from kbindex.core.errors import ValidationError
from kbindex.indexing.weeks import week_key
from kbindex.models import TimeSeriesPoint

logger = logging.getLogger(__name__)

HEADER = ["주차", "지역코드", "지역명", "매매지수", "전세지수"]

MAX_FILE_SIZE_MB = 50
MAX_ROWS = 50000


def normalize_week(value) -> str | None:
    """Turn a spreadsheet week cell into an 8-digit key, None when unusable."""
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    if isinstance(value, (datetime, date)):
        return week_key(value)
    if isinstance(value, float) and value.is_integer():
        value = int(value)

    text = str(value).strip().replace("-", "").replace(".", "")
    if len(text) == 8 and text.isdigit():
        return text
    return None


def _to_index(value) -> float:
    """Numeric index value; blanks and non-numeric cells count as 0."""
    number = pd.to_numeric(value, errors="coerce")
    if pd.isna(number):
        return 0.0
    return float(number)


def read_frame(file_path: Path, max_file_size_mb: int = MAX_FILE_SIZE_MB) -> pd.DataFrame:
    """Load the first sheet (or CSV) as strings-and-numbers without a header.

    Raises:
        FileNotFoundError: If file doesn't exist
        ValidationError: If the file is too large or of an unsupported type
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Workbook not found: {file_path}")

    file_size_mb = file_path.stat().st_size / (1024 * 1024)
    if file_size_mb > max_file_size_mb:
        raise ValidationError(
            f"File too large ({file_size_mb:.1f}MB). Maximum allowed: {max_file_size_mb}MB"
        )

    suffix = file_path.suffix.lower()
    if suffix == ".csv":
        return pd.read_csv(file_path, header=None, dtype={0: str, 1: str})
    if suffix in (".xlsx", ".xls"):
        return pd.read_excel(file_path, sheet_name=0, header=None, dtype={0: object, 1: str})
    raise ValidationError(f"Unsupported file format: {file_path.suffix}. Use XLSX or CSV.")


def parse_workbook(
    file_path: Path,
    base_date: str,
    max_file_size_mb: int = MAX_FILE_SIZE_MB,
    max_rows: int = MAX_ROWS,
) -> tuple[list[TimeSeriesPoint], list[str]]:
    """Parse a weekly workbook into time series points.

    Args:
        file_path: Path to XLSX or CSV file
        base_date: Publisher baseline carried on every point (e.g. "2022.1.10")
        max_file_size_mb: Upper bound on file size
        max_rows: Upper bound on data rows

    Returns:
        Tuple of (points, error_messages); rows that cannot be read are
        reported and skipped

    Raises:
        FileNotFoundError: If file doesn't exist
        ValidationError: If file format, size or row count is invalid
    """
    df = read_frame(file_path, max_file_size_mb)

    # First row is the header
    body = df.iloc[1:]
    if len(body) > max_rows:
        raise ValidationError(f"Too many rows ({len(body):,}). Maximum allowed: {max_rows:,}")

    points: list[TimeSeriesPoint] = []
    errors: list[str] = []

    for idx, row in body.iterrows():
        cells = row.tolist()
        if len(cells) < 4 or all(pd.isna(c) for c in cells[:4]):
            continue

        week = normalize_week(cells[0])
        if week is None:
            errors.append(f"Row {idx}: unreadable week {cells[0]!r}")
            continue

        region_code = "" if pd.isna(cells[1]) else str(cells[1]).strip()
        if not region_code:
            errors.append(f"Row {idx}: missing region code")
            continue

        region_name = "" if pd.isna(cells[2]) else str(cells[2]).strip()

        try:
            points.append(
                TimeSeriesPoint(
                    week=week,
                    region_code=region_code,
                    region_name=region_name or region_code,
                    sale_index=_to_index(cells[3]),
                    lease_index=_to_index(cells[4]) if len(cells) > 4 else 0.0,
                    base_date=base_date,
                )
            )
        except ValueError as e:
            errors.append(f"Row {idx}: {e}")

    logger.info(f"Parsed {len(points)} rows from {file_path.name} ({len(errors)} skipped)")
    return points, errors


SAMPLE_ROWS = [
    ("11110", "종로구", 102.5, 98.3),
    ("11140", "중구", 105.2, 101.7),
    ("11170", "용산구", 108.9, 104.2),
    ("11200", "성동구", 98.7, 95.8),
]


def write_sample_workbook(file_path: Path, week: str) -> Path:
    """Write a small workbook in the publisher layout for development use."""
    frame = pd.DataFrame(
        [[week, code, name, sale, lease] for code, name, sale, lease in SAMPLE_ROWS],
        columns=HEADER,
    )
    file_path.parent.mkdir(parents=True, exist_ok=True)
    frame.to_excel(file_path, index=False, sheet_name="Sheet1", engine="openpyxl")
    logger.info(f"Sample workbook written to {file_path}")
    return file_path
