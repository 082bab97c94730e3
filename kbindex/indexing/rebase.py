"""Custom-baseline rebasing of weekly price indices.

The publisher fixes one historical date as 100. Rebasing picks another
sample, the anchor, closest to ``reference_date - lookback_years`` and
rescales the whole series so that the anchor reads 100:

    recalculated = original / anchor * 100

Anchor selection compares week keys as integers (``abs(int(week) - int(key))``)
and keeps the first of equally distant samples. This integer distance is not
proportional to calendar days across month or year boundaries
(20211231 vs 20220101 differ by 8870 but are one day apart); the behaviour is
kept as-is.

All functions here are pure: settings and series are passed in explicitly.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from datetime import date

from kbindex.core.errors import AnchorNotFoundError, NoDataError, ValidationError
from kbindex.indexing.weeks import format_display_date, subtract_years, week_key
from kbindex.models import RebasedPoint, TimeSeriesPoint


def scale_to_base(value: float, base: float) -> float:
    """Express ``value`` relative to ``base`` = 100.

    A zero base does not raise: it yields ``inf`` (signed like ``value``) or
    ``nan`` when ``value`` is zero too, so callers can detect it.
    """
    if base == 0:
        if value == 0:
            return math.nan
        return math.copysign(math.inf, value)
    return value / base * 100


def find_nearest_point(series: Sequence[TimeSeriesPoint], target_key: str) -> TimeSeriesPoint:
    """Return the sample whose week key is numerically closest to ``target_key``.

    Ties go to the earliest sample in series order.

    Raises:
        AnchorNotFoundError: If the series is empty
    """
    if not series:
        raise AnchorNotFoundError(f"No data found around base date {target_key}")

    target = int(target_key)
    # min() keeps the first of equal keys
    return min(series, key=lambda point: abs(int(point.week) - target))


def anchor_date_for(reference_date: date | None, lookback_years: int) -> date:
    if lookback_years < 1:
        raise ValidationError(f"lookback_years must be a positive integer, got {lookback_years}")
    return subtract_years(reference_date or date.today(), lookback_years)


def passthrough(series: Sequence[TimeSeriesPoint]) -> list[RebasedPoint]:
    """Publisher baseline: recalculated values are the original values."""
    return [
        RebasedPoint(
            week=point.week,
            region_code=point.region_code,
            region_name=point.region_name,
            original_sale_index=point.sale_index,
            original_lease_index=point.lease_index,
            recalculated_sale_index=point.sale_index,
            recalculated_lease_index=point.lease_index,
            base_date=point.base_date,
        )
        for point in series
    ]


def rebase_to_anchor(
    series: Sequence[TimeSeriesPoint],
    anchor: TimeSeriesPoint,
    custom_base_date: str,
) -> list[RebasedPoint]:
    return [
        RebasedPoint(
            week=point.week,
            region_code=point.region_code,
            region_name=point.region_name,
            original_sale_index=point.sale_index,
            original_lease_index=point.lease_index,
            recalculated_sale_index=scale_to_base(point.sale_index, anchor.sale_index),
            recalculated_lease_index=scale_to_base(point.lease_index, anchor.lease_index),
            base_date=point.base_date,
            custom_base_date=custom_base_date,
        )
        for point in series
    ]


def rebase(
    series: Sequence[TimeSeriesPoint],
    reference_date: date | None,
    lookback_years: int,
    use_custom_base: bool,
) -> list[RebasedPoint]:
    """Recompute a region's series against a custom or the publisher baseline.

    Args:
        series: Non-empty series for one region, ordered by week
        reference_date: Date the lookback is measured from (today when None)
        lookback_years: How many years before ``reference_date`` becomes 100
        use_custom_base: False returns the publisher values unchanged

    Returns:
        One RebasedPoint per input point, in input order

    Raises:
        NoDataError: If the series is empty
        ValidationError: If lookback_years is not positive
    """
    if not series:
        raise NoDataError("No data exists for the requested conditions")

    if not use_custom_base:
        return passthrough(series)

    anchor_date = anchor_date_for(reference_date, lookback_years)
    anchor = find_nearest_point(series, week_key(anchor_date))
    return rebase_to_anchor(series, anchor, format_display_date(anchor_date))


def non_finite_fields(points: Sequence[RebasedPoint]) -> list[str]:
    """Names of recalculated fields holding inf/nan anywhere in ``points``."""
    fields = []
    if any(not math.isfinite(p.recalculated_sale_index) for p in points):
        fields.append("saleIndex")
    if any(not math.isfinite(p.recalculated_lease_index) for p in points):
        fields.append("leaseIndex")
    return fields
