"""Period-over-period change for the latest two samples of a region."""

from __future__ import annotations

import math

from kbindex.models import RegionStatistics, TimeSeriesPoint


def change_rate(latest: float, previous: float) -> float:
    """Percent change from ``previous`` to ``latest``.

    A zero ``previous`` yields ``inf`` (signed like the difference) or ``nan``
    when nothing changed, rather than raising.
    """
    diff = latest - previous
    if previous == 0:
        if diff == 0:
            return math.nan
        return math.copysign(math.inf, diff)
    return diff / previous * 100


def compute_statistics(
    latest: TimeSeriesPoint,
    previous: TimeSeriesPoint | None,
) -> RegionStatistics:
    """Summarise the latest sample; change is 0 when there is no earlier week."""
    if previous is None:
        sale_change = lease_change = 0.0
    else:
        sale_change = change_rate(latest.sale_index, previous.sale_index)
        lease_change = change_rate(latest.lease_index, previous.lease_index)

    return RegionStatistics(
        region_code=latest.region_code,
        region_name=latest.region_name,
        week=latest.week,
        sale_index=latest.sale_index,
        lease_index=latest.lease_index,
        sale_change_rate=sale_change,
        lease_change_rate=lease_change,
        previous_week=previous.week if previous else None,
    )


def has_non_finite_change(stats: RegionStatistics) -> bool:
    return not (math.isfinite(stats.sale_change_rate) and math.isfinite(stats.lease_change_rate))
