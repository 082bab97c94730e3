"""Unit tests for custom-baseline rebasing."""

from __future__ import annotations

import math
from datetime import date

import pytest

from kbindex.core.errors import AnchorNotFoundError, NoDataError, ValidationError
from kbindex.indexing.rebase import (
    anchor_date_for,
    find_nearest_point,
    non_finite_fields,
    rebase,
    scale_to_base,
)


class TestScaleToBase:
    def test_regular_value(self):
        assert scale_to_base(130.0, 100.0) == pytest.approx(130.0)
        assert scale_to_base(50.0, 200.0) == pytest.approx(25.0)

    def test_base_reads_100(self):
        assert scale_to_base(87.3, 87.3) == pytest.approx(100.0)

    def test_zero_base_is_infinite(self):
        assert scale_to_base(5.0, 0.0) == math.inf

    def test_zero_over_zero_is_nan(self):
        assert math.isnan(scale_to_base(0.0, 0.0))


class TestFindNearestPoint:
    def test_exact_match(self, sample_series):
        assert find_nearest_point(sample_series, "20220103").week == "20220103"

    def test_closest_by_integer_distance(self, sample_series):
        assert find_nearest_point(sample_series, "20221201").week == "20220103"
        assert find_nearest_point(sample_series, "20230101").week == "20230102"
        assert find_nearest_point(sample_series, "19990101").week == "20210104"
        assert find_nearest_point(sample_series, "20300101").week == "20240101"

    def test_tie_goes_to_earliest(self, point_factory):
        series = [point_factory("20210108", 90.0), point_factory("20210112", 95.0)]

        assert find_nearest_point(series, "20210110").week == "20210108"

    def test_integer_distance_across_year_boundary(self, point_factory):
        """20211231 is one day before 20220101 but 8870 apart as integers."""
        series = [point_factory("20211231", 90.0), point_factory("20220105", 95.0)]

        assert find_nearest_point(series, "20220101").week == "20220105"

    def test_empty_series_raises(self):
        with pytest.raises(AnchorNotFoundError):
            find_nearest_point([], "20220101")


class TestAnchorDate:
    def test_subtracts_years(self):
        assert anchor_date_for(date(2025, 1, 10), 3) == date(2022, 1, 10)

    def test_leap_day_maps_to_feb_28(self):
        assert anchor_date_for(date(2024, 2, 29), 1) == date(2023, 2, 28)

    def test_leap_day_kept_in_leap_year(self):
        assert anchor_date_for(date(2024, 2, 29), 4) == date(2020, 2, 29)

    def test_rejects_non_positive_lookback(self):
        with pytest.raises(ValidationError):
            anchor_date_for(date(2025, 1, 10), 0)


class TestRebase:
    def test_anchor_matches_exactly(self, point_factory):
        series = [
            point_factory("20220110", 100.0, 100.0),
            point_factory("20250110", 130.0, 110.0),
        ]

        points = rebase(series, date(2025, 1, 10), 3, use_custom_base=True)

        assert points[1].recalculated_sale_index == pytest.approx(130.0)
        assert points[1].recalculated_lease_index == pytest.approx(110.0)
        assert points[0].custom_base_date == "2022.1.10"

    def test_anchor_reads_100(self, sample_series):
        points = rebase(sample_series, date(2024, 1, 1), 2, use_custom_base=True)

        anchor = next(p for p in points if p.week == "20220103")
        assert anchor.recalculated_sale_index == pytest.approx(100.0)
        assert anchor.recalculated_lease_index == pytest.approx(100.0)
        assert points[-1].recalculated_sale_index == pytest.approx(120.0)

    def test_rebases_relative_to_anchor(self, sample_series):
        points = rebase(sample_series, date(2024, 1, 1), 1, use_custom_base=True)

        # Anchor is 20230102 (sale 110, lease 105)
        assert points[0].recalculated_sale_index == pytest.approx(80.0 / 110.0 * 100)
        assert points[-1].recalculated_lease_index == pytest.approx(108.0 / 105.0 * 100)
        assert points[-1].custom_base_date == "2023.1.1"

    def test_scale_invariance(self, sample_series, point_factory):
        scaled = [
            point_factory(p.week, p.sale_index * 3.5, p.lease_index * 3.5) for p in sample_series
        ]

        original = rebase(sample_series, date(2024, 1, 1), 2, use_custom_base=True)
        rescaled = rebase(scaled, date(2024, 1, 1), 2, use_custom_base=True)

        for a, b in zip(original, rescaled):
            assert a.recalculated_sale_index == pytest.approx(b.recalculated_sale_index)
            assert a.recalculated_lease_index == pytest.approx(b.recalculated_lease_index)

    def test_preserves_length_and_order(self, sample_series):
        points = rebase(sample_series, date(2024, 1, 1), 3, use_custom_base=True)

        assert [p.week for p in points] == [p.week for p in sample_series]
        assert [p.original_sale_index for p in points] == [p.sale_index for p in sample_series]

    def test_passthrough_keeps_publisher_values(self, point_factory):
        series = [point_factory(f"2024010{i}", 90.0 + i, 80.0 + i) for i in range(1, 6)]

        points = rebase(series, date(2024, 1, 10), 3, use_custom_base=False)

        assert len(points) == 5
        for point, source in zip(points, series):
            assert point.recalculated_sale_index == source.sale_index
            assert point.recalculated_lease_index == source.lease_index
            assert point.custom_base_date is None
            assert point.base_date == "2022.1.10"

    def test_empty_series_raises(self):
        with pytest.raises(NoDataError):
            rebase([], date(2025, 1, 10), 3, use_custom_base=True)

    def test_zero_anchor_returns_non_finite(self, point_factory):
        series = [
            point_factory("20220110", 0.0, 100.0),
            point_factory("20250110", 130.0, 110.0),
        ]

        points = rebase(series, date(2025, 1, 10), 3, use_custom_base=True)

        assert math.isnan(points[0].recalculated_sale_index)
        assert points[1].recalculated_sale_index == math.inf
        assert points[1].recalculated_lease_index == pytest.approx(110.0)
        assert non_finite_fields(points) == ["saleIndex"]

    def test_reference_date_defaults_to_today(self, sample_series):
        points = rebase(sample_series, None, 3, use_custom_base=True)

        expected = anchor_date_for(date.today(), 3)
        assert points[0].custom_base_date == f"{expected.year}.{expected.month}.{expected.day}"


def test_non_finite_fields_empty_for_finite_points(sample_series):
    points = rebase(sample_series, date(2024, 1, 1), 3, use_custom_base=True)

    assert non_finite_fields(points) == []
