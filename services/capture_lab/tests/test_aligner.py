"""
Tests for the Series Aligner
============================
Tests cover:
- Inner join on timestamp
- Ordering and uniqueness
- Gap handling (unmatched hours dropped)
- Duplicate timestamps
- Reference timezone calendar fields
"""

import pytest

from capture_lab.aligner import align_data
from capture_lab.models import OutputPoint, PricePoint

from conftest import TIMEZONE, epoch


class TestAlignData:
    """Inner join of price and PV series"""

    def test_disjoint_series_give_empty_result(self):
        """No shared timestamp -> empty sequence"""
        prices = [PricePoint(timestamp=3600 * i, price=50.0) for i in range(24)]
        pv = [OutputPoint(timestamp=3600 * (i + 100), output=5.0) for i in range(24)]

        assert align_data(prices, pv, TIMEZONE) == []

    def test_empty_inputs(self):
        assert align_data([], [], TIMEZONE) == []
        assert align_data([PricePoint(timestamp=0, price=1.0)], [], TIMEZONE) == []

    def test_intersection_only(self):
        """Hours present in only one series are dropped"""
        prices = [PricePoint(timestamp=3600 * i, price=float(i)) for i in range(10)]
        pv = [OutputPoint(timestamp=3600 * i, output=1.0) for i in range(5, 15)]

        aligned = align_data(prices, pv, TIMEZONE)

        assert [r.timestamp for r in aligned] == [3600 * i for i in range(5, 10)]
        assert [r.price for r in aligned] == [5.0, 6.0, 7.0, 8.0, 9.0]
        assert all(r.output == 1.0 for r in aligned)

    def test_sorted_and_unique(self):
        """Unsorted inputs come out ascending with unique timestamps"""
        order = [7, 3, 9, 1, 4, 8, 2]
        prices = [PricePoint(timestamp=3600 * i, price=10.0 * i) for i in order]
        pv = [OutputPoint(timestamp=3600 * i, output=2.0) for i in reversed(order)]

        aligned = align_data(prices, pv, TIMEZONE)
        timestamps = [r.timestamp for r in aligned]

        assert timestamps == sorted(timestamps)
        assert len(set(timestamps)) == len(timestamps)
        assert len(aligned) <= min(len(prices), len(pv))

    def test_duplicate_timestamp_last_value_wins(self):
        prices = [
            PricePoint(timestamp=0, price=10.0),
            PricePoint(timestamp=0, price=20.0),
        ]
        pv = [OutputPoint(timestamp=0, output=3.0)]

        aligned = align_data(prices, pv, TIMEZONE)

        assert len(aligned) == 1
        assert aligned[0].price == 20.0

    def test_date_in_reference_timezone(self):
        """Calendar fields follow the market timezone, not UTC"""
        ts = epoch("2024-06-03 12:00")  # 10:00 UTC in summer
        aligned = align_data(
            [PricePoint(timestamp=ts, price=42.0)],
            [OutputPoint(timestamp=ts, output=7.5)],
            TIMEZONE,
        )

        record = aligned[0]
        assert record.date.hour == 12
        assert record.date.day == 3
        assert record.date.utcoffset().total_seconds() == 7200

    def test_negative_output_rejected(self):
        with pytest.raises(ValueError):
            OutputPoint(timestamp=0, output=-1.0)

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_price_rejected(self, value):
        with pytest.raises(ValueError):
            PricePoint(timestamp=0, price=value)

    @pytest.mark.parametrize("value", [float("nan"), float("inf")])
    def test_non_finite_output_rejected(self, value):
        with pytest.raises(ValueError):
            OutputPoint(timestamp=0, output=value)
