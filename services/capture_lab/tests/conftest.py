"""Shared fixtures for the capture lab tests."""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

import pandas as pd
import pytest

from capture_lab.aligner import align_data
from capture_lab.models import OutputPoint, PricePoint

TIMEZONE = "Europe/Berlin"


def epoch(local_time: str) -> int:
    """Epoch seconds of a wall-clock time in the reference timezone"""
    return int(pd.Timestamp(local_time, tz=TIMEZONE).timestamp())


def build_series(prices, outputs, start="2024-06-03 00:00"):
    """Hourly PricePoint/OutputPoint lists starting at a local wall-clock time"""
    t0 = epoch(start)
    price_points = [PricePoint(timestamp=t0 + 3600 * i, price=p) for i, p in enumerate(prices)]
    pv_points = [OutputPoint(timestamp=t0 + 3600 * i, output=o) for i, o in enumerate(outputs)]
    return price_points, pv_points


def build_records(prices, outputs, start="2024-06-03 00:00"):
    """Aligned records for hourly prices/outputs"""
    price_points, pv_points = build_series(prices, outputs, start)
    return align_data(price_points, pv_points, TIMEZONE)


@pytest.fixture
def make_series():
    return build_series


@pytest.fixture
def make_records():
    return build_records


@pytest.fixture
def alternating_48h(make_records):
    """48 hours alternating price 100 / -5 at constant 10 MW"""
    return make_records([100, -5] * 24, [10, 10] * 24)


@pytest.fixture
def solar_day_outputs():
    """Bell-shaped 24h PV profile [MW]"""
    return [0, 0, 0, 0, 0, 1, 3, 6, 9, 11, 12, 13,
            13, 12, 10, 7, 4, 1.5, 0, 0, 0, 0, 0, 0]


@pytest.fixture
def duck_day_prices():
    """24h prices with a midday solar depression and evening peak [EUR/MWh]"""
    return [60, 55, 52, 50, 52, 58, 75, 90, 70, 40, 15, -5,
            -12, -8, 5, 30, 70, 110, 130, 120, 95, 80, 70, 65]
