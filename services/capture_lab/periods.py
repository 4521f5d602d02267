"""
Representative Periods
======================
Weekly windows of the aligned series classified for charting:
typical (median volatility), most volatile, most negative-price hours.
"""

from typing import List, Sequence

import numpy as np

from .config import HOURS_PER_WEEK, MIN_WEEK_HOURS
from .models import AlignedRecord, RepresentativeWeeks, WeekWindow


def group_by_week(
    data: Sequence[AlignedRecord],
    week_hours: int = HOURS_PER_WEEK,
    min_hours: int = MIN_WEEK_HOURS,
) -> List[List[AlignedRecord]]:
    """Consecutive fixed-size windows; a short trailing window needs min_hours"""
    weeks = [list(data[i:i + week_hours]) for i in range(0, len(data), week_hours)]
    if weeks and len(weeks[-1]) < min(min_hours, week_hours):
        weeks.pop()
    return weeks


def calculate_week_capture_rate(week: Sequence[AlignedRecord]) -> float:
    """Capture price / mean price; 0 without output or with non-positive mean"""
    prices = np.array([d.price for d in week], dtype=float)
    output = np.array([d.output for d in week], dtype=float)

    total_output = float(np.sum(output))
    if total_output <= 0:
        return 0.0

    capture_price = float(np.sum(prices * output)) / total_output
    avg_price = float(np.mean(prices))
    return capture_price / avg_price if avg_price > 0 else 0.0


def _week_window(week: List[AlignedRecord]) -> dict:
    prices = np.array([d.price for d in week], dtype=float)
    return {
        "data": week,
        "volatility": float(np.std(prices)),  # population std (ddof=0)
        "negative_hours": sum(1 for d in week if d.price < 0 and d.output > 0),
        "avg_capture": calculate_week_capture_rate(week),
    }


def _to_model(window: dict) -> WeekWindow:
    week = window["data"]
    return WeekWindow(
        data=week,
        start_date=week[0].date,
        end_date=week[-1].date,
        volatility=round(window["volatility"], 2),
        negative_hours=window["negative_hours"],
        avg_capture=round(window["avg_capture"], 3),
    )


def find_representative_weeks(data: Sequence[AlignedRecord]) -> RepresentativeWeeks:
    """
    Find representative weeks.

    - typical: median position by volatility (lower-middle for even counts)
    - volatile: highest price standard deviation
    - negative: most negative-price producing hours, earliest week on ties

    Returns an empty RepresentativeWeeks when the series holds no window
    of at least MIN_WEEK_HOURS records.
    """
    windows = [_week_window(week) for week in group_by_week(data)]
    if not windows:
        return RepresentativeWeeks()

    by_volatility = sorted(windows, key=lambda w: w["volatility"])
    typical = by_volatility[len(by_volatility) // 2]
    volatile = by_volatility[-1]
    negative = sorted(windows, key=lambda w: w["negative_hours"], reverse=True)[0]

    return RepresentativeWeeks(
        typical=_to_model(typical),
        volatile=_to_model(volatile),
        negative=_to_model(negative),
        weeks_evaluated=len(windows),
    )
