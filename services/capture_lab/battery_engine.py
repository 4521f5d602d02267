"""
Battery Dispatch Engine
=======================
Greedy daily dispatch of a battery co-located with a PV asset.

Per calendar day:
1. Rank hours by price
2. Charge from PV in the cheapest producing hours
3. Discharge in the priciest remaining hours
4. Value the shift as revenue foregone at charge vs revenue gained at discharge

Simplifications:
- SOC window [MIN_SOC, MAX_SOC] of nominal energy
- SOC resets to the floor at the start of every day (no overnight carry-over)
- Round-trip efficiency split evenly: each leg applies sqrt(efficiency)
- Fixed-size candidate sets per day; not an optimal dispatch
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Sequence

import numpy as np

from .config import MAX_SOC, MIN_SOC
from .models import AlignedRecord, BatteryConfig, BatteryResult, DailyBatteryResult

logger = logging.getLogger(__name__)


@dataclass
class DayDispatch:
    """Unrounded outcome of one simulated day"""
    day: date
    uplift: float = 0.0
    shifted_mwh: float = 0.0
    negative_avoided_mwh: float = 0.0
    negative_revenue: float = 0.0
    min_soc_mwh: float = 0.0
    max_soc_mwh: float = 0.0


def group_by_day(data: Sequence[AlignedRecord]) -> Dict[date, List[AlignedRecord]]:
    """Records keyed by calendar date in the reference timezone, in input order"""
    days: Dict[date, List[AlignedRecord]] = {}
    for record in data:
        days.setdefault(record.date.date(), []).append(record)
    return days


def dispatch_day(day_data: Sequence[AlignedRecord], config: BatteryConfig) -> DayDispatch:
    """
    Simulate one day of greedy PV-charged arbitrage.

    Charge candidates are the cheapest producing hours; discharge candidates
    are the priciest hours not selected for charging. Both sets hold
    ``config.hours_per_leg`` hours at most.
    """
    sqrt_eff = config.one_way_efficiency
    soc_min = MIN_SOC * config.energy_mwh
    soc_max = MAX_SOC * config.energy_mwh
    p_max = config.power_mw
    n_hours = config.hours_per_leg

    result = DayDispatch(day=day_data[0].date.date(), min_soc_mwh=soc_min, max_soc_mwh=soc_min)

    # Stable sort by price; indices keep hours with equal prices distinct
    ranked = sorted(range(len(day_data)), key=lambda i: day_data[i].price)

    charge_idx = [i for i in ranked if day_data[i].output > 0][:n_hours]
    charge_set = set(charge_idx)
    discharge_idx = [i for i in ranked if i not in charge_set][::-1][:n_hours]

    soc = soc_min

    # Charging from PV (cheapest first)
    for i in charge_idx:
        hour = day_data[i]
        headroom = soc_max - soc
        stored = min(hour.output, p_max, headroom) * sqrt_eff

        if stored > 0:
            taken_from_pv = stored / sqrt_eff
            # Revenue foregone from not selling to grid
            result.uplift -= taken_from_pv * hour.price
            result.shifted_mwh += taken_from_pv
            soc += stored

            if hour.price < 0:
                result.negative_avoided_mwh += taken_from_pv

            result.max_soc_mwh = max(result.max_soc_mwh, soc)

    # Discharging (priciest first)
    for i in discharge_idx:
        hour = day_data[i]
        released = min(p_max, soc - soc_min)

        if released > 0:
            result.uplift += released * sqrt_eff * hour.price
            soc -= released
            result.min_soc_mwh = min(result.min_soc_mwh, soc)

    # Pre-battery revenue in negative-price producing hours
    result.negative_revenue = sum(
        h.price * h.output for h in day_data if h.price < 0 and h.output > 0
    )

    return result


def simulate_battery(data: Sequence[AlignedRecord], config: BatteryConfig) -> BatteryResult:
    """
    Simulate battery dispatch over the full aligned series.

    Parameters:
    -----------
    data : Sequence[AlignedRecord]
        Aligned hourly records
    config : BatteryConfig
        Battery configuration (validated by the caller)

    Returns:
    --------
    BatteryResult with aggregate uplift and per-day breakdown.
    Uplift is not clamped: a losing dispatch reports a negative total.
    """
    days = group_by_day(data)

    total_uplift = 0.0
    total_shifted = 0.0
    total_negative_avoided = 0.0
    daily_results: List[DailyBatteryResult] = []

    for day_data in days.values():
        day = dispatch_day(day_data, config)

        total_uplift += day.uplift
        total_shifted += day.shifted_mwh
        total_negative_avoided += day.negative_avoided_mwh

        daily_results.append(DailyBatteryResult(
            date=day.day,
            uplift=round(day.uplift, 2),
            shifted=round(day.shifted_mwh, 2),
            negative_avoided=round(day.negative_avoided_mwh, 2),
            negative_revenue=round(day.negative_revenue, 2),
            min_soc_mwh=round(day.min_soc_mwh, 4),
            max_soc_mwh=round(day.max_soc_mwh, 4),
        ))

    prices = np.array([d.price for d in data], dtype=float)
    output = np.array([d.output for d in data], dtype=float)

    original_revenue = float(np.sum(prices * output))
    total_production = float(np.sum(output))
    new_revenue = original_revenue + total_uplift
    effective_capture_price = new_revenue / total_production if total_production > 0 else 0.0

    # Avoided negative energy is accumulated per day but divided by the
    # negative-price production of the whole series
    negative_production = float(np.sum(output[(prices < 0) & (output > 0)]))
    negative_reduction = 0.0
    if total_negative_avoided > 0 and negative_production > 0:
        negative_reduction = total_negative_avoided / negative_production * 100

    uplift_percentage = total_uplift / original_revenue * 100 if original_revenue > 0 else 0.0

    logger.debug(
        "Battery %.0f MW / %.0f MWh over %d days: uplift %.0f EUR",
        config.power_mw, config.energy_mwh, len(days), total_uplift,
    )

    return BatteryResult(
        total_uplift=round(total_uplift, 2),
        total_shifted_mwh=round(total_shifted),
        effective_capture_price=round(effective_capture_price, 2),
        negative_reduction=round(negative_reduction, 1),
        uplift_percentage=round(uplift_percentage, 1),
        daily_results=daily_results,
        config=config,
    )
