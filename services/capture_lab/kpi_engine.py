"""
KPI Engine
==========
Capture-price and risk KPIs for a PV asset on an aligned price/output series.

Implements:
1. Baseload vs PV-weighted (capture) price and capture rate
2. Negative-price exposure
3. Merchant revenue (optional floor) and flat PPA revenue
4. Monthly revenue distribution with P5/P50/P95
5. Monthly capture-rate trend
6. Price histogram (all hours vs PV hours)
7. Negative-price heatmap (month x hour)

All intermediate arithmetic runs at full precision; rounding is applied
once, when the result objects are built.
"""

import math
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from .config import PRICE_BIN_WIDTH
from .errors import InsufficientDataError
from .models import (
    AlignedRecord,
    AnalysisOptions,
    KPIResult,
    MonthlyCaptureRate,
    MonthlyRevenue,
    NegativeHeatmap,
    PriceBin,
    RiskMetrics,
)


def _safe_div(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator > 0 else 0.0


def records_to_frame(data: Sequence[AlignedRecord]) -> pd.DataFrame:
    """Aligned records as a DataFrame with calendar columns in the reference timezone"""
    return pd.DataFrame({
        "timestamp": [d.timestamp for d in data],
        "price": np.array([d.price for d in data], dtype=float),
        "output": np.array([d.output for d in data], dtype=float),
        "year": [d.date.year for d in data],
        "month": [d.date.month for d in data],
        "hour": [d.date.hour for d in data],
    })


def calculate_kpis(
    data: Sequence[AlignedRecord],
    capacity_mw: Optional[float] = None,
    options: Optional[AnalysisOptions] = None,
) -> KPIResult:
    """
    Calculate all KPIs from aligned price/PV data.

    Parameters:
    -----------
    data : Sequence[AlignedRecord]
        Aligned hourly records (must not be empty)
    capacity_mw : float
        Installed capacity [MW], echoed in the result only
    options : AnalysisOptions
        Optional merchant floor and PPA price

    Returns:
    --------
    KPIResult

    Raises:
    -------
    InsufficientDataError when data is empty
    """
    if not data:
        raise InsufficientDataError("No data available for computation")

    options = options or AnalysisOptions()
    df = records_to_frame(data)
    prices = df["price"].to_numpy()
    output = df["output"].to_numpy()

    # Baseload and capture
    baseload_avg = float(np.mean(prices))
    total_production = float(np.sum(output))  # MW over 1h steps = MWh
    weighted_sum = float(np.sum(prices * output))
    capture_price = _safe_div(weighted_sum, total_production)
    capture_rate = capture_price / baseload_avg * 100 if baseload_avg > 0 else 0.0

    # Negative price exposure (producing hours only)
    negative_mask = (prices < 0) & (output > 0)
    negative_hours_count = int(np.count_nonzero(negative_mask))
    negative_mwh = float(np.sum(output[negative_mask]))
    negative_percentage = _safe_div(negative_mwh, total_production) * 100

    # Revenue
    effective_prices = prices
    if options.floor_price is not None:
        effective_prices = np.maximum(prices, options.floor_price)
    merchant_revenue = float(np.sum(effective_prices * output))

    ppa_revenue = None
    if options.ppa_price is not None:
        ppa_revenue = total_production * options.ppa_price

    monthly_revenues = calculate_monthly_revenues(df)

    return KPIResult(
        baseload_avg=round(baseload_avg, 2),
        capture_price=round(capture_price, 2),
        capture_rate=round(capture_rate, 1),
        negative_hours_count=negative_hours_count,
        negative_mwh=round(negative_mwh),
        negative_percentage=round(negative_percentage, 1),
        total_production=round(total_production),
        merchant_revenue=round(merchant_revenue, 2),
        ppa_revenue=round(ppa_revenue, 2) if ppa_revenue is not None else None,
        monthly_revenues=[
            MonthlyRevenue(month=m["month"], revenue=round(m["revenue"], 2),
                           production=round(m["production"], 2))
            for m in monthly_revenues
        ],
        risk_metrics=calculate_risk_metrics([m["revenue"] for m in monthly_revenues]),
        monthly_capture_rates=calculate_monthly_capture_rates(df),
        price_distribution=calculate_price_distribution(prices, output),
        negative_heatmap=calculate_negative_heatmap(df),
        capacity_mw=capacity_mw,
        data_points=len(data),
    )


def _monthly_groups(df: pd.DataFrame):
    """Group by (year, month), chronological order"""
    return df.groupby(["year", "month"], sort=True)


def _month_key(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def calculate_monthly_revenues(df: pd.DataFrame) -> List[dict]:
    """Unrounded revenue and production per calendar month"""
    frame = df.assign(revenue=df["price"] * df["output"])
    months = []
    for (year, month), group in _monthly_groups(frame):
        months.append({
            "month": _month_key(year, month),
            "revenue": float(group["revenue"].sum()),
            "production": float(group["output"].sum()),
        })
    return months


def calculate_risk_metrics(revenues: Sequence[float]) -> RiskMetrics:
    """
    P5/P50/P95 of monthly revenues.

    Linear interpolation between order statistics (numpy's default
    percentile method): index = p/100 * (n-1).
    """
    if len(revenues) == 0:
        return RiskMetrics(p5=0.0, p50=0.0, p95=0.0)

    values = np.sort(np.asarray(revenues, dtype=float))
    p5, p50, p95 = np.percentile(values, [5, 50, 95])
    return RiskMetrics(
        p5=round(float(p5), 2),
        p50=round(float(p50), 2),
        p95=round(float(p95), 2),
    )


def calculate_monthly_capture_rates(df: pd.DataFrame) -> List[MonthlyCaptureRate]:
    """Baseload, capture price and capture rate per calendar month"""
    rates = []
    for (year, month), group in _monthly_groups(df):
        prices = group["price"].to_numpy()
        output = group["output"].to_numpy()

        baseload = float(np.mean(prices))
        capture = _safe_div(float(np.sum(prices * output)), float(np.sum(output)))
        rate = capture / baseload * 100 if baseload > 0 else 0.0

        rates.append(MonthlyCaptureRate(
            month=_month_key(year, month),
            baseload=round(baseload, 2),
            capture=round(capture, 2),
            rate=round(rate, 1),
        ))
    return rates


def calculate_price_distribution(
    prices: np.ndarray,
    output: np.ndarray,
    bin_width: int = PRICE_BIN_WIDTH,
) -> List[PriceBin]:
    """
    Price histogram, all hours vs PV hours (output > 0).

    Edges run from floor(min/width)*width to ceil(max/width)*width; the last
    bin is closed so the maximum price is counted. Each population sums to
    100% over the bins.
    """
    if len(prices) == 0:
        return []

    pv_prices = prices[output > 0]

    low = math.floor(float(np.min(prices)) / bin_width) * bin_width
    high = math.ceil(float(np.max(prices)) / bin_width) * bin_width
    if high <= low:
        high = low + bin_width
    edges = np.arange(low, high + bin_width, bin_width, dtype=float)

    all_counts, _ = np.histogram(prices, bins=edges)
    pv_counts, _ = np.histogram(pv_prices, bins=edges)

    all_total = len(prices)
    pv_total = len(pv_prices)

    bins = []
    for i, lower in enumerate(edges[:-1]):
        upper = edges[i + 1]
        bins.append(PriceBin(
            range=f"{int(lower)}-{int(upper)}",
            min=float(lower),
            max=float(upper),
            all_pct=round(all_counts[i] / all_total * 100, 1),
            pv_pct=round(pv_counts[i] / pv_total * 100, 1) if pv_total > 0 else 0.0,
        ))
    return bins


def calculate_negative_heatmap(df: pd.DataFrame) -> NegativeHeatmap:
    """Negative-price producing hours by [month][hour-of-day]"""
    heatmap = np.zeros((12, 24), dtype=int)
    counts = np.zeros((12, 24), dtype=int)

    producing = df[df["output"] > 0]
    month_idx = producing["month"].to_numpy() - 1
    hour_idx = producing["hour"].to_numpy()
    negative = producing["price"].to_numpy() < 0

    np.add.at(counts, (month_idx, hour_idx), 1)
    np.add.at(heatmap, (month_idx[negative], hour_idx[negative]), 1)

    return NegativeHeatmap(
        heatmap=heatmap.tolist(),
        counts=counts.tolist(),
        max_count=int(heatmap.max()),
    )
