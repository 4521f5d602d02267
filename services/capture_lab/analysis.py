"""
Analysis Orchestrator
=====================
Runs one analysis: align -> KPIs, battery, representative weeks.

Each stage receives the aligned series explicitly; stages share no state
and do not depend on each other's results.
"""

import logging
import time

from .aligner import align_data
from .battery_engine import simulate_battery
from .config import ENGINE_VERSION
from .errors import InsufficientDataError
from .kpi_engine import calculate_kpis
from .models import AnalysisRequest, AnalysisResult
from .periods import find_representative_weeks

logger = logging.getLogger(__name__)


def run_analysis(request: AnalysisRequest) -> AnalysisResult:
    """
    Main analysis entry point.

    Raises InsufficientDataError when the price and PV series share no
    timestamp.
    """
    start_time = time.perf_counter()
    timezone = request.timezone

    aligned = align_data(request.prices, request.pv_profile, timezone)
    if not aligned:
        logger.warning(
            "No overlap between %d price points and %d PV points",
            len(request.prices), len(request.pv_profile),
        )
        raise InsufficientDataError("No aligned data available. Please check the date range.")

    logger.info("Computing capture metrics for %d aligned hours (%s)", len(aligned), request.market)
    kpis = calculate_kpis(aligned, request.capacity_mw, request.to_options())

    battery = None
    if request.enable_battery:
        logger.info("Running battery simulation")
        battery = simulate_battery(aligned, request.battery)

    logger.info("Identifying representative periods")
    weeks = find_representative_weeks(aligned)

    return AnalysisResult(
        market=request.market,
        timezone=timezone,
        data_points=len(aligned),
        kpis=kpis,
        battery=battery,
        representative_weeks=weeks,
        info={
            "engine_version": ENGINE_VERSION,
            "price_points": len(request.prices),
            "pv_points": len(request.pv_profile),
            "route_to_market": request.route_to_market.value,
            "compute_time_ms": (time.perf_counter() - start_time) * 1000,
        },
    )
