# Capture Lab analytics engine
# Solar capture-price KPIs and co-located battery uplift
from .models import (
    PricePoint,
    OutputPoint,
    AlignedRecord,
    AnalysisOptions,
    MonthlyRevenue,
    RiskMetrics,
    MonthlyCaptureRate,
    PriceBin,
    NegativeHeatmap,
    KPIResult,
    BatteryConfig,
    DailyBatteryResult,
    BatteryResult,
    WeekWindow,
    RepresentativeWeeks,
    RouteToMarket,
    AnalysisRequest,
    AnalysisResult,
)
from .errors import InsufficientDataError
from .aligner import align_data
from .kpi_engine import calculate_kpis
from .battery_engine import simulate_battery
from .periods import find_representative_weeks
from .analysis import run_analysis

__all__ = [
    "PricePoint",
    "OutputPoint",
    "AlignedRecord",
    "AnalysisOptions",
    "MonthlyRevenue",
    "RiskMetrics",
    "MonthlyCaptureRate",
    "PriceBin",
    "NegativeHeatmap",
    "KPIResult",
    "BatteryConfig",
    "DailyBatteryResult",
    "BatteryResult",
    "WeekWindow",
    "RepresentativeWeeks",
    "RouteToMarket",
    "AnalysisRequest",
    "AnalysisResult",
    "InsufficientDataError",
    "align_data",
    "calculate_kpis",
    "simulate_battery",
    "find_representative_weeks",
    "run_analysis",
]
