"""
Capture Lab Models
==================
Data Transfer Objects for the capture-price analytics engine.

Covers:
- Raw input series (price, PV output)
- Aligned hourly records
- KPI results (capture price/rate, risk, histogram, heatmap)
- Battery dispatch configuration and results
- Representative weekly windows
- Full analysis request/result
"""

import math
from datetime import date as CalendarDate, datetime
from enum import Enum
from typing import List, Optional, Dict, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .config import BATTERY_DEFAULTS, DEFAULT_MARKET, MARKETS


class RouteToMarket(str, Enum):
    """How the asset sells its output"""
    MERCHANT = "merchant"       # Spot indexed
    PPA = "ppa"                 # Flat-price offtake


# =============================================================================
# Input Series
# =============================================================================

class PricePoint(BaseModel):
    """Day-ahead price for one clock hour"""
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    timestamp: int = Field(..., description="Epoch seconds, hour-aligned, UTC")
    price: float = Field(..., description="Price [EUR/MWh], may be negative")


class OutputPoint(BaseModel):
    """PV output for one clock hour (MW avg == MWh for a 1-hour step)"""
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    timestamp: int = Field(..., description="Epoch seconds, hour-aligned, UTC")
    output: float = Field(..., ge=0, description="PV output [MW]")


class AlignedRecord(BaseModel):
    """Hour present in both the price and the PV series"""
    model_config = ConfigDict(frozen=True)

    timestamp: int
    price: float
    output: float
    date: datetime = Field(..., description="Timestamp in the reference timezone")


# =============================================================================
# KPI Results
# =============================================================================

class AnalysisOptions(BaseModel):
    """Revenue options for the KPI calculator"""
    floor_price: Optional[float] = Field(None, description="Merchant price floor [EUR/MWh]")
    ppa_price: Optional[float] = Field(None, description="Flat PPA price [EUR/MWh]")


class MonthlyRevenue(BaseModel):
    model_config = ConfigDict(frozen=True)

    month: str              # YYYY-MM
    revenue: float          # EUR
    production: float       # MWh


class RiskMetrics(BaseModel):
    """Percentiles of monthly merchant revenue [EUR]"""
    model_config = ConfigDict(frozen=True)

    p5: float = 0.0
    p50: float = 0.0
    p95: float = 0.0


class MonthlyCaptureRate(BaseModel):
    model_config = ConfigDict(frozen=True)

    month: str              # YYYY-MM
    baseload: float         # EUR/MWh
    capture: float          # EUR/MWh
    rate: float             # %


class PriceBin(BaseModel):
    """Histogram bin, share of all hours vs share of PV hours"""
    model_config = ConfigDict(frozen=True)

    range: str
    min: float
    max: float
    all_pct: float
    pv_pct: float


class NegativeHeatmap(BaseModel):
    """Month x hour-of-day matrices of producing hours"""
    model_config = ConfigDict(frozen=True)

    heatmap: List[List[int]] = Field(..., description="[12][24] negative-price producing hours")
    counts: List[List[int]] = Field(..., description="[12][24] producing hours")
    max_count: int = 0


class KPIResult(BaseModel):
    """Capture and risk KPIs for one aligned series"""
    model_config = ConfigDict(frozen=True)

    baseload_avg: float
    capture_price: float
    capture_rate: float
    negative_hours_count: int
    negative_mwh: float
    negative_percentage: float
    total_production: float
    merchant_revenue: float
    ppa_revenue: Optional[float] = None

    monthly_revenues: List[MonthlyRevenue] = Field(default_factory=list)
    risk_metrics: RiskMetrics = Field(default_factory=RiskMetrics)
    monthly_capture_rates: List[MonthlyCaptureRate] = Field(default_factory=list)
    price_distribution: List[PriceBin] = Field(default_factory=list)
    negative_heatmap: NegativeHeatmap

    capacity_mw: Optional[float] = None
    data_points: int


# =============================================================================
# Battery
# =============================================================================

class BatteryConfig(BaseModel):
    """Co-located battery parameters"""
    model_config = ConfigDict(frozen=True)

    power_mw: float = Field(BATTERY_DEFAULTS.power_mw, gt=0, description="Nominal power [MW]")
    energy_mwh: float = Field(BATTERY_DEFAULTS.energy_mwh, gt=0, description="Nominal capacity [MWh]")
    efficiency: float = Field(BATTERY_DEFAULTS.efficiency, gt=0, le=1.0,
                              description="Round-trip efficiency (0-1]")
    one_cycle_per_day: bool = Field(True, description="Limit to one charge/discharge cycle per day")

    @property
    def one_way_efficiency(self) -> float:
        """Round-trip efficiency split evenly between charge and discharge"""
        return math.sqrt(self.efficiency)

    @property
    def hours_per_leg(self) -> int:
        """Candidate hours selected for each of charge and discharge per day"""
        if self.one_cycle_per_day:
            return math.ceil(self.energy_mwh / self.power_mw)
        return 24


class DailyBatteryResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: CalendarDate
    uplift: float           # EUR
    shifted: float          # MWh taken from PV into storage
    negative_avoided: float  # MWh
    negative_revenue: float  # EUR earned pre-battery in negative-price producing hours
    min_soc_mwh: float
    max_soc_mwh: float


class BatteryResult(BaseModel):
    """Aggregate battery uplift over the analysis period"""
    model_config = ConfigDict(frozen=True)

    total_uplift: float
    total_shifted_mwh: float
    effective_capture_price: float
    negative_reduction: float
    uplift_percentage: float
    daily_results: List[DailyBatteryResult] = Field(default_factory=list)
    config: BatteryConfig


# =============================================================================
# Representative Periods
# =============================================================================

class WeekWindow(BaseModel):
    """Contiguous slice of the aligned series with its metrics"""
    model_config = ConfigDict(frozen=True)

    data: List[AlignedRecord]
    start_date: datetime
    end_date: datetime
    volatility: float           # Population std of price [EUR/MWh]
    negative_hours: int
    avg_capture: float          # Capture price / mean price (ratio)

    @property
    def hours(self) -> int:
        return len(self.data)


class RepresentativeWeeks(BaseModel):
    """Weeks surfaced for charting; None when no window qualifies"""
    model_config = ConfigDict(frozen=True)

    typical: Optional[WeekWindow] = None
    volatile: Optional[WeekWindow] = None
    negative: Optional[WeekWindow] = None
    weeks_evaluated: int = 0


# =============================================================================
# Analysis Request / Result
# =============================================================================

class AnalysisRequest(BaseModel):
    """Inputs for one analysis run"""
    prices: List[PricePoint] = Field(..., description="Day-ahead prices, any order, may contain gaps")
    pv_profile: List[OutputPoint] = Field(..., description="Hourly PV output")
    capacity_mw: float = Field(..., gt=0, description="Installed PV capacity [MW] (informational)")
    market: str = Field(DEFAULT_MARKET, description="Bidding zone code")

    # Route to market
    route_to_market: RouteToMarket = Field(RouteToMarket.MERCHANT)
    ppa_price: Optional[float] = Field(None, description="PPA price [EUR/MWh]")
    use_floor: bool = Field(False)
    floor_price: Optional[float] = Field(None, description="Merchant floor [EUR/MWh]")

    # Battery
    enable_battery: bool = Field(False)
    battery: BatteryConfig = Field(default_factory=BatteryConfig)

    @field_validator("market")
    @classmethod
    def validate_market(cls, v):
        if v not in MARKETS:
            raise ValueError(f"Unsupported market: {v}")
        return v

    @model_validator(mode="after")
    def validate_route_to_market(self):
        if self.route_to_market == RouteToMarket.PPA and self.ppa_price is None:
            raise ValueError("ppa_price required for PPA route to market")
        if self.use_floor and self.floor_price is None:
            raise ValueError("floor_price required when use_floor is set")
        return self

    @property
    def timezone(self) -> str:
        return MARKETS[self.market].timezone

    def to_options(self) -> AnalysisOptions:
        return AnalysisOptions(
            floor_price=self.floor_price if self.use_floor else None,
            ppa_price=self.ppa_price if self.route_to_market == RouteToMarket.PPA else None,
        )


class AnalysisResult(BaseModel):
    """Everything one analysis run produces"""
    market: str
    timezone: str
    data_points: int
    kpis: KPIResult
    battery: Optional[BatteryResult] = None
    representative_weeks: RepresentativeWeeks
    info: Dict[str, Any] = Field(default_factory=dict)
