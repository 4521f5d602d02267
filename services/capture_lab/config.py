"""
Capture Lab Configuration
=========================
Engine constants, battery defaults and the bidding-zone registry.

The engine itself takes every parameter as a call argument; nothing here
is read from the environment.
"""

import os
from typing import Dict

from pydantic import BaseModel, Field

# Engine version for audit trail
ENGINE_VERSION = "1.0.0"

# Battery operating window (fraction of nominal energy)
MIN_SOC = 0.05
MAX_SOC = 0.95

# Representative-period windows
HOURS_PER_WEEK = 168        # 7 days * 24 hours
MIN_WEEK_HOURS = 120        # trailing window kept if at least 5 days

# Price histogram bin width [EUR/MWh]
PRICE_BIN_WIDTH = 10

DEFAULT_MARKET = "DE-LU"


class MarketConfig(BaseModel):
    """Single bidding zone"""
    code: str
    name: str
    timezone: str
    currency: str = "EUR"
    lat: float
    lon: float


class BatteryDefaults(BaseModel):
    """Default battery sizing offered to callers"""
    power_mw: float = 25.0
    energy_mwh: float = 50.0
    efficiency: float = 0.88


MARKETS: Dict[str, MarketConfig] = {
    "DE-LU": MarketConfig(
        code="DE-LU",
        name="Germany-Luxembourg",
        timezone="Europe/Berlin",
        currency="EUR",
        lat=51.1657,   # Central Germany
        lon=10.4515,
    ),
}

BATTERY_DEFAULTS = BatteryDefaults()


def get_market(code: str) -> MarketConfig:
    """Look up a bidding zone, raising ValueError for unknown codes"""
    try:
        return MARKETS[code]
    except KeyError:
        raise ValueError(
            f"Unsupported market: {code}. Supported: {', '.join(sorted(MARKETS))}"
        ) from None


def default_timezone() -> str:
    """Reference timezone used when no market is given"""
    return MARKETS[DEFAULT_MARKET].timezone


class ServiceConfig(BaseModel):
    """HTTP service settings"""
    title: str = "Capture Lab Service"
    description: str = "Solar capture-price KPIs and co-located battery uplift"
    version: str = ENGINE_VERSION
    host: str = "0.0.0.0"
    port: int = Field(8040, gt=0)

    @classmethod
    def from_env(cls) -> "ServiceConfig":
        return cls(port=int(os.environ.get("CAPTURE_LAB_PORT", 8040)))
