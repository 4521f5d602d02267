"""
Capture Lab Service
===================
FastAPI service exposing the capture-price analytics engine.

Endpoints:
- POST /analyze - Full run: align, KPIs, optional battery, representative weeks
- POST /kpis - Capture and risk KPIs only
- POST /battery - Battery uplift simulation only
- POST /representative-weeks - Typical / volatile / negative weeks only
- GET /health - Health check
- GET /info - Service info and capabilities

Port: 8040 (CAPTURE_LAB_PORT)
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from pydantic import BaseModel, Field

from .aligner import align_data
from .analysis import run_analysis
from .battery_engine import simulate_battery
from .config import DEFAULT_MARKET, ENGINE_VERSION, MARKETS, ServiceConfig, get_market
from .errors import InsufficientDataError
from .kpi_engine import calculate_kpis
from .models import (
    AlignedRecord,
    AnalysisOptions,
    AnalysisRequest,
    AnalysisResult,
    BatteryConfig,
    BatteryResult,
    KPIResult,
    OutputPoint,
    PricePoint,
    RepresentativeWeeks,
)
from .periods import find_representative_weeks

logger = logging.getLogger(__name__)

service_config = ServiceConfig()


# =============================================================================
# Application Setup
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    logger.info("Capture Lab Service starting (engine %s)...", ENGINE_VERSION)
    yield
    logger.info("Capture Lab Service shutting down...")


app = FastAPI(
    title=service_config.title,
    description=service_config.description,
    version=service_config.version,
    lifespan=lifespan,
)

Instrumentator().instrument(app).expose(app)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Health and Info Endpoints
# =============================================================================

class HealthResponse(BaseModel):
    status: str
    service: str
    version: str


class ServiceInfo(BaseModel):
    name: str
    version: str
    description: str
    markets: List[str]
    features: List[str]


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint"""
    return HealthResponse(
        status="healthy",
        service="capture-lab",
        version=ENGINE_VERSION,
    )


@app.get("/info", response_model=ServiceInfo)
async def service_info():
    """Service information and capabilities"""
    return ServiceInfo(
        name=service_config.title,
        version=ENGINE_VERSION,
        description=service_config.description,
        markets=sorted(MARKETS),
        features=[
            "Price/PV timestamp alignment",
            "Baseload vs capture price and capture rate",
            "Negative-price exposure and month x hour heatmap",
            "Merchant (with floor) and PPA revenue",
            "P5/P50/P95 monthly revenue risk",
            "Price distribution histogram",
            "Greedy daily battery arbitrage uplift",
            "Representative weeks (typical, volatile, negative)",
        ],
    )


# =============================================================================
# Stage Requests
# =============================================================================

class SeriesRequestAPI(BaseModel):
    """Raw series shared by all single-stage endpoints"""
    prices: List[PricePoint] = Field(..., description="Day-ahead prices")
    pv_profile: List[OutputPoint] = Field(..., description="Hourly PV output")
    market: str = Field(DEFAULT_MARKET, description="Bidding zone code")


class KPIRequestAPI(SeriesRequestAPI):
    capacity_mw: Optional[float] = Field(None, gt=0)
    floor_price: Optional[float] = None
    ppa_price: Optional[float] = None


class BatteryRequestAPI(SeriesRequestAPI):
    battery: BatteryConfig = Field(default_factory=BatteryConfig)


def _align(request: SeriesRequestAPI) -> List[AlignedRecord]:
    market = get_market(request.market)
    aligned = align_data(request.prices, request.pv_profile, market.timezone)
    if not aligned:
        raise InsufficientDataError("No aligned data available. Please check the date range.")
    return aligned


# =============================================================================
# Analysis Endpoints
# =============================================================================

@app.post("/analyze", response_model=AnalysisResult)
def analyze(request: AnalysisRequest):
    """
    Run the full analysis.

    Returns capture KPIs, battery uplift (when enable_battery is set) and
    representative weeks for the aligned period.
    """
    try:
        return run_analysis(request)
    except ValueError as e:
        raise HTTPException(400, str(e))
    except Exception as e:
        logger.exception("Analysis failed")
        raise HTTPException(500, f"Analysis error: {str(e)}")


@app.post("/kpis", response_model=KPIResult)
def kpis(request: KPIRequestAPI):
    """Capture price, capture rate, negative exposure, revenue and risk"""
    try:
        aligned = _align(request)
        options = AnalysisOptions(floor_price=request.floor_price, ppa_price=request.ppa_price)
        return calculate_kpis(aligned, request.capacity_mw, options)
    except ValueError as e:
        raise HTTPException(400, str(e))
    except Exception as e:
        logger.exception("KPI calculation failed")
        raise HTTPException(500, f"KPI error: {str(e)}")


@app.post("/battery", response_model=BatteryResult)
def battery(request: BatteryRequestAPI):
    """Greedy daily battery dispatch uplift"""
    start_time = time.time()
    try:
        result = simulate_battery(_align(request), request.battery)
        logger.info("Battery simulation took %.1f ms", (time.time() - start_time) * 1000)
        return result
    except ValueError as e:
        raise HTTPException(400, str(e))
    except Exception as e:
        logger.exception("Battery simulation failed")
        raise HTTPException(500, f"Battery error: {str(e)}")


@app.post("/representative-weeks", response_model=RepresentativeWeeks)
def representative_weeks(request: SeriesRequestAPI):
    """Typical, most volatile and most negative weeks"""
    try:
        return find_representative_weeks(_align(request))
    except ValueError as e:
        raise HTTPException(400, str(e))
    except Exception as e:
        logger.exception("Representative period selection failed")
        raise HTTPException(500, f"Period selection error: {str(e)}")


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    config = ServiceConfig.from_env()
    uvicorn.run(app, host=config.host, port=config.port)
