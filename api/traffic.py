"""
API Endpoint for Traffic Estimation

FastAPI app that:
1. Accepts a domain (and optionally pre-scraped HTML)
2. Runs the traffic estimation pipeline
3. Returns the estimate as camelCase JSON
"""

import logging
import sys
from datetime import date, datetime
from typing import Any, AsyncIterator, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field

from src.collector import ScrapedPage
from src.traffic import GeographyError, TrafficEstimationPipeline
from src.utils import get_settings, normalize_domain

# Configure logging to stdout
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stdout,
    force=True,
)
logger = logging.getLogger(__name__)

# Quiet down chatty loggers
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

app = FastAPI(
    title="Site Audit Traffic Engine",
    description="Deterministic traffic and business-classification estimates",
    version="0.1.0",
)


# ============================================================================
# REQUEST/RESPONSE MODELS
# ============================================================================

class TrafficEstimateRequest(BaseModel):
    """
    Request a traffic estimate.

    When html is supplied the page is not fetched.
    """
    domain: str
    html: Optional[str] = Field(
        default=None,
        description="Pre-scraped homepage HTML. Fetched from https://<domain> when omitted."
    )
    headers: Dict[str, str] = Field(
        default_factory=dict,
        description="Response headers that came with html"
    )
    as_of: Optional[date] = Field(
        default=None,
        description="Trend ends the month before this date (default: today)"
    )


class CountryTrafficModel(BaseModel):
    country: str
    percentage: float
    traffic: int


class TrendPointModel(BaseModel):
    month: str
    organic: int
    paid: int


class TrafficEstimateResponse(BaseModel):
    """Estimate as returned by TrafficEstimate.to_dict()."""
    domain: str
    monthlyOrganic: int
    monthlyPaid: int
    brandedTraffic: int
    nonBrandedTraffic: int
    topCountries: List[CountryTrafficModel]
    trend: List[TrendPointModel]
    dataSource: str
    confidence: str
    classification: Optional[Dict[str, Any]] = None
    megaSite: Optional[Dict[str, Any]] = None
    estimationPath: List[str]
    brandedSource: str
    apiUsage: Dict[str, int]


# ============================================================================
# DEPENDENCIES
# ============================================================================

async def get_pipeline() -> AsyncIterator[TrafficEstimationPipeline]:
    """One pipeline per request; branded clients are closed afterwards."""
    pipeline = TrafficEstimationPipeline.from_settings(get_settings())
    try:
        yield pipeline
    finally:
        await pipeline.close()


# ============================================================================
# API ENDPOINTS
# ============================================================================

@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "Site Audit Traffic Engine"}


@app.get("/api/health")
async def health():
    settings = get_settings()
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": "0.1.0",
        "branded_apis": "configured" if settings.has_branded_apis else "not configured",
    }


@app.post("/api/traffic/estimate", response_model=TrafficEstimateResponse)
async def estimate(
    request: TrafficEstimateRequest,
    pipeline: TrafficEstimationPipeline = Depends(get_pipeline),
):
    """
    Estimate monthly traffic for a domain.

    Every response carries dataSource and confidence; figures are estimates,
    not measurements.
    """
    domain = normalize_domain(request.domain)
    if not domain or "." not in domain:
        raise HTTPException(status_code=400, detail=f"Invalid domain: {request.domain!r}")

    page = None
    if request.html is not None:
        page = ScrapedPage(domain=domain, html=request.html, headers=request.headers)

    logger.info(f"Traffic estimate requested: {domain} (html supplied: {page is not None})")

    try:
        result = await pipeline.run(domain, page=page, as_of=request.as_of)
    except GeographyError as e:
        logger.error(f"Geography inference failed for {domain}: {e}")
        raise HTTPException(status_code=500, detail=f"Geography inference failed: {e}")

    return result.to_dict()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.traffic:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
