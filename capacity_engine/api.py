"""
FastAPI Backend for the Capacity Engine

Serves capacity series for users, departments, accounts and the whole
organization. Authorization happens upstream.
"""

import logging
from datetime import datetime
from typing import Optional
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from .calculator import CapacityCalculator
from .config import Config, CapacityPolicy
from .integrations import PostgrestDataSource
from .periods import Granularity
from .service import CapacityService, Scope, ScopeKind

logger = logging.getLogger(__name__)


config = Config()
policy = CapacityPolicy.from_config(config)


# Pydantic models for API
class CapacityPointModel(BaseModel):
    label: str
    startDate: str
    endDate: str
    available: float
    allocated: float
    actual: float
    utilization: int


class CapacitySummaryModel(BaseModel):
    periods: int
    totalAvailable: float
    totalAllocated: float
    totalActual: float
    utilization: int
    remainingCapacity: float


class MemberCapacityModel(BaseModel):
    userId: str
    data: list[CapacityPointModel]
    summary: CapacitySummaryModel


class ScopeModel(BaseModel):
    kind: str
    id: Optional[str] = None


class CapacityResponse(BaseModel):
    success: bool = True
    data: list[CapacityPointModel]
    summary: CapacitySummaryModel
    period: str
    scope: ScopeModel
    teamSize: Optional[int] = None
    members: Optional[list[MemberCapacityModel]] = None


def get_service() -> CapacityService:
    """Capacity service backed by the configured database."""
    try:
        source = PostgrestDataSource(url=config.supabase_url, key=config.supabase_key)
    except ValueError as e:
        logger.error("Database connection not available: %s", e)
        raise HTTPException(status_code=500, detail="Database connection not available")
    return CapacityService(source, policy=policy)


# Lifespan context manager
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logging.basicConfig(level=config.log_level)
    logger.info("Capacity Engine API starting up")
    yield
    logger.info("Capacity Engine API shutting down")


# Create FastAPI app
app = FastAPI(
    title="Capacity Engine",
    description="API for capacity allocation and utilization series",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


async def _capacity_response(
    service: CapacityService,
    kind: ScopeKind,
    scope_id: Optional[str],
    period: str,
    include_members: bool = False
) -> dict:
    """Compute a series and shape it for JSON."""
    try:
        granularity = Granularity.parse(period)
        scope = Scope(kind, scope_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        if include_members:
            breakdown = await service.compute_breakdown(scope, granularity)
            points = list(breakdown.points)
        else:
            breakdown = None
            points = await service.compute_capacity(scope, granularity)
    except Exception as e:
        logger.exception("Capacity computation failed for %s/%s", kind.value, scope_id)
        raise HTTPException(status_code=500, detail=str(e))

    summary = CapacityCalculator.summarize(points)
    result = {
        "success": True,
        "data": [p.to_dict() for p in points],
        "summary": summary.to_dict(),
        "period": granularity.value,
        "scope": scope.to_dict()
    }
    if breakdown is not None:
        result["teamSize"] = breakdown.team_size
        result["members"] = [m.to_dict() for m in breakdown.members]
    return result


# Health check
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "integrations": {
            "supabase": config.supabase_url is not None and config.supabase_key is not None
        }
    }


# Capacity endpoints
@app.get("/api/capacity/history", response_model=CapacityResponse)
async def get_user_capacity(
    userId: Optional[str] = None,
    period: str = "weekly",
    service: CapacityService = Depends(get_service)
):
    """Capacity series for a single user."""
    return await _capacity_response(service, ScopeKind.USER, userId, period)


@app.get("/api/capacity/department", response_model=CapacityResponse)
async def get_department_capacity(
    departmentId: Optional[str] = None,
    period: str = "weekly",
    includeMembers: bool = False,
    service: CapacityService = Depends(get_service)
):
    """Capacity series for everyone holding a role in a department."""
    return await _capacity_response(service, ScopeKind.DEPARTMENT, departmentId, period, includeMembers)


@app.get("/api/capacity/account", response_model=CapacityResponse)
async def get_account_capacity(
    accountId: Optional[str] = None,
    period: str = "weekly",
    includeMembers: bool = False,
    service: CapacityService = Depends(get_service)
):
    """Capacity series for the people working on a client account."""
    return await _capacity_response(service, ScopeKind.ACCOUNT, accountId, period, includeMembers)


@app.get("/api/capacity/organization", response_model=CapacityResponse)
async def get_organization_capacity(
    period: str = "weekly",
    includeMembers: bool = False,
    service: CapacityService = Depends(get_service)
):
    """Capacity series for the whole organization."""
    return await _capacity_response(service, ScopeKind.ORG, None, period, includeMembers)


# Run with: uvicorn capacity_engine.api:app --reload
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
