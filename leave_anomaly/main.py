"""
FastAPI application serving the leave pattern analyzer.
Provides REST API endpoints for dashboards and monitoring.
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

from leave_anomaly.config import settings
from leave_anomaly.engine import get_analyzer
from leave_anomaly.sample_data import get_team_requests
from leave_anomaly.team import analyze_team

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# Pydantic models for API
class AnalyzeRequest(BaseModel):
    """Request model for single-employee analysis."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "employeeId": "E001",
                "employeeName": "John Doe",
                "leaveRecords": [
                    {
                        "_id": "LR-1",
                        "leaveTypeId": "SL",
                        "dates": {"from": "2025-06-02", "to": "2025-06-02"},
                        "durationDays": 1,
                        "status": "approved",
                        "appliedOn": "2025-06-02T08:30:00Z",
                    }
                ],
            }
        },
    )

    employee_id: str = Field(..., alias="employeeId", description="Employee identifier")
    employee_name: str = Field(
        "Unknown", alias="employeeName", description="Display name, never affects the score"
    )
    leave_records: list[dict[str, Any]] = Field(
        default_factory=list, alias="leaveRecords", description="Raw leave requests"
    )


class TeamRequest(BaseModel):
    """Request model for team analysis."""

    model_config = ConfigDict(populate_by_name=True)

    requests: list[dict[str, Any]] = Field(
        default_factory=list, description="Leave requests for any number of employees"
    )
    min_risk_score: int | None = Field(
        None,
        alias="minRiskScore",
        ge=0,
        le=100,
        description="Only return employees scoring above this; defaults to the dashboard threshold",
    )
    include_all: bool = Field(
        False, alias="includeAll", description="Return every employee regardless of score"
    )


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    environment: str
    detectors: list[dict]


# Lifespan context manager for startup/shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown events."""
    logger.info("Starting Leave Pattern Analysis API")
    logger.info(f"Environment: {settings.environment}")

    get_analyzer()

    yield

    logger.info("Shutting down Leave Pattern Analysis API")


# Create FastAPI app
app = FastAPI(
    title="Leave Pattern Analysis API",
    description="Flags suspicious absence patterns in employee leave history",
    version="1.0.0",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _team_threshold(request: TeamRequest) -> int | None:
    if request.include_all:
        return None
    if request.min_risk_score is not None:
        return request.min_risk_score
    return settings.dashboard_risk_threshold


# API Endpoints


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint."""
    return {"message": "Leave Pattern Analysis API", "version": "1.0.0", "docs": "/docs"}


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """
    Health check endpoint.
    Returns service status and per-detector health.
    """
    return HealthResponse(
        status="healthy",
        environment=settings.environment,
        detectors=get_analyzer().get_detector_states(),
    )


@app.get("/ready")
def ready():
    return {"status": "ready"}


@app.post("/patterns/analyze", tags=["Patterns"])
def analyze(request: AnalyzeRequest):
    """
    Analyze one employee's leave history.

    Malformed records are skipped and counted in ``diagnostics``; they
    never fail the request.
    """
    try:
        result = get_analyzer().analyze(
            request.employee_id, request.employee_name, request.leave_records
        )
        return result.to_dict()

    except Exception as e:
        logger.error(f"Error in /patterns/analyze endpoint: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred analyzing leave patterns. Please try again.",
        ) from e


@app.post("/patterns/team", tags=["Patterns"])
def analyze_team_endpoint(request: TeamRequest):
    """
    Analyze a team's leave requests, grouped by ``employeeId``.

    By default only employees above the configured dashboard threshold are
    returned. Set ``minRiskScore`` to change the cutoff or ``includeAll``
    to disable it.
    """
    try:
        team = analyze_team(
            request.requests,
            min_risk_score=_team_threshold(request),
            max_workers=settings.team_max_workers,
            analyzer=get_analyzer(),
        )
        return team.to_dict()

    except Exception as e:
        logger.error(f"Error in /patterns/team endpoint: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred analyzing team leave patterns. Please try again.",
        ) from e


@app.get("/patterns/demo", tags=["Patterns"])
def demo(include_all: bool = False):
    """Team analysis over the bundled sample requests."""
    team = analyze_team(
        get_team_requests(),
        min_risk_score=None if include_all else settings.dashboard_risk_threshold,
        analyzer=get_analyzer(),
    )
    return team.to_dict()


@app.get("/metrics", tags=["Monitoring"])
async def metrics():
    """
    Monitoring endpoint.

    Returns:
    - Per-detector run and failure counts
    - Active thresholds
    - Environment
    """
    analyzer = get_analyzer()

    return {
        "detectors": analyzer.get_detector_states(),
        "thresholds": analyzer.config.model_dump(),
        "dashboard_risk_threshold": settings.dashboard_risk_threshold,
        "environment": settings.environment,
    }


if __name__ == "__main__":
    uvicorn.run(
        "leave_anomaly.main:app",
        host="0.0.0.0",
        port=int(os.environ.get("PORT", 8080)),
        reload=settings.environment == "development",
        log_level=settings.log_level.lower(),
    )
