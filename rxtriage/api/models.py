"""Response models for the HTTP API."""

from datetime import datetime
from typing import Any, Dict, List, Literal

from pydantic import BaseModel, Field

from rxtriage.domain.summary import RiskSummary


class HealthResponse(BaseModel):
    """Health check response model.

    Attributes:
        status: Overall service status
        timestamp: Current timestamp
        version: Application version
    """
    status: Literal["healthy", "degraded", "unhealthy"]
    timestamp: datetime
    version: str


class ScoreResponse(BaseModel):
    """Scored batch returned to the dashboard.

    Attributes:
        source: Uploaded file name
        record_count: Number of scored records
        elapsed_seconds: Parse + score time
        summary: Batch summary
        records: Scored records keyed by CSV column names, in upload order
    """
    source: str
    record_count: int
    elapsed_seconds: float
    summary: RiskSummary
    records: List[Dict[str, Any]] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Error body for rejected uploads."""
    error: str
    detail: str
