"""Schemas shared across routers: health probes and the error envelope."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

API_VERSION = "0.1.0"


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


class HealthStatus(str, Enum):
    """Health check status values."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class HealthResponse(BaseModel):
    """Liveness probe body."""

    status: HealthStatus = Field(description="Current health status")
    timestamp: datetime = Field(default_factory=utcnow, description="Check timestamp")
    version: str = Field(default=API_VERSION, description="API version")


class CheckResult(BaseModel):
    """Outcome of one readiness check (database, payment processor)."""

    name: str = Field(description="Checked dependency")
    healthy: bool = Field(description="Whether the dependency is usable")
    latency_ms: float | None = Field(default=None, description="Time the check took in milliseconds")
    error: str | None = Field(default=None, description="Failure reason when unhealthy")


class ReadinessResponse(BaseModel):
    """Readiness probe body."""

    status: HealthStatus = Field(description="Overall readiness")
    timestamp: datetime = Field(default_factory=utcnow, description="Check timestamp")
    checks: list[CheckResult] = Field(default_factory=list, description="Individual check results")


class ErrorDetail(BaseModel):
    """One field-level problem, or the status reported by the payment processor."""

    loc: list[str] | None = Field(default=None, description="Path of the offending field")
    msg: str = Field(description="Human-readable detail")
    type: str = Field(description="Detail category")


class ErrorResponse(BaseModel):
    """Body of every error produced by the error middleware."""

    error: str = Field(description="Error category, e.g. not_found or business_rule_error")
    message: str = Field(description="Human-readable error description")
    details: list[ErrorDetail] | None = Field(default=None, description="Additional error details")
    request_id: str | None = Field(default=None, description="Caller-supplied X-Request-ID")
    timestamp: datetime = Field(default_factory=utcnow, description="Error timestamp")

    @classmethod
    def from_exception(
        cls,
        error_type: str,
        message: str,
        details: list[dict[str, Any]] | None = None,
        request_id: str | None = None,
    ) -> "ErrorResponse":
        """Build the envelope from an error's category, message and raw details."""
        parsed = None
        if details:
            parsed = [
                ErrorDetail(loc=d.get("loc"), msg=d.get("msg", str(d)), type=d.get("type", "error"))
                for d in details
            ]
        return cls(error=error_type, message=message, details=parsed, request_id=request_id)
