"""Liveness and readiness probes."""

import time
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import APIRouter, Response, status

from src.api.deps import SettingsDep
from src.core.stripe import check_payment_processor
from src.core.supabase import check_database_connection
from src.schemas.common import CheckResult, HealthResponse, HealthStatus, ReadinessResponse

router = APIRouter(tags=["health"])


async def _timed(name: str, check: Callable[[], Awaitable[dict[str, Any]]]) -> CheckResult:
    start = time.perf_counter()
    result = await check()
    return CheckResult(
        name=name,
        healthy=result["healthy"],
        latency_ms=round((time.perf_counter() - start) * 1000, 2),
        error=result.get("error"),
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Liveness check",
    description="Returns 200 while the process is serving requests. Dependencies are not checked.",
)
async def health_check() -> HealthResponse:
    """Report that the process is alive."""
    return HealthResponse(status=HealthStatus.HEALTHY)


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    responses={
        200: {"description": "Orders can be taken and paid for"},
        503: {"description": "Database unreachable or payments not configured"},
    },
    summary="Readiness check",
    description="Checks the order store and the payment processor configuration.",
)
async def readiness_check(response: Response, settings: SettingsDep) -> ReadinessResponse:
    """Check whether the service can take and charge orders.

    Args:
        response: Used to switch the status code to 503.
        settings: Settings holding the payment processor keys.

    Returns:
        ReadinessResponse: One entry per dependency.
    """
    checks = [
        await _timed("database", check_database_connection),
        await _timed("payments", lambda: check_payment_processor(settings)),
    ]

    ready = all(check.healthy for check in checks)
    if not ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return ReadinessResponse(
        status=HealthStatus.HEALTHY if ready else HealthStatus.UNHEALTHY,
        checks=checks,
    )
