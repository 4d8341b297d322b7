"""
Health check endpoints.

Health checks are essential for:
- Load balancers to know if the service is alive
- Monitoring systems to track availability
- Deployment systems to verify rollouts

We provide two endpoints:
- /health: Basic liveness check (is the process running?)
- /health/ready: Readiness check (is every dependency configured?)

Neither endpoint calls Azure. Readiness reports configuration only;
a missing service degrades individual operations rather than the process.
"""

import logging
from typing import Any

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ... import __version__
from ..dependencies import SettingsDep

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    """
    Health check response.

    Standardized format makes it easy for monitoring tools to parse.
    """
    status: str
    version: str
    details: dict[str, Any] = {}


class ReadinessCheck(BaseModel):
    """Individual readiness check result."""
    name: str
    status: str  # "ok" or "error"
    error: str | None = None


class ReadinessResponse(BaseModel):
    """Readiness check response with details."""
    status: str  # "ready" or "not_ready"
    version: str
    checks: list[ReadinessCheck]


@router.get(
    "",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
    description="Returns 200 if the service is running. Does not check dependencies.",
)
def health_check(settings: SettingsDep) -> HealthResponse:
    """
    Liveness check - is the process alive?

    This endpoint should be very fast and not check external dependencies.
    """
    return HealthResponse(
        status="ok",
        version=__version__,
        details={
            "configured": {
                "storage": settings.storage_configured,
                "cosmos": settings.cosmos_configured,
            },
            "mock_mode": {
                "storage": settings.storage_mock_mode,
                "cosmos": settings.cosmos_mock_mode,
            },
        }
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    status_code=status.HTTP_200_OK,
    summary="Readiness check",
    description="Returns 200 if every dependency is configured, 503 otherwise.",
    responses={
        503: {
            "description": "Service not ready",
            "model": ReadinessResponse,
        }
    },
)
def readiness_check(settings: SettingsDep):
    """
    Readiness check - can we serve every operation?

    Returns 503 if any dependency is unconfigured, which tells load
    balancers not to route traffic here.
    """
    checks = [
        ReadinessCheck(
            name="storage",
            status="ok" if settings.storage_configured else "error",
            error=None if settings.storage_configured else "Storage account is not configured",
        ),
        ReadinessCheck(
            name="cosmos",
            status="ok" if settings.cosmos_configured else "error",
            error=None if settings.cosmos_configured else "Cosmos DB is not configured",
        ),
    ]
    all_ok = all(check.status == "ok" for check in checks)

    response = ReadinessResponse(
        status="ready" if all_ok else "not_ready",
        version=__version__,
        checks=checks,
    )

    if not all_ok:
        logger.warning(
            "Readiness check failed",
            extra={"missing_fields": settings.validate_required_fields()}
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=response.model_dump(),
        )

    return response
