"""
Health Check Endpoints
======================

Liveness and readiness probes for container orchestration.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Literal

from fastapi import APIRouter, Request, Response, status
from pydantic import BaseModel, Field

from claimcheck.infrastructure.config import get_settings

router = APIRouter()
logger = logging.getLogger(__name__)


class HealthStatus(BaseModel):
    """Health check response model."""

    status: Literal["healthy", "degraded", "unhealthy"]
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    version: str
    environment: str
    checks: dict[str, bool] = Field(default_factory=dict)


class ReadinessStatus(BaseModel):
    """Readiness check response with service details."""

    ready: bool
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    services: dict[str, dict[str, bool | str]] = Field(default_factory=dict)


@router.get(
    "/live",
    response_model=HealthStatus,
    status_code=status.HTTP_200_OK,
    summary="Liveness probe",
    description="Check if the API is alive and responding.",
)
async def liveness() -> HealthStatus:
    """
    Liveness probe for container orchestration.

    Always returns healthy if the service is running.
    """
    settings = get_settings()
    return HealthStatus(
        status="healthy",
        version=settings.api.version,
        environment=settings.environment,
    )


@router.get(
    "/ready",
    response_model=ReadinessStatus,
    status_code=status.HTTP_200_OK,
    summary="Readiness probe",
    description="Check the cache and every reasoning backend.",
    responses={503: {"model": ReadinessStatus}},
)
async def readiness(request: Request, response: Response) -> ReadinessStatus:
    """
    Readiness probe checking all service dependencies.

    Returns ready=True (HTTP 200) only if every dependency answers;
    otherwise HTTP 503.
    """
    container = getattr(request.app.state, "container", None)
    if container is None:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return ReadinessStatus(
            ready=False,
            services={"container": {"connected": False, "status": "not_initialized"}},
        )

    try:
        checks = await container.health()
    except Exception as e:
        logger.warning(f"Readiness check failed: {e}")
        checks = {}

    services: dict[str, dict[str, bool | str]] = {
        name: {"connected": ok, "status": "ok" if ok else "unavailable"}
        for name, ok in checks.items()
    }
    all_ready = bool(services) and all(svc["connected"] for svc in services.values())
    if not all_ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return ReadinessStatus(ready=all_ready, services=services)


@router.get(
    "",
    response_model=HealthStatus,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
    description="Simple health check endpoint.",
)
async def health() -> HealthStatus:
    """Basic health check - alias for liveness."""
    return await liveness()
