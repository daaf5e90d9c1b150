"""Health check endpoints."""

import asyncio
from enum import Enum

from fastapi import APIRouter
from pydantic import BaseModel, Field

from enrichment_hub.api.dependencies import FactoryDep, SettingsDep
from enrichment_hub.commons.infrastructure.health import HealthStatus as ProbeResult
from enrichment_hub.commons.telemetry import get_logger
from enrichment_hub.infrastructure.factory import InfrastructureFactory

router = APIRouter()
logger = get_logger(__name__)


class HealthStatus(str, Enum):
    """Health check status."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class ComponentHealth(BaseModel):
    """Health status of a single component."""

    name: str = Field(description="Component name")
    status: HealthStatus = Field(description="Component health status")
    latency_ms: float | None = Field(default=None, description="Probe latency")
    message: str | None = Field(default=None, description="Additional details")


class HealthResponse(BaseModel):
    """Health check response."""

    status: HealthStatus = Field(description="Overall health status")
    version: str = Field(description="Application version")
    environment: str = Field(description="Deployment environment")
    components: list[ComponentHealth] = Field(
        default_factory=list,
        description="Individual component health",
    )


class LivenessResponse(BaseModel):
    """Simple liveness response."""

    status: str = Field(default="ok")


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool = Field(description="Whether the service is ready to accept requests")
    checks: dict[str, bool] = Field(
        default_factory=dict,
        description="Individual readiness checks",
    )


async def _probe_stores(factory: InfrastructureFactory) -> dict[str, ProbeResult]:
    """Run the document and vector store health checks concurrently."""
    names = ("document_db", "vector_db")
    results = await asyncio.gather(
        factory.get_document_db().health_check(),
        factory.get_vector_db().health_check(),
        return_exceptions=True,
    )

    probes: dict[str, ProbeResult] = {}
    for name, result in zip(names, results, strict=True):
        if isinstance(result, BaseException):
            logger.warning(
                "Health probe raised", extra={"component": name, "error": str(result)}
            )
            probes[name] = ProbeResult(healthy=False, latency_ms=0.0, message=str(result))
        else:
            probes[name] = result
    return probes


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Get overall health status of the service and its stores.",
)
async def health_check(
    settings: SettingsDep,
    factory: FactoryDep,
) -> HealthResponse:
    probes = await _probe_stores(factory)
    components = [
        ComponentHealth(
            name=name,
            status=HealthStatus.HEALTHY if probe.healthy else HealthStatus.UNHEALTHY,
            latency_ms=round(probe.latency_ms, 2),
            message=probe.message,
        )
        for name, probe in probes.items()
    ]

    unhealthy = sum(1 for c in components if c.status == HealthStatus.UNHEALTHY)
    if unhealthy == 0:
        overall = HealthStatus.HEALTHY
    elif unhealthy < len(components):
        overall = HealthStatus.DEGRADED
    else:
        overall = HealthStatus.UNHEALTHY

    components.append(
        ComponentHealth(
            name="enrichment_worker",
            status=HealthStatus.HEALTHY
            if factory.worker_configured
            else HealthStatus.DEGRADED,
            message=None if factory.worker_configured else "worker.base_url not set",
        )
    )

    return HealthResponse(
        status=overall,
        version=settings.app.version,
        environment=settings.app.environment,
        components=components,
    )


@router.get(
    "/health/live",
    response_model=LivenessResponse,
    summary="Liveness probe",
    description="Simple liveness check for Kubernetes probes.",
)
async def liveness() -> LivenessResponse:
    return LivenessResponse(status="ok")


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness probe",
    description="Ready when both the document store and the vector store answer.",
)
async def readiness(factory: FactoryDep) -> ReadinessResponse:
    probes = await _probe_stores(factory)
    checks = {name: probe.healthy for name, probe in probes.items()}
    return ReadinessResponse(ready=all(checks.values()), checks=checks)
