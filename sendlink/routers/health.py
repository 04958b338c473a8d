# sendlink/routers/health.py
# Health check endpoints for monitoring and load balancers
# Provides liveness and readiness probes

import time
import asyncio
import logging
from typing import Awaitable, Callable, Dict, Any
from fastapi import APIRouter, Request, Response, status
from pydantic import BaseModel

from sendlink.db.base import ping_database

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

CHECK_TIMEOUT_SECONDS = 2.0


class HealthStatus(BaseModel):
    """Health check response model."""
    status: str  # "healthy", "unhealthy"
    timestamp: float
    version: str = "1.0.0"
    checks: Dict[str, Dict[str, Any]] = {}


class ComponentHealth(BaseModel):
    """Individual component health."""
    status: str
    latency_ms: float = 0.0
    message: str = ""


async def _timed_check(name: str, probe: Callable[[], Awaitable[bool]]) -> ComponentHealth:
    start = time.time()
    try:
        ok = await asyncio.wait_for(probe(), timeout=CHECK_TIMEOUT_SECONDS)
        latency_ms = (time.time() - start) * 1000
        if not ok:
            return ComponentHealth(
                status="unhealthy",
                latency_ms=latency_ms,
                message=f"{name} returned unexpected result"
            )
        return ComponentHealth(status="healthy", latency_ms=latency_ms, message="ok")
    except asyncio.TimeoutError:
        return ComponentHealth(
            status="unhealthy",
            latency_ms=(time.time() - start) * 1000,
            message=f"{name} timeout"
        )
    except Exception as e:
        logger.error(f"{name} health check failed: {e}")
        return ComponentHealth(
            status="unhealthy",
            latency_ms=(time.time() - start) * 1000,
            message=f"{name} error: {type(e).__name__}"
        )


async def check_database_health(request: Request) -> ComponentHealth:
    """Share link database: round trip through the engine."""
    return await _timed_check("Database", lambda: ping_database(request.app.state.engine))


async def check_kv_health(request: Request) -> ComponentHealth:
    """Board key-value store: ping."""
    return await _timed_check("Key-value store", request.app.state.kv.ping)


@router.get("/health", response_model=HealthStatus)
async def health_check(request: Request, response: Response):
    """
    Full health check endpoint.
    Returns status of all components.
    """
    checks = {}
    for name, check in (("database", check_database_health), ("kv", check_kv_health)):
        result = await check(request)
        checks[name] = {
            "status": result.status,
            "latency_ms": round(result.latency_ms, 2),
            "message": result.message
        }

    statuses = [c["status"] for c in checks.values()]
    if "unhealthy" in statuses:
        overall_status = "unhealthy"
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        overall_status = "healthy"
        response.status_code = status.HTTP_200_OK

    return HealthStatus(
        status=overall_status,
        timestamp=time.time(),
        checks=checks
    )


@router.get("/health/live")
async def liveness_probe():
    """
    Kubernetes liveness probe.
    Returns 200 if the application is running.
    Does NOT check external dependencies.
    """
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness_probe(request: Request, response: Response):
    """
    Kubernetes readiness probe.
    Returns 200 only if both stores answer.
    """
    for check in (check_database_health, check_kv_health):
        result = await check(request)
        if result.status == "unhealthy":
            response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
            return {
                "status": "not_ready",
                "reason": result.message
            }

    return {"status": "ready"}
