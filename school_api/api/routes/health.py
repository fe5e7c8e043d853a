"""Health & Readiness Probes - liveness and readiness endpoints for container orchestration.

Invariants:
    - GET /health/ always returns 200 if process is up (liveness)
    - GET /health/ready returns 503 if any wired database is unreachable (readiness)
    - Both report the instance's service type; neither is gated by it

Design Decisions:
    - Separate liveness/readiness: liveness restarts, readiness removes from load balancer
"""

import logging
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from school_api import __version__

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check(request: Request):
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "school-api",
        "service_type": request.app.state.policy.service_type.value,
        "version": __version__,
    }


@router.get("/ready")
async def readiness_check(request: Request):
    """Readiness probe: checks the command and query connections this instance uses."""
    managers = getattr(request.app.state, "databases", None)
    service_type = request.app.state.policy.service_type.value
    if managers is None:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "reason": "database_not_initialized"},
        )

    checks = {}
    if managers.command is not None:
        checks["command_database"] = await managers.command.health_check()
    if managers.query is managers.command:
        checks["query_database"] = checks["command_database"]
    else:
        checks["query_database"] = await managers.query.health_check()

    if not all(checks.values()):
        logger.warning(
            f"Readiness failed: {checks}", extra={"service_type": service_type},
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "database_unavailable",
                "service_type": service_type,
                "checks": {k: "healthy" if ok else "unavailable" for k, ok in checks.items()},
            },
        )
    return {
        "status": "ready",
        "service_type": service_type,
        "checks": {k: "healthy" for k in checks},
    }
