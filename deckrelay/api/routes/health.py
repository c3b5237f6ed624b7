"""Health & Readiness Probes — liveness and readiness endpoints for container orchestration.

Invariants:
    - GET /health/ always returns 200 if process is up (liveness)
    - GET /health/ready returns 503 if the database is unreachable or the
      serial queue has been closed (readiness)

Design Decisions:
    - Separate liveness/readiness: liveness restarts, readiness removes from
      load balancer (ADR: production readiness)
    - Queue counters reported alongside checks: the one place to see backlog
      and coalescing without reading logs
"""

import logging
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

import deckrelay.infrastructure.database as db_module

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "deckrelay",
        "version": "1.0.0",
    }


@router.get("/ready")
async def readiness_check(request: Request):
    """Readiness probe — database connectivity and queue state."""
    manager = db_module.db_manager
    db_ok = await manager.health_check() if manager else False
    runtime = request.app.state.relay
    if not db_ok or runtime.queue.closed:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "database_unavailable" if not db_ok else "queue_closed",
            },
        )
    return {
        "status": "ready",
        "checks": {"database": "healthy", "queue": "open"},
        "relay": runtime.stats(),
    }
