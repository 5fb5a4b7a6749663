"""Health Probes — liveness never touches the database, readiness does.

Invariants:
    - GET /api/v1/health/ is 200 whenever the process serves requests
    - GET /api/v1/health/ready is 503 until init_db ran and SELECT 1 succeeds
"""

import time

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from togeeat import __version__
from togeeat.infrastructure import database

router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def liveness():
    return {"status": "healthy", "service": "togeeat-matching-api", "version": __version__}


@router.get("/ready")
async def readiness():
    # read at call time: tests and the lifespan swap the manager
    manager = database.db_manager
    started = time.perf_counter()
    if manager is None or not await manager.health_check():
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "reason": "database_unavailable"},
        )
    return {
        "status": "ready",
        "checks": {"database": "healthy"},
        "latency_ms": round((time.perf_counter() - started) * 1000, 1),
    }
