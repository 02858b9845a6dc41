"""Health Probes: is the process up, and can it serve a search right now.

Invariants:
    - GET /health/ never touches the database or GitHub
    - GET /health/ready is 200 only when the cache database answers and the
      GitHub client has been initialized; otherwise 503 with every check listed
"""

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

import reposearch.infrastructure.database as db_module
import reposearch.infrastructure.github_client as github_module

router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/")
async def liveness(request: Request):
    return {"status": "alive", "version": request.app.version}


@router.get("/ready")
async def readiness():
    """Probe both collaborators a search load depends on."""
    manager = db_module.db_manager
    checks = {
        "database": "ok" if manager and await manager.health_check() else "unavailable",
        "github_client": "ok" if github_module.github_service else "not_initialized",
    }
    ready = all(value == "ok" for value in checks.values())
    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"ready": ready, "checks": checks},
    )
