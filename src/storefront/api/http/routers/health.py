"""Health check endpoints router for monitoring service availability."""

from typing import Any

from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

from src.storefront.api.http.app_data import ApplicationDependencies
from src.storefront.runtime.context import get_config

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health() -> dict[str, str]:
    """Liveness probe: 200 as long as the process is up."""
    return {"status": "healthy", "service": "storefront-api"}


@router.get("/ready", response_model=None)
async def readiness(request: Request) -> dict[str, Any] | JSONResponse:
    """Readiness probe.

    The database is critical (503 when unreachable). The Clerk JWKS endpoint is
    only reported, except in production where an unreachable JWKS also fails.
    """
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    config = get_config()

    checks: dict[str, Any] = {}
    all_healthy = True

    db_healthy = app_deps.database_service.health_check()
    checks["database"] = {
        "status": "healthy" if db_healthy else "unhealthy",
        "type": "sqlite" if config.database.is_sqlite else "postgresql",
    }
    if not db_healthy:
        all_healthy = False

    if config.clerk.jwks_uri:
        try:
            await app_deps.jwks_service.fetch_jwks(config.clerk.jwks_uri)
            checks["jwks"] = {"status": "healthy"}
        except Exception as e:
            checks["jwks"] = {"status": "unhealthy", "error": str(e)}
            if config.app.environment == "production":
                all_healthy = False
    else:
        checks["jwks"] = {"status": "not_configured"}

    body = {
        "status": "ready" if all_healthy else "not_ready",
        "checks": checks,
    }
    if not all_healthy:
        return JSONResponse(status_code=503, content=body)
    return body
