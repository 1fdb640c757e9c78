"""Health check endpoints router for monitoring service availability."""

from typing import Any

from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

from src.pharmacat.api.http.app_data import ApplicationDependencies
from src.pharmacat.core.errors import CatalogError
from src.pharmacat.runtime.context import get_config

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health() -> dict[str, str]:
    """Liveness probe; does not touch the record store."""
    return {"status": "healthy", "service": "pharmacat"}


@router.get("/ready", response_model=None)
def readiness(request: Request) -> dict[str, Any] | JSONResponse:
    """Readiness check: the record store answers and the catalog is loaded.

    Returns 200 when ready, 503 otherwise.
    """
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    store = app_deps.record_store

    checks: dict[str, Any] = {}
    all_healthy = True

    try:
        count = len(store.list())
        checks["record_store"] = {
            "status": "healthy",
            "backend": store.backend,
            "products": count,
        }
    except CatalogError as e:
        checks["record_store"] = {
            "status": "unhealthy",
            "backend": store.backend,
            "error": e.message,
        }
        all_healthy = False

    generic_names = len(app_deps.catalog.unique_generic_names())
    checks["catalog"] = {
        "status": "healthy" if generic_names else "unhealthy",
        "generic_names": generic_names,
    }
    if not generic_names:
        all_healthy = False

    response = {
        "status": "ready" if all_healthy else "not_ready",
        "environment": get_config().app.environment,
        "checks": checks,
    }
    if not all_healthy:
        return JSONResponse(status_code=503, content=response)
    return response
