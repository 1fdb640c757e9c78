"""FastAPI application factory and setup."""

import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from src.pharmacat.api.http.app_data import ApplicationDependencies
from src.pharmacat.api.http.routers import catalog, health, products, snapshots, ui
from src.pharmacat.api.utils.app_startup import configure_logging
from src.pharmacat.catalog import CatalogReference
from src.pharmacat.core.errors import (
    CatalogError,
    NotFoundError,
    StorageError,
    TransportError,
    ValidationError,
)
from src.pharmacat.runtime.context import get_config
from src.pharmacat.stores import build_record_store

configure_logging()

ERROR_STATUS: dict[type[CatalogError], int] = {
    ValidationError: 422,
    NotFoundError: 404,
    TransportError: 502,
    StorageError: 500,
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add browser hardening headers to every response."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        headers = response.headers
        headers.setdefault("X-Content-Type-Options", "nosniff")
        headers.setdefault("X-Frame-Options", "DENY")
        headers.setdefault("Referrer-Policy", "same-origin")
        if get_config().app.environment == "production":
            headers.setdefault(
                "Strict-Transport-Security", "max-age=31536000; includeSubDomains"
            )
        return response


def build_dependencies() -> ApplicationDependencies:
    """Load the catalog reference and open the configured record store."""
    config = get_config()
    reference = CatalogReference.from_csv(Path(config.catalog.reference_file))
    return ApplicationDependencies(
        record_store=build_record_store(config.storage, reference),
        catalog=reference,
    )


async def startup(app: FastAPI) -> None:
    logger.info("Starting pharmacat ({})", get_config().app.environment)
    # Injected dependencies win over the configured ones
    if getattr(app.state, "app_dependencies", None) is None:
        app.state.app_dependencies = build_dependencies()
    deps: ApplicationDependencies = app.state.app_dependencies
    logger.bind(
        backend=deps.record_store.backend, generic_names=len(deps.catalog)
    ).info("Record store ready")


async def shutdown(app: FastAPI) -> None:
    deps: ApplicationDependencies | None = getattr(app.state, "app_dependencies", None)
    if deps is not None:
        deps.record_store.close()
    logger.info("Stopped pharmacat")


@asynccontextmanager
async def lifespan(app: FastAPI):
    await startup(app)
    try:
        yield
    finally:
        await shutdown(app)


async def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
    """Render a store error as ``{"error": ..., "fields": ...}``."""
    status_code = next(
        (code for kind, code in ERROR_STATUS.items() if isinstance(exc, kind)), 500
    )
    body: dict = {"error": exc.message}
    if isinstance(exc, ValidationError):
        body["fields"] = exc.fields

    log = logger.bind(status_code=status_code, error_type=type(exc).__name__)
    if status_code >= 500:
        log.error("Request failed: {}", exc.message)
    else:
        log.info("Request rejected: {}", exc.message)
    return JSONResponse(status_code=status_code, content=body)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed request bodies in the same shape as store validation errors."""
    fields = {
        ".".join(str(part) for part in error["loc"] if part != "body"): error["msg"]
        for error in exc.errors()
    }
    return JSONResponse(status_code=422, content={"error": "Invalid request", "fields": fields})


async def log_requests(request: Request, call_next):
    """Tag every log line of a request with its id and log the outcome."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    started = time.perf_counter()

    with logger.contextualize(
        request_id=request_id, method=request.method, path=request.url.path
    ):
        try:
            response = await call_next(request)
        except Exception:
            logger.bind(status_code=500).exception("Unhandled error")
            response = JSONResponse(
                status_code=500,
                content={"error": "Internal Server Error", "request_id": request_id},
            )
        elapsed_ms = round((time.perf_counter() - started) * 1000, 1)
        logger.bind(status_code=response.status_code, duration_ms=elapsed_ms).info(
            "{} {} -> {}", request.method, request.url.path, response.status_code
        )

    response.headers.setdefault("X-Request-ID", request_id)
    return response


def create_app(dependencies: ApplicationDependencies | None = None) -> FastAPI:
    """Build the application; ``dependencies`` replaces the configured store and catalog."""
    config = get_config()
    in_production = config.app.environment == "production"

    app = FastAPI(
        title=config.ui.title,
        lifespan=lifespan,
        docs_url=None if in_production else "/docs",
        redoc_url=None if in_production else "/redoc",
    )
    if dependencies is not None:
        app.state.app_dependencies = dependencies

    cors = config.app.cors
    if in_production and cors.allow_credentials and "*" in cors.origins:
        raise RuntimeError("CORS origins cannot be '*' when credentials are allowed")

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors.origins,
        allow_credentials=cors.allow_credentials,
        allow_methods=cors.allow_methods,
        allow_headers=cors.allow_headers,
    )
    app.middleware("http")(log_requests)

    app.add_exception_handler(CatalogError, catalog_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    for api_router in (products.router, snapshots.router, catalog.router):
        app.include_router(api_router, prefix="/api")
    app.include_router(health.router)
    app.include_router(ui.router)

    return app


app = create_app()

__all__ = ["app", "create_app", "startup", "shutdown"]


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=get_config().app.host,
        port=get_config().app.port,
        access_log=False,
    )
