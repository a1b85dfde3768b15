"""
Main Application - FastAPI application setup.
"""

import asyncio
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST
from starlette.middleware.base import BaseHTTPMiddleware

from app.api.dependencies import close_providers
from app.api.routes import router
from app.api.status_routes import router as status_router
from app.config import settings
from app.db.migration_runner import run_migrations
from app.db.session import close_engines
from app.exceptions import (
    AuthenticationError,
    DatabaseError,
    ProfileNotFoundError,
    ProjectNotFoundError,
    QuotaExceededError,
    TemplateNotFoundError,
    TemplateRenderError,
    WriteAIError,
    WriteVerificationError,
)
from app.observability import get_logger, metrics, setup_logging, setup_tracing
from app.observability.logging import log_context
from app.observability.metrics import render_metrics, track_http_request
from app.observability.tracing import instrument_fastapi

# Setup logging before anything else
setup_logging()
logger = get_logger(__name__)

# Fallback mapping for service errors a route did not translate itself
ERROR_STATUS: tuple[tuple[type[WriteAIError], int], ...] = (
    (QuotaExceededError, status.HTTP_429_TOO_MANY_REQUESTS),
    (ProfileNotFoundError, status.HTTP_404_NOT_FOUND),
    (ProjectNotFoundError, status.HTTP_404_NOT_FOUND),
    (TemplateNotFoundError, status.HTTP_404_NOT_FOUND),
    (TemplateRenderError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (WriteVerificationError, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (DatabaseError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def status_for_error(exc: WriteAIError) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run migrations (when enabled) on startup; close clients and engines on shutdown."""
    logger.info(
        "application_starting",
        service=settings.api_title,
        version=settings.api_version,
        environment=settings.environment,
        tracing_enabled=settings.tracing_enabled,
        run_migrations=settings.run_migrations_on_startup,
        text_provider_configured=bool(settings.openai_api_key),
        voice_provider_configured=bool(settings.elevenlabs_api_key),
        storage_configured=settings.storage_configured,
    )

    if settings.run_migrations_on_startup:
        # Alembic's command API is synchronous
        await asyncio.to_thread(run_migrations)

    yield

    logger.info("application_shutting_down")
    await close_providers()
    await close_engines()
    logger.info("application_stopped")


app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
    description=settings.api_description,
    lifespan=lifespan,
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Return validation errors with ctx values stringified (raised ValueErrors aren't JSON)."""
    sanitized_errors = []
    for error in exc.errors():
        sanitized = {
            "type": error.get("type"),
            "loc": error.get("loc"),
            "msg": error.get("msg"),
        }
        if "ctx" in error:
            sanitized["ctx"] = {k: str(v) for k, v in error["ctx"].items()}
        sanitized_errors.append(sanitized)

    # Request bodies carry prompts and content; only locations and messages are logged
    logger.warning(
        "validation_error",
        path=request.url.path,
        method=request.method,
        fields=[".".join(str(part) for part in e["loc"]) for e in sanitized_errors],
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": sanitized_errors},
    )


@app.exception_handler(WriteAIError)
async def service_exception_handler(request: Request, exc: WriteAIError):
    status_code = status_for_error(exc)
    metrics.record_error(type(exc).__name__, "unhandled_service_error")
    logger.warning(
        "service_error",
        path=request.url.path,
        error_type=type(exc).__name__,
        status_code=status_code,
        error=str(exc),
    )
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(status_code=status_code, content={"detail": str(exc)}, headers=headers)


setup_tracing()
instrument_fastapi(app)


class ProxyHeadersMiddleware(BaseHTTPMiddleware):
    """Trust X-Forwarded-Proto from the ingress so generated URLs keep https."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        forwarded_proto = request.headers.get("X-Forwarded-Proto")
        if forwarded_proto:
            request.scope["scheme"] = forwarded_proto

        return await call_next(request)


app.add_middleware(ProxyHeadersMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)


def _route_template(request: Request) -> str | None:
    route = request.scope.get("route")
    return getattr(route, "path", None)


@app.middleware("http")
async def logging_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Bind a request id, log the request, and record HTTP metrics by route template."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    method = request.method
    path = request.url.path

    with log_context(request_id=request_id):
        logger.info("request_started", method=method, path=path)

        with track_http_request(method) as tracker:
            try:
                response = await call_next(request)
            except Exception as e:
                tracker.set_endpoint(_route_template(request))
                metrics.record_error(type(e).__name__, "http_request")
                logger.error(
                    "request_failed",
                    method=method,
                    path=path,
                    error=str(e),
                    exc_info=True,
                )
                raise
            tracker.set_endpoint(_route_template(request))
            tracker.set_status_code(response.status_code)

        logger.info(
            "request_completed",
            method=method,
            path=path,
            status_code=response.status_code,
        )

    response.headers["X-Request-ID"] = request_id
    return response


app.include_router(router)
app.include_router(status_router)


@app.get("/")
async def root() -> dict[str, str]:
    return {
        "service": settings.api_title,
        "version": settings.api_version,
        "status": "running",
    }


@app.get("/metrics")
async def metrics_endpoint() -> Response:
    """Prometheus text exposition."""
    if not settings.metrics_enabled:
        return Response(status_code=status.HTTP_404_NOT_FOUND)
    return Response(content=render_metrics(), media_type=CONTENT_TYPE_LATEST)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.environment == "development",
        log_level=settings.log_level.lower(),
    )
