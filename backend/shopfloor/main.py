import time
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from fastapi.routing import APIRoute
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware

from shopfloor.api.main import api_router
from shopfloor.core.config import settings
from shopfloor.core.db import init_db
from shopfloor.core.observability import (
    REQUEST_COUNT,
    REQUEST_DURATION,
    get_logger,
    set_correlation_id,
    setup_structured_logging,
)
from shopfloor.domain.shared.exceptions import (
    BusinessRuleViolation,
    ConcurrencyConflictError,
    DatabaseError,
    DomainError,
    EntityNotFoundError,
    InvalidTransitionError,
    ValidationError,
)

logger = get_logger(__name__)

# Most specific first
ERROR_STATUS_CODES: list[tuple[type[DomainError], int]] = [
    (EntityNotFoundError, 404),
    (InvalidTransitionError, 409),
    (ConcurrencyConflictError, 409),
    (BusinessRuleViolation, 409),
    (ValidationError, 422),
    (DatabaseError, 500),
]

INTERNAL_ERROR_MESSAGE = "Internal error while accessing the store"


def status_code_for(error: DomainError) -> int:
    for error_class, status_code in ERROR_STATUS_CODES:
        if isinstance(error, error_class):
            return status_code
    return 400


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """Middleware for request correlation and metrics collection."""

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
        set_correlation_id(correlation_id)

        start_time = time.time()
        method = request.method
        path = request.url.path

        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.time() - start_time
            REQUEST_COUNT.labels(method=method, endpoint=path, status="500").inc()
            REQUEST_DURATION.labels(method=method, endpoint=path).observe(duration)
            logger.error(
                "Request failed",
                method=method,
                path=path,
                duration_seconds=duration,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            raise

        duration = time.time() - start_time
        REQUEST_COUNT.labels(
            method=method, endpoint=path, status=str(response.status_code)
        ).inc()
        REQUEST_DURATION.labels(method=method, endpoint=path).observe(duration)
        response.headers["X-Correlation-ID"] = correlation_id

        logger.info(
            "Request completed",
            method=method,
            path=path,
            status_code=response.status_code,
            duration_seconds=duration,
        )
        return response


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    status_code = status_code_for(exc)
    if status_code >= 500:
        # Store errors carry SQL and parameters; keep them in the log only
        logger.error("Domain error", path=request.url.path, **exc.to_dict())
        content = {
            "type": exc.error_type.value,
            "message": INTERNAL_ERROR_MESSAGE,
            "details": {},
        }
    else:
        logger.info("Request rejected", path=request.url.path, **exc.to_dict())
        content = exc.to_dict()
    return JSONResponse(status_code=status_code, content={"detail": content})


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report body and query errors without echoing the rejected input."""
    errors = [
        {"loc": error["loc"], "msg": error["msg"], "type": error["type"]}
        for error in exc.errors()
    ]
    logger.info("Request validation failed", path=request.url.path, errors=len(errors))
    return JSONResponse(status_code=422, content={"detail": jsonable_encoder(errors)})


def custom_generate_unique_id(route: APIRoute) -> str:
    return f"{route.tags[0]}-{route.name}" if route.tags else route.name


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Configure logging and make sure the schema exists."""
    setup_structured_logging()
    await init_db()
    logger.info(
        "Application started",
        project_name=settings.PROJECT_NAME,
        environment=settings.ENVIRONMENT,
        api_version=settings.API_V1_STR,
    )
    yield
    logger.info("Application shutting down")


def create_app(use_lifespan: bool = True) -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        generate_unique_id_function=custom_generate_unique_id,
        lifespan=lifespan if use_lifespan else None,
    )
    app.add_middleware(ObservabilityMiddleware)
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.include_router(api_router, prefix=settings.API_V1_STR)

    if settings.ENABLE_METRICS:

        @app.get("/metrics", include_in_schema=False)
        async def metrics() -> Response:
            return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app


app = create_app()
