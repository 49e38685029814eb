import uuid
from contextlib import asynccontextmanager

import httpx
import structlog
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from grocer.api.routes import ai, health
from grocer.config import settings
from grocer.errors import GrocerError
from grocer.logging import configure_logging
from grocer.services import build_services

configure_logging()

logger = structlog.get_logger()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Own one HTTP client and the service container for the process lifetime."""
    async with httpx.AsyncClient(timeout=settings.provider_timeout_seconds) as http_client:
        app.state.services = build_services(settings, http_client)
        logger.info(
            "services_ready",
            providers=app.state.services.chain.configured_providers(),
            synthetic_only=settings.use_synthetic_responses,
        )
        yield
    logger.info("services_closed")


app = FastAPI(
    title="Grocer AI API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url=None,
    lifespan=lifespan,
)


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", request.headers.get("X-Request-ID", ""))


def _error_response(request: Request, status_code: int, content: dict) -> JSONResponse:
    response = JSONResponse(status_code=status_code, content=content)
    response.headers.update(CORS_HEADERS)
    response.headers["X-Request-ID"] = _request_id(request)
    return response


@app.middleware("http")
async def cors_middleware(request: Request, call_next):
    """Answer every OPTIONS preflight directly and stamp CORS headers on all responses."""
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=CORS_HEADERS)
    response = await call_next(request)
    response.headers.update(CORS_HEADERS)
    return response


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """Bind a request ID into structlog context vars and echo it in X-Request-ID."""
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id)
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Return 400 with a field-level detail list instead of FastAPI's default 422."""
    details = [
        {
            "loc": [part if isinstance(part, int) else str(part) for part in err.get("loc", ())],
            "msg": str(err.get("msg", "")),
            "type": str(err.get("type", "value_error")),
        }
        for err in exc.errors()
    ]
    message = "; ".join(
        f"{'.'.join(str(part) for part in d['loc'])}: {d['msg']}" for d in details
    )
    logger.info("request_invalid", path=request.url.path, message=message)
    return _error_response(
        request,
        400,
        {
            "error": "validation_error",
            "message": message or "Invalid request",
            "details": details,
            "retryable": False,
        },
    )


@app.exception_handler(GrocerError)
async def grocer_exception_handler(request: Request, exc: GrocerError) -> JSONResponse:
    logger.error(
        "request_failed",
        path=request.url.path,
        error=exc.code,
        message=exc.message,
    )
    return _error_response(
        request,
        500,
        {"error": exc.code, "message": exc.message, "retryable": exc.retryable},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return JSON (with CORS headers) for unhandled exceptions instead of a bare 500."""
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error_type=type(exc).__name__,
        exc_info=exc,
    )
    return _error_response(
        request,
        500,
        {
            "error": "internal_error",
            "message": "An unexpected error occurred",
            "retryable": True,
        },
    )


app.include_router(health.router)
app.include_router(ai.router, prefix="/api/ai")
