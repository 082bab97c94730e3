"""FastAPI application for the KB Index service."""

from __future__ import annotations

from contextlib import asynccontextmanager
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from kbindex.config import get_config
from kbindex.core.errors import UpstreamError, ValidationError
from kbindex.core.logging import configure_logging
from kbindex.db.connection import close_db, get_session, init_db
from kbindex.startup_validation import run_startup_validation
from kbindex.web.routes import collection, health, regions, settings

config = get_config()

# Initialize structured logging
configure_logging(config.log_level, config.log_format)
logger = structlog.get_logger()

ENDPOINTS = [
    "GET /",
    "GET /api/health",
    "GET /api/regions",
    "GET /api/regions/{regionCode}/timeseries",
    "GET /api/regions/{regionCode}/statistics",
    "GET /api/settings",
    "PUT /api/settings",
    "POST /api/collect-data",
    "GET /api/collection-status",
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    async with get_session() as session:
        await run_startup_validation(session)
    logger.info("server_started", frontend_url=config.web.frontend_url)
    yield
    await close_db()
    logger.info("server_stopped")


app = FastAPI(
    title="KB Index",
    description="Weekly KB housing price indices with custom-baseline rebasing",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


# Request Logging Middleware
class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        structlog.contextvars.clear_contextvars()

        request_id = request.headers.get("X-Request-ID", str(uuid4()))
        structlog.contextvars.bind_contextvars(request_id=request_id)

        logger.info(
            "request_started",
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)

            logger.info(
                "request_completed",
                status_code=response.status_code,
            )
            return response

        except Exception as exc:
            logger.error("request_failed", error=str(exc))
            raise


app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.web.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Prometheus Metrics
Instrumentator().instrument(app).expose(app)


# Exception Handlers
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    content = {"success": False, "error": str(exc.detail)}
    if exc.status_code == 404:
        content["availableEndpoints"] = ENDPOINTS
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Render invalid query/body parameters as a ValidationError envelope."""
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'][1:]) or err['loc'][0]}: {err['msg']}"
        for err in exc.errors()
    )
    return JSONResponse(
        status_code=ValidationError.status_code,
        content={
            "success": False,
            "error": f"Invalid request: {problems}",
            "errorType": ValidationError.error_type,
        },
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error("database_error", error=str(exc))
    return JSONResponse(
        status_code=UpstreamError.status_code,
        content={
            "success": False,
            "error": "Database error" if config.is_production else str(exc),
            "errorType": UpstreamError.error_type,
        },
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("unhandled_error", error=str(exc), exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error" if config.is_production else str(exc),
        },
    )


@app.get("/")
async def root():
    return {
        "message": "KB real estate index server",
        "version": app.version,
        "status": "running",
        "endpoints": ENDPOINTS,
    }


# Include Routers
app.include_router(health.router)
app.include_router(regions.router)
app.include_router(settings.router)
app.include_router(collection.router)
