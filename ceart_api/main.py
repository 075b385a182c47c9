"""
Main FastAPI application for the CEART bookings service.
Handles application startup, middleware, error mapping and routing.
"""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.concurrency import run_in_threadpool

from ceart_api.api.v1.router import router as api_router, SERVICE_VERSION
from ceart_api.core.config import config
from ceart_api.core.exceptions import LedgerError
from ceart_api.core.logging import setup_logging
from ceart_api.db.database import db_manager
from ceart_api.db.redis_client import redis_manager
from ceart_api.schemas.common import ErrorResponse
from ceart_api.services.capacity_ledger import capacity_ledger
from ceart_api.services.category_service import category_service

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    setup_logging(await config.get_log_level(), "ceart")
    logger.info("Starting CEART bookings service...")

    try:
        await db_manager.initialize()
        logger.info("Database manager initialized")

        # Create database tables (skip if already exist)
        try:
            await run_in_threadpool(db_manager.create_tables)
        except Exception as e:
            logger.warning(f"Database tables may already exist: {e}")

        await redis_manager.initialize()

        booking_config = await config.get_booking_config()
        capacity_ledger.enable_duplicate_prevention = booking_config["enable_duplicate_prevention"]
        category_service.defaults = await config.get_default_categories()
        app.state.cors_origins = await config.get_cors_origins()

        logger.info("CEART bookings service started successfully")

    except Exception as e:
        logger.error(f"Failed to start CEART bookings service: {e}")
        raise

    yield

    logger.info("Shutting down CEART bookings service...")

    try:
        await redis_manager.close()
        db_manager.close()
        logger.info("CEART bookings service shut down successfully")
    except Exception as e:
        logger.error(f"Error during shutdown: {e}")


app = FastAPI(
    title="CEART Bookings Service",
    description="Venues, events and bookings with capacity-safe reservations",
    version=SERVICE_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Add request processing time to response headers."""
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    return response


@app.middleware("http")
async def add_cors_headers(request: Request, call_next):
    """Answer preflight requests and add CORS headers for allowed origins."""
    origins = getattr(request.app.state, "cors_origins", [])
    origin = request.headers.get("origin")
    allowed = origin is not None and (origin in origins or "*" in origins)

    if request.method == "OPTIONS" and "access-control-request-method" in request.headers:
        response = Response(status_code=200 if allowed else 400)
        if allowed:
            response.headers["Access-Control-Allow-Methods"] = "GET, POST, PATCH, DELETE, OPTIONS"
            response.headers["Access-Control-Allow-Headers"] = request.headers.get(
                "access-control-request-headers", "Content-Type"
            )
            response.headers["Access-Control-Max-Age"] = "600"
    else:
        response = await call_next(request)

    if allowed:
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Allow-Credentials"] = "true"
        response.headers["Vary"] = "Origin"

    return response


def _error_body(error_code: str, error_message: str, details=None) -> dict:
    return ErrorResponse(
        error_code=error_code,
        error_message=error_message,
        details=details,
    ).model_dump(mode="json")


@app.exception_handler(LedgerError)
async def ledger_exception_handler(request: Request, exc: LedgerError):
    """Map domain errors to their HTTP status."""
    if exc.status_code >= 500:
        logger.error(f"{exc.error_code}: {exc.message}")
    else:
        logger.info(f"{exc.error_code}: {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.error_code, exc.message, jsonable_encoder(exc.details)),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Request body and parameter errors are reported as 400."""
    errors = jsonable_encoder(exc.errors(), custom_encoder={Exception: str})
    logger.info(f"Request validation failed: {errors}")

    return JSONResponse(
        status_code=400,
        content=_error_body("VALIDATION_ERROR", "Invalid request", {"validation_errors": errors}),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """HTTP exception handler for FastAPI HTTP exceptions."""
    logger.warning(f"HTTP exception: {exc.status_code} - {exc.detail}")

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body("HTTP_ERROR", str(exc.detail)),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content=_error_body("INTERNAL_SERVER_ERROR", "An internal server error occurred"),
    )


app.include_router(api_router)


@app.get("/")
async def root():
    """Root endpoint with service information."""
    return {
        "service": "CEART Bookings Service",
        "version": SERVICE_VERSION,
        "status": "running",
        "endpoints": {
            "api": "/api/v1",
            "health": "/api/v1/health",
            "docs": "/docs",
            "redoc": "/redoc"
        }
    }
