"""Main FastAPI application for Rx-Triage.

This module sets up the FastAPI application with routes, middleware,
error handlers and logging.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rxtriage.api.middleware import setup_middleware
from rxtriage.api.routes import health, scoring
from rxtriage.domain.ports import FormatError, InputTooLargeError, IngestionError
from rxtriage.infrastructure.logging_config import configure_logging
from rxtriage.infrastructure.settings import APP_VERSION, settings

configure_logging(settings)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    logger.info(f"{settings.app_name} API starting up...")
    logger.info("API documentation available at /api/docs")
    logger.info(f"Max upload size: {settings.max_input_bytes} bytes")
    yield
    logger.info(f"{settings.app_name} API shutting down...")


app = FastAPI(
    title="Rx-Triage API",
    description="Risk scoring for prescription dispensing records",
    version=APP_VERSION,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan
)

# CORS configuration for the dashboard dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Process-Time", "X-Request-ID"],
)

setup_middleware(app)

app.include_router(health.router)
app.include_router(scoring.router)


def _error_response(status_code: int, exc: IngestionError) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": type(exc).__name__, "detail": str(exc)},
    )


@app.exception_handler(FormatError)
async def format_error_handler(request: Request, exc: FormatError) -> JSONResponse:
    logger.warning(f"Rejected upload on {request.url.path}: {exc}")
    return _error_response(400, exc)


@app.exception_handler(InputTooLargeError)
async def input_too_large_handler(request: Request, exc: InputTooLargeError) -> JSONResponse:
    logger.warning(f"Rejected upload on {request.url.path}: {exc}")
    return _error_response(413, exc)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Rx-Triage API",
        "version": APP_VERSION,
        "docs": "/api/docs",
        "health": "/api/health",
        "score": "/api/v1/score",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "rxtriage.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
