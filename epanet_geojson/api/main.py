"""
FastAPI application entry point.

Configures the API with routers, middleware, and structured logging.
"""

import logging
import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from epanet_geojson.api.endpoints import convert, health, projections, pump_curve
from epanet_geojson.core.config import get_settings
from epanet_geojson.core.constants import API_VERSION
from epanet_geojson.core.projections import get_projection_catalogue

# Configure structured logging
settings = get_settings()
log_level = getattr(logging, settings.log_level.upper())

structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
        if settings.log_level.upper() != "DEBUG"
        else structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logging.basicConfig(
    format="%(message)s",
    level=log_level,
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler, warms the projection catalogue."""
    logger.info("Starting epanet-geojson API...")

    try:
        get_projection_catalogue()
    except Exception as e:
        logger.warning(f"Projection catalogue loading failed: {e}")

    yield
    logger.info("Shutting down epanet-geojson API...")


app = FastAPI(
    title="epanet-geojson API",
    description="EPANET network model to GeoJSON conversion",
    version=API_VERSION,
    lifespan=lifespan,
)

# CORS middleware - origins from environment variable
cors_origins = [origin.strip() for origin in settings.cors_origins.split(",")]
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Accept"],
)
app.add_middleware(GZipMiddleware, minimum_size=500)


@app.middleware("http")
async def add_request_id(request, call_next):
    """Add unique request ID to each request for log traceability."""
    request_id = str(uuid.uuid4())[:8]
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id)
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(convert.router, prefix="/api", tags=["Conversion"])
app.include_router(projections.router, prefix="/api", tags=["Projections"])
app.include_router(pump_curve.router, prefix="/api", tags=["Pump curves"])


@app.get("/")
async def root():
    """Root endpoint - redirect info."""
    return {
        "message": "epanet-geojson API",
        "docs": "/docs",
        "health": "/health",
    }
