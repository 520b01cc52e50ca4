"""
FastAPI Application Entry Point

This module initializes the FastAPI application with:
- CORS configuration
- Middleware setup
- Route registration
- Health check endpoints
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.db.database import check_db_connection
from app.db.redis import (
    check_redis_connection,
    get_redis_pool,
    close_redis_pool,
    close_arq_pool,
)
from app.middleware.logging import LoggingMiddleware
from app.api.v1.router import api_router

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


# ============================================================
# Application Lifespan Events
# ============================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup:
    - Check database connection
    - Initialize Redis connection pool

    Shutdown:
    - Close Redis connections
    """
    # ========== STARTUP ==========
    logger.info(f"Starting {settings.PROJECT_NAME}...")
    logger.info(f"Debug mode: {settings.DEBUG}")
    logger.info(f"Question source: {settings.QUESTION_SOURCE}")

    db_healthy = await check_db_connection()
    if db_healthy:
        logger.info("Database connection established successfully")
    else:
        logger.warning("Database connection check failed")

    # Redis is only needed when aggregation is queued
    get_redis_pool()
    redis_healthy = await check_redis_connection()
    if redis_healthy:
        logger.info("Redis connection established successfully")
    elif settings.PROGRESS_AGGREGATION_MODE == "queue":
        logger.warning("Redis unavailable - progress aggregation will run inline")

    yield  # Application runs here

    # ========== SHUTDOWN ==========
    logger.info(f"Shutting down {settings.PROJECT_NAME}...")

    await close_redis_pool()
    await close_arq_pool()

    logger.info("Shutdown complete")


# ============================================================
# Create FastAPI Application
# ============================================================
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="""
    NCLEX Exam Preparation API

    Features:
    - Custom and Quick Start test assembly
    - NCLEX-style scoring (including Select All That Apply)
    - Question usage tracking
    - Topic breakdowns
    - Progress, mastery and readiness tracking
    """,
    version="1.0.0",
    openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# ----------------------------------------------------
# Middleware Configuration
# ----------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.DEBUG else settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    expose_headers=["*"],
)

if settings.DEBUG:
    app.add_middleware(LoggingMiddleware)


# ----------------------------------------------------
# Health Check Endpoints
# ----------------------------------------------------
@app.get("/", tags=["Health"])
async def root():
    """Root endpoint with API information."""
    return {
        "name": settings.PROJECT_NAME,
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs" if settings.DEBUG else "disabled"
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint for monitoring.

    Checks:
    - Database connectivity
    - Redis connectivity
    """
    db_healthy = await check_db_connection()
    redis_healthy = await check_redis_connection()

    status = "healthy"
    if not db_healthy:
        status = "unhealthy"
    elif not redis_healthy:
        status = "degraded"

    content = {
        "status": status,
        "database": "connected" if db_healthy else "disconnected",
        "redis": "connected" if redis_healthy else "disconnected",
        "question_source": settings.QUESTION_SOURCE,
    }
    if status == "unhealthy":
        return JSONResponse(status_code=503, content=content)
    return content

# ============================================================
# Include API Router
# ============================================================
app.include_router(
    api_router,
    prefix=settings.API_V1_PREFIX
)


# ----------------------------------------------------
# Exception Handlers
# ----------------------------------------------------
@app.exception_handler(404)
async def not_found_handler(request, exc):
    """Handle 404 errors."""
    detail = getattr(exc, "detail", None) or "Not found"
    return JSONResponse(
        status_code=404,
        content={"detail": detail}
    )


@app.exception_handler(500)
async def internal_error_handler(request, exc):
    """Handle 500 errors."""
    logger.error(f"Internal server error: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )
