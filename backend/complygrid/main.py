"""
ComplyGrid FastAPI Application
Cross-framework gap analysis and GRC analytics API
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Callable

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.responses import Response

from .config import SECURITY_HEADERS, get_settings
from .database import check_database_health, init_database
from .middleware.error_handling import ErrorHandlingMiddleware
from .routes import (
    auth,
    compliance_graph,
    framework_overlap,
    gap_analysis,
    regulatory,
    remediation,
    risks,
    roi,
    supply_chain,
)

# Configure logging
logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan management."""
    logger.info("Starting ComplyGrid application...")

    await init_database()

    cache = gap_analysis.get_gap_analysis_cache()
    if not cache.enabled:
        logger.warning("Redis unavailable - gap analysis results will not be cached")

    logger.info("ComplyGrid application started successfully")

    yield

    logger.info("Shutting down ComplyGrid application...")


app = FastAPI(
    title="ComplyGrid - GRC Analytics",
    description="Compliance scoring, cross-framework gap analysis and risk analytics",
    version=settings.app_version,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)


# Security Middleware
@app.middleware("http")
async def security_headers_middleware(request: Request, call_next: Callable[[Request], Any]) -> Response:
    """Add security headers to all responses."""
    response = await call_next(request)
    for header, value in SECURITY_HEADERS.items():
        response.headers[header] = value
    return response


app.add_middleware(ErrorHandlingMiddleware, include_debug_info=settings.debug)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Authorization", "Content-Type"],
)


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint for container orchestration."""
    loop = asyncio.get_event_loop()

    # Both checks block, so run them off the event loop
    db_healthy = await loop.run_in_executor(None, check_database_health)
    cache_healthy = await loop.run_in_executor(None, lambda: gap_analysis.get_gap_analysis_cache().is_available())

    return JSONResponse(
        content={
            "status": "healthy" if db_healthy and cache_healthy else "degraded",
            "database": db_healthy,
            "cache": cache_healthy,
            "version": settings.app_version,
        }
    )


# API routes - unified at /api prefix
app.include_router(auth.router, prefix="/api")
app.include_router(gap_analysis.router, prefix="/api")
app.include_router(framework_overlap.router, prefix="/api")
app.include_router(framework_overlap.frameworks_router, prefix="/api")
app.include_router(compliance_graph.router, prefix="/api")
app.include_router(risks.router, prefix="/api")
app.include_router(supply_chain.router, prefix="/api")
app.include_router(regulatory.router, prefix="/api")
app.include_router(remediation.router, prefix="/api")
app.include_router(roi.router, prefix="/api")


if __name__ == "__main__":
    # Development server configuration
    uvicorn.run(
        "complygrid.main:app",
        host="0.0.0.0",  # nosec B104 - Intentional for container binding
        port=8000,
        log_level=settings.log_level.lower(),
        reload=settings.debug,
    )
