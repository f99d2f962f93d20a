"""
FastAPI application entry point for the Campaign Health API.

This module wires the campaign health scoring engine to HTTP for the
dashboard. It configures logging and CORS from settings, registers the
campaign health router, and starts the ASGI server when run directly.

Design:
- Scoring policy injected into endpoints through core.dependencies
- No persistence: every request is scored from the rows it carries
- Settings read once from the environment / .env (core.config)
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from campaign_health import __version__
from campaign_health.api import campaign_health_router
from campaign_health.core.config import get_scoring_config, get_settings

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for FastAPI application startup and shutdown events.

    On startup:
        - Build the scoring policy so a bad configuration fails fast
        - Log startup message

    On shutdown:
        - Log shutdown message
    """
    # Startup
    logger.info(f"{settings.api_title} starting")
    config = get_scoring_config()
    logger.info(
        f"Scoring policy loaded: CTR benchmark {config.ctr_benchmark}%, "
        f"pacing headroom {config.pacing_headroom_factor}"
    )

    yield

    # Shutdown
    logger.info(f"{settings.api_title} shutting down")


# Create FastAPI application
app = FastAPI(
    title=settings.api_title,
    version=__version__,
    description=(
        "Campaign health scoring for the campaign dashboard. "
        "Scores ROAS, delivery pacing, burn rate, CTR and overspend risk "
        "into a single 0-10 health score per campaign."
    ),
    lifespan=lifespan,
)

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register API routers
app.include_router(campaign_health_router)  # Has its own /campaign-health prefix


@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring and load balancer probes.

    Returns:
        Dict with status 'healthy'
    """
    return {"status": "healthy"}


@app.get("/")
async def root():
    """
    Root endpoint providing API information.

    Returns:
        Dict with API name and version
    """
    return {
        "name": settings.api_title,
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


# Run with uvicorn when executed directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "campaign_health.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
