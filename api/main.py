"""
Content Research API - FastAPI application.

Provides endpoints for:
- Researching movies, series, music and books across external data providers
- Describing each research endpoint
- Health checks
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routers import research
from content_research import __version__
from content_research.config import get_settings
from content_research.research.engine import create_engine

logger = logging.getLogger(__name__)

SERVICE_NAME = "Content Research Microservice"


def get_cors_origins() -> list[str]:
    """
    Get CORS allowed origins from settings.
    Set CORS_ALLOW_ORIGINS as comma-separated list of origins.
    """
    return list(get_settings().cors_allow_origins)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup
    logger.info("Starting up Content Research API...")
    if getattr(app.state, "engine", None) is None:
        app.state.engine = await create_engine(get_settings())
    yield
    # Shutdown
    logger.info("Shutting down Content Research API...")


app = FastAPI(
    title="Content Research API",
    description="Researches movies, series, music and books and where to watch, hear or read them",
    version=__version__,
    lifespan=lifespan,
)

# If no origins configured, allows all origins but disables credentials
cors_origins = get_cors_origins()
allow_credentials = len(cors_origins) > 0

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins if cors_origins else ["*"],
    allow_credentials=allow_credentials,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(research.router, prefix="/api")


def _health() -> dict:
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "endpoints": {kind: f"/api/research/{kind}" for kind in research.ENDPOINTS},
    }


@app.get("/")
def root():
    """Service identity."""
    return {"status": "ok", "service": "content-research"}


@app.get("/health")
def health():
    """Health check endpoint."""
    return _health()


@app.get("/api/health")
def api_health():
    """Health check endpoint under the API prefix."""
    return _health()
