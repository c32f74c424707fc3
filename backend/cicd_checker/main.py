"""
CI/CD Maturity Checker - FastAPI Application Entry Point
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cicd_checker.config import settings
from cicd_checker.api.v1.endpoints import analysis, health
from cicd_checker.logger import logger
from cicd_checker.services.checks.catalog import CATALOG_VERSION, all_checks


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log configuration on startup."""
    logger.info(f"Starting {settings.APP_NAME} (catalog v{CATALOG_VERSION}, {len(all_checks())} checks)")
    if not settings.GITHUB_TOKEN:
        logger.warning("GITHUB_TOKEN not set: unauthenticated rate limits apply, private repos unavailable")
    yield


# Create app
app = FastAPI(
    title=settings.APP_NAME,
    description="Audit a GitHub repository's CI/CD maturity and score it by category",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, prefix="/api/v1")
app.include_router(analysis.router, prefix="/api/v1/analysis")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "app": settings.APP_NAME,
        "version": "1.0.0",
        "catalog_version": CATALOG_VERSION,
        "docs": "/docs"
    }
