"""
AceMock - AI-Powered Mock Interview Backend

Main application entry point.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from acemock.config.settings import get_settings
from acemock.api.router import api_router
from acemock.api.dependencies import cleanup

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info("Starting AceMock...")
    settings = get_settings()
    logger.info(f"Running in {'debug' if settings.debug else 'production'} mode")
    if not settings.gemini_api_key:
        logger.warning("GEMINI_API_KEY is not set; stage generation and evaluation will fail")

    yield

    # Shutdown
    logger.info("Shutting down AceMock...")
    await cleanup()


# Create FastAPI application
settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    description="AI-Powered Mock Interview Backend",
    version=settings.app_version,
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Mount API routes
app.include_router(api_router, prefix="/api")


# ============================================================================
# ROOT ROUTES
# ============================================================================

@app.get("/")
async def root():
    """Service information."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": settings.app_version,
    }


# ============================================================================
# RUN SERVER
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
