"""
FastAPI application for the Integrity Index API.

Exposes member integrity reports, sync status and the authenticated
sync triggers used by the scheduler.

Responsibility: Main API application setup and configuration
"""

# Load .env BEFORE importing settings (critical for pydantic-settings)
from dotenv import load_dotenv
load_dotenv('.env')

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from integrity_index.config import settings
from integrity_index.db.session import db

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.app.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=f"{settings.app.app_name} API",
    description="Conflict-of-interest audit and integrity ranks for Canadian legislators",
    version=settings.app.app_version,
    docs_url="/docs",
    redoc_url="/redoc"
)

logger.info(f"CORS Origins configured: {settings.app.cors_origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.app.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*", "Authorization"],
    max_age=3600,
)


@app.on_event("startup")
async def startup_event():
    """Initialize the database on startup"""
    logger.info(f"Starting {settings.app.app_name} API...")
    logger.info(f"Environment: {settings.app.environment}")
    logger.info(f"Debug mode: {settings.app.debug}")
    if not settings.app.cron_secret:
        logger.warning("CRON_SECRET is not set; sync endpoints will answer 503")
    if not db.is_initialized:
        await db.initialize()


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown"""
    logger.info(f"Shutting down {settings.app.app_name} API...")
    await db.close()


@app.get("/")
async def root():
    """Root endpoint - API information."""
    return {
        "name": settings.app.app_name,
        "version": settings.app.app_version,
        "status": "operational",
        "endpoints": {
            "member_integrity": "/api/v1/members/{member_id}/integrity",
            "admin_status": "/api/v1/admin/status",
            "sync": "/api/v1/sync",
            "cron_sync": "/api/cron/sync",
            "docs": "/docs",
        }
    }


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {
        "status": "healthy",
        "service": "integrity-index-api"
    }


# Exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler."""
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "detail": str(exc) if settings.app.debug else "An unexpected error occurred"
        }
    )


# Import and include routers
from api.v1.endpoints import admin, members, sync

app.include_router(
    members.router,
    prefix="/api/v1",
    tags=["members"]
)

app.include_router(
    admin.router,
    prefix="/api/v1",
    tags=["admin"]
)

app.include_router(
    sync.router,
    prefix="/api",
    tags=["sync"]
)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=settings.app.api_host,
        port=settings.app.api_port,
        reload=settings.app.debug
    )
