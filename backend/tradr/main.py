"""Main FastAPI application entry point."""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tradr.api.routes import router
from tradr.config import get_settings
from tradr.services.errors import InvalidDraftPickError

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Tradr Backend",
    description="Yahoo fantasy hockey league sync, athlete valuation and trade analysis",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(router)


@app.exception_handler(InvalidDraftPickError)
async def invalid_draft_pick_handler(request: Request, exc: InvalidDraftPickError) -> JSONResponse:
    """Reject out-of-range draft picks as a validation error."""
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint for container orchestration."""
    return {"status": "healthy"}


@app.on_event("startup")
async def startup_event() -> None:
    """Log startup information."""
    logger.info("Starting Tradr Backend")
    logger.info(f"CORS origins: {settings.cors_origins_list}")
    logger.info(f"Yahoo API base: {settings.yahoo_api_base_url}")
    logger.info(
        f"Upstream pacing: {settings.requests_per_second} req/s, "
        f"{settings.max_concurrent_requests} concurrent, "
        f"{settings.max_concurrent_stat_batches} stat batches in flight"
    )


@app.on_event("shutdown")
async def shutdown_event() -> None:
    """Cleanup on shutdown."""
    logger.info("Shutting down Tradr Backend")
