"""
FastAPI application entry point for Pinkifier.

This file should ONLY handle application wiring: logging setup, middleware,
and router registration. Image processing lives in services/overlay_pipeline.
"""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from .config import get_settings
from .constants import APP_TITLE, APP_VERSION
from .enums import LogEmoji, LoggerName, LogSource
from .middleware import (
    ErrorHandlerMiddleware,
    RequestLoggerMiddleware,
    validation_exception_handler,
)
from .routers import health_routers as health
from .routers import overlay_routers as overlay
from .services.logger import (
    get_service_logger,
    initialize_global_logger,
    shutdown_global_logger,
)

logger = get_service_logger(LoggerName.SYSTEM, LogSource.SYSTEM)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Handle application startup and shutdown"""
    settings = get_settings()
    initialize_global_logger(
        min_level=settings.log_level,
        enable_console=True,
        log_file=settings.log_file,
    )

    logger.info(
        "Starting FastAPI application",
        extra_context={
            "operation": "application_startup",
            "environment": settings.environment,
            "api_host": settings.api_host,
            "api_port": settings.api_port,
            "allowed_image_domains": settings.allowed_image_domains_list,
            "proxy_fallbacks": len(settings.fetch_proxy_templates_list),
            "placeholder_fallback": settings.placeholder_fallback_enabled,
        },
        emoji=LogEmoji.STARTUP,
    )

    if settings.fetch_follow_redirects:
        logger.warning(
            "Upstream redirects are followed; redirect targets bypass the domain allow-list",
            emoji=LogEmoji.SECURITY,
        )

    yield

    logger.info(
        "Shutting down FastAPI application",
        extra_context={"operation": "application_shutdown"},
        emoji=LogEmoji.SHUTDOWN,
    )
    shutdown_global_logger()


app = FastAPI(
    title=APP_TITLE,
    description="Applies a tinted color overlay to profile pictures",
    version=APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.add_exception_handler(RequestValidationError, validation_exception_handler)

# Last registered runs first: CORS wraps the error handler, which wraps the
# request logger (the logger reads the correlation id the handler sets)
app.add_middleware(RequestLoggerMiddleware)
app.add_middleware(ErrorHandlerMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)

app.include_router(overlay.router, prefix="/api", tags=["images"])
app.include_router(health.router, prefix="/api", tags=["health"])


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "version": APP_VERSION}


@app.get("/")
async def root():
    """Root endpoint"""
    return {"message": APP_TITLE, "version": APP_VERSION, "docs": "/docs"}


if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "pinkifier.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
