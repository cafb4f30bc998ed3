"""FastAPI application entry point and lifecycle management."""

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from revcat_bridge.bootstrap import get_bridge
from revcat_bridge.errors import BridgeError
from revcat_bridge.logging_config import configure_logging_from_env, get_logger
from revcat_bridge.middleware import RequestLoggingMiddleware

VERSION = "0.1.0"

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager.

    Bootstraps the bridge on startup so configuration errors surface before
    the first webhook arrives.
    """
    logger.info("bridge_starting", version=VERSION)
    bridge = get_bridge()
    logger.info(
        "bridge_started",
        status="ready",
        hook_name=bridge.config.hook_name,
        products=len(bridge.products),
    )
    try:
        yield
    finally:
        logger.info("bridge_stopped")


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    configure_logging_from_env()

    app = FastAPI(
        title="RevenueCat Storefront Bridge",
        description="Mirrors RevenueCat subscription webhooks into the storefront",
        version=VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    include_request_details = os.getenv("LOG_REQUEST_DETAILS", "true").lower() == "true"
    app.add_middleware(RequestLoggingMiddleware, include_request_details=include_request_details)

    from revcat_bridge.api.control import router as control_router
    from revcat_bridge.api.webhooks import router as webhooks_router

    app.include_router(webhooks_router)
    app.include_router(control_router)

    @app.get("/")
    async def root() -> dict[str, str]:
        """Health check endpoint."""
        return {
            "service": "revcat-bridge",
            "status": "running",
            "version": VERSION,
        }

    @app.get("/health")
    async def health() -> dict[str, object]:
        """Detailed health check."""
        bridge = get_bridge()
        storefront = bridge.storefront
        stats = storefront.get_statistics() if hasattr(storefront, "get_statistics") else {}
        return {
            "status": "healthy",
            "hook": bridge.config.hook_name,
            "config": f"loaded ({len(bridge.products)} products)",
            "storefront": stats,
            "processed_events": bridge.ledger.count(),
        }

    @app.exception_handler(BridgeError)
    async def bridge_error_handler(request: Request, exc: BridgeError) -> JSONResponse:
        """Answer RevenueCat with the error's status code."""
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            "webhook_rejected",
            error=exc.error_code,
            message=exc.message,
            status_code=exc.status_code,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.error_code, "message": exc.message},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle uncaught exceptions."""
        logger.error(
            "unhandled_exception",
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred",
            },
        )

    logger.info("app_created", endpoints=len(app.routes))
    return app


# Create app instance
app = create_app()
