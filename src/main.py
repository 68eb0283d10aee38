"""Main application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from src.api.routes import notifications, products, scans
from src.config import settings
from src.context import AppContext, build_context
from src.logging_config import setup_logging
from src.worker.scheduler import setup_scheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    context: Optional[AppContext] = getattr(app.state, "context", None)
    if context is None:
        setup_logging(settings)
        logger.info("Starting price drop tracker...")
        context = build_context(settings)
        app.state.context = context

    if context.settings.scheduler_enabled:
        context.scheduler = setup_scheduler(context.tracker, context.settings)
        context.scheduler.start()
        logger.info(
            f"Price tracker initialized, checking prices every "
            f"{context.settings.check_interval_minutes} minutes"
        )

    yield

    # Shutdown
    logger.info("Shutting down...")

    if context.scheduler:
        context.scheduler.shutdown(wait=False)
        context.scheduler = None

    await context.tracker.close()
    logger.info("Shutdown complete")


def create_app(
    context: Optional[AppContext] = None,
    enable_metrics: bool = True,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        context: Prebuilt application context. When omitted the lifespan
                 builds one from the environment settings on startup.
        enable_metrics: Expose Prometheus metrics at /metrics

    Returns:
        FastAPI app
    """
    app = FastAPI(
        title="Price Drop Tracker",
        description="Track marketplace listings and record price drops",
        version="0.1.0",
        lifespan=lifespan,
    )
    if context is not None:
        app.state.context = context

    if enable_metrics:
        instrumentator = Instrumentator(
            should_group_status_codes=True,
            should_ignore_untemplated=True,
            excluded_handlers=["/metrics", "/health", "/favicon.ico"],
        )
        instrumentator.instrument(app).expose(app, include_in_schema=True, tags=["monitoring"])

    app.include_router(products.router)
    app.include_router(notifications.router)
    app.include_router(scans.router)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    @app.get("/health")
    async def health(request: Request):
        """Health check endpoint."""
        ctx: Optional[AppContext] = getattr(request.app.state, "context", None)
        return {
            "status": "healthy",
            "is_checking": bool(ctx and ctx.tracker.is_checking),
        }

    @app.get("/favicon.ico")
    async def favicon():
        """Return empty favicon response to avoid 404 noise."""
        return Response(status_code=204)

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "src.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
