"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from stockflow.api.routes import register_error_handlers, router
from stockflow.config import get_settings
from stockflow.services.container import build_container
from stockflow.utils.logging import get_logger, setup_logging
from stockflow.workers.fulfillment import FulfillmentScheduler

# Setup logging first
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    logger.info("application_starting")
    settings = get_settings()

    container = build_container(settings)
    app.state.container = container

    if settings.seed_catalog:
        await container.catalog.seed()

    scheduler = None
    if settings.fulfillment_enabled:
        scheduler = FulfillmentScheduler(container.order_service, settings)
        scheduler.start()
        logger.info("fulfillment_scheduler_initialized")

    yield

    logger.info("application_shutting_down")
    if scheduler is not None:
        await scheduler.stop()
    await container.close()


app = FastAPI(
    title="Stockflow",
    description="Inventory ledger, stock reservations and order lifecycle",
    version="0.1.0",
    lifespan=lifespan,
)

register_error_handlers(app)
app.include_router(router, prefix="/api/v1", tags=["api"])


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": "stockflow"}


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "stockflow.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.environment == "development",
    )
