"""ASGI entry point for the orders service."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from src.api.middleware.error_handler import error_handler_middleware
from src.api.middleware.latency_logging import latency_logging_middleware
from src.api.routes import health, orders, payments
from src.core.config import Settings, get_settings
from src.core.stripe import configure_stripe

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    """Set up root logging once per process."""
    level = logging.DEBUG if settings.debug else getattr(logging, settings.log_level, logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Configure Stripe on startup and report the active fee schedule."""
    settings = get_settings()
    logger.info("Starting %s (%s)", settings.app_name, settings.app_env)
    logger.info(
        "Fee schedule: delivery %s, tax %s, tolerance %s %s",
        settings.delivery_fee_rate,
        settings.tax_rate,
        settings.total_tolerance,
        settings.default_currency,
    )
    configure_stripe(settings)

    yield

    logger.info("Stopped %s", settings.app_name)


def create_app() -> FastAPI:
    """Build the application: middleware, probes and the ``/api`` routers.

    Returns:
        FastAPI: Application ready to serve.
    """
    settings = get_settings()
    configure_logging(settings)
    docs_enabled = settings.debug

    app = FastAPI(
        title="Food Delivery Orders API",
        description="Order placement, order lifecycle and Stripe payments for the food delivery marketplace",
        version="0.1.0",
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["*"],
    )
    # Added last runs first: latency wraps the error envelope.
    for dispatch in (error_handler_middleware, latency_logging_middleware):
        app.add_middleware(BaseHTTPMiddleware, dispatch=dispatch)

    app.include_router(health.router)

    api_router = APIRouter(prefix="/api")
    for router in (orders.router, payments.router):
        api_router.include_router(router)
    app.include_router(api_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run("src.main:app", host=settings.host, port=settings.port, reload=settings.debug)
