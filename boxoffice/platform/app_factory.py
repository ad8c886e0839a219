"""
Shared FastAPI App Factory

Provides common app setup for production and test environments.
"""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from boxoffice.platform.config.core_setting import settings
from boxoffice.platform.exception.exception_handlers import register_exception_handlers
from boxoffice.platform.observability.tracing import TracingConfig
from boxoffice.service.checkout.driving_adapter.http_controller.checkout_controller import (
    router as checkout_router,
)
from boxoffice.service.checkout.driving_adapter.http_controller.refund_controller import (
    router as refund_router,
)
from boxoffice.service.checkout.driving_adapter.http_controller.webhook_controller import (
    router as webhook_router,
)
from boxoffice.service.settlement.driving_adapter.http_controller.payout_controller import (
    router as payout_router,
)


def create_app(
    *,
    lifespan: Callable[[FastAPI], AbstractAsyncContextManager[Any]] | None = None,
    title_suffix: str = '',
    description: str = 'Box Office - checkout, payment reconciliation and seller payouts',
) -> FastAPI:
    """
    Create a configured FastAPI application.

    Args:
        lifespan: Async context manager for app lifespan (startup/shutdown)
        title_suffix: Optional suffix for app title (e.g., " (Test)")
        description: App description

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title=f'{settings.PROJECT_NAME}{title_suffix}',
        description=description,
        version=settings.VERSION,
        lifespan=lifespan,
    )

    # Auto-instrument FastAPI (must be done before mounting routes)
    if settings.ENABLE_TRACING:
        TracingConfig(service_name=settings.SERVICE_NAME).instrument_fastapi(app=app)

    app.add_middleware(
        CORSMiddleware,  # type: ignore
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=['*'],
        allow_headers=['*'],
    )

    register_exception_handlers(app)

    app.include_router(checkout_router, prefix='/api/checkout', tags=['checkout'])
    app.include_router(refund_router, prefix='/api/refund', tags=['refund'])
    app.include_router(webhook_router, prefix='/api/webhook', tags=['webhook'])
    app.include_router(payout_router, prefix='/api/payout', tags=['payout'])

    _register_common_endpoints(app)

    return app


def _register_common_endpoints(app: FastAPI) -> None:
    """Register health and metrics endpoints."""

    @app.get('/health')
    async def health_check() -> dict[str, str]:
        """Health check endpoint for container orchestration."""
        return {'status': 'healthy', 'service': settings.SERVICE_NAME}

    @app.get('/metrics')
    async def get_metrics() -> PlainTextResponse:
        """Prometheus metrics endpoint."""
        return PlainTextResponse(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
