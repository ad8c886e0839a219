"""
Production FastAPI Application

    uvicorn boxoffice.main:app
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from boxoffice.platform.app_factory import create_app
from boxoffice.platform.config.core_setting import settings
from boxoffice.platform.config.di import cleanup, container
from boxoffice.platform.config.wire_modules import WIRE_MODULES
from boxoffice.platform.logging.loguru_io import Logger
from boxoffice.platform.observability.tracing import TracingConfig


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan: startup and shutdown."""
    Logger.base.info('🚀 [Box Office] Starting up...')

    tracing = None
    if settings.ENABLE_TRACING:
        tracing = TracingConfig(service_name=settings.SERVICE_NAME)
        tracing.setup()
        Logger.base.info('📊 [Box Office] OpenTelemetry tracing configured')

    container.wire(modules=WIRE_MODULES)
    Logger.base.info('🔌 [Box Office] Dependency injection wired')

    database = container.database()
    if tracing:
        tracing.instrument_sqlalchemy(engine=database.engine)
    if settings.DEBUG:
        # Production schema is managed by migrations
        await database.create_tables()

    Logger.base.info('✅ [Box Office] Ready to serve requests')

    yield

    Logger.base.info('🛑 [Box Office] Shutting down...')

    await container.payment_gateway().aclose()
    await container.ticket_issuer().aclose()
    await container.notification_dispatcher().aclose()
    await database.dispose()
    Logger.base.info('🗄️  [Box Office] Database engine disposed')

    if tracing:
        tracing.shutdown()
        Logger.base.info('📊 [Box Office] Tracing shutdown complete')

    container.unwire()
    cleanup()

    Logger.base.info('👋 [Box Office] Shutdown complete')


app = create_app(lifespan=lifespan)


@app.get('/')
async def root() -> RedirectResponse:
    """Root endpoint - redirect to docs."""
    return RedirectResponse(url='/docs')
