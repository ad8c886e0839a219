"""
Test-specific FastAPI Application

Same routers and error handling as production, without the database or the
outbound HTTP clients: HTTP tests override the use case dependencies instead.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from boxoffice.platform.app_factory import create_app
from boxoffice.platform.config.di import container
from boxoffice.platform.config.wire_modules import WIRE_MODULES
from boxoffice.platform.logging.loguru_io import Logger


@asynccontextmanager
async def lifespan_for_tests(app: FastAPI) -> AsyncIterator[None]:
    container.wire(modules=WIRE_MODULES)
    Logger.base.info('🔌 [Test App] Dependency injection wired')

    yield

    container.unwire()
    Logger.base.info('👋 [Test App] Shutdown complete')


app = create_app(
    lifespan=lifespan_for_tests,
    title_suffix=' (Test)',
    description='Test Application - use cases are overridden per test',
)
