"""
Payment provider webhook.

Every delivery the provider cannot fix by retrying is answered 200: unknown
events, unresolvable references, already-applied events, and bugs on our
side (those are logged with traceback). Only a database outage gets a 503 so
the provider redelivers once we are back.
"""

import hmac
from typing import Any, Optional

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Header, Request, status
from fastapi.responses import JSONResponse
import orjson
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError

from boxoffice.platform.config.core_setting import Settings
from boxoffice.platform.config.di import Container
from boxoffice.platform.exception.exceptions import AuthenticationError
from boxoffice.platform.logging.loguru_io import Logger
from boxoffice.service.checkout.app.command.reconcile_provider_event_use_case import (
    IGNORED,
    ReconcileProviderEventUseCase,
)


router = APIRouter()


def is_transient_db_error(error: Exception) -> bool:
    if isinstance(error, (OperationalError, InterfaceError)):
        return True
    return isinstance(error, DBAPIError) and error.connection_invalidated


@inject
async def verify_callback_token(
    x_callback_token: Optional[str] = Header(None),
    settings: Settings = Depends(Provide[Container.config_service]),
) -> None:
    expected = settings.XENDIT_WEBHOOK_TOKEN
    if expected is None or not expected.get_secret_value():
        Logger.base.error('🚨 [WEBHOOK] XENDIT_WEBHOOK_TOKEN is not configured, rejecting delivery')
        raise AuthenticationError('Webhook token not configured')

    if x_callback_token is None:
        if settings.WEBHOOK_ALLOW_MISSING_TOKEN:
            Logger.base.warning(
                '⚠️ [WEBHOOK] Delivery without x-callback-token accepted '
                '(WEBHOOK_ALLOW_MISSING_TOKEN is on)'
            )
            return
        raise AuthenticationError('Missing callback token')

    if not hmac.compare_digest(
        x_callback_token.encode('utf-8'), expected.get_secret_value().encode('utf-8')
    ):
        raise AuthenticationError('Invalid callback token')


@router.post('/payment', dependencies=[Depends(verify_callback_token)], response_model=None)
async def receive_payment_event(
    request: Request,
    use_case: ReconcileProviderEventUseCase = Depends(ReconcileProviderEventUseCase.depends),
) -> dict[str, str] | JSONResponse:
    body = await request.body()
    try:
        payload: Any = orjson.loads(body) if body else {}
    except orjson.JSONDecodeError:
        Logger.base.warning('⚠️ [WEBHOOK] Body is not JSON, ignoring delivery')
        return {'status': IGNORED}
    if not isinstance(payload, dict):
        return {'status': IGNORED}

    try:
        return await use_case.execute(payload=payload)
    except Exception as e:
        if is_transient_db_error(e):
            Logger.base.error(f'🔥 [WEBHOOK] Database unavailable, asking provider to retry: {e}')
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={'code': 'SERVICE_UNAVAILABLE', 'message': 'Temporarily unavailable'},
            )
        Logger.base.exception('❌ [WEBHOOK] Unexpected error while reconciling, not retryable')
        return {'status': 'error'}
