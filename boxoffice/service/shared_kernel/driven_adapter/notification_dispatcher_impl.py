from typing import Any

import httpx
import orjson

from boxoffice.platform.config.core_setting import settings
from boxoffice.platform.exception.exceptions import ProviderError
from boxoffice.platform.logging.loguru_io import Logger
from boxoffice.service.shared_kernel.app.interface.i_notification_dispatcher import (
    INotificationDispatcher,
)
from boxoffice.service.shared_kernel.domain.enum.notification_kind import NotificationKind


class HttpNotificationDispatcher(INotificationDispatcher):
    def __init__(self, *, base_url: str | None = None, client: httpx.AsyncClient | None = None):
        self.base_url = base_url if base_url is not None else settings.NOTIFICATION_URL
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=settings.COLLABORATOR_TIMEOUT_SECONDS)
        return self._client

    @Logger.io
    async def dispatch(
        self, *, kind: NotificationKind, target_id: str, payload: dict[str, Any]
    ) -> None:
        if not self.base_url:
            Logger.base.warning(f'⚠️ [NOTIFY] NOTIFICATION_URL not set, skipping {kind} {target_id}')
            return

        try:
            response = await self._get_client().post(
                f'{self.base_url.rstrip("/")}/notifications',
                content=orjson.dumps(
                    {'kind': kind.value, 'target_id': target_id, **payload}, default=str
                ),
                headers={
                    'Content-Type': 'application/json',
                    'Idempotency-Key': f'{kind.value}:{target_id}',
                },
            )
        except httpx.HTTPError as e:
            raise ProviderError(f'Notification service unreachable: {e}') from e

        if response.is_error:
            raise ProviderError(
                f'Notification service rejected {kind}: {response.text}',
                provider_status=response.status_code,
            )
        Logger.base.info(f'📧 [NOTIFY] {kind} dispatched for {target_id}')

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
