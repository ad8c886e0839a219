from typing import Any

import httpx
import orjson
from uuid_utils import UUID

from boxoffice.platform.config.core_setting import settings
from boxoffice.platform.exception.exceptions import ProviderError
from boxoffice.platform.logging.loguru_io import Logger
from boxoffice.service.checkout.app.interface.i_ticket_issuer import ITicketIssuer


class HttpTicketIssuer(ITicketIssuer):
    """Calls the ticket/booking issuance service, keyed by intent id."""

    def __init__(self, *, base_url: str | None = None, client: httpx.AsyncClient | None = None):
        self.base_url = base_url if base_url is not None else settings.TICKET_ISSUANCE_URL
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=settings.COLLABORATOR_TIMEOUT_SECONDS)
        return self._client

    @Logger.io
    async def issue(self, *, intent_id: UUID, payload: dict[str, Any]) -> None:
        if not self.base_url:
            Logger.base.warning(f'⚠️ [ISSUE] TICKET_ISSUANCE_URL not set, skipping intent {intent_id}')
            return

        try:
            response = await self._get_client().post(
                f'{self.base_url.rstrip("/")}/issue',
                content=orjson.dumps({'intent_id': str(intent_id), **payload}, default=str),
                headers={'Content-Type': 'application/json', 'Idempotency-Key': str(intent_id)},
            )
        except httpx.HTTPError as e:
            raise ProviderError(f'Issuance service unreachable: {e}') from e

        if response.is_error:
            raise ProviderError(
                f'Issuance service rejected intent {intent_id}: {response.text}',
                provider_status=response.status_code,
            )
        Logger.base.info(f'🎫 [ISSUE] Tickets issued for intent {intent_id}')

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
