"""
Xendit implementation of IPaymentGateway.

- POST /sessions      hosted payment link (Idempotency-key: intent external reference)
- POST /refunds       refund against a payment request / invoice / payment
- POST /v2/payouts    bank disbursement (Idempotency-key: payout id)
- GET  /v2/invoices, /payment_requests   payment lookup by external reference
- GET  /balance       merchant balance, checked before a refund
"""

from decimal import Decimal
from typing import Any, Optional

import httpx
import orjson
from opentelemetry import trace

from boxoffice.platform.config.core_setting import settings
from boxoffice.platform.exception.exceptions import ProviderError, ProviderTimeoutError
from boxoffice.platform.logging.loguru_io import Logger
from boxoffice.service.shared_kernel.app.interface.i_payment_gateway import IPaymentGateway
from boxoffice.service.shared_kernel.domain.value_object.money import to_money
from boxoffice.service.shared_kernel.domain.value_object.payment_gateway_request import (
    DisbursementRequest,
    PaymentSession,
    RefundRequest,
    SessionRequest,
)


tracer = trace.get_tracer(__name__)


def refund_reference_field(provider_reference: str) -> str:
    """The refund API wants the reference under a key matching the object it came from."""
    if provider_reference.startswith('pr-'):
        return 'payment_request_id'
    if provider_reference.startswith('inv-'):
        return 'invoice_id'
    return 'payment_id'


def _amount(value: Decimal) -> float:
    return float(to_money(value))


class XenditPaymentGateway(IPaymentGateway):
    def __init__(
        self,
        *,
        base_url: str | None = None,
        secret_key: str | None = None,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.XENDIT_API_URL).rstrip('/')
        self.secret_key = (
            secret_key if secret_key is not None else settings.XENDIT_SECRET_KEY.get_secret_value()
        )
        self.timeout_seconds = timeout_seconds or settings.PROVIDER_TIMEOUT_SECONDS
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                auth=(self.secret_key, ''),
                timeout=httpx.Timeout(self.timeout_seconds),
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _send(
        self,
        method: str,
        path: str,
        *,
        body: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
        idempotency_key: str | None = None,
    ) -> Any:
        headers = {'Content-Type': 'application/json'} if body is not None else {}
        if idempotency_key is not None:
            headers['Idempotency-key'] = idempotency_key
        with tracer.start_as_current_span(f'xendit.{method.lower()} {path}'):
            try:
                response = await self._get_client().request(
                    method,
                    path,
                    content=orjson.dumps(body, default=str) if body is not None else None,
                    params=params,
                    headers=headers,
                )
            except httpx.TimeoutException as e:
                raise ProviderTimeoutError(f'Payment provider timed out on {path}') from e
            except httpx.HTTPError as e:
                raise ProviderError(f'Payment provider unreachable: {e}') from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.is_error:
            message = data.get('message') if isinstance(data, dict) else None
            Logger.base.error(
                f'❌ [XENDIT] {method} {path} -> {response.status_code}: '
                f'{message or response.text[:200]}'
            )
            raise ProviderError(
                message or f'Payment provider error ({response.status_code})',
                provider_status=response.status_code,
            )
        return data

    async def _post(self, path: str, *, body: dict[str, Any], idempotency_key: str) -> dict[str, Any]:
        data = await self._send('POST', path, body=body, idempotency_key=idempotency_key)
        if not isinstance(data, dict):
            raise ProviderError(f'Unexpected payment provider response on {path}')
        return data

    @Logger.io
    async def create_session(self, *, request: SessionRequest) -> PaymentSession:
        body = {
            'reference_id': request.reference_id,
            'session_type': 'PAY',
            'mode': 'PAYMENT_LINK',
            'amount': _amount(request.amount),
            'currency': request.currency,
            'country': request.country,
            'customer': {
                'reference_id': request.customer.reference_id,
                'type': 'INDIVIDUAL',
                'email': request.customer.email,
                'mobile_number': request.customer.mobile_number,
                'individual_detail': {
                    'given_names': request.customer.given_names,
                    'surname': request.customer.surname,
                },
            },
            'description': request.description,
            'success_return_url': request.success_url,
            'cancel_return_url': request.failure_url,
            'metadata': request.metadata,
        }
        data = await self._post('/sessions', body=body, idempotency_key=request.reference_id)

        session_id = data.get('payment_session_id') or data.get('id')
        hosted_url = data.get('payment_link_url')
        if not session_id or not hosted_url:
            raise ProviderError('Payment provider did not return a payment link')
        return PaymentSession(session_id=str(session_id), hosted_url=str(hosted_url))

    @Logger.io
    async def refund(self, *, request: RefundRequest) -> str:
        body = {
            refund_reference_field(request.provider_reference): request.provider_reference,
            'amount': _amount(request.amount),
            'currency': request.currency,
            'reason': request.reason,
            'metadata': request.metadata,
        }
        data = await self._post('/refunds', body=body, idempotency_key=request.idempotency_key)
        if not data.get('id'):
            raise ProviderError('Payment provider did not return a refund id')
        return str(data['id'])

    @Logger.io
    async def disburse(self, *, request: DisbursementRequest) -> str:
        body = {
            'reference_id': request.payout_id,
            'channel_code': request.destination.bank_code,
            'channel_properties': {
                'account_holder_name': request.destination.account_holder_name,
                'account_number': request.destination.account_number,
            },
            'amount': _amount(request.amount),
            'currency': request.currency,
            'description': request.description or f'Payout {request.payout_id}',
        }
        data = await self._post('/v2/payouts', body=body, idempotency_key=request.payout_id)
        if not data.get('id'):
            raise ProviderError('Payment provider did not return a disbursement id')
        return str(data['id'])

    @Logger.io
    async def find_payment_reference(self, *, external_reference_id: str) -> Optional[str]:
        # Invoices first, then payment requests; a failed search falls through to the next
        try:
            invoices = await self._send(
                'GET', '/v2/invoices', params={'external_id': external_reference_id}
            )
        except ProviderError as e:
            Logger.base.warning(
                f'⚠️ [XENDIT] Invoice search for {external_reference_id} failed: {e.message}'
            )
        else:
            if isinstance(invoices, list) and invoices and invoices[0].get('id'):
                return str(invoices[0]['id'])

        try:
            found = await self._send(
                'GET', '/payment_requests', params={'reference_id': external_reference_id}
            )
        except ProviderError as e:
            Logger.base.warning(
                f'⚠️ [XENDIT] Payment request search for {external_reference_id} failed: {e.message}'
            )
            return None

        requests = found.get('data') if isinstance(found, dict) else None
        if not isinstance(requests, list) or not requests:
            return None
        succeeded = next((pr for pr in requests if pr.get('status') == 'SUCCEEDED'), None)
        target = succeeded or requests[0]
        return str(target['id']) if target.get('id') else None

    @Logger.io
    async def get_balance(self) -> Decimal:
        data = await self._send('GET', '/balance')
        if not isinstance(data, dict) or data.get('balance') is None:
            raise ProviderError('Payment provider did not return a balance')
        return to_money(data['balance'])
