"""
Provider webhook payload parsing.

The provider reports the same facts with different field names across its
legacy invoice API, payment-request API and payment-session API. Everything
here turns one raw payload into a ProviderEvent with a single vocabulary.
"""

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

import attrs

from boxoffice.service.checkout.domain.enum.provider_event_category import (
    EVENT_TYPE_CATEGORIES,
    ProviderEventCategory,
)


UNKNOWN_PAYMENT_METHOD = 'UNKNOWN'

# payment-request API: payment_method.<type-specific object>.channel_code
_PAYMENT_METHOD_CHANNEL_KEYS = (
    'ewallet',
    'retail_outlet',
    'qr_code',
    'direct_debit',
    'card',
    'virtual_account',
)


@attrs.define(frozen=True)
class ProviderEvent:
    event_type: str
    category: ProviderEventCategory
    data: dict[str, Any]
    reference_id: Optional[str] = None
    fallback_intent_id: Optional[str] = None
    provider_transaction_id: Optional[str] = None
    payment_method: str = UNKNOWN_PAYMENT_METHOD
    amount: Optional[Decimal] = None
    occurred_at: Optional[datetime] = None


def normalize_payment_method(data: dict[str, Any]) -> str:
    """Reduce any of the three payment-method shapes to one uppercase channel code."""
    return _find_channel_code(data) or UNKNOWN_PAYMENT_METHOD


def _find_channel_code(data: dict[str, Any]) -> Optional[str]:
    # Invoice API
    channel = data.get('payment_channel')
    if isinstance(channel, str) and channel.strip():
        return channel.strip().upper()

    payment_method = data.get('payment_method')
    if isinstance(payment_method, str) and payment_method.strip():
        return payment_method.strip().upper()

    # Payment-request API
    if isinstance(payment_method, dict):
        for key in _PAYMENT_METHOD_CHANNEL_KEYS:
            nested = payment_method.get(key)
            if isinstance(nested, dict) and nested.get('channel_code'):
                return str(nested['channel_code']).upper()
        if payment_method.get('channel_code'):
            return str(payment_method['channel_code']).upper()
        if payment_method.get('type'):
            return str(payment_method['type']).upper()

    # Payment-session API
    if isinstance(data.get('channel_code'), str) and data['channel_code'].strip():
        return data['channel_code'].strip().upper()
    captures = data.get('captures')
    if isinstance(captures, list) and captures and isinstance(captures[0], dict):
        return _find_channel_code(captures[0])

    return None


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _parse_amount(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


def _first_str(*values: Any) -> Optional[str]:
    for value in values:
        if value is not None and str(value).strip():
            return str(value).strip()
    return None


def parse_provider_event(payload: dict[str, Any]) -> ProviderEvent:
    event_type = str(payload.get('event') or payload.get('type') or '').strip()
    raw_data = payload.get('data')
    # Legacy invoice callbacks are flat, newer APIs nest everything under `data`
    data: dict[str, Any] = raw_data if isinstance(raw_data, dict) else payload

    metadata = data.get('metadata') if isinstance(data.get('metadata'), dict) else {}

    if not event_type and data.get('status') == 'PAID' and payload.get('external_id'):
        event_type = 'invoice.paid'

    return ProviderEvent(
        event_type=event_type or 'unknown',
        category=EVENT_TYPE_CATEGORIES.get(event_type, ProviderEventCategory.UNKNOWN),
        data=data,
        reference_id=_first_str(
            data.get('reference_id'), payload.get('external_id'), data.get('external_id')
        ),
        fallback_intent_id=_first_str(metadata.get('intent_id')),
        provider_transaction_id=_first_str(
            data.get('payment_request_id'), data.get('payment_id'), data.get('id')
        ),
        payment_method=normalize_payment_method(data),
        amount=_parse_amount(
            data.get('amount') if data.get('amount') is not None else data.get('paid_amount')
        ),
        occurred_at=_parse_timestamp(data.get('paid_at')) or _parse_timestamp(data.get('created')),
    )
