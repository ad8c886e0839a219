from decimal import Decimal
from typing import Any, Optional

import attrs


@attrs.define(frozen=True)
class SessionCustomer:
    reference_id: str
    email: str
    given_names: str
    surname: str
    mobile_number: str


@attrs.define(frozen=True)
class SessionRequest:
    reference_id: str  # intent external reference, stable across retries
    amount: Decimal
    currency: str
    country: str
    customer: SessionCustomer
    description: str
    success_url: str
    failure_url: str
    metadata: dict[str, Any] = attrs.field(factory=dict)


@attrs.define(frozen=True)
class PaymentSession:
    session_id: str
    hosted_url: str


@attrs.define(frozen=True)
class RefundRequest:
    provider_reference: str
    amount: Decimal
    currency: str
    reason: str
    idempotency_key: str
    metadata: dict[str, Any] = attrs.field(factory=dict)


@attrs.define(frozen=True)
class BankDestination:
    bank_code: str
    account_number: str = attrs.field(repr=False)
    account_holder_name: str


@attrs.define(frozen=True)
class DisbursementRequest:
    payout_id: str  # also the idempotency key
    destination: BankDestination
    amount: Decimal
    currency: str
    description: Optional[str] = None
