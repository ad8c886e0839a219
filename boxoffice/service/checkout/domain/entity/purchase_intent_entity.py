from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional

import attrs
from uuid_utils import UUID, uuid7

from boxoffice.platform.exception.exceptions import InvalidTransitionError, ValidationError
from boxoffice.platform.logging.loguru_io import Logger
from boxoffice.service.checkout.domain.enum.intent_status import IntentStatus, can_transition
from boxoffice.service.checkout.domain.value_object.buyer_identity import BuyerIdentity
from boxoffice.service.checkout.domain.value_object.price_breakdown import PriceBreakdown


@attrs.define
class PurchaseIntent:
    """
    One checkout attempt and its audit record. Never deleted, only transitioned.

    Legal transitions:
        pending -> completed | failed | expired
        completed -> refunded
    """

    inventory_unit_id: int
    seller_id: int
    quantity: int
    buyer: BuyerIdentity
    breakdown: PriceBreakdown
    external_reference_id: str
    expires_at: datetime
    status: IntentStatus = IntentStatus.PENDING
    id: UUID = attrs.field(factory=uuid7)
    promo_code_id: Optional[int] = None
    provider_session_id: Optional[str] = None
    payment_url: Optional[str] = None
    payment_method: Optional[str] = None
    provider_transaction_id: Optional[str] = None
    refund_id: Optional[str] = None
    refunded_amount: Optional[Decimal] = None
    created_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    refunded_at: Optional[datetime] = None

    @classmethod
    @Logger.io
    def create(
        cls,
        *,
        inventory_unit_id: int,
        seller_id: int,
        quantity: int,
        buyer: BuyerIdentity,
        breakdown: PriceBreakdown,
        reference_prefix: str,
        ttl: timedelta,
        promo_code_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> 'PurchaseIntent':
        if quantity < 1:
            raise ValidationError('Quantity must be at least 1')

        now = now or datetime.now(timezone.utc)
        intent_id = uuid7()
        return cls(
            id=intent_id,
            inventory_unit_id=inventory_unit_id,
            seller_id=seller_id,
            quantity=quantity,
            buyer=buyer,
            breakdown=breakdown,
            # Sent to the provider as reference_id, stable across retries of this intent
            external_reference_id=f'{reference_prefix}-{intent_id}',
            promo_code_id=promo_code_id,
            created_at=now,
            expires_at=now + ttl,
        )

    def is_overdue(self, *, now: datetime) -> bool:
        return self.status == IntentStatus.PENDING and self.expires_at <= now

    def is_visible_to(self, *, user_id: Optional[int], is_admin: bool = False) -> bool:
        """Guest intents are addressed by their unguessable id alone, account intents by their owner."""
        if self.buyer.is_guest:
            return True
        return is_admin or (user_id is not None and user_id == self.buyer.user_id)

    def _transition(self, target: IntentStatus, **changes) -> 'PurchaseIntent':
        if not can_transition(self.status, target):
            raise InvalidTransitionError(
                entity=f'Intent {self.id}', current=self.status.value, target=target.value
            )
        return attrs.evolve(self, status=target, **changes)

    def complete(
        self,
        *,
        paid_at: datetime,
        payment_method: str,
        provider_transaction_id: Optional[str],
    ) -> 'PurchaseIntent':
        return self._transition(
            IntentStatus.COMPLETED,
            paid_at=paid_at,
            payment_method=payment_method,
            provider_transaction_id=provider_transaction_id,
        )

    def fail(self) -> 'PurchaseIntent':
        return self._transition(IntentStatus.FAILED)

    def expire(self) -> 'PurchaseIntent':
        return self._transition(IntentStatus.EXPIRED)

    def refund(
        self, *, refunded_at: datetime, refunded_amount: Decimal, refund_id: Optional[str]
    ) -> 'PurchaseIntent':
        return self._transition(
            IntentStatus.REFUNDED,
            refunded_at=refunded_at,
            refunded_amount=refunded_amount,
            refund_id=refund_id,
        )

    def attach_session(self, *, session_id: str, payment_url: str) -> 'PurchaseIntent':
        return attrs.evolve(self, provider_session_id=session_id, payment_url=payment_url)
