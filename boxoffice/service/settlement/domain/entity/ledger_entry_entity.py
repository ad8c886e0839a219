from datetime import datetime
from decimal import Decimal
from typing import Optional

import attrs
from uuid_utils import UUID, uuid7

from boxoffice.service.settlement.domain.enum.ledger_entry_enum import (
    LedgerEntryKind,
    LedgerEntryStatus,
)
from boxoffice.service.shared_kernel.domain.value_object.money import to_money


@attrs.define(frozen=True)
class LedgerEntry:
    """
    Immutable, append-only financial fact for one intent lifecycle event.

    A sale is written when an intent completes, a reversal (negated figures)
    when it is refunded. Both are swept into payouts, so a refund nets against
    the seller's next payout. The only later change is `payout_id`, set once
    by the sweep.
    """

    intent_id: UUID
    seller_id: int
    kind: LedgerEntryKind
    gross_amount: Decimal
    platform_fee: Decimal
    processing_fee: Decimal
    fixed_fee: Decimal
    seller_payout: Decimal
    provider_transaction_id: Optional[str] = None
    status: LedgerEntryStatus = LedgerEntryStatus.COMPLETED
    id: UUID = attrs.field(factory=uuid7)
    payout_id: Optional[UUID] = None
    created_at: Optional[datetime] = None

    def reversal(
        self, *, ratio: Decimal = Decimal('1'), provider_transaction_id: Optional[str] = None
    ) -> 'LedgerEntry':
        """Negated copy of a sale, scaled by `ratio` for partial refunds."""
        if self.kind != LedgerEntryKind.SALE:
            raise ValueError('Only a sale can be reversed')

        def negate(value: Decimal) -> Decimal:
            return -to_money(value * ratio)

        return LedgerEntry(
            intent_id=self.intent_id,
            seller_id=self.seller_id,
            kind=LedgerEntryKind.REVERSAL,
            gross_amount=negate(self.gross_amount),
            platform_fee=negate(self.platform_fee),
            processing_fee=negate(self.processing_fee),
            fixed_fee=negate(self.fixed_fee),
            seller_payout=negate(self.seller_payout),
            provider_transaction_id=provider_transaction_id or self.provider_transaction_id,
        )
