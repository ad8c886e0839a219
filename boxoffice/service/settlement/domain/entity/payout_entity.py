from datetime import datetime
from decimal import Decimal
from typing import Optional

import attrs
from uuid_utils import UUID, uuid7

from boxoffice.platform.exception.exceptions import InvalidTransitionError
from boxoffice.service.settlement.domain.enum.payout_status import (
    PAYOUT_TRANSITIONS,
    PayoutStatus,
)


@attrs.define
class Payout:
    """
    One disbursement batch to a seller.

    `amount` equals the sum of the linked ledger entries' seller payouts at
    creation time. `id` doubles as the provider idempotency key.
    """

    seller_id: int
    bank_account_id: int
    amount: Decimal
    status: PayoutStatus
    id: UUID = attrs.field(factory=uuid7)
    auto_approved: bool = False
    needs_reconciliation: bool = False
    provider_disbursement_id: Optional[str] = None
    admin_notes: Optional[str] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    def transition(self, target: PayoutStatus, **changes) -> 'Payout':
        if target not in PAYOUT_TRANSITIONS.get(self.status, frozenset()):
            raise InvalidTransitionError(
                entity=f'Payout {self.id}', current=self.status.value, target=target.value
            )
        return attrs.evolve(self, status=target, **changes)
