from datetime import datetime
from decimal import Decimal

import attrs
from uuid_utils import UUID

from boxoffice.service.checkout.domain.enum.refund_reason import RefundReason


@attrs.define(frozen=True)
class RefundReceipt:
    intent_id: UUID
    refund_id: str
    amount: Decimal
    reason: RefundReason
    refunded_at: datetime
