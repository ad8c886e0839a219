from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from boxoffice.platform.types import UtilsUUID7
from boxoffice.service.settlement.domain.entity.payout_entity import Payout


class PayoutCreateRequest(BaseModel):
    seller_id: int
    bank_account_id: int

    class Config:
        json_schema_extra = {'example': {'seller_id': 3, 'bank_account_id': 7}}


class PayoutResponse(BaseModel):
    model_config = {
        'json_schema_extra': {
            'example': {
                'id': '01936d8f-5e73-7c4e-a9c5-123456789abc',  # UUID7, provider idempotency key
                'seller_id': 3,
                'bank_account_id': 7,
                'amount': '750.00',
                'status': 'pending_request',
                'auto_approved': False,
                'needs_reconciliation': False,
                'provider_disbursement_id': None,
                'admin_notes': None,
                'created_at': '2025-01-10T10:30:00Z',
            }
        },
    }

    id: UtilsUUID7
    seller_id: int
    bank_account_id: int
    amount: Decimal
    status: str
    auto_approved: bool
    needs_reconciliation: bool
    provider_disbursement_id: Optional[str] = None
    admin_notes: Optional[str] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_payout(cls, payout: Payout) -> 'PayoutResponse':
        return cls(
            id=payout.id,
            seller_id=payout.seller_id,
            bank_account_id=payout.bank_account_id,
            amount=payout.amount,
            status=payout.status.value,
            auto_approved=payout.auto_approved,
            needs_reconciliation=payout.needs_reconciliation,
            provider_disbursement_id=payout.provider_disbursement_id,
            admin_notes=payout.admin_notes,
            approved_by=payout.approved_by,
            approved_at=payout.approved_at,
            created_at=payout.created_at,
        )
