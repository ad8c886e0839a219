from decimal import Decimal
from typing import Any

import attrs

from boxoffice.service.checkout.domain.enum.pricing_enum import FeeModel


@attrs.define(frozen=True)
class PriceBreakdown:
    """
    Every money figure of one checkout, fixed at creation time.

    The ledger entries for completion and refund are derived from this record
    alone, so later changes to seller fee settings never alter a past sale.

    gross_amount: sale value credited to the seller before fees
    seller_payout: what the seller is owed once the intent completes
    """

    fee_model: FeeModel
    unit_price: Decimal
    quantity: int
    subtotal: Decimal
    discount: Decimal
    platform_fee_percent: Decimal
    platform_fee: Decimal
    processing_fee: Decimal
    fixed_fee: Decimal
    total: Decimal
    gross_amount: Decimal
    seller_payout: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            field.name: (str(value) if isinstance(value, Decimal | FeeModel) else value)
            for field, value in zip(
                attrs.fields(PriceBreakdown), attrs.astuple(self, recurse=False), strict=True
            )
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'PriceBreakdown':
        return cls(
            fee_model=FeeModel(data['fee_model']),
            unit_price=Decimal(str(data['unit_price'])),
            quantity=int(data['quantity']),
            subtotal=Decimal(str(data['subtotal'])),
            discount=Decimal(str(data['discount'])),
            platform_fee_percent=Decimal(str(data['platform_fee_percent'])),
            platform_fee=Decimal(str(data['platform_fee'])),
            processing_fee=Decimal(str(data['processing_fee'])),
            fixed_fee=Decimal(str(data['fixed_fee'])),
            total=Decimal(str(data['total'])),
            gross_amount=Decimal(str(data['gross_amount'])),
            seller_payout=Decimal(str(data['seller_payout'])),
        )
