from decimal import Decimal
from typing import Optional

import attrs

from boxoffice.service.shared_kernel.domain.value_object.payment_gateway_request import (
    BankDestination,
)


@attrs.define
class Seller:
    """Organizer or host. Unset fee fields fall back to platform defaults."""

    id: int
    user_id: int
    name: str
    platform_fee_percent: Optional[Decimal] = None
    pass_fees_to_customer: bool = False
    fixed_fee_per_unit: Optional[Decimal] = None
    auto_approve_enabled: bool = False
    payout_limit: Optional[Decimal] = None

    def can_auto_approve(self, *, amount: Decimal, default_limit: Decimal) -> bool:
        limit = self.payout_limit if self.payout_limit is not None else default_limit
        return self.auto_approve_enabled and amount <= limit


@attrs.define
class SellerBankAccount:
    id: int
    seller_id: int
    bank_code: str
    account_number: str = attrs.field(repr=False)
    account_holder_name: str

    def destination(self) -> BankDestination:
        return BankDestination(
            bank_code=self.bank_code,
            account_number=self.account_number,
            account_holder_name=self.account_holder_name,
        )
