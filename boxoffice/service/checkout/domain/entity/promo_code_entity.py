from datetime import datetime
from decimal import Decimal
from typing import Optional

import attrs

from boxoffice.platform.exception.exceptions import ValidationError
from boxoffice.service.checkout.domain.enum.pricing_enum import DiscountType
from boxoffice.service.shared_kernel.domain.value_object.money import ZERO, percent_of, to_money


@attrs.define
class PromoCode:
    id: int
    listing_id: int
    code: str
    discount_type: DiscountType
    discount_amount: Decimal
    expires_at: Optional[datetime] = None
    usage_limit: Optional[int] = None
    usage_count: int = 0
    is_active: bool = True

    def validate_usable(self, *, now: datetime) -> None:
        if not self.is_active:
            raise ValidationError('Invalid promo code')
        if self.expires_at is not None and self.expires_at < now:
            raise ValidationError('Promo code has expired')
        if self.usage_limit is not None and self.usage_count >= self.usage_limit:
            raise ValidationError('Promo code usage limit reached')

    def discount_for(self, subtotal: Decimal) -> Decimal:
        """Never more than the subtotal."""
        if self.discount_type == DiscountType.PERCENTAGE:
            discount = percent_of(subtotal, self.discount_amount)
        else:
            discount = to_money(self.discount_amount)
        return max(ZERO, min(discount, to_money(subtotal)))
