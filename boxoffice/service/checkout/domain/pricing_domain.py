"""
Pricing & fee calculation.

Pure: the caller supplies `now` for the promo checks, nothing is read or written.

Absorbed (default):
    platform_fee = (subtotal - discount) * platform_fee_percent
    total        = subtotal - discount + platform_fee
    seller gets  = subtotal - discount - platform_fee

Passed-through:
    total        = subtotal + fixed_fee_per_unit * quantity   (discount not applied)
    platform and processing fees are taken on the base subtotal and deducted
    from the seller instead of being added to the customer total
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from boxoffice.platform.exception.exceptions import ValidationError
from boxoffice.service.checkout.domain.entity.promo_code_entity import PromoCode
from boxoffice.service.checkout.domain.enum.pricing_enum import FeeModel
from boxoffice.service.checkout.domain.value_object.fee_config import FeeConfig
from boxoffice.service.checkout.domain.value_object.price_breakdown import PriceBreakdown
from boxoffice.service.shared_kernel.domain.value_object.money import ZERO, percent_of, to_money


def calculate_price_breakdown(
    *,
    unit_price: Decimal,
    quantity: int,
    fee_config: FeeConfig,
    now: datetime,
    promo_code: Optional[PromoCode] = None,
) -> PriceBreakdown:
    if quantity < 1:
        raise ValidationError('Quantity must be at least 1')
    if unit_price < 0:
        raise ValidationError('Unit price cannot be negative')

    subtotal = to_money(Decimal(unit_price) * quantity)

    discount = ZERO
    if promo_code is not None:
        # Usage limit and expiry are validation failures, never a silent zero discount
        promo_code.validate_usable(now=now)
        discount = promo_code.discount_for(subtotal)

    if fee_config.fee_model == FeeModel.PASSED_THROUGH:
        platform_fee = percent_of(subtotal, fee_config.platform_fee_percent)
        processing_fee = percent_of(subtotal, fee_config.processing_fee_percent)
        fixed_fee = to_money(fee_config.fixed_fee_per_unit * quantity)
        total = subtotal + fixed_fee
        gross_amount = subtotal
        seller_payout = subtotal - platform_fee - processing_fee
    else:
        base = subtotal - discount
        platform_fee = percent_of(base, fee_config.platform_fee_percent)
        processing_fee = ZERO
        fixed_fee = ZERO
        total = base + platform_fee
        gross_amount = base
        seller_payout = base - platform_fee

    return PriceBreakdown(
        fee_model=fee_config.fee_model,
        unit_price=to_money(unit_price),
        quantity=quantity,
        subtotal=subtotal,
        discount=discount,
        platform_fee_percent=Decimal(fee_config.platform_fee_percent),
        platform_fee=platform_fee,
        processing_fee=processing_fee,
        fixed_fee=fixed_fee,
        total=to_money(total),
        gross_amount=to_money(gross_amount),
        seller_payout=to_money(seller_payout),
    )
