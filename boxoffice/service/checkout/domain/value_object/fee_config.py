from decimal import Decimal

import attrs

from boxoffice.service.checkout.domain.enum.pricing_enum import FeeModel


@attrs.define(frozen=True)
class FeeConfig:
    """A seller's fee settings with platform defaults already filled in."""

    platform_fee_percent: Decimal
    pass_fees_to_customer: bool = False
    fixed_fee_per_unit: Decimal = Decimal('15.00')
    processing_fee_percent: Decimal = Decimal('4')

    @property
    def fee_model(self) -> FeeModel:
        return FeeModel.PASSED_THROUGH if self.pass_fees_to_customer else FeeModel.ABSORBED
