"""
Unit tests for calculate_price_breakdown

Covers both fee models:
- absorbed: platform fee on the discounted base, added to the customer total
- passed-through: fixed surcharge on the customer, percentage fees deducted from the seller
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from boxoffice.platform.exception.exceptions import ValidationError
from boxoffice.service.checkout.domain.entity.promo_code_entity import PromoCode
from boxoffice.service.checkout.domain.enum.pricing_enum import DiscountType, FeeModel
from boxoffice.service.checkout.domain.pricing_domain import calculate_price_breakdown
from boxoffice.service.checkout.domain.value_object.fee_config import FeeConfig


NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def absorbed() -> FeeConfig:
    return FeeConfig(platform_fee_percent=Decimal('10'))


@pytest.fixture
def passed_through() -> FeeConfig:
    return FeeConfig(
        platform_fee_percent=Decimal('10'),
        pass_fees_to_customer=True,
        fixed_fee_per_unit=Decimal('15.00'),
        processing_fee_percent=Decimal('4'),
    )


def _promo(**overrides) -> PromoCode:
    fields = {
        'id': 1,
        'listing_id': 1,
        'code': 'SAVE200',
        'discount_type': DiscountType.FIXED,
        'discount_amount': Decimal('200.00'),
    }
    fields.update(overrides)
    return PromoCode(**fields)


@pytest.mark.unit
class TestAbsorbedFeeModel:
    def test_no_promo__fee_added_on_top(self, absorbed: FeeConfig) -> None:
        """
        Given subtotal 1000 at 10% platform fee and no promo
        When priced
        Then platform_fee=100, total=1100 and the seller is owed 900
        """
        # Act
        breakdown = calculate_price_breakdown(
            unit_price=Decimal('500'), quantity=2, fee_config=absorbed, now=NOW
        )

        # Assert
        assert breakdown.fee_model == FeeModel.ABSORBED
        assert breakdown.subtotal == Decimal('1000.00')
        assert breakdown.discount == Decimal('0.00')
        assert breakdown.platform_fee == Decimal('100.00')
        assert breakdown.total == Decimal('1100.00')
        assert breakdown.gross_amount == Decimal('1000.00')
        assert breakdown.seller_payout == Decimal('900.00')

    def test_fixed_promo__fee_on_discounted_base(self, absorbed: FeeConfig) -> None:
        """
        Given the same purchase with a fixed 200 promo
        When priced
        Then discount=200, platform_fee=80, total=880
        """
        # Act
        breakdown = calculate_price_breakdown(
            unit_price=Decimal('500'), quantity=2, fee_config=absorbed, now=NOW, promo_code=_promo()
        )

        # Assert
        assert breakdown.discount == Decimal('200.00')
        assert breakdown.platform_fee == Decimal('80.00')
        assert breakdown.total == Decimal('880.00')
        assert breakdown.seller_payout == Decimal('720.00')

    def test_percentage_promo(self, absorbed: FeeConfig) -> None:
        # Arrange
        promo = _promo(discount_type=DiscountType.PERCENTAGE, discount_amount=Decimal('15'))

        # Act
        breakdown = calculate_price_breakdown(
            unit_price=Decimal('500'), quantity=2, fee_config=absorbed, now=NOW, promo_code=promo
        )

        # Assert
        assert breakdown.discount == Decimal('150.00')
        assert breakdown.platform_fee == Decimal('85.00')
        assert breakdown.total == Decimal('935.00')

    def test_discount_never_exceeds_subtotal(self, absorbed: FeeConfig) -> None:
        # Arrange
        promo = _promo(discount_amount=Decimal('5000.00'))

        # Act
        breakdown = calculate_price_breakdown(
            unit_price=Decimal('500'), quantity=2, fee_config=absorbed, now=NOW, promo_code=promo
        )

        # Assert
        assert breakdown.discount == Decimal('1000.00')
        assert breakdown.platform_fee == Decimal('0.00')
        assert breakdown.total == Decimal('0.00')

    def test_fees_rounded_half_up_to_centavos(self, absorbed: FeeConfig) -> None:
        # Act
        breakdown = calculate_price_breakdown(
            unit_price=Decimal('333.35'), quantity=1, fee_config=absorbed, now=NOW
        )

        # Assert
        assert breakdown.platform_fee == Decimal('33.34')
        assert breakdown.total == Decimal('366.69')


@pytest.mark.unit
class TestPassedThroughFeeModel:
    def test_customer_pays_fixed_fee_seller_absorbs_percentages(
        self, passed_through: FeeConfig
    ) -> None:
        """
        Given subtotal 1000, fixed fee 15 per unit, 10% platform and 4% processing
        When priced
        Then the customer pays 1030 and the seller is owed 1000 - 100 - 40
        """
        # Act
        breakdown = calculate_price_breakdown(
            unit_price=Decimal('500'), quantity=2, fee_config=passed_through, now=NOW
        )

        # Assert
        assert breakdown.fee_model == FeeModel.PASSED_THROUGH
        assert breakdown.fixed_fee == Decimal('30.00')
        assert breakdown.total == Decimal('1030.00')
        assert breakdown.platform_fee == Decimal('100.00')
        assert breakdown.processing_fee == Decimal('40.00')
        assert breakdown.gross_amount == Decimal('1000.00')
        assert breakdown.seller_payout == Decimal('860.00')

    def test_discount_recorded_but_moves_neither_total_nor_payout(
        self, passed_through: FeeConfig
    ) -> None:
        """
        Given the passed-through model and a promo code
        When the breakdown is calculated
        Then the discount is recorded while total, gross and seller payout match the no-promo case
        """
        # Act
        without_promo = calculate_price_breakdown(
            unit_price=Decimal('500'), quantity=2, fee_config=passed_through, now=NOW
        )
        with_promo = calculate_price_breakdown(
            unit_price=Decimal('500'),
            quantity=2,
            fee_config=passed_through,
            now=NOW,
            promo_code=_promo(),
        )

        # Assert
        assert with_promo.total == without_promo.total == Decimal('1030.00')
        assert with_promo.discount > Decimal('0')
        assert without_promo.discount == Decimal('0')
        assert with_promo.gross_amount == without_promo.gross_amount
        assert with_promo.seller_payout == without_promo.seller_payout == Decimal('860.00')


@pytest.mark.unit
class TestPricingValidation:
    @pytest.mark.parametrize('quantity', [0, -1])
    def test_quantity_below_one_rejected(self, absorbed: FeeConfig, quantity: int) -> None:
        with pytest.raises(ValidationError):
            calculate_price_breakdown(
                unit_price=Decimal('500'), quantity=quantity, fee_config=absorbed, now=NOW
            )

    def test_expired_promo_rejected(self, absorbed: FeeConfig) -> None:
        # Arrange
        promo = _promo(expires_at=NOW - timedelta(days=1))

        # Act & Assert
        with pytest.raises(ValidationError, match='expired'):
            calculate_price_breakdown(
                unit_price=Decimal('500'), quantity=2, fee_config=absorbed, now=NOW, promo_code=promo
            )

    def test_exhausted_promo_rejected(self, absorbed: FeeConfig) -> None:
        # Arrange
        promo = _promo(usage_limit=5, usage_count=5)

        # Act & Assert
        with pytest.raises(ValidationError, match='usage limit'):
            calculate_price_breakdown(
                unit_price=Decimal('500'), quantity=2, fee_config=absorbed, now=NOW, promo_code=promo
            )

    def test_inactive_promo_rejected(self, absorbed: FeeConfig) -> None:
        with pytest.raises(ValidationError, match='Invalid promo code'):
            calculate_price_breakdown(
                unit_price=Decimal('500'),
                quantity=2,
                fee_config=absorbed,
                now=NOW,
                promo_code=_promo(is_active=False),
            )


@pytest.mark.unit
def test_breakdown_survives_json_storage(absorbed: FeeConfig) -> None:
    """The stored breakdown is the only input for later ledger entries"""
    # Arrange
    breakdown = calculate_price_breakdown(
        unit_price=Decimal('500'), quantity=2, fee_config=absorbed, now=NOW, promo_code=_promo()
    )

    # Act
    restored = type(breakdown).from_dict(breakdown.to_dict())

    # Assert
    assert restored == breakdown
