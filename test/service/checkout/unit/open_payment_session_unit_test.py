"""
Unit tests for the hosted payment session request

Only the request construction is covered here; the session lifecycle against
a database lives in the checkout integration tests.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, Mock

import pytest

from boxoffice.platform.config.core_setting import Settings
from boxoffice.service.checkout.app.command.open_payment_session_use_case import (
    OpenPaymentSessionUseCase,
    split_full_name,
)
from boxoffice.service.checkout.domain.entity.inventory_unit_entity import InventoryUnit
from boxoffice.service.checkout.domain.entity.purchase_intent_entity import PurchaseIntent
from boxoffice.service.checkout.domain.enum.inventory_kind import InventoryKind
from boxoffice.service.checkout.domain.pricing_domain import calculate_price_breakdown
from boxoffice.service.checkout.domain.value_object.buyer_identity import (
    BuyerIdentity,
    GuestContact,
)
from boxoffice.service.checkout.domain.value_object.fee_config import FeeConfig
from boxoffice.service.shared_kernel.domain.entity.user_entity import UserEntity


NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)
NOW_MS = int(NOW.timestamp() * 1000)


@pytest.fixture
def unit() -> InventoryUnit:
    return InventoryUnit(
        id=7,
        kind=InventoryKind.TIER,
        listing_id=42,
        seller_id=3,
        name='Summer Fest VIP',
        unit_price=Decimal('500.00'),
        total_capacity=100,
    )


@pytest.fixture
def use_case(test_settings: Settings) -> OpenPaymentSessionUseCase:
    return OpenPaymentSessionUseCase(
        uow_factory=Mock(),
        payment_gateway=AsyncMock(),
        release_use_case=AsyncMock(),
        settings=test_settings,
    )


def _intent(*, buyer: BuyerIdentity, pass_fees: bool = False) -> PurchaseIntent:
    return PurchaseIntent.create(
        inventory_unit_id=7,
        seller_id=3,
        quantity=2,
        buyer=buyer,
        breakdown=calculate_price_breakdown(
            unit_price=Decimal('500'),
            quantity=2,
            fee_config=FeeConfig(
                platform_fee_percent=Decimal('10'), pass_fees_to_customer=pass_fees
            ),
            now=NOW,
        ),
        reference_prefix='bo',
        ttl=timedelta(minutes=15),
        now=NOW,
    )


@pytest.mark.unit
class TestSplitFullName:
    @pytest.mark.parametrize(
        'full_name, expected',
        [
            ('Juan Dela Cruz', ('Juan Dela', 'Cruz')),
            ('Maria', ('Maria', '-')),
            ('   ', ('Customer', '-')),
            ('', ('Customer', '-')),
        ],
    )
    def test_split(self, full_name: str, expected: tuple[str, str]) -> None:
        assert split_full_name(full_name) == expected


@pytest.mark.unit
class TestSessionRequest:
    def test_account_buyer_request(
        self, use_case: OpenPaymentSessionUseCase, unit: InventoryUnit, buyer_user: UserEntity
    ) -> None:
        """
        Given an absorbed-fee intent of a logged-in buyer
        When the session request is built
        Then it carries the intent reference, the buyer's name split and no fee breakdown
        """
        # Arrange
        intent = _intent(buyer=BuyerIdentity(user_id=buyer_user.id))

        # Act
        request = use_case._build_request(
            intent=intent, unit=unit, user=buyer_user, promo_code=None, now=NOW
        )

        # Assert
        assert request.reference_id == intent.external_reference_id
        assert request.amount == Decimal('1100.00')
        assert request.currency == 'PHP'
        assert request.customer.reference_id == f'{buyer_user.id}_{NOW_MS}'
        assert (request.customer.given_names, request.customer.surname) == ('Juan Dela', 'Cruz')
        assert request.customer.mobile_number == '+639000000000'
        assert request.metadata['intent_id'] == str(intent.id)
        assert request.metadata['user_id'] == buyer_user.id
        assert request.metadata['is_guest'] is False
        assert 'fee_breakdown' not in request.metadata

    def test_guest_request_with_passed_through_fees(
        self, use_case: OpenPaymentSessionUseCase, unit: InventoryUnit
    ) -> None:
        # Arrange
        guest = GuestContact(email='maria@example.ph', name='Maria Santos', phone='+639171234567')
        intent = _intent(buyer=BuyerIdentity(guest=guest), pass_fees=True)

        # Act
        request = use_case._build_request(
            intent=intent, unit=unit, user=None, promo_code='SAVE200', now=NOW
        )

        # Assert
        assert request.amount == Decimal('1030.00')
        assert request.customer.reference_id == f'guest_{intent.id}_{NOW_MS}'
        assert request.customer.email == 'maria@example.ph'
        assert request.customer.mobile_number == '+639171234567'
        assert request.metadata['guest_email'] == 'maria@example.ph'
        assert request.metadata['promo_code'] == 'SAVE200'
        assert request.metadata['fee_breakdown']['total'] == '1030.00'
        assert request.description == 'Summer Fest VIP x2'
