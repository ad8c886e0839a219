from datetime import datetime, timedelta, timezone
from typing import Optional, Self

from dependency_injector.wiring import Provide, Provider, inject
from fastapi import Depends
from opentelemetry import trace

from boxoffice.platform.config.core_setting import Settings
from boxoffice.platform.config.di import Container
from boxoffice.platform.database.unit_of_work import UnitOfWorkFactory
from boxoffice.platform.exception.exceptions import (
    AuthenticationError,
    CapacityError,
    NotFoundError,
    ValidationError,
)
from boxoffice.platform.logging.loguru_io import Logger
from boxoffice.platform.metrics.checkout_metrics import metrics
from boxoffice.service.checkout.app.command.open_payment_session_use_case import (
    OpenPaymentSessionUseCase,
)
from boxoffice.service.checkout.domain.entity.purchase_intent_entity import PurchaseIntent
from boxoffice.service.checkout.domain.pricing_domain import calculate_price_breakdown
from boxoffice.service.checkout.domain.value_object.buyer_identity import BuyerIdentity
from boxoffice.service.checkout.domain.value_object.fee_config import FeeConfig
from boxoffice.service.settlement.domain.entity.seller_entity import Seller
from boxoffice.service.shared_kernel.domain.entity.user_entity import UserEntity


class CreatePurchaseIntentUseCase:
    """
    Checkout entry point.

    Flow:
    1. Resolve the buyer (token, or complete guest contact)
    2. Price the purchase from the seller's fee settings and the promo code
    3. Reserve capacity and persist the pending intent in one transaction
    4. Open the hosted payment session (outside the transaction)

    Sold out is detected by the reservation itself, so the intent is never
    created and nothing has to be undone.
    """

    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        open_session_use_case: OpenPaymentSessionUseCase,
        settings: Settings,
    ) -> None:
        self.uow_factory = uow_factory
        self.open_session_use_case = open_session_use_case
        self.settings = settings
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: UnitOfWorkFactory = Depends(Provider[Container.unit_of_work]),
        open_session_use_case: OpenPaymentSessionUseCase = Depends(
            OpenPaymentSessionUseCase.depends
        ),
        settings: Settings = Depends(Provide[Container.config_service]),
    ) -> Self:
        return cls(
            uow_factory=uow_factory,
            open_session_use_case=open_session_use_case,
            settings=settings,
        )

    def fee_config_for(self, seller: Seller) -> FeeConfig:
        return FeeConfig(
            platform_fee_percent=(
                seller.platform_fee_percent
                if seller.platform_fee_percent is not None
                else self.settings.DEFAULT_PLATFORM_FEE_PERCENT
            ),
            pass_fees_to_customer=seller.pass_fees_to_customer,
            fixed_fee_per_unit=(
                seller.fixed_fee_per_unit
                if seller.fixed_fee_per_unit is not None
                else self.settings.DEFAULT_FIXED_FEE_PER_UNIT
            ),
            processing_fee_percent=self.settings.PROCESSING_FEE_PERCENT,
        )

    @Logger.io
    async def execute(
        self,
        *,
        inventory_unit_id: int,
        quantity: int,
        user: Optional[UserEntity],
        guest_email: Optional[str] = None,
        guest_name: Optional[str] = None,
        guest_phone: Optional[str] = None,
        promo_code: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> PurchaseIntent:
        now = now or datetime.now(timezone.utc)

        with self.tracer.start_as_current_span(
            'use_case.create_purchase_intent',
            attributes={'inventory_unit.id': inventory_unit_id, 'quantity': quantity},
        ):
            try:
                intent = await self._reserve_and_create(
                    inventory_unit_id=inventory_unit_id,
                    quantity=quantity,
                    user=user,
                    guest_email=guest_email,
                    guest_name=guest_name,
                    guest_phone=guest_phone,
                    promo_code=promo_code,
                    now=now,
                )
            except CapacityError:
                metrics.record_checkout(result='sold_out')
                raise
            except (ValidationError, AuthenticationError):
                metrics.record_checkout(result='validation_error')
                raise

            metrics.record_checkout(result='created')
            Logger.base.info(
                f'🛒 [CHECKOUT] Intent {intent.id} reserved {quantity} on unit {inventory_unit_id}, '
                f'total {intent.breakdown.total} ({intent.breakdown.fee_model})'
            )

        return await self.open_session_use_case.execute(intent_id=intent.id, user=user, now=now)

    async def _reserve_and_create(
        self,
        *,
        inventory_unit_id: int,
        quantity: int,
        user: Optional[UserEntity],
        guest_email: Optional[str],
        guest_name: Optional[str],
        guest_phone: Optional[str],
        promo_code: Optional[str],
        now: datetime,
    ) -> PurchaseIntent:
        if quantity < 1:
            raise ValidationError('Quantity must be at least 1')
        buyer = BuyerIdentity.resolve(
            user=user, guest_email=guest_email, guest_name=guest_name, guest_phone=guest_phone
        )

        async with self.uow_factory() as uow:
            unit = await uow.inventory_units.get_by_id(inventory_unit_id=inventory_unit_id)
            if unit is None:
                raise NotFoundError('Inventory unit not found')
            if buyer.is_guest and not unit.allows_guest_checkout:
                raise AuthenticationError('Login required to book this experience')

            seller = await uow.sellers.get_by_id(seller_id=unit.seller_id)
            if seller is None:
                raise NotFoundError('Seller not found')

            promo = None
            if promo_code and promo_code.strip():
                promo = await uow.promo_codes.get_by_code(
                    listing_id=unit.listing_id, code=promo_code
                )
                if promo is None:
                    raise ValidationError('Invalid promo code')

            breakdown = calculate_price_breakdown(
                unit_price=unit.unit_price,
                quantity=quantity,
                fee_config=self.fee_config_for(seller),
                now=now,
                promo_code=promo,
            )

            await uow.capacity_ledger.reserve(inventory_unit_id=unit.id, quantity=quantity)

            intent = PurchaseIntent.create(
                inventory_unit_id=unit.id,
                seller_id=unit.seller_id,
                quantity=quantity,
                buyer=buyer,
                breakdown=breakdown,
                reference_prefix=self.settings.EXTERNAL_REFERENCE_PREFIX,
                ttl=timedelta(minutes=self.settings.INTENT_TTL_MINUTES),
                promo_code_id=promo.id if promo else None,
                now=now,
            )
            await uow.purchase_intents.create(intent=intent)
            await uow.commit()

        return intent
