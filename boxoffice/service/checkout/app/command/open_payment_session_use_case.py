from datetime import datetime, timezone
from typing import Any, Optional, Self

from dependency_injector.wiring import Provide, Provider, inject
from fastapi import Depends
from opentelemetry import trace
from uuid_utils import UUID

from boxoffice.platform.config.core_setting import Settings
from boxoffice.platform.config.di import Container
from boxoffice.platform.database.unit_of_work import UnitOfWorkFactory
from boxoffice.platform.exception.exceptions import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    ProviderError,
    ProviderTimeoutError,
)
from boxoffice.platform.logging.loguru_io import Logger
from boxoffice.platform.metrics.checkout_metrics import metrics
from boxoffice.service.checkout.app.command.release_purchase_intent_use_case import (
    ReleasePurchaseIntentUseCase,
)
from boxoffice.service.checkout.domain.entity.inventory_unit_entity import InventoryUnit
from boxoffice.service.checkout.domain.entity.purchase_intent_entity import PurchaseIntent
from boxoffice.service.checkout.domain.enum.intent_status import IntentStatus
from boxoffice.service.checkout.domain.enum.pricing_enum import FeeModel
from boxoffice.service.shared_kernel.app.interface.i_payment_gateway import IPaymentGateway
from boxoffice.service.shared_kernel.domain.entity.user_entity import UserEntity
from boxoffice.service.shared_kernel.domain.value_object.payment_gateway_request import (
    SessionCustomer,
    SessionRequest,
)


def split_full_name(full_name: str) -> tuple[str, str]:
    """'Juan Dela Cruz' -> ('Juan Dela', 'Cruz'); the provider rejects empty name parts."""
    parts = full_name.split()
    if not parts:
        return 'Customer', '-'
    if len(parts) == 1:
        return parts[0], '-'
    return ' '.join(parts[:-1]), parts[-1]


class OpenPaymentSessionUseCase:
    """
    Open (or re-open) the hosted payment page of a pending intent.

    The intent's external reference id is the provider idempotency key, so a
    client retrying checkout never ends up with two sessions for one intent.
    The customer reference on the other hand changes per attempt: the provider
    rejects a reused customer reference.

    Failure handling:
    - timeout: the provider may still have created the session, leave the
      intent pending with its capacity and let expiry clean up
    - provider error: nothing was created, fail the intent and release now
    """

    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        payment_gateway: IPaymentGateway,
        release_use_case: ReleasePurchaseIntentUseCase,
        settings: Settings,
    ) -> None:
        self.uow_factory = uow_factory
        self.payment_gateway = payment_gateway
        self.release_use_case = release_use_case
        self.settings = settings
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: UnitOfWorkFactory = Depends(Provider[Container.unit_of_work]),
        payment_gateway: IPaymentGateway = Depends(Provide[Container.payment_gateway]),
        release_use_case: ReleasePurchaseIntentUseCase = Depends(
            ReleasePurchaseIntentUseCase.depends
        ),
        settings: Settings = Depends(Provide[Container.config_service]),
    ) -> Self:
        return cls(
            uow_factory=uow_factory,
            payment_gateway=payment_gateway,
            release_use_case=release_use_case,
            settings=settings,
        )

    @Logger.io
    async def execute(
        self,
        *,
        intent_id: UUID,
        user: Optional[UserEntity],
        now: Optional[datetime] = None,
    ) -> PurchaseIntent:
        now = now or datetime.now(timezone.utc)

        with self.tracer.start_as_current_span(
            'use_case.open_payment_session', attributes={'intent.id': str(intent_id)}
        ):
            async with self.uow_factory() as uow:
                intent = await uow.purchase_intents.get_by_id(intent_id=intent_id)
                if intent is None or not intent.is_visible_to(
                    user_id=user.id if user else None
                ):
                    raise NotFoundError('Purchase intent not found')
                unit = await uow.inventory_units.get_by_id(
                    inventory_unit_id=intent.inventory_unit_id
                )
                if unit is None:
                    raise NotFoundError('Inventory unit not found')
                promo = (
                    await uow.promo_codes.get_by_id(promo_code_id=intent.promo_code_id)
                    if intent.promo_code_id is not None
                    else None
                )

            if intent.status != IntentStatus.PENDING:
                raise ConflictError(f'Checkout is already {intent.status}')
            if intent.payment_url:
                return intent
            if intent.is_overdue(now=now):
                await self.release_use_case.expire(intent_id=intent.id)
                raise ConflictError('Checkout has expired, please start again')

            request = self._build_request(
                intent=intent,
                unit=unit,
                user=user,
                promo_code=promo.code if promo else None,
                now=now,
            )

            try:
                session = await self.payment_gateway.create_session(request=request)
            except ProviderTimeoutError:
                Logger.base.warning(
                    f'⏱️ [CHECKOUT] Session open timed out for intent {intent.id}, '
                    f'left pending until expiry'
                )
                metrics.record_checkout(result='provider_timeout')
                raise
            except ProviderError:
                await self._fail_intent(intent_id=intent.id)
                metrics.record_checkout(result='provider_error')
                raise

            async with self.uow_factory() as uow:
                attached = await uow.purchase_intents.attach_session(
                    intent_id=intent.id,
                    session_id=session.session_id,
                    payment_url=session.hosted_url,
                )
                await uow.commit()
            if not attached:
                Logger.base.warning(
                    f'⚠️ [CHECKOUT] Intent {intent.id} left pending before session '
                    f'{session.session_id} could be attached'
                )

            Logger.base.info(f'💳 [CHECKOUT] Session {session.session_id} opened for {intent.id}')
            return intent.attach_session(
                session_id=session.session_id, payment_url=session.hosted_url
            )

    async def _fail_intent(self, *, intent_id: UUID) -> None:
        try:
            await self.release_use_case.fail(intent_id=intent_id)
        except InvalidTransitionError as e:
            # A webhook moved the intent first; its capacity is already accounted for
            Logger.base.warning(f'⚠️ [CHECKOUT] Not failing intent {intent_id}: {e.message}')

    def _build_request(
        self,
        *,
        intent: PurchaseIntent,
        unit: InventoryUnit,
        user: Optional[UserEntity],
        promo_code: Optional[str],
        now: datetime,
    ) -> SessionRequest:
        attempt_ms = int(now.timestamp() * 1000)
        guest = intent.buyer.guest

        if guest is not None:
            customer_reference = f'guest_{intent.id}_{attempt_ms}'
            email, full_name, mobile = guest.email, guest.name, guest.phone
        else:
            customer_reference = f'{intent.buyer.user_id}_{attempt_ms}'
            email = user.email if user else ''
            full_name = user.name if user else ''
            mobile = None
        given_names, surname = split_full_name(full_name)

        metadata: dict[str, Any] = {
            'intent_id': str(intent.id),
            'listing_id': unit.listing_id,
            'inventory_unit_id': unit.id,
            'is_guest': intent.buyer.is_guest,
            'promo_code': promo_code,
        }
        if guest is not None:
            metadata['guest_email'] = guest.email
        else:
            metadata['user_id'] = intent.buyer.user_id
        if intent.breakdown.fee_model == FeeModel.PASSED_THROUGH:
            metadata['fee_breakdown'] = intent.breakdown.to_dict()

        return SessionRequest(
            reference_id=intent.external_reference_id,
            amount=intent.breakdown.total,
            currency=self.settings.CURRENCY,
            country=self.settings.COUNTRY,
            customer=SessionCustomer(
                reference_id=customer_reference,
                email=email,
                given_names=given_names,
                surname=surname,
                mobile_number=mobile or self.settings.DEFAULT_CUSTOMER_MOBILE,
            ),
            description=f'{unit.name} x{intent.quantity}',
            success_url=self.settings.CHECKOUT_SUCCESS_URL,
            failure_url=self.settings.CHECKOUT_FAILURE_URL,
            metadata=metadata,
        )
