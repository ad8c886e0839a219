from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Self

from dependency_injector.wiring import Provide, Provider, inject
from fastapi import Depends
from opentelemetry import trace
from uuid_utils import UUID

from boxoffice.platform.config.core_setting import Settings
from boxoffice.platform.config.di import Container
from boxoffice.platform.database.unit_of_work import UnitOfWorkFactory
from boxoffice.platform.exception.exceptions import (
    ConcurrencyConflictError,
    ConflictError,
    ForbiddenError,
    InsufficientBalanceError,
    NotFoundError,
    ProviderError,
    ValidationError,
)
from boxoffice.platform.logging.loguru_io import Logger
from boxoffice.platform.metrics.checkout_metrics import metrics
from boxoffice.service.checkout.domain.entity.purchase_intent_entity import PurchaseIntent
from boxoffice.service.checkout.domain.enum.intent_status import IntentStatus
from boxoffice.service.checkout.domain.enum.refund_reason import RefundReason
from boxoffice.service.checkout.domain.value_object.refund_receipt import RefundReceipt
from boxoffice.service.settlement.domain.enum.ledger_entry_enum import LedgerEntryKind
from boxoffice.service.shared_kernel.app.interface.i_notification_dispatcher import (
    INotificationDispatcher,
)
from boxoffice.service.shared_kernel.app.interface.i_payment_gateway import IPaymentGateway
from boxoffice.service.shared_kernel.domain.entity.user_entity import UserEntity
from boxoffice.service.shared_kernel.domain.enum.notification_kind import NotificationKind
from boxoffice.service.shared_kernel.domain.enum.transition_outcome import TransitionOutcome
from boxoffice.service.shared_kernel.domain.value_object.money import ZERO, to_money
from boxoffice.service.shared_kernel.domain.value_object.payment_gateway_request import (
    RefundRequest,
)


class RefundPurchaseIntentUseCase:
    """
    completed -> refunded.

    `execute` is the seller/admin request: ask the provider first, then record.
    `record_refund` is the bookkeeping half, shared with the refund.succeeded
    webhook; the completed -> refunded compare-and-swap makes it safe to run
    twice for the same refund.
    """

    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        payment_gateway: IPaymentGateway,
        notification_dispatcher: INotificationDispatcher,
        settings: Settings,
    ) -> None:
        self.uow_factory = uow_factory
        self.payment_gateway = payment_gateway
        self.notification_dispatcher = notification_dispatcher
        self.settings = settings
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: UnitOfWorkFactory = Depends(Provider[Container.unit_of_work]),
        payment_gateway: IPaymentGateway = Depends(Provide[Container.payment_gateway]),
        notification_dispatcher: INotificationDispatcher = Depends(
            Provide[Container.notification_dispatcher]
        ),
        settings: Settings = Depends(Provide[Container.config_service]),
    ) -> Self:
        return cls(
            uow_factory=uow_factory,
            payment_gateway=payment_gateway,
            notification_dispatcher=notification_dispatcher,
            settings=settings,
        )

    @Logger.io
    async def execute(
        self,
        *,
        intent_id: UUID,
        actor: UserEntity,
        amount: Optional[Decimal] = None,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> RefundReceipt:
        now = now or datetime.now(timezone.utc)

        with self.tracer.start_as_current_span(
            'use_case.refund_purchase_intent',
            attributes={'intent.id': str(intent_id), 'actor.id': actor.id},
        ):
            async with self.uow_factory() as uow:
                intent = await uow.purchase_intents.get_by_id(intent_id=intent_id)
                if intent is None:
                    raise NotFoundError('Purchase intent not found')
                seller = await uow.sellers.get_by_id(seller_id=intent.seller_id)
                if not actor.is_admin and (seller is None or seller.user_id != actor.id):
                    raise ForbiddenError('Only the organizer or an admin can refund this purchase')
                if intent.status != IntentStatus.COMPLETED:
                    raise ConflictError(
                        f'Only completed purchases can be refunded (current: {intent.status})'
                    )
                sale = await uow.ledger_entries.get_for_intent(
                    intent_id=intent.id, kind=LedgerEntryKind.SALE
                )
                unit = await uow.inventory_units.get_by_id(
                    inventory_unit_id=intent.inventory_unit_id
                )

            total = intent.breakdown.total
            refund_amount = to_money(amount) if amount is not None else total
            if refund_amount <= ZERO:
                raise ValidationError('Refund amount must be positive')
            if refund_amount > total:
                raise ValidationError(f'Refund amount cannot exceed the amount paid ({total})')

            provider_reference = await self._provider_reference(
                intent=intent, stored=sale.provider_transaction_id if sale else None
            )
            await self._check_balance(refund_amount=refund_amount)

            refund_reason = RefundReason.from_input(reason)
            request = RefundRequest(
                provider_reference=provider_reference,
                amount=refund_amount,
                currency=self.settings.CURRENCY,
                reason=refund_reason.value,
                idempotency_key=f'refund-{intent.id}-{int(now.timestamp() * 1000)}',
                metadata={
                    'intent_id': str(intent.id),
                    'user_id': actor.id,
                    'custom_reason': reason or '',
                    'intent_type': unit.kind.value if unit else None,
                },
            )

            try:
                refund_id = await self.payment_gateway.refund(request=request)
            except ProviderError:
                # Never guess: the intent stays completed until the provider confirms
                metrics.record_refund(result='provider_error')
                raise

            # Audited here, not in record_refund: the refund.succeeded webhook may record it first
            async with self.uow_factory() as uow:
                await uow.audit_log.record(
                    actor_id=actor.id,
                    action='refund_purchase',
                    target_type='purchase_intent',
                    target_id=str(intent.id),
                    detail={
                        'amount': str(refund_amount),
                        'refund_id': refund_id,
                        'reason': refund_reason.value,
                    },
                )
                await uow.commit()

            await self.record_refund(
                intent_id=intent.id, refund_id=refund_id, amount=refund_amount, now=now
            )
            metrics.record_refund(result='refunded')

        return RefundReceipt(
            intent_id=intent.id,
            refund_id=refund_id,
            amount=refund_amount,
            reason=refund_reason,
            refunded_at=now,
        )

    @Logger.io
    async def record_refund(
        self,
        *,
        intent_id: UUID,
        refund_id: Optional[str],
        amount: Optional[Decimal] = None,
        now: Optional[datetime] = None,
    ) -> TransitionOutcome:
        now = now or datetime.now(timezone.utc)

        async with self.uow_factory() as uow:
            intent = await uow.purchase_intents.get_by_id(intent_id=intent_id)
            if intent is None:
                raise NotFoundError('Purchase intent not found')
            if intent.status == IntentStatus.REFUNDED:
                return TransitionOutcome.ALREADY_APPLIED

            total = intent.breakdown.total
            refund_amount = min(to_money(amount), total) if amount is not None else total
            # Raises InvalidTransitionError unless completed
            refunded = intent.refund(
                refunded_at=now, refunded_amount=refund_amount, refund_id=refund_id
            )
            if not await uow.purchase_intents.compare_and_set(
                intent=refunded, expected_status=IntentStatus.COMPLETED
            ):
                current = await uow.purchase_intents.get_by_id(intent_id=intent_id)
                if current is not None and current.status == IntentStatus.REFUNDED:
                    return TransitionOutcome.ALREADY_APPLIED
                raise ConcurrencyConflictError(f'Intent {intent_id} changed during refund')

            sale = await uow.ledger_entries.get_for_intent(
                intent_id=intent_id, kind=LedgerEntryKind.SALE
            )
            if sale is not None:
                ratio = refund_amount / total if total > ZERO else Decimal('1')
                await uow.ledger_entries.append(
                    entry=sale.reversal(ratio=ratio, provider_transaction_id=refund_id)
                )
            else:
                Logger.base.error(f'🚨 [REFUND] Intent {intent_id} refunded without a sale entry')

            await uow.capacity_ledger.release(
                inventory_unit_id=intent.inventory_unit_id, quantity=intent.quantity
            )
            await uow.commit()

        Logger.base.info(f'💸 [REFUND] Intent {intent_id} refunded {refund_amount} ({refund_id})')
        await self._notify_buyer(intent=refunded)
        return TransitionOutcome.APPLIED

    async def _provider_reference(self, *, intent: PurchaseIntent, stored: Optional[str]) -> str:
        reference = stored or intent.provider_session_id
        if reference:
            return reference

        Logger.base.info(
            f'🔎 [REFUND] No stored reference for {intent.id}, '
            f'searching provider by {intent.external_reference_id}'
        )
        reference = await self.payment_gateway.find_payment_reference(
            external_reference_id=intent.external_reference_id
        )
        if not reference:
            raise ValidationError('No provider payment reference to refund against')
        return reference

    async def _check_balance(self, *, refund_amount: Decimal) -> None:
        try:
            available = await self.payment_gateway.get_balance()
        except ProviderError as e:
            # The refund call itself is the authority; an unknown balance does not block it
            Logger.base.warning(f'⚠️ [REFUND] Balance check failed, proceeding: {e.message}')
            return
        if available < refund_amount:
            metrics.record_refund(result='insufficient_balance')
            raise InsufficientBalanceError(
                f'Insufficient provider balance. Available: {available}, required: {refund_amount}',
                available_balance=available,
            )

    async def _notify_buyer(self, *, intent: PurchaseIntent) -> None:
        guest = intent.buyer.guest
        try:
            await self.notification_dispatcher.dispatch(
                kind=NotificationKind.REFUND_PROCESSED,
                target_id=str(intent.id),
                payload={
                    'user_id': intent.buyer.user_id,
                    'email': guest.email if guest else None,
                    'name': guest.name if guest else None,
                    'refunded_amount': intent.refunded_amount,
                    'refund_id': intent.refund_id,
                },
            )
        except Exception:
            Logger.base.exception(f'❌ [NOTIFY] Refund notification failed for intent {intent.id}')
