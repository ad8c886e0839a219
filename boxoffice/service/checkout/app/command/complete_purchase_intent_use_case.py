from datetime import datetime
from typing import Optional, Self

from dependency_injector.wiring import Provide, Provider, inject
from fastapi import Depends
from opentelemetry import trace
from uuid_utils import UUID

from boxoffice.platform.config.di import Container
from boxoffice.platform.database.unit_of_work import UnitOfWorkFactory
from boxoffice.platform.exception.exceptions import ReconciliationError
from boxoffice.platform.logging.loguru_io import Logger
from boxoffice.service.checkout.app.interface.i_ticket_issuer import ITicketIssuer
from boxoffice.service.checkout.domain.entity.purchase_intent_entity import PurchaseIntent
from boxoffice.service.checkout.domain.enum.intent_status import IntentStatus
from boxoffice.service.settlement.domain.entity.ledger_entry_entity import LedgerEntry
from boxoffice.service.settlement.domain.enum.ledger_entry_enum import LedgerEntryKind
from boxoffice.service.shared_kernel.app.interface.i_notification_dispatcher import (
    INotificationDispatcher,
)
from boxoffice.service.shared_kernel.domain.enum.notification_kind import NotificationKind
from boxoffice.service.shared_kernel.domain.enum.transition_outcome import TransitionOutcome


_ALREADY_PAID = frozenset({IntentStatus.COMPLETED, IntentStatus.REFUNDED})


class CompletePurchaseIntentUseCase:
    """
    pending -> completed, driven by a provider payment-success event.

    Flow:
    1. Compare-and-swap the status (the only gate for every side effect)
    2. Append the sale ledger entry and bump promo usage in the same transaction
    3. Commit
    4. Issue tickets and dispatch the confirmation (external, after commit)

    A replayed event loses the compare-and-swap and returns ALREADY_APPLIED
    without touching the ledger, the issuer or the notifier.
    """

    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        ticket_issuer: ITicketIssuer,
        notification_dispatcher: INotificationDispatcher,
    ) -> None:
        self.uow_factory = uow_factory
        self.ticket_issuer = ticket_issuer
        self.notification_dispatcher = notification_dispatcher
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: UnitOfWorkFactory = Depends(Provider[Container.unit_of_work]),
        ticket_issuer: ITicketIssuer = Depends(Provide[Container.ticket_issuer]),
        notification_dispatcher: INotificationDispatcher = Depends(
            Provide[Container.notification_dispatcher]
        ),
    ) -> Self:
        return cls(
            uow_factory=uow_factory,
            ticket_issuer=ticket_issuer,
            notification_dispatcher=notification_dispatcher,
        )

    @Logger.io
    async def execute(
        self,
        *,
        intent_id: UUID,
        paid_at: datetime,
        payment_method: str,
        provider_transaction_id: Optional[str],
    ) -> TransitionOutcome:
        with self.tracer.start_as_current_span(
            'use_case.complete_purchase_intent',
            attributes={'intent.id': str(intent_id), 'payment.method': payment_method},
        ):
            async with self.uow_factory() as uow:
                intent = await uow.purchase_intents.get_by_id(intent_id=intent_id)
                if intent is None:
                    raise ReconciliationError(f'Payment success for unknown intent {intent_id}')
                if intent.status in _ALREADY_PAID:
                    Logger.base.info(f'🔁 [WEBHOOK] Intent {intent_id} already {intent.status}')
                    return TransitionOutcome.ALREADY_APPLIED
                if intent.status != IntentStatus.PENDING:
                    # Money moved for an intent we already gave up on: needs a human
                    raise ReconciliationError(
                        f'Payment success for {intent.status} intent {intent_id}'
                    )

                completed = intent.complete(
                    paid_at=paid_at,
                    payment_method=payment_method,
                    provider_transaction_id=provider_transaction_id,
                )
                if not await uow.purchase_intents.compare_and_set(
                    intent=completed, expected_status=IntentStatus.PENDING
                ):
                    current = await uow.purchase_intents.get_by_id(intent_id=intent_id)
                    if current is not None and current.status in _ALREADY_PAID:
                        return TransitionOutcome.ALREADY_APPLIED
                    raise ReconciliationError(
                        f'Intent {intent_id} left pending while applying a payment success'
                    )

                breakdown = completed.breakdown
                await uow.ledger_entries.append(
                    entry=LedgerEntry(
                        intent_id=completed.id,
                        seller_id=completed.seller_id,
                        kind=LedgerEntryKind.SALE,
                        gross_amount=breakdown.gross_amount,
                        platform_fee=breakdown.platform_fee,
                        processing_fee=breakdown.processing_fee,
                        fixed_fee=breakdown.fixed_fee,
                        seller_payout=breakdown.seller_payout,
                        provider_transaction_id=provider_transaction_id,
                        created_at=paid_at,
                    )
                )
                if completed.promo_code_id is not None:
                    await uow.promo_codes.increment_usage(promo_code_id=completed.promo_code_id)
                await uow.commit()

            Logger.base.info(
                f'✅ [WEBHOOK] Intent {intent_id} completed via {payment_method}, '
                f'seller {completed.seller_id} owed {breakdown.seller_payout}'
            )

        await self._issue_tickets(intent=completed)
        await self._notify_buyer(intent=completed)
        return TransitionOutcome.APPLIED

    async def _issue_tickets(self, *, intent: PurchaseIntent) -> None:
        guest = intent.buyer.guest
        try:
            await self.ticket_issuer.issue(
                intent_id=intent.id,
                payload={
                    'inventory_unit_id': intent.inventory_unit_id,
                    'quantity': intent.quantity,
                    'buyer_user_id': intent.buyer.user_id,
                    'guest_email': guest.email if guest else None,
                    'guest_name': guest.name if guest else None,
                    'external_reference_id': intent.external_reference_id,
                },
            )
        except Exception:
            # The sale is committed; issuance is idempotent by intent id and can be replayed
            Logger.base.exception(f'❌ [ISSUE] Ticket issuance failed for intent {intent.id}')

    async def _notify_buyer(self, *, intent: PurchaseIntent) -> None:
        guest = intent.buyer.guest
        try:
            await self.notification_dispatcher.dispatch(
                kind=NotificationKind.PURCHASE_CONFIRMED,
                target_id=str(intent.id),
                payload={
                    'user_id': intent.buyer.user_id,
                    'email': guest.email if guest else None,
                    'name': guest.name if guest else None,
                    'quantity': intent.quantity,
                    'total': intent.breakdown.total,
                    'payment_method': intent.payment_method,
                },
            )
        except Exception:
            Logger.base.exception(f'❌ [NOTIFY] Purchase confirmation failed for intent {intent.id}')
