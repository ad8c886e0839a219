import time
from datetime import datetime, timezone
from typing import Any, Optional, Self

from dependency_injector.wiring import Provide, Provider, inject
from fastapi import Depends
from opentelemetry import trace

from boxoffice.platform.config.di import Container
from boxoffice.platform.database.unit_of_work import UnitOfWorkFactory
from boxoffice.platform.exception.exceptions import InvalidTransitionError, ReconciliationError
from boxoffice.platform.logging.loguru_io import Logger
from boxoffice.platform.metrics.checkout_metrics import metrics
from boxoffice.service.checkout.app.command.complete_purchase_intent_use_case import (
    CompletePurchaseIntentUseCase,
)
from boxoffice.service.checkout.app.command.refund_purchase_intent_use_case import (
    RefundPurchaseIntentUseCase,
)
from boxoffice.service.checkout.app.command.release_purchase_intent_use_case import (
    ReleasePurchaseIntentUseCase,
)
from boxoffice.service.checkout.app.query.intent_resolver import IntentResolver
from boxoffice.service.checkout.domain.enum.provider_event_category import (
    ProviderEventCategory as Category,
)
from boxoffice.service.checkout.domain.provider_event import ProviderEvent, parse_provider_event
from boxoffice.service.checkout.domain.value_object.intent_resolution import Unresolved
from boxoffice.service.settlement.app.command.apply_payout_callback_use_case import (
    ApplyPayoutCallbackUseCase,
)


IGNORED = 'ignored'
UNRESOLVED = 'unresolved'
UNRECONCILED = 'unreconciled'
LOGGED = 'logged'


class ReconcileProviderEventUseCase:
    """
    Webhook reconciler: one provider delivery -> at most one state transition.

    Every outcome here is answered with success, so the provider stops
    retrying: unknown event types, unresolvable references and events that
    contradict the current state are logged instead. Only infrastructure
    errors (database down) escape, for the controller to answer as retryable.
    """

    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        resolver: IntentResolver,
        complete_use_case: CompletePurchaseIntentUseCase,
        release_use_case: ReleasePurchaseIntentUseCase,
        refund_use_case: RefundPurchaseIntentUseCase,
        payout_callback_use_case: ApplyPayoutCallbackUseCase,
    ) -> None:
        self.uow_factory = uow_factory
        self.resolver = resolver
        self.complete_use_case = complete_use_case
        self.release_use_case = release_use_case
        self.refund_use_case = refund_use_case
        self.payout_callback_use_case = payout_callback_use_case
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: UnitOfWorkFactory = Depends(Provider[Container.unit_of_work]),
        resolver: IntentResolver = Depends(Provide[Container.intent_resolver]),
        complete_use_case: CompletePurchaseIntentUseCase = Depends(
            CompletePurchaseIntentUseCase.depends
        ),
        release_use_case: ReleasePurchaseIntentUseCase = Depends(
            ReleasePurchaseIntentUseCase.depends
        ),
        refund_use_case: RefundPurchaseIntentUseCase = Depends(
            RefundPurchaseIntentUseCase.depends
        ),
        payout_callback_use_case: ApplyPayoutCallbackUseCase = Depends(
            ApplyPayoutCallbackUseCase.depends
        ),
    ) -> Self:
        return cls(
            uow_factory=uow_factory,
            resolver=resolver,
            complete_use_case=complete_use_case,
            release_use_case=release_use_case,
            refund_use_case=refund_use_case,
            payout_callback_use_case=payout_callback_use_case,
        )

    @Logger.io
    async def execute(self, *, payload: dict[str, Any]) -> dict[str, str]:
        event = parse_provider_event(payload)
        started = time.perf_counter()
        outcome = 'error'

        with self.tracer.start_as_current_span(
            'use_case.reconcile_provider_event',
            attributes={'event.type': event.event_type, 'event.category': event.category.value},
        ):
            try:
                outcome = await self._dispatch(event)
            except ReconciliationError as e:
                Logger.base.warning(f'⚠️ [WEBHOOK] {event.event_type} not reconciled: {e.message}')
                outcome = UNRECONCILED
            finally:
                metrics.record_webhook(
                    event_type=event.event_type,
                    outcome=outcome,
                    duration=time.perf_counter() - started,
                )

        return {'status': outcome}

    async def _dispatch(self, event: ProviderEvent) -> str:
        if event.category == Category.UNKNOWN:
            Logger.base.info(f'🙈 [WEBHOOK] Ignoring event type {event.event_type!r}')
            return IGNORED

        if event.category in (Category.PAYOUT_SUCCEEDED, Category.PAYOUT_FAILED):
            outcome = await self.payout_callback_use_case.execute(event=event)
            return outcome.value

        async with self.uow_factory() as uow:
            resolution = await self.resolver.resolve(uow=uow, event=event)
        if isinstance(resolution, Unresolved):
            # Expected during provider endpoint verification; never ask for a retry
            Logger.base.warning(f'❓ [WEBHOOK] {event.event_type} unresolved: {resolution.reason}')
            return UNRESOLVED
        intent = resolution.intent

        try:
            if event.category == Category.PAYMENT_SUCCEEDED:
                outcome = await self.complete_use_case.execute(
                    intent_id=intent.id,
                    paid_at=event.occurred_at or datetime.now(timezone.utc),
                    payment_method=event.payment_method,
                    provider_transaction_id=event.provider_transaction_id,
                )
            elif event.category == Category.PAYMENT_FAILED:
                outcome = await self.release_use_case.fail(intent_id=intent.id)
            elif event.category == Category.PAYMENT_EXPIRED:
                outcome = await self.release_use_case.expire(intent_id=intent.id)
            elif event.category == Category.REFUND_SUCCEEDED:
                outcome = await self.refund_use_case.record_refund(
                    intent_id=intent.id,
                    refund_id=self._refund_id(event),
                    amount=event.amount,
                    now=event.occurred_at,
                )
            else:
                Logger.base.error(
                    f'❌ [REFUND] Provider reported refund failure for intent {intent.id}: '
                    f'{event.data.get("failure_code") or event.data.get("status")}'
                )
                return LOGGED
        except InvalidTransitionError as e:
            raise ReconciliationError(e.message) from e

        return outcome.value

    @staticmethod
    def _refund_id(event: ProviderEvent) -> Optional[str]:
        refund_id = event.data.get('id')
        return str(refund_id) if refund_id else None
