from datetime import datetime, timezone
from typing import Optional, Self

from dependency_injector.wiring import Provider, inject
from fastapi import Depends
from uuid_utils import UUID

from boxoffice.platform.config.di import Container
from boxoffice.platform.database.unit_of_work import AbstractUnitOfWork, UnitOfWorkFactory
from boxoffice.platform.exception.exceptions import InvalidTransitionError, ReconciliationError
from boxoffice.platform.logging.loguru_io import Logger
from boxoffice.platform.metrics.checkout_metrics import metrics
from boxoffice.service.checkout.domain.enum.provider_event_category import (
    ProviderEventCategory,
)
from boxoffice.service.checkout.domain.provider_event import ProviderEvent
from boxoffice.service.settlement.domain.entity.payout_entity import Payout
from boxoffice.service.settlement.domain.enum.payout_status import PayoutStatus
from boxoffice.service.shared_kernel.domain.enum.transition_outcome import TransitionOutcome


class ApplyPayoutCallbackUseCase:
    """
    Provider payout callback: processing -> completed | failed.

    `failed` is terminal. The swept ledger entries stay linked to the failed
    payout and are re-swept by an operator, never automatically.
    """

    def __init__(self, *, uow_factory: UnitOfWorkFactory) -> None:
        self.uow_factory = uow_factory

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: UnitOfWorkFactory = Depends(Provider[Container.unit_of_work]),
    ) -> Self:
        return cls(uow_factory=uow_factory)

    @staticmethod
    async def _find_payout(uow: AbstractUnitOfWork, event: ProviderEvent) -> Optional[Payout]:
        # We send the payout id as reference_id, the provider's own id is stored after disburse
        if event.reference_id:
            try:
                payout_id = UUID(event.reference_id)
            except ValueError:
                payout_id = None
            if payout_id is not None:
                payout = await uow.payouts.get_by_id(payout_id=payout_id)
                if payout is not None:
                    return payout

        disbursement_id = event.data.get('id')
        if disbursement_id:
            return await uow.payouts.get_by_disbursement_id(disbursement_id=str(disbursement_id))
        return None

    @Logger.io
    async def execute(
        self, *, event: ProviderEvent, now: Optional[datetime] = None
    ) -> TransitionOutcome:
        target = (
            PayoutStatus.COMPLETED
            if event.category == ProviderEventCategory.PAYOUT_SUCCEEDED
            else PayoutStatus.FAILED
        )
        processed_at = event.occurred_at or now or datetime.now(timezone.utc)

        async with self.uow_factory() as uow:
            payout = await self._find_payout(uow, event)
            if payout is None:
                raise ReconciliationError(
                    f'{event.event_type} for unknown payout reference={event.reference_id!r}'
                )
            if payout.status == target:
                return TransitionOutcome.ALREADY_APPLIED

            try:
                settled = payout.transition(
                    target,
                    processed_at=processed_at,
                    provider_disbursement_id=(
                        payout.provider_disbursement_id or event.data.get('id')
                    ),
                )
            except InvalidTransitionError as e:
                raise ReconciliationError(e.message) from e

            if not await uow.payouts.compare_and_set(
                payout=settled, expected_status=PayoutStatus.PROCESSING
            ):
                raise ReconciliationError(f'Payout {payout.id} left processing during callback')
            await uow.commit()

        metrics.record_payout(status=target.value)
        if target == PayoutStatus.FAILED:
            Logger.base.error(
                f'❌ [PAYOUT] {payout.id} failed at provider '
                f'({event.data.get("failure_code") or "no failure code"}), manual re-sweep needed'
            )
        else:
            Logger.base.info(f'✅ [PAYOUT] {payout.id} completed, {payout.amount} delivered')
        return TransitionOutcome.APPLIED
