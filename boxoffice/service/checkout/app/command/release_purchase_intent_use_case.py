from typing import Self

from dependency_injector.wiring import Provider, inject
from fastapi import Depends
from opentelemetry import trace
from uuid_utils import UUID

from boxoffice.platform.config.di import Container
from boxoffice.platform.database.unit_of_work import UnitOfWorkFactory
from boxoffice.platform.exception.exceptions import InvalidTransitionError, NotFoundError
from boxoffice.platform.logging.loguru_io import Logger
from boxoffice.service.checkout.domain.enum.intent_status import IntentStatus
from boxoffice.service.shared_kernel.domain.enum.transition_outcome import TransitionOutcome


class ReleasePurchaseIntentUseCase:
    """
    Move a pending intent to failed or expired and hand its capacity back.

    The status compare-and-swap gates the release, so a replayed failure
    event, a racing reaper and a lazy expiry can never release twice.
    """

    def __init__(self, *, uow_factory: UnitOfWorkFactory) -> None:
        self.uow_factory = uow_factory
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: UnitOfWorkFactory = Depends(Provider[Container.unit_of_work]),
    ) -> Self:
        return cls(uow_factory=uow_factory)

    @Logger.io
    async def fail(self, *, intent_id: UUID) -> TransitionOutcome:
        return await self._release(intent_id=intent_id, target=IntentStatus.FAILED)

    @Logger.io
    async def expire(self, *, intent_id: UUID) -> TransitionOutcome:
        return await self._release(intent_id=intent_id, target=IntentStatus.EXPIRED)

    async def _release(self, *, intent_id: UUID, target: IntentStatus) -> TransitionOutcome:
        with self.tracer.start_as_current_span(
            'use_case.release_purchase_intent',
            attributes={'intent.id': str(intent_id), 'intent.target_status': target.value},
        ):
            async with self.uow_factory() as uow:
                intent = await uow.purchase_intents.get_by_id(intent_id=intent_id)
                if intent is None:
                    raise NotFoundError('Purchase intent not found')
                if intent.status == target:
                    return TransitionOutcome.ALREADY_APPLIED

                # Raises InvalidTransitionError for anything but pending
                released = intent.fail() if target == IntentStatus.FAILED else intent.expire()

                if not await uow.purchase_intents.compare_and_set(
                    intent=released, expected_status=IntentStatus.PENDING
                ):
                    current = await uow.purchase_intents.get_by_id(intent_id=intent_id)
                    if current is not None and current.status == target:
                        return TransitionOutcome.ALREADY_APPLIED
                    raise InvalidTransitionError(
                        entity=f'Intent {intent_id}',
                        current=current.status.value if current else 'missing',
                        target=target.value,
                    )

                await uow.capacity_ledger.release(
                    inventory_unit_id=intent.inventory_unit_id, quantity=intent.quantity
                )
                await uow.commit()

            Logger.base.info(
                f'🔓 [CHECKOUT] Intent {intent_id} {target.value}, '
                f'released {intent.quantity} on unit {intent.inventory_unit_id}'
            )
            return TransitionOutcome.APPLIED
