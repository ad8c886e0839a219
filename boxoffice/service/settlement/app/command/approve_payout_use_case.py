from datetime import datetime, timezone
from typing import Optional, Self

from dependency_injector.wiring import Provide, Provider, inject
from fastapi import Depends
from opentelemetry import trace
from uuid_utils import UUID

from boxoffice.platform.config.di import Container
from boxoffice.platform.database.unit_of_work import UnitOfWorkFactory
from boxoffice.platform.exception.exceptions import (
    ConcurrencyConflictError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
)
from boxoffice.platform.logging.loguru_io import Logger
from boxoffice.service.settlement.app.command.disburse_payout_use_case import (
    DisbursePayoutUseCase,
)
from boxoffice.service.settlement.domain.entity.payout_entity import Payout
from boxoffice.service.settlement.domain.enum.payout_status import PayoutStatus
from boxoffice.service.shared_kernel.app.interface.i_notification_dispatcher import (
    INotificationDispatcher,
)
from boxoffice.service.shared_kernel.domain.entity.user_entity import UserEntity
from boxoffice.service.shared_kernel.domain.enum.notification_kind import NotificationKind


class ApprovePayoutUseCase:
    """
    Admin approval: pending_request -> processing, then disburse.

    The compare-and-swap on (id, status='pending_request', not flagged) is the
    only thing standing between two admins clicking approve at the same time
    and a double transfer: the loser gets a retryable conflict.
    """

    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        disburse_use_case: DisbursePayoutUseCase,
        notification_dispatcher: INotificationDispatcher,
    ) -> None:
        self.uow_factory = uow_factory
        self.disburse_use_case = disburse_use_case
        self.notification_dispatcher = notification_dispatcher
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: UnitOfWorkFactory = Depends(Provider[Container.unit_of_work]),
        disburse_use_case: DisbursePayoutUseCase = Depends(DisbursePayoutUseCase.depends),
        notification_dispatcher: INotificationDispatcher = Depends(
            Provide[Container.notification_dispatcher]
        ),
    ) -> Self:
        return cls(
            uow_factory=uow_factory,
            disburse_use_case=disburse_use_case,
            notification_dispatcher=notification_dispatcher,
        )

    @Logger.io
    async def execute(
        self, *, payout_id: UUID, admin: UserEntity, now: Optional[datetime] = None
    ) -> Payout:
        if not admin.is_admin:
            raise ForbiddenError('Only admins can approve payouts')
        now = now or datetime.now(timezone.utc)

        with self.tracer.start_as_current_span(
            'use_case.approve_payout', attributes={'payout.id': str(payout_id)}
        ):
            async with self.uow_factory() as uow:
                payout = await uow.payouts.get_by_id(payout_id=payout_id)
                if payout is None:
                    raise NotFoundError('Payout not found')
                if payout.needs_reconciliation:
                    raise ConflictError('Payout is flagged for reconciliation')
                account = await uow.sellers.get_bank_account(
                    bank_account_id=payout.bank_account_id
                )
                if account is None:
                    raise NotFoundError('Bank account not found')

                # Raises InvalidTransitionError unless pending_request
                approved = payout.transition(
                    PayoutStatus.PROCESSING, approved_by=admin.id, approved_at=now
                )
                if not await uow.payouts.compare_and_set(
                    payout=approved,
                    expected_status=PayoutStatus.PENDING_REQUEST,
                    require_reconciled=True,
                ):
                    current = await uow.payouts.get_by_id(payout_id=payout_id)
                    if current is not None and current.needs_reconciliation:
                        raise ConflictError('Payout is flagged for reconciliation')
                    raise ConcurrencyConflictError('Payout was already approved by another request')

                await uow.audit_log.record(
                    actor_id=admin.id,
                    action='approve_payout',
                    target_type='payout',
                    target_id=str(payout_id),
                    detail={'amount': str(payout.amount), 'seller_id': payout.seller_id},
                )
                await uow.commit()

            Logger.base.info(f'👍 [PAYOUT] {payout_id} approved by admin {admin.id}')

            disbursed = await self.disburse_use_case.execute(
                payout=approved, destination=account.destination()
            )

        await self._notify_seller(payout=disbursed)
        return disbursed

    async def _notify_seller(self, *, payout: Payout) -> None:
        try:
            await self.notification_dispatcher.dispatch(
                kind=NotificationKind.PAYOUT_APPROVED,
                target_id=str(payout.id),
                payload={'seller_id': payout.seller_id, 'amount': payout.amount},
            )
        except Exception:
            Logger.base.exception(f'❌ [NOTIFY] Payout notification failed for {payout.id}')
