from datetime import datetime, timezone
from typing import Optional, Self, Sequence

import attrs
from dependency_injector.wiring import Provide, Provider, inject
from fastapi import Depends
from opentelemetry import trace
from uuid_utils import UUID

from boxoffice.platform.config.core_setting import Settings
from boxoffice.platform.config.di import Container
from boxoffice.platform.database.unit_of_work import UnitOfWorkFactory
from boxoffice.platform.exception.exceptions import (
    ForbiddenError,
    InsufficientFundsError,
    NotFoundError,
    ProviderError,
)
from boxoffice.platform.logging.loguru_io import Logger
from boxoffice.platform.metrics.checkout_metrics import metrics
from boxoffice.service.settlement.app.command.disburse_payout_use_case import (
    DisbursePayoutUseCase,
)
from boxoffice.service.settlement.domain.entity.payout_entity import Payout
from boxoffice.service.settlement.domain.enum.payout_status import PayoutStatus
from boxoffice.service.shared_kernel.domain.entity.user_entity import UserEntity
from boxoffice.service.shared_kernel.domain.value_object.money import ZERO, to_money


class RequestPayoutUseCase:
    """
    Sweep a seller's unpaid ledger entries into one payout.

    Flow:
    1. Sum the sweep set (completed entries with no payout yet, reversals included)
    2. Insert the payout, `processing` if auto-approvable else `pending_request`
    3. Link the sweep set to it in a second transaction
    4. Auto-approved: disburse right away

    If step 3 links fewer rows than were summed (a concurrent sweep took some)
    or fails outright, the link is rolled back and the payout is flagged for
    manual reconciliation. Its id may already be known outside, so it is
    never deleted.
    """

    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        disburse_use_case: DisbursePayoutUseCase,
        settings: Settings,
    ) -> None:
        self.uow_factory = uow_factory
        self.disburse_use_case = disburse_use_case
        self.settings = settings
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: UnitOfWorkFactory = Depends(Provider[Container.unit_of_work]),
        disburse_use_case: DisbursePayoutUseCase = Depends(DisbursePayoutUseCase.depends),
        settings: Settings = Depends(Provide[Container.config_service]),
    ) -> Self:
        return cls(uow_factory=uow_factory, disburse_use_case=disburse_use_case, settings=settings)

    @Logger.io
    async def execute(
        self,
        *,
        seller_id: int,
        bank_account_id: int,
        actor: UserEntity,
        now: Optional[datetime] = None,
    ) -> Payout:
        now = now or datetime.now(timezone.utc)

        with self.tracer.start_as_current_span(
            'use_case.request_payout', attributes={'seller.id': seller_id}
        ):
            async with self.uow_factory() as uow:
                seller = await uow.sellers.get_by_id(seller_id=seller_id)
                if seller is None:
                    raise NotFoundError('Seller not found')
                if not actor.is_admin and seller.user_id != actor.id:
                    raise ForbiddenError('You can only request payouts for your own account')

                account = await uow.sellers.get_bank_account(bank_account_id=bank_account_id)
                if account is None or account.seller_id != seller.id:
                    raise NotFoundError('Bank account not found')

                sweep_set = await uow.ledger_entries.list_unswept(seller_id=seller.id)
                amount = to_money(sum((entry.seller_payout for entry in sweep_set), ZERO))
                if amount <= ZERO:
                    raise InsufficientFundsError()

                auto_approved = seller.can_auto_approve(
                    amount=amount, default_limit=self.settings.DEFAULT_PAYOUT_LIMIT
                )
                payout = Payout(
                    seller_id=seller.id,
                    bank_account_id=account.id,
                    amount=amount,
                    status=(
                        PayoutStatus.PROCESSING if auto_approved else PayoutStatus.PENDING_REQUEST
                    ),
                    auto_approved=auto_approved,
                    approved_at=now if auto_approved else None,
                    admin_notes='Auto-approved' if auto_approved else None,
                    created_at=now,
                )
                await uow.payouts.create(payout=payout)
                await uow.commit()

            Logger.base.info(
                f'🧾 [PAYOUT] {payout.id} created for seller {seller.id}: '
                f'{amount} from {len(sweep_set)} entries ({payout.status})'
            )

            note = await self._link_sweep_set(
                payout_id=payout.id, entry_ids=[entry.id for entry in sweep_set]
            )
            if note is not None:
                async with self.uow_factory() as uow:
                    await uow.payouts.flag_for_reconciliation(payout_id=payout.id, note=note)
                    await uow.commit()
                metrics.record_payout(status='needs_reconciliation')
                Logger.base.error(f'🚨 [PAYOUT] {payout.id} flagged for reconciliation: {note}')
                return attrs.evolve(
                    payout,
                    status=PayoutStatus.PENDING_REQUEST,
                    needs_reconciliation=True,
                    admin_notes=note,
                )

            metrics.record_payout(status=payout.status.value)
            if not auto_approved:
                return payout

            try:
                return await self.disburse_use_case.execute(
                    payout=payout, destination=account.destination()
                )
            except ProviderError:
                # Reverted to pending_request by the disburse step, the request itself succeeded
                async with self.uow_factory() as uow:
                    return await uow.payouts.get_by_id(payout_id=payout.id) or payout

    async def _link_sweep_set(self, *, payout_id: UUID, entry_ids: Sequence[UUID]) -> str | None:
        """Returns None when every entry was linked, else the reconciliation note."""
        try:
            async with self.uow_factory() as uow:
                linked = await uow.ledger_entries.link_to_payout(
                    entry_ids=entry_ids, payout_id=payout_id
                )
                if linked == len(entry_ids):
                    await uow.commit()
                    return None
        except Exception as e:
            Logger.base.exception(f'❌ [PAYOUT] Linking ledger entries to {payout_id} failed')
            return f'Ledger linking failed: {e}'

        return f'Linked {linked} of {len(entry_ids)} ledger entries; another sweep took the rest'
