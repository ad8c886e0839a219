from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from uuid_utils import UUID

from boxoffice.platform.logging.loguru_io import Logger
from boxoffice.platform.types import to_std_uuid, to_utils_uuid
from boxoffice.service.settlement.app.interface.i_payout_repo import IPayoutRepo
from boxoffice.service.settlement.domain.entity.payout_entity import Payout
from boxoffice.service.settlement.domain.enum.payout_status import PayoutStatus
from boxoffice.service.settlement.driven_adapter.model.payout_model import PayoutModel


class PayoutRepoImpl(IPayoutRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def _to_entity(db_payout: PayoutModel) -> Payout:
        return Payout(
            id=to_utils_uuid(db_payout.id),
            seller_id=db_payout.seller_id,
            bank_account_id=db_payout.bank_account_id,
            amount=Decimal(db_payout.amount),
            status=PayoutStatus(db_payout.status),
            auto_approved=db_payout.auto_approved,
            needs_reconciliation=db_payout.needs_reconciliation,
            provider_disbursement_id=db_payout.provider_disbursement_id,
            admin_notes=db_payout.admin_notes,
            approved_by=db_payout.approved_by,
            approved_at=db_payout.approved_at,
            processed_at=db_payout.processed_at,
            created_at=db_payout.created_at,
        )

    @Logger.io
    async def create(self, *, payout: Payout) -> Payout:
        self.session.add(
            PayoutModel(
                id=to_std_uuid(payout.id),
                seller_id=payout.seller_id,
                bank_account_id=payout.bank_account_id,
                amount=payout.amount,
                status=payout.status.value,
                auto_approved=payout.auto_approved,
                needs_reconciliation=payout.needs_reconciliation,
                admin_notes=payout.admin_notes,
                created_at=payout.created_at or datetime.now(timezone.utc),
            )
        )
        await self.session.flush()
        return payout

    async def get_by_id(self, *, payout_id: UUID) -> Payout | None:
        db_payout = await self.session.scalar(
            select(PayoutModel)
            .where(PayoutModel.id == to_std_uuid(payout_id))
            .execution_options(populate_existing=True)
        )
        return self._to_entity(db_payout) if db_payout else None

    async def get_by_disbursement_id(self, *, disbursement_id: str) -> Payout | None:
        db_payout = await self.session.scalar(
            select(PayoutModel)
            .where(PayoutModel.provider_disbursement_id == disbursement_id)
            .execution_options(populate_existing=True)
        )
        return self._to_entity(db_payout) if db_payout else None

    @Logger.io
    async def compare_and_set(
        self,
        *,
        payout: Payout,
        expected_status: PayoutStatus,
        require_reconciled: bool = False,
    ) -> bool:
        criteria = [
            PayoutModel.id == to_std_uuid(payout.id),
            PayoutModel.status == expected_status.value,
        ]
        if require_reconciled:
            criteria.append(PayoutModel.needs_reconciliation.is_(False))

        result = await self.session.execute(
            update(PayoutModel)
            .where(*criteria)
            .values(
                status=payout.status.value,
                provider_disbursement_id=payout.provider_disbursement_id,
                admin_notes=payout.admin_notes,
                approved_by=payout.approved_by,
                approved_at=payout.approved_at,
                processed_at=payout.processed_at,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1  # type: ignore[attr-defined]

    @Logger.io
    async def flag_for_reconciliation(self, *, payout_id: UUID, note: str) -> None:
        await self.session.execute(
            update(PayoutModel)
            .where(PayoutModel.id == to_std_uuid(payout_id))
            .values(
                needs_reconciliation=True,
                status=PayoutStatus.PENDING_REQUEST.value,
                admin_notes=note,
            )
            .execution_options(synchronize_session=False)
        )

    async def record_disbursement(self, *, payout_id: UUID, disbursement_id: str) -> None:
        await self.session.execute(
            update(PayoutModel)
            .where(PayoutModel.id == to_std_uuid(payout_id))
            .values(provider_disbursement_id=disbursement_id)
            .execution_options(synchronize_session=False)
        )
