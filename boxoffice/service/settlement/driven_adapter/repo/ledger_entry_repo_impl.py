from datetime import datetime, timezone
from decimal import Decimal
from typing import Sequence

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from uuid_utils import UUID

from boxoffice.platform.logging.loguru_io import Logger
from boxoffice.platform.types import to_std_uuid, to_utils_uuid
from boxoffice.service.settlement.app.interface.i_ledger_entry_repo import ILedgerEntryRepo
from boxoffice.service.settlement.domain.entity.ledger_entry_entity import LedgerEntry
from boxoffice.service.settlement.domain.enum.ledger_entry_enum import (
    LedgerEntryKind,
    LedgerEntryStatus,
)
from boxoffice.service.settlement.driven_adapter.model.ledger_entry_model import (
    LedgerEntryModel,
)


class LedgerEntryRepoImpl(ILedgerEntryRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def _to_entity(db_entry: LedgerEntryModel) -> LedgerEntry:
        return LedgerEntry(
            id=to_utils_uuid(db_entry.id),
            intent_id=to_utils_uuid(db_entry.intent_id),
            seller_id=db_entry.seller_id,
            kind=LedgerEntryKind(db_entry.kind),
            status=LedgerEntryStatus(db_entry.status),
            gross_amount=Decimal(db_entry.gross_amount),
            platform_fee=Decimal(db_entry.platform_fee),
            processing_fee=Decimal(db_entry.processing_fee),
            fixed_fee=Decimal(db_entry.fixed_fee),
            seller_payout=Decimal(db_entry.seller_payout),
            provider_transaction_id=db_entry.provider_transaction_id,
            payout_id=to_utils_uuid(db_entry.payout_id) if db_entry.payout_id else None,
            created_at=db_entry.created_at,
        )

    @Logger.io
    async def append(self, *, entry: LedgerEntry) -> LedgerEntry:
        created_at = entry.created_at or datetime.now(timezone.utc)
        self.session.add(
            LedgerEntryModel(
                id=to_std_uuid(entry.id),
                intent_id=to_std_uuid(entry.intent_id),
                seller_id=entry.seller_id,
                kind=entry.kind.value,
                status=entry.status.value,
                gross_amount=entry.gross_amount,
                platform_fee=entry.platform_fee,
                processing_fee=entry.processing_fee,
                fixed_fee=entry.fixed_fee,
                seller_payout=entry.seller_payout,
                provider_transaction_id=entry.provider_transaction_id,
                payout_id=to_std_uuid(entry.payout_id) if entry.payout_id else None,
                created_at=created_at,
            )
        )
        await self.session.flush()
        return entry

    async def get_for_intent(
        self, *, intent_id: UUID, kind: LedgerEntryKind
    ) -> LedgerEntry | None:
        db_entry = await self.session.scalar(
            select(LedgerEntryModel)
            .where(
                LedgerEntryModel.intent_id == to_std_uuid(intent_id),
                LedgerEntryModel.kind == kind.value,
            )
            .execution_options(populate_existing=True)
        )
        return self._to_entity(db_entry) if db_entry else None

    async def list_unswept(self, *, seller_id: int) -> list[LedgerEntry]:
        db_entries = await self.session.scalars(
            select(LedgerEntryModel)
            .where(
                LedgerEntryModel.seller_id == seller_id,
                LedgerEntryModel.status == LedgerEntryStatus.COMPLETED.value,
                LedgerEntryModel.payout_id.is_(None),
            )
            .order_by(LedgerEntryModel.created_at)
            .execution_options(populate_existing=True)
        )
        return [self._to_entity(db_entry) for db_entry in db_entries]

    @Logger.io
    async def link_to_payout(self, *, entry_ids: Sequence[UUID], payout_id: UUID) -> int:
        if not entry_ids:
            return 0
        result = await self.session.execute(
            update(LedgerEntryModel)
            .where(
                LedgerEntryModel.id.in_([to_std_uuid(entry_id) for entry_id in entry_ids]),
                LedgerEntryModel.payout_id.is_(None),
            )
            .values(payout_id=to_std_uuid(payout_id))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount  # type: ignore[attr-defined]

    async def list_by_payout(self, *, payout_id: UUID) -> list[LedgerEntry]:
        db_entries = await self.session.scalars(
            select(LedgerEntryModel)
            .where(LedgerEntryModel.payout_id == to_std_uuid(payout_id))
            .order_by(LedgerEntryModel.created_at)
            .execution_options(populate_existing=True)
        )
        return [self._to_entity(db_entry) for db_entry in db_entries]
