from datetime import datetime
from decimal import Decimal
from typing import Optional
import uuid

from sqlalchemy import Integer, Numeric, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from boxoffice.platform.database.orm_db_setting import Base
from boxoffice.platform.database.orm_types import TZDateTime


class LedgerEntryModel(Base):
    __tablename__ = 'ledger_entry'
    __table_args__ = (
        # Second line of defence behind the intent status gate
        UniqueConstraint('intent_id', 'kind', name='uq_ledger_entry_intent_kind'),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True)
    intent_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, index=True)
    seller_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    gross_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    platform_fee: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    processing_fee: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    fixed_fee: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    seller_payout: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    provider_transaction_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    payout_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(TZDateTime, nullable=False)
