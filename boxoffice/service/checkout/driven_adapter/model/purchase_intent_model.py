from datetime import datetime
from decimal import Decimal
from typing import Any, Optional
import uuid

from sqlalchemy import JSON, CheckConstraint, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from boxoffice.platform.database.orm_db_setting import Base
from boxoffice.platform.database.orm_types import TZDateTime


class PurchaseIntentModel(Base):
    __tablename__ = 'purchase_intent'
    __table_args__ = (
        CheckConstraint(
            '(buyer_user_id IS NULL) <> (guest_email IS NULL)',
            name='ck_purchase_intent_single_buyer',
        ),
        CheckConstraint('quantity >= 1', name='ck_purchase_intent_quantity'),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True)  # UUID7
    inventory_unit_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    seller_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    buyer_user_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    guest_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    guest_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    guest_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    price_breakdown: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    promo_code_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    external_reference_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    provider_session_id: Mapped[Optional[str]] = mapped_column(
        String(128), nullable=True, index=True
    )
    payment_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    provider_transaction_id: Mapped[Optional[str]] = mapped_column(
        String(128), nullable=True, index=True
    )
    payment_method: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    status: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    refund_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    refunded_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)

    created_at: Mapped[datetime] = mapped_column(TZDateTime, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(TZDateTime, nullable=False, index=True)
    paid_at: Mapped[Optional[datetime]] = mapped_column(TZDateTime, nullable=True)
    refunded_at: Mapped[Optional[datetime]] = mapped_column(TZDateTime, nullable=True)
