from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from boxoffice.platform.database.orm_db_setting import Base
from boxoffice.platform.database.orm_types import TZDateTime


class PromoCodeModel(Base):
    __tablename__ = 'promo_code'
    __table_args__ = (UniqueConstraint('listing_id', 'code', name='uq_promo_code_listing_code'),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    listing_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    code: Mapped[str] = mapped_column(String(50), nullable=False)  # stored upper-cased
    discount_type: Mapped[str] = mapped_column(String(20), nullable=False)
    discount_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    expires_at: Mapped[Optional[datetime]] = mapped_column(TZDateTime, nullable=True)
    usage_limit: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
