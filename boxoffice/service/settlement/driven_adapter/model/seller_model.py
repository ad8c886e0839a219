from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from boxoffice.platform.database.orm_db_setting import Base


class SellerModel(Base):
    __tablename__ = 'seller'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    platform_fee_percent: Mapped[Optional[Decimal]] = mapped_column(Numeric(5, 2), nullable=True)
    pass_fees_to_customer: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    fixed_fee_per_unit: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    auto_approve_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    payout_limit: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)


class SellerBankAccountModel(Base):
    __tablename__ = 'seller_bank_account'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    seller_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    bank_code: Mapped[str] = mapped_column(String(50), nullable=False)
    account_number: Mapped[str] = mapped_column(String(64), nullable=False)
    account_holder_name: Mapped[str] = mapped_column(String(255), nullable=False)
