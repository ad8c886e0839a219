from decimal import Decimal

from sqlalchemy import CheckConstraint, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from boxoffice.platform.database.orm_db_setting import Base


class InventoryUnitModel(Base):
    __tablename__ = 'inventory_unit'
    __table_args__ = (
        CheckConstraint(
            'consumed_capacity >= 0 AND consumed_capacity <= total_capacity',
            name='ck_inventory_unit_capacity',
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    listing_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    seller_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    total_capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    consumed_capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
