from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from boxoffice.service.checkout.app.interface.i_inventory_unit_repo import IInventoryUnitRepo
from boxoffice.service.checkout.domain.entity.inventory_unit_entity import InventoryUnit
from boxoffice.service.checkout.domain.enum.inventory_kind import InventoryKind
from boxoffice.service.checkout.driven_adapter.model.inventory_unit_model import (
    InventoryUnitModel,
)


class InventoryUnitRepoImpl(IInventoryUnitRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def _to_entity(db_unit: InventoryUnitModel) -> InventoryUnit:
        return InventoryUnit(
            id=db_unit.id,
            kind=InventoryKind(db_unit.kind),
            listing_id=db_unit.listing_id,
            seller_id=db_unit.seller_id,
            name=db_unit.name,
            unit_price=Decimal(db_unit.unit_price),
            total_capacity=db_unit.total_capacity,
            consumed_capacity=db_unit.consumed_capacity,
        )

    async def get_by_id(self, *, inventory_unit_id: int) -> InventoryUnit | None:
        db_unit = await self.session.scalar(
            select(InventoryUnitModel)
            .where(InventoryUnitModel.id == inventory_unit_id)
            .execution_options(populate_existing=True)
        )
        return self._to_entity(db_unit) if db_unit else None
