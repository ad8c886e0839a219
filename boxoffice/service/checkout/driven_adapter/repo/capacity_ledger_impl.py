from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from boxoffice.platform.exception.exceptions import CapacityError, NotFoundError, ValidationError
from boxoffice.platform.logging.loguru_io import Logger
from boxoffice.platform.metrics.checkout_metrics import metrics
from boxoffice.service.checkout.app.interface.i_capacity_ledger import (
    ICapacityLedger,
    Reservation,
)
from boxoffice.service.checkout.driven_adapter.model.inventory_unit_model import (
    InventoryUnitModel,
)


class CapacityLedgerImpl(ICapacityLedger):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @Logger.io
    async def reserve(self, *, inventory_unit_id: int, quantity: int) -> Reservation:
        if quantity < 1:
            raise ValidationError('Quantity must be at least 1')

        # The WHERE clause is the arbitration point: no read-then-write window
        result = await self.session.execute(
            update(InventoryUnitModel)
            .where(
                InventoryUnitModel.id == inventory_unit_id,
                InventoryUnitModel.consumed_capacity + quantity
                <= InventoryUnitModel.total_capacity,
            )
            .values(consumed_capacity=InventoryUnitModel.consumed_capacity + quantity)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:  # type: ignore[attr-defined]
            metrics.record_reservation(reserved=True)
            return Reservation(inventory_unit_id=inventory_unit_id, quantity=quantity)

        exists = await self.session.scalar(
            select(InventoryUnitModel.id).where(InventoryUnitModel.id == inventory_unit_id)
        )
        if exists is None:
            raise NotFoundError('Inventory unit not found')

        metrics.record_reservation(reserved=False)
        raise CapacityError(f'Sold out: fewer than {quantity} remaining')

    @Logger.io
    async def release(self, *, inventory_unit_id: int, quantity: int) -> None:
        result = await self.session.execute(
            update(InventoryUnitModel)
            .where(
                InventoryUnitModel.id == inventory_unit_id,
                InventoryUnitModel.consumed_capacity >= quantity,
            )
            .values(consumed_capacity=InventoryUnitModel.consumed_capacity - quantity)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:  # type: ignore[attr-defined]
            # Capacity is already lower than what this intent holds: double release upstream
            Logger.base.error(
                f'🚨 [CAPACITY] Release of {quantity} on unit {inventory_unit_id} would go negative'
            )
