from abc import ABC, abstractmethod

from boxoffice.service.checkout.domain.entity.inventory_unit_entity import InventoryUnit


class IInventoryUnitRepo(ABC):
    @abstractmethod
    async def get_by_id(self, *, inventory_unit_id: int) -> InventoryUnit | None:
        pass
