from decimal import Decimal

import attrs

from boxoffice.service.checkout.domain.enum.inventory_kind import InventoryKind


@attrs.define
class InventoryUnit:
    """A sellable capacity pool: an event, an (event, tier) or an (experience, schedule)."""

    id: int
    kind: InventoryKind
    listing_id: int
    seller_id: int
    name: str
    unit_price: Decimal
    total_capacity: int
    consumed_capacity: int = 0

    @property
    def remaining_capacity(self) -> int:
        return self.total_capacity - self.consumed_capacity

    @property
    def allows_guest_checkout(self) -> bool:
        # Experience hosts need an account to contact the buyer
        return self.kind != InventoryKind.EXPERIENCE
