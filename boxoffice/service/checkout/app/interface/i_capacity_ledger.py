from abc import ABC, abstractmethod

import attrs


@attrs.define(frozen=True)
class Reservation:
    inventory_unit_id: int
    quantity: int


class ICapacityLedger(ABC):
    @abstractmethod
    async def reserve(self, *, inventory_unit_id: int, quantity: int) -> Reservation:
        """
        Atomically consume capacity.

        A single conditional write (`consumed + q <= total`) is the arbitration
        point, so concurrent callers can never jointly overcommit a unit.

        Raises:
            CapacityError: Not enough capacity left
            NotFoundError: Unknown inventory unit
        """
        pass

    @abstractmethod
    async def release(self, *, inventory_unit_id: int, quantity: int) -> None:
        """
        Give capacity back. Not idempotent on its own: callers gate it on the
        intent's own status transition succeeding exactly once.
        """
        pass
