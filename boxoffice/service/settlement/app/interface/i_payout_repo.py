from abc import ABC, abstractmethod

from uuid_utils import UUID

from boxoffice.service.settlement.domain.entity.payout_entity import Payout
from boxoffice.service.settlement.domain.enum.payout_status import PayoutStatus


class IPayoutRepo(ABC):
    @abstractmethod
    async def create(self, *, payout: Payout) -> Payout:
        pass

    @abstractmethod
    async def get_by_id(self, *, payout_id: UUID) -> Payout | None:
        pass

    @abstractmethod
    async def get_by_disbursement_id(self, *, disbursement_id: str) -> Payout | None:
        pass

    @abstractmethod
    async def compare_and_set(
        self,
        *,
        payout: Payout,
        expected_status: PayoutStatus,
        require_reconciled: bool = False,
    ) -> bool:
        """
        Persist the payout's new status and bookkeeping fields only while the stored
        status is still `expected_status` (and, with `require_reconciled`, the payout
        is not flagged). False means another caller won the race.
        """
        pass

    @abstractmethod
    async def flag_for_reconciliation(self, *, payout_id: UUID, note: str) -> None:
        """Park a payout whose ledger linking failed: pending_request, never auto-disbursed."""
        pass

    @abstractmethod
    async def record_disbursement(self, *, payout_id: UUID, disbursement_id: str) -> None:
        """Store the provider transfer id whatever the current status (callbacks may win the race)."""
        pass
