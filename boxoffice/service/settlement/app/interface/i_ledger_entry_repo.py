from abc import ABC, abstractmethod
from typing import Sequence

from uuid_utils import UUID

from boxoffice.service.settlement.domain.entity.ledger_entry_entity import LedgerEntry
from boxoffice.service.settlement.domain.enum.ledger_entry_enum import LedgerEntryKind


class ILedgerEntryRepo(ABC):
    @abstractmethod
    async def append(self, *, entry: LedgerEntry) -> LedgerEntry:
        """Insert one entry. At most one entry per (intent, kind) is ever stored."""
        pass

    @abstractmethod
    async def get_for_intent(
        self, *, intent_id: UUID, kind: LedgerEntryKind
    ) -> LedgerEntry | None:
        pass

    @abstractmethod
    async def list_unswept(self, *, seller_id: int) -> list[LedgerEntry]:
        """The sweep set: completed entries of the seller not yet linked to a payout."""
        pass

    @abstractmethod
    async def link_to_payout(self, *, entry_ids: Sequence[UUID], payout_id: UUID) -> int:
        """
        Link entries that are still unswept.

        Returns:
            Number of entries linked. Fewer than len(entry_ids) means another
            sweep got to some of them first.
        """
        pass

    @abstractmethod
    async def list_by_payout(self, *, payout_id: UUID) -> list[LedgerEntry]:
        pass
