from abc import ABC, abstractmethod
from typing import Any

from uuid_utils import UUID


class ITicketIssuer(ABC):
    @abstractmethod
    async def issue(self, *, intent_id: UUID, payload: dict[str, Any]) -> None:
        """
        Issue tickets / booking confirmation for a completed intent.

        The issuance service is idempotent by intent id, so a repeated call
        never produces a second set of tickets.
        """
        pass
