from abc import ABC, abstractmethod
from typing import Any


class IAuditLogRepo(ABC):
    @abstractmethod
    async def record(
        self,
        *,
        actor_id: int,
        action: str,
        target_type: str,
        target_id: str,
        detail: dict[str, Any] | None = None,
    ) -> None:
        """Append one audit row inside the caller's transaction."""
        pass
