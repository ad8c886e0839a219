from abc import ABC, abstractmethod
from typing import Any

from boxoffice.service.shared_kernel.domain.enum.notification_kind import NotificationKind


class INotificationDispatcher(ABC):
    """Email/push delivery. Formatting and transport belong to the notification service."""

    @abstractmethod
    async def dispatch(
        self, *, kind: NotificationKind, target_id: str, payload: dict[str, Any]
    ) -> None:
        """
        Hand one notification to the delivery service.

        Args:
            kind: Template family
            target_id: Intent or payout id; with `kind` it forms the idempotency key
            payload: Template variables (recipient, amounts, references)
        """
        pass
