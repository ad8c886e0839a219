from abc import ABC, abstractmethod
from datetime import datetime

from uuid_utils import UUID

from boxoffice.service.checkout.domain.entity.purchase_intent_entity import PurchaseIntent
from boxoffice.service.checkout.domain.enum.intent_status import IntentStatus


class IPurchaseIntentRepo(ABC):
    @abstractmethod
    async def create(self, *, intent: PurchaseIntent) -> PurchaseIntent:
        pass

    @abstractmethod
    async def get_by_id(self, *, intent_id: UUID) -> PurchaseIntent | None:
        pass

    @abstractmethod
    async def get_by_external_reference(self, *, external_reference_id: str) -> PurchaseIntent | None:
        pass

    @abstractmethod
    async def get_by_provider_reference(self, *, provider_reference: str) -> PurchaseIntent | None:
        """Match either the provider transaction id or the provider session id."""
        pass

    @abstractmethod
    async def compare_and_set(
        self, *, intent: PurchaseIntent, expected_status: IntentStatus
    ) -> bool:
        """
        Persist a transitioned intent only if the stored status is still `expected_status`.

        Returns:
            True if this call performed the transition, False if another worker
            (or an earlier delivery of the same event) already moved the intent.
        """
        pass

    @abstractmethod
    async def attach_session(
        self, *, intent_id: UUID, session_id: str, payment_url: str
    ) -> bool:
        """Record the provider session on a still-pending intent."""
        pass

    @abstractmethod
    async def list_overdue_pending(self, *, now: datetime, limit: int) -> list[PurchaseIntent]:
        pass
