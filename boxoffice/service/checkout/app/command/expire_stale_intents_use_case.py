from datetime import datetime, timezone
from typing import Optional

from boxoffice.platform.config.core_setting import Settings
from boxoffice.platform.database.unit_of_work import UnitOfWorkFactory
from boxoffice.platform.exception.exceptions import InvalidTransitionError
from boxoffice.platform.logging.loguru_io import Logger
from boxoffice.service.checkout.app.command.release_purchase_intent_use_case import (
    ReleasePurchaseIntentUseCase,
)
from boxoffice.service.checkout.domain.value_object.expiry_batch import ExpiryBatch
from boxoffice.service.shared_kernel.domain.enum.transition_outcome import TransitionOutcome


class ExpireStaleIntentsUseCase:
    """
    Reaper for pending intents past `expires_at`, run from cron.

    Each intent goes through the same compare-and-swap as a lazy expiry or an
    expiry webhook, so running the reaper concurrently with them is safe.
    """

    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        release_use_case: ReleasePurchaseIntentUseCase,
        settings: Settings,
    ) -> None:
        self.uow_factory = uow_factory
        self.release_use_case = release_use_case
        self.settings = settings

    @Logger.io
    async def execute(
        self, *, now: Optional[datetime] = None, limit: Optional[int] = None
    ) -> ExpiryBatch:
        now = now or datetime.now(timezone.utc)
        limit = limit or self.settings.EXPIRE_BATCH_SIZE

        async with self.uow_factory() as uow:
            overdue = await uow.purchase_intents.list_overdue_pending(now=now, limit=limit)

        expired = 0
        for intent in overdue:
            try:
                outcome = await self.release_use_case.expire(intent_id=intent.id)
            except InvalidTransitionError:
                Logger.base.info(f'⏭️ [REAPER] Intent {intent.id} settled before expiry')
                continue
            if outcome == TransitionOutcome.APPLIED:
                expired += 1

        if overdue:
            Logger.base.info(f'🧹 [REAPER] Expired {expired}/{len(overdue)} overdue intents')
        return ExpiryBatch(scanned=len(overdue), expired=expired)

    @Logger.io
    async def drain(
        self, *, limit: Optional[int] = None, max_batches: int = 10, now: Optional[datetime] = None
    ) -> int:
        """Run batches until one comes back short. Returns the number expired."""
        limit = limit or self.settings.EXPIRE_BATCH_SIZE
        total = 0
        for _ in range(max_batches):
            batch = await self.execute(now=now, limit=limit)
            total += batch.expired
            # A full batch may hide more overdue rows, however many this run expired
            if batch.scanned < limit:
                break
        return total
