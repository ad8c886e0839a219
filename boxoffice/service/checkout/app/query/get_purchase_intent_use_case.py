from datetime import datetime, timezone
from typing import Optional, Self

from dependency_injector.wiring import Provider, inject
from fastapi import Depends
from uuid_utils import UUID

from boxoffice.platform.config.di import Container
from boxoffice.platform.database.unit_of_work import UnitOfWorkFactory
from boxoffice.platform.exception.exceptions import InvalidTransitionError, NotFoundError
from boxoffice.platform.logging.loguru_io import Logger
from boxoffice.service.checkout.app.command.release_purchase_intent_use_case import (
    ReleasePurchaseIntentUseCase,
)
from boxoffice.service.checkout.domain.entity.purchase_intent_entity import PurchaseIntent
from boxoffice.service.shared_kernel.domain.entity.user_entity import UserEntity


class GetPurchaseIntentUseCase:
    def __init__(
        self, *, uow_factory: UnitOfWorkFactory, release_use_case: ReleasePurchaseIntentUseCase
    ) -> None:
        self.uow_factory = uow_factory
        self.release_use_case = release_use_case

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: UnitOfWorkFactory = Depends(Provider[Container.unit_of_work]),
        release_use_case: ReleasePurchaseIntentUseCase = Depends(
            ReleasePurchaseIntentUseCase.depends
        ),
    ) -> Self:
        return cls(uow_factory=uow_factory, release_use_case=release_use_case)

    async def _load(self, *, intent_id: UUID) -> Optional[PurchaseIntent]:
        async with self.uow_factory() as uow:
            return await uow.purchase_intents.get_by_id(intent_id=intent_id)

    @Logger.io
    async def execute(
        self,
        *,
        intent_id: UUID,
        user: Optional[UserEntity],
        now: Optional[datetime] = None,
    ) -> PurchaseIntent:
        """Overdue pending intents are expired (and their capacity released) on read."""
        now = now or datetime.now(timezone.utc)

        intent = await self._load(intent_id=intent_id)
        if intent is None or not intent.is_visible_to(
            user_id=user.id if user else None, is_admin=bool(user and user.is_admin)
        ):
            raise NotFoundError('Purchase intent not found')

        if intent.is_overdue(now=now):
            try:
                await self.release_use_case.expire(intent_id=intent.id)
            except InvalidTransitionError:
                # Payment landed between the read and the expiry: report the fresh state
                pass
            intent = await self._load(intent_id=intent_id) or intent

        return intent
