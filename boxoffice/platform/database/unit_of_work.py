"""
Unit of Work

- The UoW owns one session per business operation and its commit/rollback
- Repositories share that session, so a status transition, its capacity
  release and its ledger append commit together or not at all
- Anything outside the database (provider calls, issuance, notifications)
  runs after commit
"""

from __future__ import annotations

import abc
from contextlib import AbstractAsyncContextManager
from typing import TYPE_CHECKING, Callable

from sqlalchemy.ext.asyncio import AsyncSession


if TYPE_CHECKING:
    from boxoffice.service.checkout.app.interface.i_capacity_ledger import ICapacityLedger
    from boxoffice.service.checkout.app.interface.i_inventory_unit_repo import (
        IInventoryUnitRepo,
    )
    from boxoffice.service.checkout.app.interface.i_promo_code_repo import IPromoCodeRepo
    from boxoffice.service.checkout.app.interface.i_purchase_intent_repo import (
        IPurchaseIntentRepo,
    )
    from boxoffice.service.settlement.app.interface.i_ledger_entry_repo import ILedgerEntryRepo
    from boxoffice.service.settlement.app.interface.i_payout_repo import IPayoutRepo
    from boxoffice.service.settlement.app.interface.i_seller_repo import ISellerRepo
    from boxoffice.service.shared_kernel.app.interface.i_audit_log_repo import IAuditLogRepo


class AbstractUnitOfWork(abc.ABC):
    """
    Usage:
        async with uow_factory() as uow:
            await uow.purchase_intents.compare_and_set_status(...)
            await uow.ledger_entries.append(entry=...)
            await uow.commit()

    Leaving the block without commit() rolls back.
    """

    capacity_ledger: ICapacityLedger
    inventory_units: IInventoryUnitRepo
    promo_codes: IPromoCodeRepo
    purchase_intents: IPurchaseIntentRepo
    ledger_entries: ILedgerEntryRepo
    payouts: IPayoutRepo
    sellers: ISellerRepo
    audit_log: IAuditLogRepo

    async def __aenter__(self) -> AbstractUnitOfWork:
        return self

    async def __aexit__(self, *args) -> None:
        await self.rollback()

    async def commit(self) -> None:
        await self._commit()

    @abc.abstractmethod
    async def _commit(self) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def rollback(self) -> None:
        raise NotImplementedError


class SqlAlchemyUnitOfWork(AbstractUnitOfWork):
    def __init__(
        self, session_factory: Callable[[], AbstractAsyncContextManager[AsyncSession]]
    ) -> None:
        self.session_factory = session_factory
        self._session_cm: AbstractAsyncContextManager[AsyncSession] | None = None
        self.session: AsyncSession | None = None

    async def __aenter__(self) -> SqlAlchemyUnitOfWork:
        from boxoffice.service.checkout.driven_adapter.repo.capacity_ledger_impl import (
            CapacityLedgerImpl,
        )
        from boxoffice.service.checkout.driven_adapter.repo.inventory_unit_repo_impl import (
            InventoryUnitRepoImpl,
        )
        from boxoffice.service.checkout.driven_adapter.repo.promo_code_repo_impl import (
            PromoCodeRepoImpl,
        )
        from boxoffice.service.checkout.driven_adapter.repo.purchase_intent_repo_impl import (
            PurchaseIntentRepoImpl,
        )
        from boxoffice.service.settlement.driven_adapter.repo.ledger_entry_repo_impl import (
            LedgerEntryRepoImpl,
        )
        from boxoffice.service.settlement.driven_adapter.repo.payout_repo_impl import (
            PayoutRepoImpl,
        )
        from boxoffice.service.settlement.driven_adapter.repo.seller_repo_impl import (
            SellerRepoImpl,
        )
        from boxoffice.service.shared_kernel.driven_adapter.audit_log_repo_impl import (
            AuditLogRepoImpl,
        )

        self._session_cm = self.session_factory()
        self.session = session = await self._session_cm.__aenter__()

        self.capacity_ledger = CapacityLedgerImpl(session=session)
        self.inventory_units = InventoryUnitRepoImpl(session=session)
        self.promo_codes = PromoCodeRepoImpl(session=session)
        self.purchase_intents = PurchaseIntentRepoImpl(session=session)
        self.ledger_entries = LedgerEntryRepoImpl(session=session)
        self.payouts = PayoutRepoImpl(session=session)
        self.sellers = SellerRepoImpl(session=session)
        self.audit_log = AuditLogRepoImpl(session=session)

        await super().__aenter__()
        return self

    async def __aexit__(self, *args) -> None:
        try:
            await super().__aexit__(*args)
        finally:
            if self._session_cm is not None:
                await self._session_cm.__aexit__(*args)
            self._session_cm = None
            self.session = None

    async def _commit(self) -> None:
        assert self.session is not None, 'UnitOfWork used outside "async with"'
        await self.session.commit()

    async def rollback(self) -> None:
        if self.session is not None:
            await self.session.rollback()


UnitOfWorkFactory = Callable[[], AbstractUnitOfWork]
