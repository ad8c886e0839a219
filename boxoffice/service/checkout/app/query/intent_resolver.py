"""
Provider event -> PurchaseIntent.

The provider's only reliable cross-references are the reference id we sent
with the session and the intent id we put in the metadata. Strategies run in
a fixed order and the result says which one matched, so a webhook that only
resolved through the fallback is visible in the logs and in tests.
"""

from typing import Awaitable, Callable, Optional

from uuid_utils import UUID

from boxoffice.platform.database.unit_of_work import AbstractUnitOfWork
from boxoffice.platform.logging.loguru_io import Logger
from boxoffice.service.checkout.domain.entity.purchase_intent_entity import PurchaseIntent
from boxoffice.service.checkout.domain.enum.provider_event_category import (
    ProviderEventCategory,
)
from boxoffice.service.checkout.domain.provider_event import ProviderEvent
from boxoffice.service.checkout.domain.value_object.intent_resolution import (
    IntentResolution,
    Resolved,
    ResolvedBy,
    Unresolved,
)


_REFUND_CATEGORIES = frozenset(
    {ProviderEventCategory.REFUND_SUCCEEDED, ProviderEventCategory.REFUND_FAILED}
)

Strategy = Callable[[AbstractUnitOfWork, ProviderEvent], Awaitable[Optional[PurchaseIntent]]]


def _parse_intent_id(value: str) -> Optional[UUID]:
    try:
        return UUID(value)
    except ValueError:
        return None


async def _by_external_reference(
    uow: AbstractUnitOfWork, event: ProviderEvent
) -> Optional[PurchaseIntent]:
    if not event.reference_id:
        return None
    return await uow.purchase_intents.get_by_external_reference(
        external_reference_id=event.reference_id
    )


async def _by_metadata_intent_id(
    uow: AbstractUnitOfWork, event: ProviderEvent
) -> Optional[PurchaseIntent]:
    if not event.fallback_intent_id:
        return None
    intent_id = _parse_intent_id(event.fallback_intent_id)
    if intent_id is None:
        return None
    return await uow.purchase_intents.get_by_id(intent_id=intent_id)


async def _by_provider_transaction(
    uow: AbstractUnitOfWork, event: ProviderEvent
) -> Optional[PurchaseIntent]:
    if not event.provider_transaction_id:
        return None
    return await uow.purchase_intents.get_by_provider_reference(
        provider_reference=event.provider_transaction_id
    )


class IntentResolver:
    """
    Payment events: external reference id, then metadata intent id.

    Refund events carry the refund's own reference, so only the metadata
    intent id applies. Matching them by the original payment's transaction id
    is opt-in (`lookup_refunds_by_transaction`); without it such an event is
    dropped as unresolved.
    """

    def __init__(self, *, lookup_refunds_by_transaction: bool = False) -> None:
        self.lookup_refunds_by_transaction = lookup_refunds_by_transaction

    def strategies_for(self, event: ProviderEvent) -> list[tuple[ResolvedBy, Strategy]]:
        if event.category in _REFUND_CATEGORIES:
            strategies: list[tuple[ResolvedBy, Strategy]] = [
                (ResolvedBy.FALLBACK, _by_metadata_intent_id)
            ]
            if self.lookup_refunds_by_transaction:
                strategies.append((ResolvedBy.TRANSACTION, _by_provider_transaction))
            return strategies
        return [
            (ResolvedBy.EXACT, _by_external_reference),
            (ResolvedBy.FALLBACK, _by_metadata_intent_id),
        ]

    async def resolve(self, *, uow: AbstractUnitOfWork, event: ProviderEvent) -> IntentResolution:
        for resolved_by, strategy in self.strategies_for(event):
            intent = await strategy(uow, event)
            if intent is not None:
                if resolved_by != ResolvedBy.EXACT:
                    Logger.base.info(
                        f'🔎 [WEBHOOK] {event.event_type} resolved intent {intent.id} by {resolved_by}'
                    )
                return Resolved(intent=intent, resolved_by=resolved_by)

        if event.category in _REFUND_CATEGORIES and not event.fallback_intent_id:
            return Unresolved(reason='refund event without intent_id metadata')
        return Unresolved(
            reason=(
                f'no intent for reference_id={event.reference_id!r} '
                f'intent_id={event.fallback_intent_id!r}'
            )
        )
