from enum import StrEnum

import attrs

from boxoffice.service.checkout.domain.entity.purchase_intent_entity import PurchaseIntent


class ResolvedBy(StrEnum):
    EXACT = 'exact'  # external reference id
    FALLBACK = 'fallback'  # intent id embedded in event metadata
    TRANSACTION = 'transaction'  # provider transaction id, refund events only


@attrs.define(frozen=True)
class Resolved:
    intent: PurchaseIntent
    resolved_by: ResolvedBy


@attrs.define(frozen=True)
class Unresolved:
    reason: str


IntentResolution = Resolved | Unresolved
