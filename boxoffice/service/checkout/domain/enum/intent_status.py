from enum import StrEnum


class IntentStatus(StrEnum):
    PENDING = 'pending'
    COMPLETED = 'completed'
    FAILED = 'failed'
    EXPIRED = 'expired'
    REFUNDED = 'refunded'


ALLOWED_TRANSITIONS: dict[IntentStatus, frozenset[IntentStatus]] = {
    IntentStatus.PENDING: frozenset(
        {IntentStatus.COMPLETED, IntentStatus.FAILED, IntentStatus.EXPIRED}
    ),
    IntentStatus.COMPLETED: frozenset({IntentStatus.REFUNDED}),
}


def can_transition(current: IntentStatus, target: IntentStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())
