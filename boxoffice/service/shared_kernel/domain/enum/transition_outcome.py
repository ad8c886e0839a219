from enum import StrEnum


class TransitionOutcome(StrEnum):
    """Result of a status transition driven by a possibly-replayed event."""

    APPLIED = 'applied'
    # The record was already in the target state: side effects were not repeated
    ALREADY_APPLIED = 'already_applied'
