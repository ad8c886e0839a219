from enum import StrEnum


class PayoutStatus(StrEnum):
    PENDING_REQUEST = 'pending_request'
    PROCESSING = 'processing'
    COMPLETED = 'completed'
    FAILED = 'failed'


PAYOUT_TRANSITIONS: dict[PayoutStatus, frozenset[PayoutStatus]] = {
    PayoutStatus.PENDING_REQUEST: frozenset({PayoutStatus.PROCESSING}),
    # back to pending_request when the disbursement call itself failed (no money moved)
    PayoutStatus.PROCESSING: frozenset(
        {PayoutStatus.COMPLETED, PayoutStatus.FAILED, PayoutStatus.PENDING_REQUEST}
    ),
}
