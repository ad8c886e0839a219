from enum import StrEnum


class NotificationKind(StrEnum):
    PURCHASE_CONFIRMED = 'purchase_confirmed'
    REFUND_PROCESSED = 'refund_processed'
    PAYOUT_APPROVED = 'payout_approved'
