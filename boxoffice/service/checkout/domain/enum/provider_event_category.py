from enum import StrEnum


class ProviderEventCategory(StrEnum):
    PAYMENT_SUCCEEDED = 'payment_succeeded'
    PAYMENT_FAILED = 'payment_failed'
    PAYMENT_EXPIRED = 'payment_expired'
    REFUND_SUCCEEDED = 'refund_succeeded'
    REFUND_FAILED = 'refund_failed'
    PAYOUT_SUCCEEDED = 'payout_succeeded'
    PAYOUT_FAILED = 'payout_failed'
    UNKNOWN = 'unknown'


EVENT_TYPE_CATEGORIES: dict[str, ProviderEventCategory] = {
    # Legacy invoice, payment request and payment session APIs all report success differently
    'payment.capture': ProviderEventCategory.PAYMENT_SUCCEEDED,
    'payment.succeeded': ProviderEventCategory.PAYMENT_SUCCEEDED,
    'payment_session.completed': ProviderEventCategory.PAYMENT_SUCCEEDED,
    'invoice.paid': ProviderEventCategory.PAYMENT_SUCCEEDED,
    'payment.failed': ProviderEventCategory.PAYMENT_FAILED,
    'payment_session.failed': ProviderEventCategory.PAYMENT_FAILED,
    'payment_request.expired': ProviderEventCategory.PAYMENT_EXPIRED,
    'payment_session.expired': ProviderEventCategory.PAYMENT_EXPIRED,
    'invoice.expired': ProviderEventCategory.PAYMENT_EXPIRED,
    'refund.succeeded': ProviderEventCategory.REFUND_SUCCEEDED,
    'refund.failed': ProviderEventCategory.REFUND_FAILED,
    'payout.succeeded': ProviderEventCategory.PAYOUT_SUCCEEDED,
    'payout.completed': ProviderEventCategory.PAYOUT_SUCCEEDED,
    'payout.failed': ProviderEventCategory.PAYOUT_FAILED,
}
