from enum import StrEnum


class RefundReason(StrEnum):
    """Closed set accepted by the provider's refund API."""

    FRAUDULENT = 'FRAUDULENT'
    DUPLICATE = 'DUPLICATE'
    REQUESTED_BY_CUSTOMER = 'REQUESTED_BY_CUSTOMER'
    CANCELLATION = 'CANCELLATION'
    OTHERS = 'OTHERS'

    @classmethod
    def from_input(cls, value: str | None) -> 'RefundReason':
        """Unrecognized reasons map to OTHERS, a refund is never rejected over its reason."""
        normalized = (value or '').strip().upper().replace(' ', '_').replace('-', '_')
        try:
            return cls(normalized)
        except ValueError:
            return cls.OTHERS
