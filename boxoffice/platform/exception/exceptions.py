from decimal import Decimal


class CustomBaseError(Exception):
    """Base class for all custom exceptions - controls logging behavior in @Logger.io"""

    code: str = 'ERROR'

    def __init__(self, message: str, status_code: int, code: str | None = None) -> None:
        self.message = message
        self.status_code = status_code
        if code is not None:
            self.code = code
        super().__init__(message)


class DomainError(CustomBaseError):
    code = 'VALIDATION_ERROR'

    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message, status_code)


class ValidationError(DomainError):
    """Missing or malformed input, rejected before any side effect."""


class AuthenticationError(CustomBaseError):
    code = 'UNAUTHORIZED'

    def __init__(self, message: str) -> None:
        super().__init__(message, 401)


class ForbiddenError(CustomBaseError):
    code = 'FORBIDDEN'

    def __init__(self, message: str) -> None:
        super().__init__(message, 403)


class NotFoundError(CustomBaseError):
    code = 'NOT_FOUND'

    def __init__(self, message: str) -> None:
        super().__init__(message, 404)


class CapacityError(CustomBaseError):
    """Sold out. Raised before the intent exists, so there is no partial state."""

    code = 'SOLD_OUT'

    def __init__(self, message: str = 'Not enough capacity remaining') -> None:
        super().__init__(message, 409)


class ConflictError(CustomBaseError):
    code = 'CONFLICT'

    def __init__(self, message: str) -> None:
        super().__init__(message, 409)


class ConcurrencyConflictError(ConflictError):
    """A compare-and-swap lost the race. Safe to retry."""

    retryable = True


class InvalidTransitionError(ConflictError):
    def __init__(self, *, entity: str, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(f'{entity} cannot transition from {current} to {target}')


class InsufficientFundsError(CustomBaseError):
    code = 'INSUFFICIENT_FUNDS'

    def __init__(self, message: str = 'No funds available for payout') -> None:
        super().__init__(message, 422)


class InsufficientBalanceError(CustomBaseError):
    """The provider account cannot cover a refund right now."""

    code = 'INSUFFICIENT_BALANCE'

    def __init__(self, message: str, *, available_balance: Decimal | None = None) -> None:
        self.available_balance = available_balance
        super().__init__(message, 402)


class ProviderError(CustomBaseError):
    """Payment gateway answered with an error or could not be reached."""

    code = 'PAYMENT_ERROR'

    def __init__(self, message: str, *, provider_status: int | None = None) -> None:
        self.provider_status = provider_status
        super().__init__(message, 502)


class ProviderTimeoutError(ProviderError):
    code = 'PAYMENT_TIMEOUT'

    def __init__(self, message: str = 'Payment provider timed out') -> None:
        super().__init__(message)
        self.status_code = 504


class ReconciliationError(CustomBaseError):
    """Webhook refers to an unknown or already-terminal record. Logged, never surfaced."""

    code = 'RECONCILIATION_ERROR'

    def __init__(self, message: str) -> None:
        super().__init__(message, 200)
