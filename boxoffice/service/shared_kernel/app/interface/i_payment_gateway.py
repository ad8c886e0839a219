from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional

from boxoffice.service.shared_kernel.domain.value_object.payment_gateway_request import (
    DisbursementRequest,
    PaymentSession,
    RefundRequest,
    SessionRequest,
)


class IPaymentGateway(ABC):
    """
    Outbound adapter to the payment provider.

    Every call carries an idempotency key so a retried call has effect at most once:
    sessions use the intent's external reference id, refunds a key derived from
    (intent id, attempt time), disbursements the payout id.

    All methods raise ProviderError on a provider 4xx/5xx and
    ProviderTimeoutError when the bounded timeout elapses.
    """

    @abstractmethod
    async def create_session(self, *, request: SessionRequest) -> PaymentSession:
        pass

    @abstractmethod
    async def refund(self, *, request: RefundRequest) -> str:
        """Returns the provider refund id."""
        pass

    @abstractmethod
    async def disburse(self, *, request: DisbursementRequest) -> str:
        """Returns the provider disbursement id."""
        pass

    @abstractmethod
    async def find_payment_reference(self, *, external_reference_id: str) -> Optional[str]:
        """
        Look up the provider id of a payment by our external reference.

        Used when the reference was never stored locally. Returns None when the
        provider has no matching payment.
        """
        pass

    @abstractmethod
    async def get_balance(self) -> Decimal:
        """Available balance of the merchant account, in the settlement currency."""
        pass
