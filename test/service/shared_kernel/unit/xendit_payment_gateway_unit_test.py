"""
Unit tests for XenditPaymentGateway

The HTTP layer is replaced by httpx.MockTransport, so these tests see the exact
request the provider would receive.
"""

import base64
from decimal import Decimal
from typing import Callable

import httpx
import orjson
import pytest

from boxoffice.platform.exception.exceptions import ProviderError, ProviderTimeoutError
from boxoffice.service.shared_kernel.domain.value_object.payment_gateway_request import (
    BankDestination,
    DisbursementRequest,
    PaymentSession,
    RefundRequest,
    SessionCustomer,
    SessionRequest,
)
from boxoffice.service.shared_kernel.driven_adapter.xendit_payment_gateway import (
    XenditPaymentGateway,
    refund_reference_field,
)


Handler = Callable[[httpx.Request], httpx.Response]


def _gateway(handler: Handler) -> XenditPaymentGateway:
    return XenditPaymentGateway(
        base_url='https://api.xendit.test/',
        secret_key='xnd_test_secret',
        timeout_seconds=5,
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture
def session_request() -> SessionRequest:
    return SessionRequest(
        reference_id='bo-0195a1b2',
        amount=Decimal('1100.00'),
        currency='PHP',
        country='PH',
        customer=SessionCustomer(
            reference_id='20_1740830400000',
            email='buyer@boxoffice.test',
            given_names='Juan Dela',
            surname='Cruz',
            mobile_number='+639000000000',
        ),
        description='Summer Fest GA x2',
        success_url='https://boxoffice.test/success',
        failure_url='https://boxoffice.test/failed',
        metadata={'intent_id': '0195a1b2'},
    )


@pytest.mark.unit
class TestRefundReferenceField:
    @pytest.mark.parametrize(
        'reference, field',
        [
            ('pr-123', 'payment_request_id'),
            ('inv-456', 'invoice_id'),
            ('py-789', 'payment_id'),
            ('ps-000', 'payment_id'),
        ],
    )
    def test_field(self, reference: str, field: str) -> None:
        assert refund_reference_field(reference) == field


@pytest.mark.unit
class TestCreateSession:
    @pytest.mark.asyncio
    async def test_posts_session_keyed_by_reference(self, session_request: SessionRequest) -> None:
        """
        Given a session request
        When the gateway opens a session
        Then it posts the payment link body with the intent reference as idempotency key
        """
        # Arrange
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(
                201,
                json={
                    'payment_session_id': 'ps-0001',
                    'payment_link_url': 'https://checkout.xendit.test/ps-0001',
                },
            )

        # Act
        session = await _gateway(handler).create_session(request=session_request)

        # Assert
        assert session == PaymentSession(
            session_id='ps-0001', hosted_url='https://checkout.xendit.test/ps-0001'
        )
        request = captured[0]
        assert request.url == 'https://api.xendit.test/sessions'
        assert request.headers['Idempotency-key'] == 'bo-0195a1b2'
        expected_auth = base64.b64encode(b'xnd_test_secret:').decode()
        assert request.headers['Authorization'] == f'Basic {expected_auth}'

        body = orjson.loads(request.content)
        assert body['reference_id'] == 'bo-0195a1b2'
        assert body['amount'] == 1100.0
        assert body['mode'] == 'PAYMENT_LINK'
        assert body['customer']['individual_detail'] == {
            'given_names': 'Juan Dela',
            'surname': 'Cruz',
        }
        assert body['metadata'] == {'intent_id': '0195a1b2'}

    @pytest.mark.asyncio
    async def test_missing_link_is_an_error(self, session_request: SessionRequest) -> None:
        gateway = _gateway(lambda request: httpx.Response(201, json={'id': 'ps-0001'}))

        with pytest.raises(ProviderError, match='payment link'):
            await gateway.create_session(request=session_request)

    @pytest.mark.asyncio
    async def test_provider_rejection_carries_status(self, session_request: SessionRequest) -> None:
        # Arrange
        gateway = _gateway(
            lambda request: httpx.Response(
                400, json={'error_code': 'API_VALIDATION_ERROR', 'message': 'amount too low'}
            )
        )

        # Act
        with pytest.raises(ProviderError) as exc_info:
            await gateway.create_session(request=session_request)

        # Assert
        assert exc_info.value.message == 'amount too low'
        assert exc_info.value.provider_status == 400
        assert not isinstance(exc_info.value, ProviderTimeoutError)

    @pytest.mark.asyncio
    async def test_timeout(self, session_request: SessionRequest) -> None:
        # Arrange
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout('read timed out', request=request)

        # Act & Assert
        with pytest.raises(ProviderTimeoutError):
            await _gateway(handler).create_session(request=session_request)

    @pytest.mark.asyncio
    async def test_unreachable(self, session_request: SessionRequest) -> None:
        # Arrange
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError('connection refused', request=request)

        # Act & Assert
        with pytest.raises(ProviderError, match='unreachable'):
            await _gateway(handler).create_session(request=session_request)


@pytest.mark.unit
class TestRefundAndDisburse:
    @pytest.mark.asyncio
    async def test_refund_body(self) -> None:
        # Arrange
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json={'id': 'rfd-0001', 'status': 'PENDING'})

        request = RefundRequest(
            provider_reference='pr-0001',
            amount=Decimal('550.00'),
            currency='PHP',
            reason='CANCELLATION',
            idempotency_key='refund-abc-1741167000000',
            metadata={'intent_id': 'abc'},
        )

        # Act
        refund_id = await _gateway(handler).refund(request=request)

        # Assert
        assert refund_id == 'rfd-0001'
        assert captured[0].url.path == '/refunds'
        assert captured[0].headers['Idempotency-key'] == 'refund-abc-1741167000000'
        body = orjson.loads(captured[0].content)
        assert body['payment_request_id'] == 'pr-0001'
        assert body['amount'] == 550.0
        assert body['reason'] == 'CANCELLATION'

    @pytest.mark.asyncio
    async def test_disburse_keyed_by_payout_id(self) -> None:
        # Arrange
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json={'id': 'disb-0001', 'status': 'ACCEPTED'})

        request = DisbursementRequest(
            payout_id='0195b000-payout',
            destination=BankDestination(
                bank_code='PH_BDO',
                account_number='001234567890',
                account_holder_name='Manila Live Events Inc',
            ),
            amount=Decimal('750.00'),
            currency='PHP',
        )

        # Act
        disbursement_id = await _gateway(handler).disburse(request=request)

        # Assert
        assert disbursement_id == 'disb-0001'
        assert captured[0].url.path == '/v2/payouts'
        assert captured[0].headers['Idempotency-key'] == '0195b000-payout'
        body = orjson.loads(captured[0].content)
        assert body['channel_code'] == 'PH_BDO'
        assert body['channel_properties']['account_number'] == '001234567890'
        assert body['description'] == 'Payout 0195b000-payout'

    @pytest.mark.asyncio
    async def test_non_json_error_body(self) -> None:
        # Arrange
        gateway = _gateway(lambda request: httpx.Response(502, text='<html>Bad Gateway</html>'))
        request = DisbursementRequest(
            payout_id='p-1',
            destination=BankDestination(bank_code='PH_BPI', account_number='1', account_holder_name='A'),
            amount=Decimal('1.00'),
            currency='PHP',
        )

        # Act & Assert
        with pytest.raises(ProviderError, match=r'Payment provider error \(502\)'):
            await gateway.disburse(request=request)


@pytest.mark.unit
class TestFindPaymentReference:
    @pytest.mark.asyncio
    async def test_invoice_match_wins(self) -> None:
        """
        Given an invoice exists for the external reference
        When the gateway searches for the payment
        Then it returns the invoice id without asking the payment request API
        """
        # Arrange
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json=[{'id': 'inv-0042', 'status': 'PAID'}])

        # Act
        reference = await _gateway(handler).find_payment_reference(
            external_reference_id='bo-0195a1b2'
        )

        # Assert
        assert reference == 'inv-0042'
        assert len(captured) == 1
        assert captured[0].method == 'GET'
        assert captured[0].url.path == '/v2/invoices'
        assert captured[0].url.params['external_id'] == 'bo-0195a1b2'

    @pytest.mark.asyncio
    async def test_falls_back_to_succeeded_payment_request(self) -> None:
        # Arrange
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            if request.url.path == '/v2/invoices':
                return httpx.Response(200, json=[])
            return httpx.Response(
                200,
                json={
                    'data': [
                        {'id': 'pr-0001', 'status': 'FAILED'},
                        {'id': 'pr-0002', 'status': 'SUCCEEDED'},
                    ]
                },
            )

        # Act
        reference = await _gateway(handler).find_payment_reference(
            external_reference_id='bo-0195a1b2'
        )

        # Assert
        assert reference == 'pr-0002'
        assert [r.url.path for r in captured] == ['/v2/invoices', '/payment_requests']
        assert captured[1].url.params['reference_id'] == 'bo-0195a1b2'

    @pytest.mark.asyncio
    async def test_invoice_search_error_still_tries_payment_requests(self) -> None:
        # Arrange
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == '/v2/invoices':
                return httpx.Response(500, json={'message': 'invoice search unavailable'})
            return httpx.Response(200, json={'data': [{'id': 'pr-0003', 'status': 'PENDING'}]})

        # Act
        reference = await _gateway(handler).find_payment_reference(
            external_reference_id='bo-0195a1b2'
        )

        # Assert
        assert reference == 'pr-0003'

    @pytest.mark.asyncio
    async def test_nothing_found(self) -> None:
        # Arrange
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == '/v2/invoices':
                return httpx.Response(200, json=[])
            return httpx.Response(404, json={'message': 'not found'})

        # Act
        reference = await _gateway(handler).find_payment_reference(
            external_reference_id='bo-0195a1b2'
        )

        # Assert
        assert reference is None


@pytest.mark.unit
class TestGetBalance:
    @pytest.mark.asyncio
    async def test_balance(self) -> None:
        # Arrange
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json={'balance': 1250.5})

        # Act
        balance = await _gateway(handler).get_balance()

        # Assert
        assert balance == Decimal('1250.50')
        assert captured[0].method == 'GET'
        assert captured[0].url.path == '/balance'

    @pytest.mark.asyncio
    async def test_missing_balance_is_an_error(self) -> None:
        gateway = _gateway(lambda request: httpx.Response(200, json={}))

        with pytest.raises(ProviderError, match='balance'):
            await gateway.get_balance()
