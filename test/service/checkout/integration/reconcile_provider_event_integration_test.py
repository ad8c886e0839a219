"""
Integration tests for ReconcileProviderEventUseCase

Provider deliveries are at-least-once, so most cases here send the same payload
twice and assert the side effects happened exactly once.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Optional
from unittest.mock import AsyncMock

import pytest

from boxoffice.service.checkout.app.command.create_purchase_intent_use_case import (
    CreatePurchaseIntentUseCase,
)
from boxoffice.service.checkout.app.command.reconcile_provider_event_use_case import (
    ReconcileProviderEventUseCase,
)
from boxoffice.service.checkout.domain.entity.purchase_intent_entity import PurchaseIntent
from boxoffice.service.checkout.domain.enum.intent_status import IntentStatus
from boxoffice.service.settlement.domain.enum.ledger_entry_enum import LedgerEntryKind
from boxoffice.service.shared_kernel.domain.entity.user_entity import UserEntity
from boxoffice.service.shared_kernel.domain.enum.notification_kind import NotificationKind
from seeder import Seeder


NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def payment_succeeded(
    intent: PurchaseIntent, *, reference_id: Optional[str] = None, with_metadata: bool = True
) -> dict[str, Any]:
    data: dict[str, Any] = {
        'id': 'py-0001',
        'payment_request_id': 'pr-0001',
        'reference_id': reference_id or intent.external_reference_id,
        'amount': str(intent.breakdown.total),
        'created': '2025-03-01T12:05:00Z',
        'payment_method': {'type': 'EWALLET', 'ewallet': {'channel_code': 'GCASH'}},
    }
    if with_metadata:
        data['metadata'] = {'intent_id': str(intent.id)}
    return {'event': 'payment.succeeded', 'data': data}


async def _pending(seed: Seeder, **kwargs) -> tuple[int, PurchaseIntent]:
    seller_id = await seed.seller()
    unit_id = await seed.inventory_unit(seller_id=seller_id)
    intent = await seed.pending_intent(
        inventory_unit_id=unit_id, seller_id=seller_id, now=NOW, **kwargs
    )
    return unit_id, intent


@pytest.mark.integration
class TestPaymentSucceeded:
    @pytest.mark.asyncio
    async def test_replayed_success_applies_once(
        self,
        seed: Seeder,
        reconcile_use_case: ReconcileProviderEventUseCase,
        ticket_issuer: AsyncMock,
        notification_dispatcher: AsyncMock,
    ) -> None:
        """
        Given a pending intent
        When the provider delivers the same payment.succeeded twice
        Then both deliveries succeed but only one sale entry and one issuance exist
        """
        # Arrange
        unit_id, intent = await _pending(seed)
        payload = payment_succeeded(intent)

        # Act
        first = await reconcile_use_case.execute(payload=payload)
        second = await reconcile_use_case.execute(payload=payload)

        # Assert
        assert first == {'status': 'applied'}
        assert second == {'status': 'already_applied'}

        completed = await seed.intent(intent.id)
        assert completed.status == IntentStatus.COMPLETED
        assert completed.payment_method == 'GCASH'
        assert completed.provider_transaction_id == 'pr-0001'
        assert completed.paid_at == datetime(2025, 3, 1, 12, 5, tzinfo=timezone.utc)

        entries = await seed.unswept_entries(intent.seller_id)
        assert len(entries) == 1
        assert entries[0].kind == LedgerEntryKind.SALE
        assert entries[0].gross_amount == Decimal('1000.00')
        assert entries[0].seller_payout == Decimal('900.00')

        ticket_issuer.issue.assert_awaited_once()
        assert ticket_issuer.issue.await_args.kwargs['intent_id'] == intent.id
        notification_dispatcher.dispatch.assert_awaited_once()
        assert (
            notification_dispatcher.dispatch.await_args.kwargs['kind']
            == NotificationKind.PURCHASE_CONFIRMED
        )
        # Completion keeps the reservation
        assert await seed.consumed_capacity(unit_id) == 2

    @pytest.mark.asyncio
    async def test_promo_usage_counted_on_completion(
        self,
        seed: Seeder,
        create_use_case: CreatePurchaseIntentUseCase,
        reconcile_use_case: ReconcileProviderEventUseCase,
        buyer_user: UserEntity,
    ) -> None:
        # Arrange
        seller_id = await seed.seller()
        unit_id = await seed.inventory_unit(seller_id=seller_id)
        promo_id = await seed.promo_code(code='SAVE200')
        intent = await create_use_case.execute(
            inventory_unit_id=unit_id, quantity=2, user=buyer_user, promo_code='SAVE200'
        )

        # Act
        await reconcile_use_case.execute(payload=payment_succeeded(intent))
        await reconcile_use_case.execute(payload=payment_succeeded(intent))

        # Assert
        assert await seed.promo_usage(promo_id) == 1
        sale = await seed.ledger_entry(intent.id, LedgerEntryKind.SALE)
        assert sale is not None
        assert sale.seller_payout == Decimal('720.00')

    @pytest.mark.asyncio
    async def test_resolves_through_metadata_when_reference_is_unknown(
        self, seed: Seeder, reconcile_use_case: ReconcileProviderEventUseCase
    ) -> None:
        # Arrange
        _, intent = await _pending(seed)

        # Act
        result = await reconcile_use_case.execute(
            payload=payment_succeeded(intent, reference_id='legacy-ref-123')
        )

        # Assert
        assert result == {'status': 'applied'}
        assert (await seed.intent(intent.id)).status == IntentStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_success_for_expired_intent_is_not_applied(
        self,
        seed: Seeder,
        reconcile_use_case: ReconcileProviderEventUseCase,
        ticket_issuer: AsyncMock,
    ) -> None:
        """Money for an intent we already gave up on is logged for a human, never completed"""
        # Arrange
        _, intent = await _pending(seed)
        await reconcile_use_case.execute(
            payload={'event': 'payment_session.expired', 'data': {'reference_id': intent.external_reference_id}}
        )

        # Act
        result = await reconcile_use_case.execute(payload=payment_succeeded(intent))

        # Assert
        assert result == {'status': 'unreconciled'}
        assert (await seed.intent(intent.id)).status == IntentStatus.EXPIRED
        assert await seed.ledger_entry(intent.id, LedgerEntryKind.SALE) is None
        ticket_issuer.issue.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_issuer_failure_does_not_undo_the_sale(
        self,
        seed: Seeder,
        reconcile_use_case: ReconcileProviderEventUseCase,
        ticket_issuer: AsyncMock,
    ) -> None:
        # Arrange
        _, intent = await _pending(seed)
        ticket_issuer.issue.side_effect = RuntimeError('issuer down')

        # Act
        result = await reconcile_use_case.execute(payload=payment_succeeded(intent))

        # Assert
        assert result == {'status': 'applied'}
        assert (await seed.intent(intent.id)).status == IntentStatus.COMPLETED
        assert await seed.ledger_entry(intent.id, LedgerEntryKind.SALE) is not None


@pytest.mark.integration
class TestPaymentNotCompleted:
    @pytest.mark.parametrize(
        'event_type, expected_status',
        [
            ('payment.failed', IntentStatus.FAILED),
            ('payment_session.failed', IntentStatus.FAILED),
            ('payment_request.expired', IntentStatus.EXPIRED),
            ('invoice.expired', IntentStatus.EXPIRED),
        ],
    )
    @pytest.mark.asyncio
    async def test_releases_capacity_once(
        self,
        seed: Seeder,
        reconcile_use_case: ReconcileProviderEventUseCase,
        event_type: str,
        expected_status: IntentStatus,
    ) -> None:
        # Arrange
        unit_id, intent = await _pending(seed)
        payload = {'event': event_type, 'data': {'reference_id': intent.external_reference_id}}

        # Act
        first = await reconcile_use_case.execute(payload=payload)
        second = await reconcile_use_case.execute(payload=payload)

        # Assert
        assert first == {'status': 'applied'}
        assert second == {'status': 'already_applied'}
        assert (await seed.intent(intent.id)).status == expected_status
        assert await seed.consumed_capacity(unit_id) == 0

    @pytest.mark.asyncio
    async def test_failure_after_completion_is_not_applied(
        self, seed: Seeder, reconcile_use_case: ReconcileProviderEventUseCase
    ) -> None:
        # Arrange
        unit_id, intent = await _pending(seed)
        await reconcile_use_case.execute(payload=payment_succeeded(intent))

        # Act
        result = await reconcile_use_case.execute(
            payload={'event': 'payment.failed', 'data': {'reference_id': intent.external_reference_id}}
        )

        # Assert
        assert result == {'status': 'unreconciled'}
        assert (await seed.intent(intent.id)).status == IntentStatus.COMPLETED
        assert await seed.consumed_capacity(unit_id) == 2


@pytest.mark.integration
class TestUnmatchedEvents:
    @pytest.mark.asyncio
    async def test_unknown_event_type_ignored(
        self, seed: Seeder, reconcile_use_case: ReconcileProviderEventUseCase
    ) -> None:
        # Arrange
        _, intent = await _pending(seed)

        # Act
        result = await reconcile_use_case.execute(
            payload={'event': 'capture.pending', 'data': {'reference_id': intent.external_reference_id}}
        )

        # Assert
        assert result == {'status': 'ignored'}
        assert (await seed.intent(intent.id)).status == IntentStatus.PENDING

    @pytest.mark.asyncio
    async def test_unknown_reference_unresolved(
        self, seed: Seeder, reconcile_use_case: ReconcileProviderEventUseCase
    ) -> None:
        """The provider's endpoint verification ping references nothing we know"""
        result = await reconcile_use_case.execute(
            payload={'event': 'payment.succeeded', 'data': {'reference_id': 'test-ping'}}
        )

        assert result == {'status': 'unresolved'}

    @pytest.mark.asyncio
    async def test_refund_failed_is_logged_only(
        self, seed: Seeder, reconcile_use_case: ReconcileProviderEventUseCase
    ) -> None:
        # Arrange
        _, intent = await _pending(seed)
        await reconcile_use_case.execute(payload=payment_succeeded(intent))

        # Act
        result = await reconcile_use_case.execute(
            payload={
                'event': 'refund.failed',
                'data': {
                    'id': 'rfd-0009',
                    'failure_code': 'INSUFFICIENT_BALANCE',
                    'metadata': {'intent_id': str(intent.id)},
                },
            }
        )

        # Assert
        assert result == {'status': 'logged'}
        assert (await seed.intent(intent.id)).status == IntentStatus.COMPLETED


@pytest.mark.integration
class TestRefundSucceeded:
    @pytest.mark.asyncio
    async def test_provider_initiated_refund_recorded_once(
        self,
        seed: Seeder,
        reconcile_use_case: ReconcileProviderEventUseCase,
        notification_dispatcher: AsyncMock,
    ) -> None:
        """
        Given a completed intent
        When refund.succeeded arrives twice with the intent id in its metadata
        Then the intent is refunded once with one reversal and capacity back
        """
        # Arrange
        unit_id, intent = await _pending(seed)
        await reconcile_use_case.execute(payload=payment_succeeded(intent))
        payload = {
            'event': 'refund.succeeded',
            'data': {
                'id': 'rfd-0009',
                'payment_request_id': 'pr-0001',
                'amount': 1100,
                'created': (NOW + timedelta(days=1)).isoformat(),
                'metadata': {'intent_id': str(intent.id)},
            },
        }

        # Act
        first = await reconcile_use_case.execute(payload=payload)
        second = await reconcile_use_case.execute(payload=payload)

        # Assert
        assert first == {'status': 'applied'}
        assert second == {'status': 'already_applied'}

        refunded = await seed.intent(intent.id)
        assert refunded.status == IntentStatus.REFUNDED
        assert refunded.refund_id == 'rfd-0009'
        assert refunded.refunded_amount == Decimal('1100.00')

        reversal = await seed.ledger_entry(intent.id, LedgerEntryKind.REVERSAL)
        assert reversal is not None
        assert reversal.gross_amount == Decimal('-1000.00')
        assert reversal.seller_payout == Decimal('-900.00')
        assert await seed.consumed_capacity(unit_id) == 0
        assert (
            notification_dispatcher.dispatch.await_args.kwargs['kind']
            == NotificationKind.REFUND_PROCESSED
        )
