"""
Prometheus metrics for checkout, reconciliation and settlement.

Exposed on /metrics by the app factory.
"""

from prometheus_client import Counter, Histogram


class CheckoutMetrics:
    def __init__(self) -> None:
        self.checkout_intents = Counter(
            'checkout_intents_total',
            'Checkout attempts by outcome',
            ['result'],  # created/sold_out/validation_error/provider_error
        )

        self.capacity_reservations = Counter(
            'capacity_reservations_total',
            'Capacity reserve attempts',
            ['result'],  # reserved/insufficient
        )

        self.webhook_events = Counter(
            'webhook_events_total',
            'Provider webhook deliveries',
            ['event_type', 'outcome'],
        )

        self.webhook_processing_duration = Histogram(
            'webhook_processing_seconds',
            'Time spent reconciling one webhook delivery',
            ['event_type'],
            buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
        )

        self.payouts = Counter(
            'payouts_total',
            'Payout state changes',
            ['status'],
        )

        self.refunds = Counter(
            'refunds_total',
            'Refund requests by outcome',
            ['result'],
        )

    def record_checkout(self, *, result: str) -> None:
        self.checkout_intents.labels(result=result).inc()

    def record_reservation(self, *, reserved: bool) -> None:
        self.capacity_reservations.labels(result='reserved' if reserved else 'insufficient').inc()

    def record_webhook(self, *, event_type: str, outcome: str, duration: float) -> None:
        self.webhook_events.labels(event_type=event_type, outcome=outcome).inc()
        self.webhook_processing_duration.labels(event_type=event_type).observe(duration)

    def record_payout(self, *, status: str) -> None:
        self.payouts.labels(status=status).inc()

    def record_refund(self, *, result: str) -> None:
        self.refunds.labels(result=result).inc()


# Global metrics instance
metrics = CheckoutMetrics()
