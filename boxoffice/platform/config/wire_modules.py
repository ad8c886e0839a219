"""
Wire Modules Configuration

Defines the modules that need dependency injection wiring.
Shared between production and test environments.
"""

from types import ModuleType

from boxoffice.service.checkout.app.command import (
    complete_purchase_intent_use_case,
    create_purchase_intent_use_case,
    open_payment_session_use_case,
    reconcile_provider_event_use_case,
    refund_purchase_intent_use_case,
    release_purchase_intent_use_case,
)
from boxoffice.service.checkout.app.query import get_purchase_intent_use_case
from boxoffice.service.checkout.driving_adapter.http_controller import webhook_controller
from boxoffice.service.settlement.app.command import (
    apply_payout_callback_use_case,
    approve_payout_use_case,
    disburse_payout_use_case,
    request_payout_use_case,
)
from boxoffice.service.shared_kernel.driving_adapter.http_controller.auth import role_auth


WIRE_MODULES: list[ModuleType] = [
    create_purchase_intent_use_case,
    open_payment_session_use_case,
    complete_purchase_intent_use_case,
    release_purchase_intent_use_case,
    refund_purchase_intent_use_case,
    reconcile_provider_event_use_case,
    get_purchase_intent_use_case,
    request_payout_use_case,
    approve_payout_use_case,
    disburse_payout_use_case,
    apply_payout_callback_use_case,
    webhook_controller,
    role_auth,
]
