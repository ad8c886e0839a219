from typing import Optional

from fastapi import APIRouter, Depends, status
from opentelemetry import trace

from boxoffice.platform.logging.loguru_io import Logger
from boxoffice.platform.types import UtilsUUID7
from boxoffice.service.checkout.app.command.create_purchase_intent_use_case import (
    CreatePurchaseIntentUseCase,
)
from boxoffice.service.checkout.app.command.open_payment_session_use_case import (
    OpenPaymentSessionUseCase,
)
from boxoffice.service.checkout.app.query.get_purchase_intent_use_case import (
    GetPurchaseIntentUseCase,
)
from boxoffice.service.checkout.driving_adapter.http_controller.schema.checkout_schema import (
    CheckoutCreateRequest,
    CheckoutResponse,
    PurchaseIntentResponse,
)
from boxoffice.service.shared_kernel.domain.entity.user_entity import UserEntity
from boxoffice.service.shared_kernel.driving_adapter.http_controller.auth.role_auth import (
    get_optional_user,
)


router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.post('', status_code=status.HTTP_201_CREATED)
@Logger.io
async def create_checkout(
    request: CheckoutCreateRequest,
    current_user: Optional[UserEntity] = Depends(get_optional_user),
    use_case: CreatePurchaseIntentUseCase = Depends(CreatePurchaseIntentUseCase.depends),
) -> CheckoutResponse:
    with tracer.start_as_current_span('controller.create_checkout') as span:
        span.set_attribute('inventory_unit.id', request.inventory_unit_id)
        span.set_attribute('buyer.is_guest', current_user is None)

        guest = request.guest
        intent = await use_case.execute(
            inventory_unit_id=request.inventory_unit_id,
            quantity=request.quantity,
            user=current_user,
            guest_email=guest.email if guest else None,
            guest_name=guest.name if guest else None,
            guest_phone=guest.phone if guest else None,
            promo_code=request.promo_code,
        )

        span.set_attribute('intent.id', str(intent.id))
        return CheckoutResponse.from_intent(intent)


@router.post('/{intent_id}/session')
@Logger.io
async def reopen_payment_session(
    intent_id: UtilsUUID7,
    current_user: Optional[UserEntity] = Depends(get_optional_user),
    use_case: OpenPaymentSessionUseCase = Depends(OpenPaymentSessionUseCase.depends),
) -> CheckoutResponse:
    """Retry after a timed-out session open; returns the existing link if there is one."""
    intent = await use_case.execute(intent_id=intent_id, user=current_user)
    return CheckoutResponse.from_intent(intent)


@router.get('/{intent_id}')
@Logger.io
async def get_purchase_intent(
    intent_id: UtilsUUID7,
    current_user: Optional[UserEntity] = Depends(get_optional_user),
    use_case: GetPurchaseIntentUseCase = Depends(GetPurchaseIntentUseCase.depends),
) -> PurchaseIntentResponse:
    intent = await use_case.execute(intent_id=intent_id, user=current_user)
    return PurchaseIntentResponse.from_intent(intent)
