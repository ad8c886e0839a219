from fastapi import APIRouter, Depends

from boxoffice.platform.logging.loguru_io import Logger
from boxoffice.service.checkout.app.command.refund_purchase_intent_use_case import (
    RefundPurchaseIntentUseCase,
)
from boxoffice.service.checkout.driving_adapter.http_controller.schema.checkout_schema import (
    RefundCreateRequest,
    RefundResponse,
)
from boxoffice.service.shared_kernel.domain.entity.user_entity import UserEntity
from boxoffice.service.shared_kernel.driving_adapter.http_controller.auth.role_auth import (
    require_seller_or_admin,
)


router = APIRouter()


@router.post('')
@Logger.io
async def refund_purchase(
    request: RefundCreateRequest,
    current_user: UserEntity = Depends(require_seller_or_admin),
    use_case: RefundPurchaseIntentUseCase = Depends(RefundPurchaseIntentUseCase.depends),
) -> RefundResponse:
    receipt = await use_case.execute(
        intent_id=request.intent_id,
        actor=current_user,
        amount=request.amount,
        reason=request.reason,
    )
    return RefundResponse(
        intent_id=receipt.intent_id,
        refund_id=receipt.refund_id,
        amount=receipt.amount,
        reason=receipt.reason.value,
        refunded_at=receipt.refunded_at,
    )
