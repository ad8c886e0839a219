from fastapi import APIRouter, Depends, status
from opentelemetry import trace

from boxoffice.platform.logging.loguru_io import Logger
from boxoffice.platform.types import UtilsUUID7
from boxoffice.service.settlement.app.command.approve_payout_use_case import (
    ApprovePayoutUseCase,
)
from boxoffice.service.settlement.app.command.request_payout_use_case import (
    RequestPayoutUseCase,
)
from boxoffice.service.settlement.driving_adapter.http_controller.schema.payout_schema import (
    PayoutCreateRequest,
    PayoutResponse,
)
from boxoffice.service.shared_kernel.domain.entity.user_entity import UserEntity
from boxoffice.service.shared_kernel.driving_adapter.http_controller.auth.role_auth import (
    require_admin,
    require_seller_or_admin,
)


router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.post('', status_code=status.HTTP_201_CREATED)
@Logger.io
async def request_payout(
    request: PayoutCreateRequest,
    current_user: UserEntity = Depends(require_seller_or_admin),
    use_case: RequestPayoutUseCase = Depends(RequestPayoutUseCase.depends),
) -> PayoutResponse:
    with tracer.start_as_current_span('controller.request_payout') as span:
        span.set_attribute('seller.id', request.seller_id)
        payout = await use_case.execute(
            seller_id=request.seller_id,
            bank_account_id=request.bank_account_id,
            actor=current_user,
        )
        span.set_attribute('payout.id', str(payout.id))
        return PayoutResponse.from_payout(payout)


@router.post('/{payout_id}/approve')
@Logger.io
async def approve_payout(
    payout_id: UtilsUUID7,
    current_user: UserEntity = Depends(require_admin),
    use_case: ApprovePayoutUseCase = Depends(ApprovePayoutUseCase.depends),
) -> PayoutResponse:
    payout = await use_case.execute(payout_id=payout_id, admin=current_user)
    return PayoutResponse.from_payout(payout)
