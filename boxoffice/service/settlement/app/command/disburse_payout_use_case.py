from typing import Self

import attrs
from dependency_injector.wiring import Provide, Provider, inject
from fastapi import Depends
from opentelemetry import trace

from boxoffice.platform.config.core_setting import Settings
from boxoffice.platform.config.di import Container
from boxoffice.platform.database.unit_of_work import UnitOfWorkFactory
from boxoffice.platform.exception.exceptions import ProviderError, ProviderTimeoutError
from boxoffice.platform.logging.loguru_io import Logger
from boxoffice.platform.metrics.checkout_metrics import metrics
from boxoffice.service.settlement.domain.entity.payout_entity import Payout
from boxoffice.service.settlement.domain.enum.payout_status import PayoutStatus
from boxoffice.service.shared_kernel.app.interface.i_payment_gateway import IPaymentGateway
from boxoffice.service.shared_kernel.domain.value_object.payment_gateway_request import (
    BankDestination,
    DisbursementRequest,
)


class DisbursePayoutUseCase:
    """
    Send a `processing` payout to the provider, keyed by the payout id.

    A provider error means no money moved: the payout goes back to
    pending_request for a manual retry instead of failed. A timeout proves
    nothing either way, so the payout stays processing and the provider's
    payout callback decides.
    """

    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        payment_gateway: IPaymentGateway,
        settings: Settings,
    ) -> None:
        self.uow_factory = uow_factory
        self.payment_gateway = payment_gateway
        self.settings = settings
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: UnitOfWorkFactory = Depends(Provider[Container.unit_of_work]),
        payment_gateway: IPaymentGateway = Depends(Provide[Container.payment_gateway]),
        settings: Settings = Depends(Provide[Container.config_service]),
    ) -> Self:
        return cls(uow_factory=uow_factory, payment_gateway=payment_gateway, settings=settings)

    @Logger.io
    async def execute(self, *, payout: Payout, destination: BankDestination) -> Payout:
        with self.tracer.start_as_current_span(
            'use_case.disburse_payout',
            attributes={'payout.id': str(payout.id), 'seller.id': payout.seller_id},
        ):
            request = DisbursementRequest(
                payout_id=str(payout.id),
                destination=destination,
                amount=payout.amount,
                currency=self.settings.CURRENCY,
                description=f'Payout {payout.id}',
            )
            try:
                disbursement_id = await self.payment_gateway.disburse(request=request)
            except ProviderTimeoutError as e:
                return await self._await_callback(payout=payout, error=e)
            except ProviderError as e:
                await self._revert_to_pending(payout=payout, error=e)
                raise
            async with self.uow_factory() as uow:
                await uow.payouts.record_disbursement(
                    payout_id=payout.id, disbursement_id=disbursement_id
                )
                await uow.commit()

            metrics.record_payout(status=PayoutStatus.PROCESSING.value)
            Logger.base.info(
                f'🏦 [PAYOUT] {payout.id} disbursing {payout.amount} as {disbursement_id}'
            )
            return attrs.evolve(payout, provider_disbursement_id=disbursement_id)

    async def _revert_to_pending(self, *, payout: Payout, error: ProviderError) -> None:
        prefix = 'Auto-approval failed' if payout.auto_approved else 'Disbursement failed'
        reverted = payout.transition(
            PayoutStatus.PENDING_REQUEST,
            admin_notes=f'{prefix}: {error.message}',
            approved_by=None,
            approved_at=None,
        )
        async with self.uow_factory() as uow:
            reverted_now = await uow.payouts.compare_and_set(
                payout=reverted, expected_status=PayoutStatus.PROCESSING
            )
            await uow.commit()

        if reverted_now:
            metrics.record_payout(status='disbursement_failed')
            Logger.base.error(f'❌ [PAYOUT] {payout.id} back to pending_request: {error.message}')
        else:
            Logger.base.warning(f'⚠️ [PAYOUT] {payout.id} moved on before the revert could apply')

    async def _await_callback(self, *, payout: Payout, error: ProviderTimeoutError) -> Payout:
        # The transfer may exist at the provider; its payout callback settles processing
        pending = attrs.evolve(
            payout,
            admin_notes=f'Disbursement unconfirmed ({error.message}), awaiting provider callback',
        )
        async with self.uow_factory() as uow:
            await uow.payouts.compare_and_set(
                payout=pending, expected_status=PayoutStatus.PROCESSING
            )
            await uow.commit()

        metrics.record_payout(status='disbursement_unconfirmed')
        Logger.base.warning(
            f'⏳ [PAYOUT] {payout.id} disbursement timed out, left processing until the callback'
        )
        return pending
