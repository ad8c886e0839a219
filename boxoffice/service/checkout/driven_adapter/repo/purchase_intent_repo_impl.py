from datetime import datetime
from decimal import Decimal

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from uuid_utils import UUID

from boxoffice.platform.logging.loguru_io import Logger
from boxoffice.platform.types import to_std_uuid, to_utils_uuid
from boxoffice.service.checkout.app.interface.i_purchase_intent_repo import IPurchaseIntentRepo
from boxoffice.service.checkout.domain.entity.purchase_intent_entity import PurchaseIntent
from boxoffice.service.checkout.domain.enum.intent_status import IntentStatus
from boxoffice.service.checkout.domain.value_object.buyer_identity import (
    BuyerIdentity,
    GuestContact,
)
from boxoffice.service.checkout.domain.value_object.price_breakdown import PriceBreakdown
from boxoffice.service.checkout.driven_adapter.model.purchase_intent_model import (
    PurchaseIntentModel,
)


class PurchaseIntentRepoImpl(IPurchaseIntentRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def _to_entity(db_intent: PurchaseIntentModel) -> PurchaseIntent:
        if db_intent.buyer_user_id is not None:
            buyer = BuyerIdentity(user_id=db_intent.buyer_user_id)
        else:
            buyer = BuyerIdentity(
                guest=GuestContact(
                    email=db_intent.guest_email or '',
                    name=db_intent.guest_name or '',
                    phone=db_intent.guest_phone,
                )
            )
        return PurchaseIntent(
            id=to_utils_uuid(db_intent.id),
            inventory_unit_id=db_intent.inventory_unit_id,
            seller_id=db_intent.seller_id,
            quantity=db_intent.quantity,
            buyer=buyer,
            breakdown=PriceBreakdown.from_dict(db_intent.price_breakdown),
            external_reference_id=db_intent.external_reference_id,
            status=IntentStatus(db_intent.status),
            promo_code_id=db_intent.promo_code_id,
            provider_session_id=db_intent.provider_session_id,
            payment_url=db_intent.payment_url,
            payment_method=db_intent.payment_method,
            provider_transaction_id=db_intent.provider_transaction_id,
            refund_id=db_intent.refund_id,
            refunded_amount=(
                Decimal(db_intent.refunded_amount) if db_intent.refunded_amount is not None else None
            ),
            created_at=db_intent.created_at,
            expires_at=db_intent.expires_at,
            paid_at=db_intent.paid_at,
            refunded_at=db_intent.refunded_at,
        )

    async def _get_one(self, *criteria) -> PurchaseIntent | None:
        db_intent = await self.session.scalar(
            select(PurchaseIntentModel)
            .where(*criteria)
            .execution_options(populate_existing=True)
        )
        return self._to_entity(db_intent) if db_intent else None

    @Logger.io
    async def create(self, *, intent: PurchaseIntent) -> PurchaseIntent:
        guest = intent.buyer.guest
        self.session.add(
            PurchaseIntentModel(
                id=to_std_uuid(intent.id),
                inventory_unit_id=intent.inventory_unit_id,
                seller_id=intent.seller_id,
                quantity=intent.quantity,
                buyer_user_id=intent.buyer.user_id,
                guest_email=guest.email if guest else None,
                guest_name=guest.name if guest else None,
                guest_phone=guest.phone if guest else None,
                price_breakdown=intent.breakdown.to_dict(),
                total=intent.breakdown.total,
                promo_code_id=intent.promo_code_id,
                external_reference_id=intent.external_reference_id,
                status=intent.status.value,
                created_at=intent.created_at,
                expires_at=intent.expires_at,
            )
        )
        await self.session.flush()
        return intent

    async def get_by_id(self, *, intent_id: UUID) -> PurchaseIntent | None:
        return await self._get_one(PurchaseIntentModel.id == to_std_uuid(intent_id))

    async def get_by_external_reference(self, *, external_reference_id: str) -> PurchaseIntent | None:
        return await self._get_one(
            PurchaseIntentModel.external_reference_id == external_reference_id
        )

    async def get_by_provider_reference(self, *, provider_reference: str) -> PurchaseIntent | None:
        return await self._get_one(
            or_(
                PurchaseIntentModel.provider_transaction_id == provider_reference,
                PurchaseIntentModel.provider_session_id == provider_reference,
            )
        )

    @Logger.io
    async def compare_and_set(
        self, *, intent: PurchaseIntent, expected_status: IntentStatus
    ) -> bool:
        result = await self.session.execute(
            update(PurchaseIntentModel)
            .where(
                PurchaseIntentModel.id == to_std_uuid(intent.id),
                PurchaseIntentModel.status == expected_status.value,
            )
            .values(
                status=intent.status.value,
                paid_at=intent.paid_at,
                payment_method=intent.payment_method,
                provider_transaction_id=intent.provider_transaction_id,
                refund_id=intent.refund_id,
                refunded_amount=intent.refunded_amount,
                refunded_at=intent.refunded_at,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1  # type: ignore[attr-defined]

    async def attach_session(
        self, *, intent_id: UUID, session_id: str, payment_url: str
    ) -> bool:
        result = await self.session.execute(
            update(PurchaseIntentModel)
            .where(
                PurchaseIntentModel.id == to_std_uuid(intent_id),
                PurchaseIntentModel.status == IntentStatus.PENDING.value,
            )
            .values(provider_session_id=session_id, payment_url=payment_url)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1  # type: ignore[attr-defined]

    async def list_overdue_pending(self, *, now: datetime, limit: int) -> list[PurchaseIntent]:
        db_intents = await self.session.scalars(
            select(PurchaseIntentModel)
            .where(
                PurchaseIntentModel.status == IntentStatus.PENDING.value,
                PurchaseIntentModel.expires_at <= now,
            )
            .order_by(PurchaseIntentModel.expires_at)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        return [self._to_entity(db_intent) for db_intent in db_intents]
