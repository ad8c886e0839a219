from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from boxoffice.service.checkout.app.interface.i_promo_code_repo import IPromoCodeRepo
from boxoffice.service.checkout.domain.entity.promo_code_entity import PromoCode
from boxoffice.service.checkout.domain.enum.pricing_enum import DiscountType
from boxoffice.service.checkout.driven_adapter.model.promo_code_model import PromoCodeModel


class PromoCodeRepoImpl(IPromoCodeRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def _to_entity(db_promo: PromoCodeModel) -> PromoCode:
        return PromoCode(
            id=db_promo.id,
            listing_id=db_promo.listing_id,
            code=db_promo.code,
            discount_type=DiscountType(db_promo.discount_type),
            discount_amount=Decimal(db_promo.discount_amount),
            expires_at=db_promo.expires_at,
            usage_limit=db_promo.usage_limit,
            usage_count=db_promo.usage_count,
            is_active=db_promo.is_active,
        )

    async def get_by_code(self, *, listing_id: int, code: str) -> PromoCode | None:
        db_promo = await self.session.scalar(
            select(PromoCodeModel)
            .where(
                PromoCodeModel.listing_id == listing_id,
                PromoCodeModel.code == code.strip().upper(),
            )
            .execution_options(populate_existing=True)
        )
        return self._to_entity(db_promo) if db_promo else None

    async def increment_usage(self, *, promo_code_id: int) -> None:
        await self.session.execute(
            update(PromoCodeModel)
            .where(PromoCodeModel.id == promo_code_id)
            .values(usage_count=PromoCodeModel.usage_count + 1)
            .execution_options(synchronize_session=False)
        )

    async def get_by_id(self, *, promo_code_id: int) -> PromoCode | None:
        db_promo = await self.session.get(PromoCodeModel, promo_code_id)
        return self._to_entity(db_promo) if db_promo else None
