from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from boxoffice.service.settlement.app.interface.i_seller_repo import ISellerRepo
from boxoffice.service.settlement.domain.entity.seller_entity import Seller, SellerBankAccount
from boxoffice.service.settlement.driven_adapter.model.seller_model import (
    SellerBankAccountModel,
    SellerModel,
)


def _decimal_or_none(value: Decimal | None) -> Decimal | None:
    return Decimal(value) if value is not None else None


class SellerRepoImpl(ISellerRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, *, seller_id: int) -> Seller | None:
        db_seller = await self.session.get(SellerModel, seller_id)
        if db_seller is None:
            return None
        return Seller(
            id=db_seller.id,
            user_id=db_seller.user_id,
            name=db_seller.name,
            platform_fee_percent=_decimal_or_none(db_seller.platform_fee_percent),
            pass_fees_to_customer=db_seller.pass_fees_to_customer,
            fixed_fee_per_unit=_decimal_or_none(db_seller.fixed_fee_per_unit),
            auto_approve_enabled=db_seller.auto_approve_enabled,
            payout_limit=_decimal_or_none(db_seller.payout_limit),
        )

    async def get_bank_account(self, *, bank_account_id: int) -> SellerBankAccount | None:
        db_account = await self.session.scalar(
            select(SellerBankAccountModel).where(SellerBankAccountModel.id == bank_account_id)
        )
        if db_account is None:
            return None
        return SellerBankAccount(
            id=db_account.id,
            seller_id=db_account.seller_id,
            bank_code=db_account.bank_code,
            account_number=db_account.account_number,
            account_holder_name=db_account.account_holder_name,
        )
