from abc import ABC, abstractmethod

from boxoffice.service.settlement.domain.entity.seller_entity import Seller, SellerBankAccount


class ISellerRepo(ABC):
    @abstractmethod
    async def get_by_id(self, *, seller_id: int) -> Seller | None:
        pass

    @abstractmethod
    async def get_bank_account(self, *, bank_account_id: int) -> SellerBankAccount | None:
        pass
