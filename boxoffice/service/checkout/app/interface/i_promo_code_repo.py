from abc import ABC, abstractmethod

from boxoffice.service.checkout.domain.entity.promo_code_entity import PromoCode


class IPromoCodeRepo(ABC):
    @abstractmethod
    async def get_by_code(self, *, listing_id: int, code: str) -> PromoCode | None:
        """Look up by the upper-cased code within one listing."""
        pass

    @abstractmethod
    async def increment_usage(self, *, promo_code_id: int) -> None:
        pass

    @abstractmethod
    async def get_by_id(self, *, promo_code_id: int) -> PromoCode | None:
        pass
