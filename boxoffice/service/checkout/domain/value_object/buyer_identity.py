from typing import Optional

import attrs

from boxoffice.platform.exception.exceptions import AuthenticationError
from boxoffice.service.shared_kernel.domain.entity.user_entity import UserEntity


@attrs.define(frozen=True)
class GuestContact:
    email: str
    name: str
    phone: Optional[str] = None


@attrs.define(frozen=True)
class BuyerIdentity:
    """Exactly one of `user_id` or `guest` is set."""

    user_id: Optional[int] = None
    guest: Optional[GuestContact] = None

    def __attrs_post_init__(self) -> None:
        if (self.user_id is None) == (self.guest is None):
            raise ValueError('BuyerIdentity needs exactly one of user_id or guest')

    @property
    def is_guest(self) -> bool:
        return self.guest is not None

    @classmethod
    def resolve(
        cls,
        *,
        user: Optional[UserEntity],
        guest_email: Optional[str] = None,
        guest_name: Optional[str] = None,
        guest_phone: Optional[str] = None,
    ) -> 'BuyerIdentity':
        """
        An authenticated caller always buys as themselves; guest fields are then ignored.
        Without a token the guest contact must be complete.
        """
        if user is not None:
            return cls(user_id=user.id)

        email = (guest_email or '').strip()
        name = (guest_name or '').strip()
        if not email or not name:
            raise AuthenticationError('Login or complete guest details (email and name) required')
        phone = (guest_phone or '').strip() or None
        return cls(guest=GuestContact(email=email.lower(), name=name, phone=phone))
