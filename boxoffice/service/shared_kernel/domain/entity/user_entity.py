from enum import Enum

import attrs


class UserRole(str, Enum):
    SELLER = 'seller'
    BUYER = 'buyer'
    ADMIN = 'admin'


@attrs.define(frozen=True)
class UserEntity:
    """Caller identity rebuilt from the bearer token, no database lookup."""

    id: int
    email: str = ''
    name: str = ''
    role: UserRole = UserRole.BUYER

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
