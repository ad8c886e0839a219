from typing import Optional

from dependency_injector.wiring import Provide, inject
from fastapi import Cookie, Depends, Header

from boxoffice.platform.config.core_setting import settings
from boxoffice.platform.config.di import Container
from boxoffice.platform.exception.exceptions import ForbiddenError
from boxoffice.service.shared_kernel.domain.entity.user_entity import UserEntity, UserRole
from boxoffice.service.shared_kernel.driving_adapter.http_controller.auth.jwt_auth import JwtAuth


class RoleAuthStrategy:
    @staticmethod
    def is_admin(user: UserEntity) -> bool:
        return user.role == UserRole.ADMIN

    @staticmethod
    def is_seller(user: UserEntity) -> bool:
        return user.role == UserRole.SELLER


def _extract_token(authorization: Optional[str], cookie_token: Optional[str]) -> Optional[str]:
    if authorization:
        scheme, _, credentials = authorization.partition(' ')
        if scheme.lower() == 'bearer' and credentials:
            return credentials.strip()
    return cookie_token


@inject
async def get_current_user(
    authorization: Optional[str] = Header(None),
    cookie_token: Optional[str] = Cookie(None, alias=settings.AUTH_COOKIE_NAME),
    jwt_auth: JwtAuth = Depends(Provide[Container.jwt_auth]),
) -> UserEntity:
    return jwt_auth.get_current_user_info_from_jwt(_extract_token(authorization, cookie_token))


@inject
async def get_optional_user(
    authorization: Optional[str] = Header(None),
    cookie_token: Optional[str] = Cookie(None, alias=settings.AUTH_COOKIE_NAME),
    jwt_auth: JwtAuth = Depends(Provide[Container.jwt_auth]),
) -> Optional[UserEntity]:
    """Guest checkout: no token means no user, a bad token is still rejected."""
    token = _extract_token(authorization, cookie_token)
    if token is None:
        return None
    return jwt_auth.get_current_user_info_from_jwt(token)


async def require_admin(current_user: UserEntity = Depends(get_current_user)) -> UserEntity:
    if not RoleAuthStrategy.is_admin(current_user):
        raise ForbiddenError('Only admins can perform this action')
    return current_user


async def require_seller_or_admin(
    current_user: UserEntity = Depends(get_current_user),
) -> UserEntity:
    if not (RoleAuthStrategy.is_seller(current_user) or RoleAuthStrategy.is_admin(current_user)):
        raise ForbiddenError('Only sellers or admins can perform this action')
    return current_user
