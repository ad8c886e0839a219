"""
Bearer token authentication (stateless, no DB query)
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

from boxoffice.platform.config.core_setting import settings
from boxoffice.platform.exception.exceptions import AuthenticationError
from boxoffice.service.shared_kernel.domain.entity.user_entity import UserEntity, UserRole


class JwtAuth:
    def __init__(self, *, secret: str | None = None, algorithm: str | None = None) -> None:
        self.secret = secret or settings.SECRET_KEY.get_secret_value()
        self.algorithm = algorithm or settings.ALGORITHM
        self.token_expire_days = 7

    def create_jwt_token(self, user_entity: UserEntity) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            'sub': str(user_entity.id),
            'exp': now + timedelta(days=self.token_expire_days),
            'iat': now,
            'email': user_entity.email,
            'name': user_entity.name,
            'role': user_entity.role.value,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode_jwt_token(self, token: str) -> Dict[str, Any]:
        try:
            return jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.PyJWTError:
            raise AuthenticationError('Invalid token')

    def get_current_user_info_from_jwt(self, token: Optional[str]) -> UserEntity:
        if not token:
            raise AuthenticationError('Not authenticated')

        payload = self.decode_jwt_token(token)

        sub = payload.get('sub')
        role = payload.get('role')
        if not sub or not role:
            raise AuthenticationError('Invalid token')

        try:
            return UserEntity(
                id=int(sub),
                email=payload.get('email') or '',
                name=payload.get('name') or '',
                role=UserRole(role),
            )
        except ValueError:
            raise AuthenticationError('Invalid token')
