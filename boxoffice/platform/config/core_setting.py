from decimal import Decimal
from pathlib import Path
from typing import Annotated, List

import orjson
from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


_PROJECT_ROOT = Path(__file__).resolve().parents[3]
_ENV_PATH = _PROJECT_ROOT / '.env'
_ENV_FILE = _ENV_PATH if _ENV_PATH.exists() else (_PROJECT_ROOT / '.env.example')


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_ignore_empty=True,
        extra='ignore',
    )

    PROJECT_NAME: str = 'Box Office'
    VERSION: str = '0.1.0'
    DEBUG: bool = False
    SERVICE_NAME: str = 'boxoffice'

    # Security
    SECRET_KEY: SecretStr = SecretStr('test_secret_key_change_in_production')
    ALGORITHM: str = 'HS256'
    AUTH_COOKIE_NAME: str = 'boxoffice_auth'

    # CORS
    BACKEND_CORS_ORIGINS: Annotated[List[str], NoDecode] = []

    @field_validator('BACKEND_CORS_ORIGINS', mode='before')
    @classmethod
    def assemble_cors_origins(cls, v: str | List[str]) -> List[str]:
        # NoDecode hands over the raw env string: comma separated or a JSON list
        if isinstance(v, str):
            if v.startswith('['):
                return orjson.loads(v)
            return [i.strip() for i in v.split(',') if i.strip()]
        elif isinstance(v, list):
            return v
        return []

    # PostgreSQL
    POSTGRES_SERVER: str = 'localhost'
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = 'boxoffice'
    POSTGRES_PASSWORD: SecretStr = SecretStr('boxoffice')
    POSTGRES_DB: str = 'boxoffice'
    DATABASE_URL: str | None = None  # Explicit override, e.g. sqlite+aiosqlite:///./dev.db
    DB_POOL_SIZE: int = 10
    DB_POOL_MAX_OVERFLOW: int = 5
    DB_POOL_PRE_PING: bool = True

    @property
    def DATABASE_URL_ASYNC(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f'postgresql+asyncpg://{self.POSTGRES_USER}:'
            f'{self.POSTGRES_PASSWORD.get_secret_value()}@'
            f'{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}'
        )

    # Checkout
    INTENT_TTL_MINUTES: int = 15
    CURRENCY: str = 'PHP'
    COUNTRY: str = 'PH'
    DEFAULT_PLATFORM_FEE_PERCENT: Decimal = Decimal('10')
    DEFAULT_FIXED_FEE_PER_UNIT: Decimal = Decimal('15.00')
    PROCESSING_FEE_PERCENT: Decimal = Decimal('4')
    DEFAULT_PAYOUT_LIMIT: Decimal = Decimal('50000')
    DEFAULT_CUSTOMER_MOBILE: str = '+639000000000'
    CHECKOUT_SUCCESS_URL: str = 'http://localhost:3000/checkout/success'
    CHECKOUT_FAILURE_URL: str = 'http://localhost:3000/checkout/failed'
    EXTERNAL_REFERENCE_PREFIX: str = 'bo'

    @field_validator(
        'DEFAULT_PLATFORM_FEE_PERCENT', 'PROCESSING_FEE_PERCENT', mode='after'
    )
    @classmethod
    def check_percent(cls, v: Decimal) -> Decimal:
        if not Decimal('0') <= v <= Decimal('100'):
            raise ValueError('fee percent must be between 0 and 100')
        return v

    @field_validator('INTENT_TTL_MINUTES', mode='after')
    @classmethod
    def check_ttl(cls, v: int) -> int:
        if v <= 0:
            raise ValueError('INTENT_TTL_MINUTES must be positive')
        return v

    # Payment provider (Xendit)
    XENDIT_API_URL: str = 'https://api.xendit.co'
    XENDIT_SECRET_KEY: SecretStr = SecretStr('')
    XENDIT_WEBHOOK_TOKEN: SecretStr | None = None
    WEBHOOK_ALLOW_MISSING_TOKEN: bool = False  # Provider endpoint verification only
    REFUND_LOOKUP_BY_TRANSACTION: bool = False
    PROVIDER_TIMEOUT_SECONDS: float = 15.0

    # Expiry reaper
    EXPIRE_BATCH_SIZE: int = 200

    # Downstream collaborators
    TICKET_ISSUANCE_URL: str | None = None
    NOTIFICATION_URL: str | None = None
    COLLABORATOR_TIMEOUT_SECONDS: float = 10.0

    # Observability
    ENABLE_TRACING: bool = False
    OTEL_EXPORTER_OTLP_ENDPOINT: str | None = None


settings = Settings()  # type: ignore
