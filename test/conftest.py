"""
Test Configuration and Fixtures

This module provides:
- A throwaway SQLite database per test (aiosqlite), schema built from the models,
  so the conditional UPDATEs behind reserve / compare-and-swap / sweep linking run for real
- AsyncMock collaborators for the payment gateway, ticket issuer and notifier
- Use case fixtures wired to the test unit of work
- A Seeder for sellers, bank accounts, inventory units, promo codes, intents and ledger entries

Architecture:
- Unit tests (test/**/unit/): pure domain code or mocked collaborators, no database
- Integration tests (test/**/integration/): the `database` fixture, one file per test
"""

# =============================================================================
# Environment setup MUST happen before any application import
# (settings and the log directory are read at import time)
# =============================================================================
import os
from pathlib import Path


def _early_setup_test_environment() -> None:
    test_log_dir = Path(__file__).parent / 'test_log'
    test_log_dir.mkdir(exist_ok=True)
    os.environ['TEST_LOG_DIR'] = str(test_log_dir)
    os.environ['ENABLE_TRACING'] = 'false'
    os.environ['DEBUG'] = 'false'


_early_setup_test_environment()

from collections.abc import AsyncGenerator, Callable, Generator  # noqa: E402
from decimal import Decimal  # noqa: E402
from unittest.mock import AsyncMock  # noqa: E402

import pytest  # noqa: E402
from dependency_injector import providers  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from boxoffice.platform.config.core_setting import Settings  # noqa: E402
from boxoffice.platform.config.di import container  # noqa: E402
from boxoffice.platform.database.orm_db_setting import Database  # noqa: E402
from boxoffice.platform.database.unit_of_work import (  # noqa: E402
    SqlAlchemyUnitOfWork,
    UnitOfWorkFactory,
)
from boxoffice.service.checkout.app.command.complete_purchase_intent_use_case import (  # noqa: E402
    CompletePurchaseIntentUseCase,
)
from boxoffice.service.checkout.app.command.create_purchase_intent_use_case import (  # noqa: E402
    CreatePurchaseIntentUseCase,
)
from boxoffice.service.checkout.app.command.open_payment_session_use_case import (  # noqa: E402
    OpenPaymentSessionUseCase,
)
from boxoffice.service.checkout.app.command.reconcile_provider_event_use_case import (  # noqa: E402
    ReconcileProviderEventUseCase,
)
from boxoffice.service.checkout.app.command.refund_purchase_intent_use_case import (  # noqa: E402
    RefundPurchaseIntentUseCase,
)
from boxoffice.service.checkout.app.command.release_purchase_intent_use_case import (  # noqa: E402
    ReleasePurchaseIntentUseCase,
)
from boxoffice.service.checkout.app.query.intent_resolver import IntentResolver  # noqa: E402
from boxoffice.service.settlement.app.command.apply_payout_callback_use_case import (  # noqa: E402
    ApplyPayoutCallbackUseCase,
)
from boxoffice.service.settlement.app.command.approve_payout_use_case import (  # noqa: E402
    ApprovePayoutUseCase,
)
from boxoffice.service.settlement.app.command.disburse_payout_use_case import (  # noqa: E402
    DisbursePayoutUseCase,
)
from boxoffice.service.settlement.app.command.request_payout_use_case import (  # noqa: E402
    RequestPayoutUseCase,
)
from boxoffice.service.shared_kernel.app.interface.i_notification_dispatcher import (  # noqa: E402
    INotificationDispatcher,
)
from boxoffice.service.shared_kernel.app.interface.i_payment_gateway import (  # noqa: E402
    IPaymentGateway,
)
from boxoffice.service.shared_kernel.domain.entity.user_entity import (  # noqa: E402
    UserEntity,
    UserRole,
)
from boxoffice.service.shared_kernel.domain.value_object.payment_gateway_request import (  # noqa: E402
    PaymentSession,
)
from boxoffice.service.shared_kernel.driving_adapter.http_controller.auth.jwt_auth import (  # noqa: E402
    JwtAuth,
)
from seeder import ADMIN_USER_ID, BUYER_USER_ID, SELLER_USER_ID, WEBHOOK_TOKEN, Seeder  # noqa: E402


# =============================================================================
# Users
# =============================================================================
@pytest.fixture
def admin_user() -> UserEntity:
    return UserEntity(
        id=ADMIN_USER_ID, email='admin@boxoffice.test', name='Ada Admin', role=UserRole.ADMIN
    )


@pytest.fixture
def seller_user() -> UserEntity:
    return UserEntity(
        id=SELLER_USER_ID,
        email='organizer@boxoffice.test',
        name='Olive Organizer',
        role=UserRole.SELLER,
    )


@pytest.fixture
def buyer_user() -> UserEntity:
    return UserEntity(
        id=BUYER_USER_ID, email='buyer@boxoffice.test', name='Juan Dela Cruz', role=UserRole.BUYER
    )


# =============================================================================
# Settings and collaborators
# =============================================================================
@pytest.fixture
def test_settings() -> Settings:
    """Settings independent of any local .env file"""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        XENDIT_WEBHOOK_TOKEN=WEBHOOK_TOKEN,  # type: ignore[arg-type]
        DEFAULT_PLATFORM_FEE_PERCENT=Decimal('10'),
        DEFAULT_PAYOUT_LIMIT=Decimal('50000'),
        INTENT_TTL_MINUTES=15,
        EXTERNAL_REFERENCE_PREFIX='bo',
    )


@pytest.fixture
def payment_gateway() -> AsyncMock:
    """Mock payment provider: every call succeeds with a fixed provider id"""
    gateway = AsyncMock(spec=IPaymentGateway)
    gateway.create_session.return_value = PaymentSession(
        session_id='ps-0001', hosted_url='https://pay.example/ps-0001'
    )
    gateway.refund.return_value = 'rfd-0001'
    gateway.disburse.return_value = 'disb-0001'
    gateway.find_payment_reference.return_value = None
    gateway.get_balance.return_value = Decimal('1000000.00')
    return gateway


@pytest.fixture
def ticket_issuer() -> AsyncMock:
    issuer = AsyncMock()
    issuer.issue = AsyncMock()
    return issuer


@pytest.fixture
def notification_dispatcher() -> AsyncMock:
    return AsyncMock(spec=INotificationDispatcher)


# =============================================================================
# Database
# =============================================================================
@pytest.fixture
async def database(tmp_path: Path) -> AsyncGenerator[Database, None]:
    """One SQLite file per test; file based so concurrent sessions really contend"""
    db = Database(url=f'sqlite+aiosqlite:///{tmp_path / "boxoffice_test.db"}')
    await db.create_tables()
    yield db
    await db.dispose()


@pytest.fixture
def uow_factory(database: Database) -> UnitOfWorkFactory:
    def factory() -> SqlAlchemyUnitOfWork:
        return SqlAlchemyUnitOfWork(session_factory=database.session)

    return factory


@pytest.fixture
def seed(database: Database, uow_factory: UnitOfWorkFactory) -> Seeder:
    return Seeder(database=database, uow_factory=uow_factory)


# =============================================================================
# Use cases (constructed directly, no container)
# =============================================================================
@pytest.fixture
def release_use_case(uow_factory: UnitOfWorkFactory) -> ReleasePurchaseIntentUseCase:
    return ReleasePurchaseIntentUseCase(uow_factory=uow_factory)


@pytest.fixture
def open_session_use_case(
    uow_factory: UnitOfWorkFactory,
    payment_gateway: AsyncMock,
    release_use_case: ReleasePurchaseIntentUseCase,
    test_settings: Settings,
) -> OpenPaymentSessionUseCase:
    return OpenPaymentSessionUseCase(
        uow_factory=uow_factory,
        payment_gateway=payment_gateway,
        release_use_case=release_use_case,
        settings=test_settings,
    )


@pytest.fixture
def create_use_case(
    uow_factory: UnitOfWorkFactory,
    open_session_use_case: OpenPaymentSessionUseCase,
    test_settings: Settings,
) -> CreatePurchaseIntentUseCase:
    return CreatePurchaseIntentUseCase(
        uow_factory=uow_factory,
        open_session_use_case=open_session_use_case,
        settings=test_settings,
    )


@pytest.fixture
def complete_use_case(
    uow_factory: UnitOfWorkFactory,
    ticket_issuer: AsyncMock,
    notification_dispatcher: AsyncMock,
) -> CompletePurchaseIntentUseCase:
    return CompletePurchaseIntentUseCase(
        uow_factory=uow_factory,
        ticket_issuer=ticket_issuer,
        notification_dispatcher=notification_dispatcher,
    )


@pytest.fixture
def refund_use_case(
    uow_factory: UnitOfWorkFactory,
    payment_gateway: AsyncMock,
    notification_dispatcher: AsyncMock,
    test_settings: Settings,
) -> RefundPurchaseIntentUseCase:
    return RefundPurchaseIntentUseCase(
        uow_factory=uow_factory,
        payment_gateway=payment_gateway,
        notification_dispatcher=notification_dispatcher,
        settings=test_settings,
    )


@pytest.fixture
def payout_callback_use_case(uow_factory: UnitOfWorkFactory) -> ApplyPayoutCallbackUseCase:
    return ApplyPayoutCallbackUseCase(uow_factory=uow_factory)


@pytest.fixture
def reconcile_use_case(
    uow_factory: UnitOfWorkFactory,
    complete_use_case: CompletePurchaseIntentUseCase,
    release_use_case: ReleasePurchaseIntentUseCase,
    refund_use_case: RefundPurchaseIntentUseCase,
    payout_callback_use_case: ApplyPayoutCallbackUseCase,
) -> ReconcileProviderEventUseCase:
    return ReconcileProviderEventUseCase(
        uow_factory=uow_factory,
        resolver=IntentResolver(),
        complete_use_case=complete_use_case,
        release_use_case=release_use_case,
        refund_use_case=refund_use_case,
        payout_callback_use_case=payout_callback_use_case,
    )


@pytest.fixture
def disburse_use_case(
    uow_factory: UnitOfWorkFactory, payment_gateway: AsyncMock, test_settings: Settings
) -> DisbursePayoutUseCase:
    return DisbursePayoutUseCase(
        uow_factory=uow_factory, payment_gateway=payment_gateway, settings=test_settings
    )


@pytest.fixture
def request_payout_use_case(
    uow_factory: UnitOfWorkFactory,
    disburse_use_case: DisbursePayoutUseCase,
    test_settings: Settings,
) -> RequestPayoutUseCase:
    return RequestPayoutUseCase(
        uow_factory=uow_factory, disburse_use_case=disburse_use_case, settings=test_settings
    )


@pytest.fixture
def approve_payout_use_case(
    uow_factory: UnitOfWorkFactory,
    disburse_use_case: DisbursePayoutUseCase,
    notification_dispatcher: AsyncMock,
) -> ApprovePayoutUseCase:
    return ApprovePayoutUseCase(
        uow_factory=uow_factory,
        disburse_use_case=disburse_use_case,
        notification_dispatcher=notification_dispatcher,
    )


# =============================================================================
# HTTP
# =============================================================================
JWT_TEST_SECRET = 'http-test-secret'


@pytest.fixture
def jwt_auth() -> JwtAuth:
    return JwtAuth(secret=JWT_TEST_SECRET, algorithm='HS256')


@pytest.fixture
def client(test_settings: Settings, jwt_auth: JwtAuth) -> Generator[TestClient, None, None]:
    """
    Test app with settings and token signing pinned; use cases are replaced per test
    through `client.app.dependency_overrides`, so no database is touched.
    """
    from test_main import app

    container.config_service.override(providers.Object(test_settings))
    container.jwt_auth.override(providers.Object(jwt_auth))
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    container.config_service.reset_override()
    container.jwt_auth.reset_override()


@pytest.fixture
def auth_headers(jwt_auth: JwtAuth) -> Callable[[UserEntity], dict[str, str]]:
    def _headers(user: UserEntity) -> dict[str, str]:
        return {'Authorization': f'Bearer {jwt_auth.create_jwt_token(user)}'}

    return _headers
