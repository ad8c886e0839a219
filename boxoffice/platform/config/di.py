"""
https://python-dependency-injector.ets-labs.org/index.html
https://python-dependency-injector.ets-labs.org/examples/fastapi-sqlalchemy.html
"""

from dependency_injector import containers, providers

from boxoffice.platform.config.core_setting import Settings
from boxoffice.platform.database.orm_db_setting import Database
from boxoffice.platform.database.unit_of_work import SqlAlchemyUnitOfWork
from boxoffice.service.checkout.app.query.intent_resolver import IntentResolver
from boxoffice.service.checkout.driven_adapter.issuance.http_ticket_issuer import (
    HttpTicketIssuer,
)
from boxoffice.service.shared_kernel.driven_adapter.notification_dispatcher_impl import (
    HttpNotificationDispatcher,
)
from boxoffice.service.shared_kernel.driven_adapter.xendit_payment_gateway import (
    XenditPaymentGateway,
)
from boxoffice.service.shared_kernel.driving_adapter.http_controller.auth.jwt_auth import JwtAuth


class Container(containers.DeclarativeContainer):
    # Configuration
    config_service = providers.Singleton(Settings)

    # Database (engine and session maker live inside, one per event loop)
    database = providers.Singleton(Database)

    # One unit of work per business operation; use cases receive the provider itself
    unit_of_work = providers.Factory(
        SqlAlchemyUnitOfWork, session_factory=database.provided.session
    )

    # Outbound adapters (shared httpx clients)
    payment_gateway = providers.Singleton(XenditPaymentGateway)
    ticket_issuer = providers.Singleton(HttpTicketIssuer)
    notification_dispatcher = providers.Singleton(HttpNotificationDispatcher)

    # Auth service
    jwt_auth = providers.Singleton(JwtAuth)

    # Webhook reference resolution
    intent_resolver = providers.Singleton(
        IntentResolver,
        lookup_refunds_by_transaction=config_service.provided.REFUND_LOOKUP_BY_TRANSACTION,
    )


container = Container()


def cleanup() -> None:
    container.reset_singletons()
