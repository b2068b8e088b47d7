from dependency_injector import containers, providers

from posapi.config import Settings
from posapi.services.auth_service import AuthService
from posapi.services.checkout_service import CheckoutService
from posapi.services.customer_service import CustomerService
from posapi.services.debt_service import DebtService
from posapi.services.inventory_service import InventoryService
from posapi.services.notification_service import TelegramNotifier
from posapi.services.order_service import OrderService
from posapi.services.product_service import ProductService
from posapi.services.report_service import ReportService
from posapi.services.savings_service import SavingsService


class ConfigModule(containers.DeclarativeContainer):
    """Application configuration."""

    config = providers.Singleton(Settings)


class IntegrationModule(containers.DeclarativeContainer):
    """Outbound integrations."""

    config = providers.DependenciesContainer()

    telegram_notifier = providers.Singleton(TelegramNotifier, settings=config.config)


class ServiceModule(containers.DeclarativeContainer):
    """
    Service layer. Every service needs a request-scoped ``db`` session, which
    the caller passes when invoking the provider (see ``posapi.deps``).
    """

    config = providers.DependenciesContainer()
    integrations = providers.DependenciesContainer()

    auth_service = providers.Factory(AuthService, settings=config.config)
    savings_service = providers.Factory(SavingsService, settings=config.config)
    checkout_service = providers.Factory(CheckoutService, settings=config.config)
    debt_service = providers.Factory(DebtService, settings=config.config)
    inventory_service = providers.Factory(InventoryService, settings=config.config)
    product_service = providers.Factory(ProductService, settings=config.config)
    customer_service = providers.Factory(CustomerService, settings=config.config)
    report_service = providers.Factory(ReportService, settings=config.config)
    order_service = providers.Factory(
        OrderService,
        notifier=integrations.telegram_notifier,
        settings=config.config,
    )


class Container(containers.DeclarativeContainer):
    """Application container."""

    config = providers.Container(ConfigModule)
    integrations = providers.Container(IntegrationModule, config=config)
    services = providers.Container(
        ServiceModule, config=config, integrations=integrations
    )
