"""Dependency injection container for Flow Ledger.

Wires repositories and services from a single ``Settings`` instance so that
tests can swap the configuration (an in-memory database, reminders off)
without touching the services themselves.

Usage:
    from flow_ledger.container import Container, get_container

    container = get_container()
    snapshot = container.dashboard_service.snapshot()
"""

from functools import cached_property, lru_cache
from typing import TYPE_CHECKING

from flow_ledger.config import Settings, get_settings
from flow_ledger.domain.settings import AppSettings
from flow_ledger.logging_config import get_logger

if TYPE_CHECKING:
    from flow_ledger.repositories.sqlite import (
        SQLiteDatabase,
        SQLiteInvoiceRepository,
        SQLiteReminderRepository,
        SQLiteSettingsRepository,
        SQLiteSubscriptionRepository,
    )
    from flow_ledger.services.analytics import AnalyticsService
    from flow_ledger.services.dashboard import DashboardService
    from flow_ledger.services.invoicing import InvoiceServiceImpl
    from flow_ledger.services.reminders import Notifier, ReminderService
    from flow_ledger.services.subscriptions import SubscriptionServiceImpl

logger = get_logger(__name__)


class Container:
    """Lazily builds and caches every repository and service.

    For tests, pass custom settings:

        container = Container(settings=Settings(sqlite_path=":memory:"))
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()
        logger.debug(
            "container_created",
            sqlite_path=str(self._settings.sqlite_path),
            environment=self._settings.environment.value,
        )

    @property
    def settings(self) -> Settings:
        return self._settings

    @cached_property
    def database(self) -> "SQLiteDatabase":
        """The SQLite database, initialized on first access."""
        from flow_ledger.repositories.sqlite import SQLiteDatabase

        db_path = str(self._settings.sqlite_path)
        logger.info("initializing_sqlite_database", path=db_path)

        db = SQLiteDatabase(db_path)
        db.initialize()
        return db

    @cached_property
    def invoice_repository(self) -> "SQLiteInvoiceRepository":
        from flow_ledger.repositories.sqlite import SQLiteInvoiceRepository

        return SQLiteInvoiceRepository(self.database)

    @cached_property
    def subscription_repository(self) -> "SQLiteSubscriptionRepository":
        from flow_ledger.repositories.sqlite import SQLiteSubscriptionRepository

        return SQLiteSubscriptionRepository(self.database)

    @cached_property
    def reminder_repository(self) -> "SQLiteReminderRepository":
        from flow_ledger.repositories.sqlite import SQLiteReminderRepository

        return SQLiteReminderRepository(self.database)

    @cached_property
    def settings_repository(self) -> "SQLiteSettingsRepository":
        """Stored user preferences, seeded from the deployment defaults."""
        from flow_ledger.repositories.sqlite import SQLiteSettingsRepository

        return SQLiteSettingsRepository(self.database, default_factory=self._default_app_settings)

    @cached_property
    def analytics(self) -> "AnalyticsService":
        from flow_ledger.services.analytics import AnalyticsService

        return AnalyticsService()

    @cached_property
    def notifier(self) -> "Notifier":
        from flow_ledger.services.reminders import LoggingNotifier

        return LoggingNotifier()

    @cached_property
    def reminder_service(self) -> "ReminderService":
        from flow_ledger.services.reminders import ReminderService

        return ReminderService(
            self.reminder_repository,
            self.subscription_repository,
            self.settings_repository,
            self.notifier,
            analytics=self.analytics,
        )

    @cached_property
    def invoice_service(self) -> "InvoiceServiceImpl":
        from flow_ledger.services.invoicing import InvoiceServiceImpl

        return InvoiceServiceImpl(
            self.invoice_repository,
            self.settings_repository,
            due_days=self._settings.invoice_due_days,
            analytics=self.analytics,
        )

    @cached_property
    def subscription_service(self) -> "SubscriptionServiceImpl":
        from flow_ledger.services.subscriptions import SubscriptionServiceImpl

        return SubscriptionServiceImpl(
            self.subscription_repository,
            self.settings_repository,
            default_reminder_days_before=self._settings.default_reminder_days_before,
            analytics=self.analytics,
            reminder_service=self.reminder_service,
        )

    @cached_property
    def dashboard_service(self) -> "DashboardService":
        from flow_ledger.services.dashboard import DashboardService

        return DashboardService(
            self.invoice_repository,
            self.subscription_repository,
            settings_repo=self.settings_repository,
            currency=self._settings.default_currency,
            forecast_days=self._settings.forecast_days,
            include_paused_in_forecast=self._settings.forecast_include_paused,
            analytics=self.analytics,
        )

    def _default_app_settings(self) -> AppSettings:
        return AppSettings(
            default_tax_rate=self._settings.default_tax_rate,
            currency=self._settings.default_currency,
            enable_reminders=self._settings.enable_reminders,
            reminder_time=self._settings.default_reminder_time,
        )

    def close(self) -> None:
        """Close the database connection if one was opened."""
        if "database" in self.__dict__:
            logger.info("closing_database_connection")
            self.database.close()

    def __enter__(self) -> "Container":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


_container: Container | None = None


@lru_cache
def get_container() -> Container:
    """Get the global container singleton.

    For tests, create a Container directly with custom settings instead.
    """
    global _container
    if _container is None:
        _container = Container()
    return _container


def reset_container() -> None:
    """Close and forget the global container."""
    global _container
    if _container is not None:
        _container.close()
        _container = None
    get_container.cache_clear()
