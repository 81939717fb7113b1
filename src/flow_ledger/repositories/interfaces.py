from abc import ABC, abstractmethod
from collections.abc import Iterable
from uuid import UUID

from flow_ledger.domain.invoices import Invoice
from flow_ledger.domain.settings import AppSettings
from flow_ledger.domain.subscriptions import BillPayment, Reminder, Subscription
from flow_ledger.domain.value_objects import InvoiceStatus


class InvoiceRepository(ABC):
    @abstractmethod
    def add(self, invoice: Invoice) -> None:
        pass

    @abstractmethod
    def get(self, invoice_id: UUID) -> Invoice | None:
        pass

    @abstractmethod
    def update(self, invoice: Invoice) -> None:
        pass

    @abstractmethod
    def delete(self, invoice_id: UUID) -> None:
        pass

    @abstractmethod
    def list_all(self) -> Iterable[Invoice]:
        """Newest first."""

    @abstractmethod
    def list_by_status(self, status: InvoiceStatus) -> Iterable[Invoice]:
        """Newest first."""


class SubscriptionRepository(ABC):
    @abstractmethod
    def add(self, subscription: Subscription) -> None:
        pass

    @abstractmethod
    def get(self, subscription_id: UUID) -> Subscription | None:
        pass

    @abstractmethod
    def update(self, subscription: Subscription) -> None:
        pass

    @abstractmethod
    def delete(self, subscription_id: UUID) -> None:
        pass

    @abstractmethod
    def list_all(self) -> Iterable[Subscription]:
        """Paused included, ordered by next due date."""

    @abstractmethod
    def list_active(self) -> Iterable[Subscription]:
        """Paused excluded, ordered by next due date."""

    @abstractmethod
    def list_by_category(self, category: str) -> Iterable[Subscription]:
        pass

    @abstractmethod
    def record_payment(self, subscription: Subscription, payment: BillPayment) -> None:
        """Persist the advanced due date and the payment as one unit."""

    @abstractmethod
    def list_payments(self, subscription_id: UUID) -> Iterable[BillPayment]:
        pass


class ReminderRepository(ABC):
    @abstractmethod
    def add(self, reminder: Reminder) -> None:
        pass

    @abstractmethod
    def get(self, reminder_id: UUID) -> Reminder | None:
        pass

    @abstractmethod
    def update(self, reminder: Reminder) -> None:
        pass

    @abstractmethod
    def delete(self, reminder_id: UUID) -> None:
        pass

    @abstractmethod
    def list_by_subscription(self, subscription_id: UUID) -> Iterable[Reminder]:
        pass


class SettingsRepository(ABC):
    @abstractmethod
    def get(self) -> AppSettings:
        """Return the stored settings, creating defaults on first access."""

    @abstractmethod
    def update(self, settings: AppSettings) -> None:
        pass
