from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from uuid import UUID

from flow_ledger.domain.invoices import Client, Invoice, LineItem
from flow_ledger.domain.subscriptions import BillPayment, Subscription
from flow_ledger.domain.value_objects import (
    InvoiceStatus,
    Money,
    Quantity,
    SubscriptionCadence,
)


class InvoiceService(ABC):
    @abstractmethod
    def create_invoice(
        self,
        client: Client | None = None,
        due_date: date | None = None,
        tax_rate: Decimal | None = None,
        notes: str | None = None,
    ) -> Invoice:
        pass

    @abstractmethod
    def get_invoice(self, invoice_id: UUID) -> Invoice | None:
        pass

    @abstractmethod
    def list_invoices(self, status: InvoiceStatus | None = None) -> list[Invoice]:
        pass

    @abstractmethod
    def save_invoice(self, invoice: Invoice) -> None:
        pass

    @abstractmethod
    def delete_invoice(self, invoice_id: UUID) -> None:
        pass

    @abstractmethod
    def add_line_item(
        self,
        invoice_id: UUID,
        description: str,
        quantity: Quantity | Decimal | int | float,
        unit_price: Money | Decimal | int | float,
    ) -> LineItem:
        pass

    @abstractmethod
    def remove_line_item(self, invoice_id: UUID, line_item_id: UUID) -> Invoice:
        pass

    @abstractmethod
    def set_tax_rate(self, invoice_id: UUID, tax_rate: Decimal) -> Invoice:
        pass

    @abstractmethod
    def set_discount(self, invoice_id: UUID, discount: Money | Decimal) -> Invoice:
        pass

    @abstractmethod
    def update_status(self, invoice_id: UUID, status: InvoiceStatus) -> Invoice:
        pass


class SubscriptionService(ABC):
    @abstractmethod
    def create_subscription(
        self,
        name: str,
        amount: Money | Decimal,
        cadence: SubscriptionCadence,
        next_due_date: date,
        category: str | None = None,
        reminder_days_before: int | None = None,
        notes: str | None = None,
        is_paused: bool = False,
    ) -> Subscription:
        pass

    @abstractmethod
    def get_subscription(self, subscription_id: UUID) -> Subscription | None:
        pass

    @abstractmethod
    def list_subscriptions(
        self, category: str | None = None, include_paused: bool = False
    ) -> list[Subscription]:
        pass

    @abstractmethod
    def update_subscription(self, subscription: Subscription) -> None:
        pass

    @abstractmethod
    def delete_subscription(self, subscription_id: UUID) -> None:
        pass

    @abstractmethod
    def mark_as_paid(
        self, subscription_id: UUID, paid_on: date | None = None
    ) -> BillPayment:
        pass
