from __future__ import annotations

import secrets
from collections.abc import Callable
from datetime import date, datetime, timedelta
from decimal import Decimal
from uuid import UUID, uuid4

from flow_ledger.domain.invoices import Client, Invoice, LineItem
from flow_ledger.domain.value_objects import InvoiceStatus, Money, Quantity
from flow_ledger.exceptions import InvoiceNotFoundError
from flow_ledger.logging_config import get_logger
from flow_ledger.repositories.interfaces import InvoiceRepository, SettingsRepository
from flow_ledger.services.analytics import AnalyticsService
from flow_ledger.services.interfaces import InvoiceService

logger = get_logger(__name__)


def generate_invoice_number(on: date) -> str:
    """``INV-YYYYMMDD-NNNN`` with a random four-digit suffix."""
    suffix = 1000 + secrets.randbelow(9000)
    return f"INV-{on.strftime('%Y%m%d')}-{suffix}"


class InvoiceServiceImpl(InvoiceService):
    def __init__(
        self,
        invoice_repo: InvoiceRepository,
        settings_repo: SettingsRepository,
        *,
        due_days: int = 30,
        clock: Callable[[], datetime] = datetime.now,
        analytics: AnalyticsService | None = None,
    ) -> None:
        self._invoice_repo = invoice_repo
        self._settings_repo = settings_repo
        self._due_days = due_days
        self._clock = clock
        self._analytics = analytics

    def create_invoice(
        self,
        client: Client | None = None,
        due_date: date | None = None,
        tax_rate: Decimal | None = None,
        notes: str | None = None,
    ) -> Invoice:
        settings = self._settings_repo.get()
        today = self._clock().date()
        invoice = Invoice(
            invoice_number=generate_invoice_number(today),
            currency=settings.currency,
            status=InvoiceStatus.DRAFT,
            client=client,
            tax_rate=tax_rate if tax_rate is not None else settings.default_tax_rate,
            issued_date=today,
            due_date=due_date if due_date is not None else today + timedelta(days=self._due_days),
            notes=notes,
            id=uuid4(),
        )
        self._invoice_repo.add(invoice)
        logger.info(
            "invoice_created",
            invoice_id=str(invoice.id),
            invoice_number=invoice.invoice_number,
        )
        if self._analytics is not None:
            self._analytics.log_invoice_created(
                line_count=len(invoice.line_items),
                has_tax=invoice.tax_rate > 0,
                subtotal=invoice.subtotal.amount,
            )
        return invoice

    def get_invoice(self, invoice_id: UUID) -> Invoice | None:
        return self._invoice_repo.get(invoice_id)

    def list_invoices(self, status: InvoiceStatus | None = None) -> list[Invoice]:
        if status is None:
            return list(self._invoice_repo.list_all())
        return list(self._invoice_repo.list_by_status(status))

    def save_invoice(self, invoice: Invoice) -> None:
        invoice.recalculate()
        self._invoice_repo.update(invoice)

    def delete_invoice(self, invoice_id: UUID) -> None:
        self._require(invoice_id)
        self._invoice_repo.delete(invoice_id)
        logger.info("invoice_deleted", invoice_id=str(invoice_id))

    def set_client(
        self,
        invoice_id: UUID,
        name: str,
        email: str | None = None,
        phone: str | None = None,
        address: str | None = None,
    ) -> Invoice:
        """Attach a client to the invoice, or edit the one already attached."""
        invoice = self._require(invoice_id)
        if invoice.client is None:
            invoice.client = Client(
                name=name, email=email, phone=phone, address=address, id=uuid4()
            )
        else:
            invoice.client.name = name
            invoice.client.email = email
            invoice.client.phone = phone
            invoice.client.address = address
        self._invoice_repo.update(invoice)
        return invoice

    def add_line_item(
        self,
        invoice_id: UUID,
        description: str,
        quantity: Quantity | Decimal | int | float,
        unit_price: Money | Decimal | int | float,
    ) -> LineItem:
        invoice = self._require(invoice_id)
        item = invoice.add_line_item(description, quantity, unit_price)
        self._invoice_repo.update(invoice)
        logger.debug(
            "line_item_added",
            invoice_id=str(invoice.id),
            line_item_id=str(item.id),
            total=str(invoice.total.amount),
        )
        return item

    def update_line_item(
        self,
        invoice_id: UUID,
        line_item_id: UUID,
        *,
        description: str | None = None,
        quantity: Quantity | Decimal | int | float | None = None,
        unit_price: Money | Decimal | int | float | None = None,
    ) -> LineItem:
        invoice = self._require(invoice_id)
        item = invoice.update_line_item(
            line_item_id,
            description=description,
            quantity=quantity,
            unit_price=unit_price,
        )
        self._invoice_repo.update(invoice)
        return item

    def remove_line_item(self, invoice_id: UUID, line_item_id: UUID) -> Invoice:
        invoice = self._require(invoice_id)
        invoice.remove_line_item(line_item_id)
        self._invoice_repo.update(invoice)
        logger.debug(
            "line_item_removed",
            invoice_id=str(invoice.id),
            line_item_id=str(line_item_id),
            total=str(invoice.total.amount),
        )
        return invoice

    def set_tax_rate(self, invoice_id: UUID, tax_rate: Decimal) -> Invoice:
        invoice = self._require(invoice_id)
        invoice.set_tax_rate(tax_rate)
        self._invoice_repo.update(invoice)
        return invoice

    def set_discount(self, invoice_id: UUID, discount: Money | Decimal) -> Invoice:
        invoice = self._require(invoice_id)
        invoice.set_discount(discount)
        self._invoice_repo.update(invoice)
        return invoice

    def update_status(self, invoice_id: UUID, status: InvoiceStatus) -> Invoice:
        invoice = self._require(invoice_id)
        previous = invoice.mark_status(status, on=self._clock().date())
        self._invoice_repo.update(invoice)
        logger.info(
            "invoice_status_changed",
            invoice_id=str(invoice.id),
            from_status=previous.value,
            to_status=invoice.status.value,
        )
        if self._analytics is not None:
            self._analytics.log_invoice_status_changed(previous.value, invoice.status.value)
        return invoice

    def _require(self, invoice_id: UUID) -> Invoice:
        invoice = self._invoice_repo.get(invoice_id)
        if invoice is None:
            raise InvoiceNotFoundError(invoice_id)
        return invoice
