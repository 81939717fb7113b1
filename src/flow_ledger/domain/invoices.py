from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime
from decimal import Decimal
from uuid import UUID, uuid4

from flow_ledger.domain.value_objects import (
    Currency,
    InvoiceStatus,
    Money,
    Quantity,
    to_decimal,
)
from flow_ledger.exceptions import (
    InvalidAmountError,
    InvalidQuantityError,
    InvalidTaxRateError,
    LineItemNotFoundError,
)


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class Client:
    name: str
    id: UUID = field(default_factory=uuid4)
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    created_at: datetime = field(default_factory=_utc_now)


@dataclass(frozen=True)
class LineItem:
    description: str
    quantity: Quantity
    unit_price: Money
    id: UUID = field(default_factory=uuid4)

    def __post_init__(self) -> None:
        if not isinstance(self.quantity, Quantity):
            object.__setattr__(self, "quantity", Quantity(self.quantity))
        if self.quantity.is_negative:
            raise InvalidQuantityError(str(self.quantity.value))

    @property
    def total(self) -> Money:
        return self.unit_price * self.quantity.value


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: Money
    tax: Money
    total: Money

    def __iter__(self) -> Iterator[Money]:
        return iter((self.subtotal, self.tax, self.total))


def compute_invoice_totals(
    line_items: Iterable[LineItem],
    tax_rate: Decimal | int | float,
    discount: Money,
) -> InvoiceTotals:
    """Derive subtotal, tax and total for a set of line items.

    The discount is subtracted before tax and is not floored, so a discount
    larger than the subtotal yields a negative taxable amount and negative tax.
    """
    subtotal = Money.zero(discount.currency)
    for item in line_items:
        subtotal = subtotal + item.total

    after_discount = subtotal - discount
    tax = after_discount * tax_rate
    return InvoiceTotals(subtotal=subtotal, tax=tax, total=after_discount + tax)


def _validate_tax_rate(tax_rate: Decimal | int | float) -> Decimal:
    rate = to_decimal(tax_rate)
    if rate < 0 or rate > 1:
        raise InvalidTaxRateError(str(rate))
    return rate


@dataclass
class Invoice:
    """Invoice aggregate.

    The invoice exclusively owns its line items. Every mutation that can move
    the totals goes through a method here. Totals are computed for the new
    state before it is assigned, so a rejected change leaves the invoice as it was.
    """

    invoice_number: str
    currency: Currency | str = Currency.USD
    status: InvoiceStatus = InvoiceStatus.DRAFT
    client: Client | None = None
    line_items: list[LineItem] = field(default_factory=list)
    tax_rate: Decimal = Decimal("0")
    discount: Money | None = None
    issued_date: date = field(default_factory=date.today)
    due_date: date | None = None
    paid_date: date | None = None
    notes: str | None = None
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=_utc_now)
    subtotal: Money = field(init=False)
    tax: Money = field(init=False)
    total: Money = field(init=False)

    def __post_init__(self) -> None:
        self.currency = Currency(self.currency)
        self.status = InvoiceStatus(self.status)
        self.tax_rate = _validate_tax_rate(self.tax_rate)
        if self.discount is None:
            self.discount = Money.zero(self.currency)
        self.recalculate()

    def recalculate(self) -> InvoiceTotals:
        return self._apply(self.line_items, self.discount)

    def _apply(self, line_items: list[LineItem], discount: Money | None) -> InvoiceTotals:
        """Compute totals for the candidate state and commit it only on success."""
        if discount is None:
            discount = Money.zero(self.currency)
        totals = compute_invoice_totals(line_items, self.tax_rate, discount)
        self.line_items = line_items
        self.discount = discount
        self.subtotal, self.tax, self.total = totals
        return totals

    def _money(self, value: Money | Decimal | int | float, field_name: str) -> Money:
        if not isinstance(value, Money):
            return Money(value, self.currency)
        if value.currency != self.currency:
            raise InvalidAmountError(
                f"{value.amount} {value.currency.value}",
                f"{field_name} must be in {self.currency.value}",
            )
        return value

    def add_line_item(
        self,
        description: str,
        quantity: Quantity | Decimal | int | float,
        unit_price: Money | Decimal | int | float,
    ) -> LineItem:
        item = LineItem(
            description=description,
            quantity=quantity,
            unit_price=self._money(unit_price, "unit_price"),
        )
        self._apply([*self.line_items, item], self.discount)
        return item

    def remove_line_item(self, line_item_id: UUID) -> LineItem:
        index = self._index_of(line_item_id)
        item = self.line_items[index]
        self._apply(self.line_items[:index] + self.line_items[index + 1 :], self.discount)
        return item

    def update_line_item(
        self,
        line_item_id: UUID,
        *,
        description: str | None = None,
        quantity: Quantity | Decimal | int | float | None = None,
        unit_price: Money | Decimal | int | float | None = None,
    ) -> LineItem:
        index = self._index_of(line_item_id)
        changes: dict[str, object] = {}
        if description is not None:
            changes["description"] = description
        if quantity is not None:
            changes["quantity"] = (
                quantity if isinstance(quantity, Quantity) else Quantity(quantity)
            )
        if unit_price is not None:
            changes["unit_price"] = self._money(unit_price, "unit_price")
        item = replace(self.line_items[index], **changes)
        line_items = list(self.line_items)
        line_items[index] = item
        self._apply(line_items, self.discount)
        return item

    def set_tax_rate(self, tax_rate: Decimal | int | float) -> None:
        self.tax_rate = _validate_tax_rate(tax_rate)
        self.recalculate()

    def set_discount(self, discount: Money | Decimal | int | float) -> None:
        discount = self._money(discount, "discount")
        if discount.is_negative:
            raise InvalidAmountError(str(discount.amount), "discount must not be negative")
        self._apply(self.line_items, discount)

    def mark_status(self, status: InvoiceStatus, on: date) -> InvoiceStatus:
        """Move to ``status`` and return the previous one.

        ``paid_date`` is set to ``on`` when the invoice becomes paid and cleared
        when it leaves the paid state.
        """
        previous = self.status
        self.status = InvoiceStatus(status)
        if self.status == InvoiceStatus.PAID:
            if previous != InvoiceStatus.PAID:
                self.paid_date = on
        else:
            self.paid_date = None
        return previous

    def _index_of(self, line_item_id: UUID) -> int:
        for index, item in enumerate(self.line_items):
            if item.id == line_item_id:
                return index
        raise LineItemNotFoundError(self.id, line_item_id)


__all__ = [
    "Client",
    "Invoice",
    "InvoiceTotals",
    "LineItem",
    "compute_invoice_totals",
]
