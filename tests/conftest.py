from collections.abc import Callable
from datetime import date, datetime
from decimal import Decimal

import pytest

from flow_ledger.domain.invoices import Client, Invoice
from flow_ledger.domain.subscriptions import Subscription
from flow_ledger.domain.value_objects import (
    InvoiceStatus,
    Money,
    Quantity,
    SubscriptionCadence,
)
from flow_ledger.repositories.sqlite import (
    SQLiteDatabase,
    SQLiteInvoiceRepository,
    SQLiteReminderRepository,
    SQLiteSettingsRepository,
    SQLiteSubscriptionRepository,
)

FIXED_NOW = datetime(2025, 6, 15, 10, 30)


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def clock(fixed_now: datetime) -> Callable[[], datetime]:
    return lambda: fixed_now


@pytest.fixture
def db() -> SQLiteDatabase:
    """Create an in-memory SQLite database for testing."""
    database = SQLiteDatabase(":memory:")
    database.initialize()
    return database


@pytest.fixture
def invoice_repo(db: SQLiteDatabase) -> SQLiteInvoiceRepository:
    return SQLiteInvoiceRepository(db)


@pytest.fixture
def subscription_repo(db: SQLiteDatabase) -> SQLiteSubscriptionRepository:
    return SQLiteSubscriptionRepository(db)


@pytest.fixture
def reminder_repo(db: SQLiteDatabase) -> SQLiteReminderRepository:
    return SQLiteReminderRepository(db)


@pytest.fixture
def settings_repo(db: SQLiteDatabase) -> SQLiteSettingsRepository:
    return SQLiteSettingsRepository(db)


@pytest.fixture
def sample_client() -> Client:
    return Client(name="Acme Studio", email="billing@acme.test")


@pytest.fixture
def sample_invoice(sample_client: Client) -> Invoice:
    invoice = Invoice(
        invoice_number="INV-20250601-1234",
        client=sample_client,
        tax_rate=Decimal("0.18"),
        issued_date=date(2025, 6, 1),
        due_date=date(2025, 7, 1),
    )
    invoice.add_line_item("Design work", Quantity(Decimal("2")), Money(Decimal("50.00")))
    invoice.set_discount(Money(Decimal("10.00")))
    return invoice


@pytest.fixture
def sample_subscription() -> Subscription:
    return Subscription(
        name="Cloud Hosting",
        amount=Money(Decimal("25.00")),
        cadence=SubscriptionCadence.MONTHLY,
        next_due_date=date(2025, 6, 20),
        category="Infrastructure",
    )


def make_invoice(
    total: str,
    status: InvoiceStatus,
    *,
    due_date: date | None = None,
    paid_date: date | None = None,
    number: str = "INV-20250601-0001",
) -> Invoice:
    """Invoice with a single line item priced at ``total`` and no tax."""
    invoice = Invoice(
        invoice_number=number,
        status=status,
        due_date=due_date,
        paid_date=paid_date,
    )
    invoice.add_line_item("Services", 1, Decimal(total))
    return invoice


def make_subscription(
    amount: str,
    next_due_date: date,
    *,
    cadence: SubscriptionCadence = SubscriptionCadence.MONTHLY,
    is_paused: bool = False,
    name: str = "Bill",
    category: str | None = None,
) -> Subscription:
    return Subscription(
        name=name,
        amount=Money(Decimal(amount)),
        cadence=cadence,
        next_due_date=next_due_date,
        is_paused=is_paused,
        category=category,
    )


@pytest.fixture
def invoice_factory() -> Callable[..., Invoice]:
    return make_invoice


@pytest.fixture
def subscription_factory() -> Callable[..., Subscription]:
    return make_subscription
