"""SQLite implementations of repository interfaces."""

from __future__ import annotations

import contextlib
import sqlite3
from collections.abc import Callable, Iterable, Iterator
from datetime import date, datetime, time
from decimal import Decimal
from pathlib import Path
from uuid import UUID

from flow_ledger.domain.invoices import Client, Invoice, LineItem
from flow_ledger.domain.settings import AppSettings
from flow_ledger.domain.subscriptions import BillPayment, Reminder, Subscription
from flow_ledger.domain.value_objects import (
    Currency,
    InvoiceStatus,
    Money,
    Quantity,
    SubscriptionCadence,
)
from flow_ledger.exceptions import DatabaseError
from flow_ledger.repositories.interfaces import (
    InvoiceRepository,
    ReminderRepository,
    SettingsRepository,
    SubscriptionRepository,
)


def _iso_or_none(value: date | None) -> str | None:
    return value.isoformat() if value is not None else None


def _date_or_none(value: str | None) -> date | None:
    return date.fromisoformat(value) if value else None


class SQLiteDatabase:
    """SQLite database connection manager."""

    def __init__(
        self, path: str | Path = ":memory:", check_same_thread: bool = True
    ) -> None:
        self._path = str(path)
        self._check_same_thread = check_same_thread
        self._connection: sqlite3.Connection | None = None
        self._transaction_depth = 0

    def get_connection(self) -> sqlite3.Connection:
        """Get or create the database connection."""
        if self._connection is None:
            self._connection = sqlite3.connect(
                self._path, check_same_thread=self._check_same_thread
            )
            self._connection.row_factory = sqlite3.Row
            # Enable foreign keys
            self._connection.execute("PRAGMA foreign_keys = ON")
        return self._connection

    @contextlib.contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Group writes into one commit.

        Nested blocks join the outermost one; an exception anywhere rolls the
        whole unit back. sqlite3 errors surface as DatabaseError.
        """
        conn = self.get_connection()
        self._transaction_depth += 1
        try:
            yield conn
        except BaseException as exc:
            self._transaction_depth -= 1
            if self._transaction_depth == 0:
                conn.rollback()
            if isinstance(exc, sqlite3.Error):
                raise DatabaseError(
                    str(exc), context={"sqlite_error": type(exc).__name__}
                ) from exc
            raise
        self._transaction_depth -= 1
        if self._transaction_depth == 0:
            conn.commit()

    def initialize(self) -> None:
        """Create all database tables."""
        conn = self.get_connection()
        conn.executescript(
            """
            -- Clients table
            CREATE TABLE IF NOT EXISTS clients (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                email TEXT,
                phone TEXT,
                address TEXT,
                created_at TEXT NOT NULL
            );

            -- Invoices table
            CREATE TABLE IF NOT EXISTS invoices (
                id TEXT PRIMARY KEY,
                invoice_number TEXT NOT NULL,
                status TEXT NOT NULL,
                client_id TEXT,
                currency TEXT NOT NULL,
                tax_rate TEXT NOT NULL,
                discount TEXT NOT NULL,
                subtotal TEXT NOT NULL,
                tax TEXT NOT NULL,
                total TEXT NOT NULL,
                issued_date TEXT NOT NULL,
                due_date TEXT,
                paid_date TEXT,
                notes TEXT,
                created_at TEXT NOT NULL,
                FOREIGN KEY (client_id) REFERENCES clients(id)
            );
            CREATE INDEX IF NOT EXISTS idx_invoices_status ON invoices(status);
            CREATE INDEX IF NOT EXISTS idx_invoices_due_date ON invoices(due_date);

            -- Line items table
            CREATE TABLE IF NOT EXISTS line_items (
                id TEXT PRIMARY KEY,
                invoice_id TEXT NOT NULL,
                position INTEGER NOT NULL,
                description TEXT NOT NULL,
                quantity TEXT NOT NULL,
                unit_price TEXT NOT NULL,
                currency TEXT NOT NULL,
                FOREIGN KEY (invoice_id) REFERENCES invoices(id) ON DELETE CASCADE
            );
            CREATE INDEX IF NOT EXISTS idx_line_items_invoice ON line_items(invoice_id);

            -- Subscriptions table
            CREATE TABLE IF NOT EXISTS subscriptions (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                amount TEXT NOT NULL,
                currency TEXT NOT NULL,
                cadence TEXT NOT NULL,
                next_due_date TEXT NOT NULL,
                category TEXT,
                reminder_days_before INTEGER NOT NULL DEFAULT 2,
                notes TEXT,
                is_paused INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_subscriptions_due ON subscriptions(next_due_date);
            CREATE INDEX IF NOT EXISTS idx_subscriptions_category ON subscriptions(category);

            -- Bill payments log (kept when the subscription is deleted)
            CREATE TABLE IF NOT EXISTS bill_payments (
                id TEXT PRIMARY KEY,
                subscription_id TEXT NOT NULL,
                amount TEXT NOT NULL,
                currency TEXT NOT NULL,
                paid_date TEXT NOT NULL,
                created_at TEXT NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_bill_payments_subscription ON bill_payments(subscription_id);

            -- Reminders table
            CREATE TABLE IF NOT EXISTS reminders (
                id TEXT PRIMARY KEY,
                subscription_id TEXT NOT NULL,
                scheduled_at TEXT NOT NULL,
                notification_id TEXT NOT NULL,
                is_snoozed INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL,
                FOREIGN KEY (subscription_id) REFERENCES subscriptions(id) ON DELETE CASCADE
            );
            CREATE INDEX IF NOT EXISTS idx_reminders_subscription ON reminders(subscription_id);

            -- App settings (single row)
            CREATE TABLE IF NOT EXISTS app_settings (
                id TEXT PRIMARY KEY,
                default_tax_rate TEXT NOT NULL,
                currency TEXT NOT NULL,
                enable_reminders INTEGER NOT NULL DEFAULT 1,
                reminder_time TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );
            """
        )

    def close(self) -> None:
        """Close the database connection."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None


class SQLiteInvoiceRepository(InvoiceRepository):
    """SQLite implementation of InvoiceRepository.

    Line items and the client are written together with the invoice row.
    """

    def __init__(self, db: SQLiteDatabase) -> None:
        self._db = db

    def add(self, invoice: Invoice) -> None:
        with self._db.transaction() as conn:
            self._save_client(conn, invoice.client)
            conn.execute(
                """
                INSERT INTO invoices (id, invoice_number, status, client_id, currency,
                                      tax_rate, discount, subtotal, tax, total,
                                      issued_date, due_date, paid_date, notes, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    str(invoice.id),
                    invoice.invoice_number,
                    invoice.status.value,
                    str(invoice.client.id) if invoice.client else None,
                    Currency(invoice.currency).value,
                    str(invoice.tax_rate),
                    str(invoice.discount.amount) if invoice.discount else "0",
                    str(invoice.subtotal.amount),
                    str(invoice.tax.amount),
                    str(invoice.total.amount),
                    invoice.issued_date.isoformat(),
                    _iso_or_none(invoice.due_date),
                    _iso_or_none(invoice.paid_date),
                    invoice.notes,
                    invoice.created_at.isoformat(),
                ),
            )
            self._insert_line_items(conn, invoice)

    def get(self, invoice_id: UUID) -> Invoice | None:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM invoices WHERE id = ?", (str(invoice_id),)
        ).fetchone()
        if row is None:
            return None
        return self._row_to_invoice(row)

    def update(self, invoice: Invoice) -> None:
        with self._db.transaction() as conn:
            self._save_client(conn, invoice.client)
            conn.execute(
                """
                UPDATE invoices SET
                    invoice_number = ?,
                    status = ?,
                    client_id = ?,
                    currency = ?,
                    tax_rate = ?,
                    discount = ?,
                    subtotal = ?,
                    tax = ?,
                    total = ?,
                    issued_date = ?,
                    due_date = ?,
                    paid_date = ?,
                    notes = ?
                WHERE id = ?
                """,
                (
                    invoice.invoice_number,
                    invoice.status.value,
                    str(invoice.client.id) if invoice.client else None,
                    Currency(invoice.currency).value,
                    str(invoice.tax_rate),
                    str(invoice.discount.amount) if invoice.discount else "0",
                    str(invoice.subtotal.amount),
                    str(invoice.tax.amount),
                    str(invoice.total.amount),
                    invoice.issued_date.isoformat(),
                    _iso_or_none(invoice.due_date),
                    _iso_or_none(invoice.paid_date),
                    invoice.notes,
                    str(invoice.id),
                ),
            )
            conn.execute(
                "DELETE FROM line_items WHERE invoice_id = ?", (str(invoice.id),)
            )
            self._insert_line_items(conn, invoice)

    def delete(self, invoice_id: UUID) -> None:
        with self._db.transaction() as conn:
            # Line items deleted via CASCADE
            conn.execute("DELETE FROM invoices WHERE id = ?", (str(invoice_id),))

    def list_all(self) -> Iterable[Invoice]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM invoices ORDER BY created_at DESC, rowid DESC"
        ).fetchall()
        return [self._row_to_invoice(row) for row in rows]

    def list_by_status(self, status: InvoiceStatus) -> Iterable[Invoice]:
        conn = self._db.get_connection()
        rows = conn.execute(
            """
            SELECT * FROM invoices
            WHERE status = ?
            ORDER BY created_at DESC, rowid DESC
            """,
            (InvoiceStatus(status).value,),
        ).fetchall()
        return [self._row_to_invoice(row) for row in rows]

    def _save_client(self, conn: sqlite3.Connection, client: Client | None) -> None:
        if client is None:
            return
        conn.execute(
            """
            INSERT INTO clients (id, name, email, phone, address, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                name = excluded.name,
                email = excluded.email,
                phone = excluded.phone,
                address = excluded.address
            """,
            (
                str(client.id),
                client.name,
                client.email,
                client.phone,
                client.address,
                client.created_at.isoformat(),
            ),
        )

    def _insert_line_items(self, conn: sqlite3.Connection, invoice: Invoice) -> None:
        for position, item in enumerate(invoice.line_items):
            conn.execute(
                """
                INSERT INTO line_items (id, invoice_id, position, description,
                                        quantity, unit_price, currency)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    str(item.id),
                    str(invoice.id),
                    position,
                    item.description,
                    str(item.quantity.value),
                    str(item.unit_price.amount),
                    Currency(item.unit_price.currency).value,
                ),
            )

    def _get_client(self, client_id: str | None) -> Client | None:
        if not client_id:
            return None
        conn = self._db.get_connection()
        row = conn.execute("SELECT * FROM clients WHERE id = ?", (client_id,)).fetchone()
        if row is None:
            return None
        return Client(
            name=row["name"],
            id=UUID(row["id"]),
            email=row["email"],
            phone=row["phone"],
            address=row["address"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def _get_line_items(self, invoice_id: str) -> list[LineItem]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM line_items WHERE invoice_id = ? ORDER BY position",
            (invoice_id,),
        ).fetchall()
        return [
            LineItem(
                description=row["description"],
                quantity=Quantity(Decimal(row["quantity"])),
                unit_price=Money(Decimal(row["unit_price"]), row["currency"]),
                id=UUID(row["id"]),
            )
            for row in rows
        ]

    def _row_to_invoice(self, row: sqlite3.Row) -> Invoice:
        # Totals are derived from the line items rather than trusted from the row
        return Invoice(
            invoice_number=row["invoice_number"],
            currency=Currency(row["currency"]),
            status=InvoiceStatus(row["status"]),
            client=self._get_client(row["client_id"]),
            line_items=self._get_line_items(row["id"]),
            tax_rate=Decimal(row["tax_rate"]),
            discount=Money(Decimal(row["discount"]), row["currency"]),
            issued_date=date.fromisoformat(row["issued_date"]),
            due_date=_date_or_none(row["due_date"]),
            paid_date=_date_or_none(row["paid_date"]),
            notes=row["notes"],
            id=UUID(row["id"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )


class SQLiteSubscriptionRepository(SubscriptionRepository):
    """SQLite implementation of SubscriptionRepository."""

    def __init__(self, db: SQLiteDatabase) -> None:
        self._db = db

    def add(self, subscription: Subscription) -> None:
        with self._db.transaction() as conn:
            conn.execute(
                """
                INSERT INTO subscriptions (id, name, amount, currency, cadence, next_due_date,
                                           category, reminder_days_before, notes, is_paused,
                                           created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    str(subscription.id),
                    subscription.name,
                    str(subscription.amount.amount),
                    Currency(subscription.amount.currency).value,
                    subscription.cadence.value,
                    subscription.next_due_date.isoformat(),
                    subscription.category,
                    subscription.reminder_days_before,
                    subscription.notes,
                    1 if subscription.is_paused else 0,
                    subscription.created_at.isoformat(),
                ),
            )

    def get(self, subscription_id: UUID) -> Subscription | None:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM subscriptions WHERE id = ?", (str(subscription_id),)
        ).fetchone()
        if row is None:
            return None
        return self._row_to_subscription(row)

    def update(self, subscription: Subscription) -> None:
        with self._db.transaction() as conn:
            self._update(conn, subscription)

    def delete(self, subscription_id: UUID) -> None:
        with self._db.transaction() as conn:
            # Reminders deleted via CASCADE; the payment log is kept
            conn.execute(
                "DELETE FROM subscriptions WHERE id = ?", (str(subscription_id),)
            )

    def list_all(self) -> Iterable[Subscription]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM subscriptions ORDER BY next_due_date, rowid"
        ).fetchall()
        return [self._row_to_subscription(row) for row in rows]

    def list_active(self) -> Iterable[Subscription]:
        conn = self._db.get_connection()
        rows = conn.execute(
            """
            SELECT * FROM subscriptions
            WHERE is_paused = 0
            ORDER BY next_due_date, rowid
            """
        ).fetchall()
        return [self._row_to_subscription(row) for row in rows]

    def list_by_category(self, category: str) -> Iterable[Subscription]:
        conn = self._db.get_connection()
        rows = conn.execute(
            """
            SELECT * FROM subscriptions
            WHERE category = ?
            ORDER BY next_due_date, rowid
            """,
            (category,),
        ).fetchall()
        return [self._row_to_subscription(row) for row in rows]

    def record_payment(self, subscription: Subscription, payment: BillPayment) -> None:
        with self._db.transaction() as conn:
            self._update(conn, subscription)
            conn.execute(
                """
                INSERT INTO bill_payments (id, subscription_id, amount, currency,
                                           paid_date, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    str(payment.id),
                    str(payment.subscription_id),
                    str(payment.amount.amount),
                    Currency(payment.amount.currency).value,
                    payment.paid_date.isoformat(),
                    payment.created_at.isoformat(),
                ),
            )

    def list_payments(self, subscription_id: UUID) -> Iterable[BillPayment]:
        conn = self._db.get_connection()
        rows = conn.execute(
            """
            SELECT * FROM bill_payments
            WHERE subscription_id = ?
            ORDER BY paid_date, rowid
            """,
            (str(subscription_id),),
        ).fetchall()
        return [
            BillPayment(
                subscription_id=UUID(row["subscription_id"]),
                amount=Money(Decimal(row["amount"]), row["currency"]),
                paid_date=date.fromisoformat(row["paid_date"]),
                id=UUID(row["id"]),
                created_at=datetime.fromisoformat(row["created_at"]),
            )
            for row in rows
        ]

    def _update(self, conn: sqlite3.Connection, subscription: Subscription) -> None:
        conn.execute(
            """
            UPDATE subscriptions SET
                name = ?,
                amount = ?,
                currency = ?,
                cadence = ?,
                next_due_date = ?,
                category = ?,
                reminder_days_before = ?,
                notes = ?,
                is_paused = ?
            WHERE id = ?
            """,
            (
                subscription.name,
                str(subscription.amount.amount),
                Currency(subscription.amount.currency).value,
                subscription.cadence.value,
                subscription.next_due_date.isoformat(),
                subscription.category,
                subscription.reminder_days_before,
                subscription.notes,
                1 if subscription.is_paused else 0,
                str(subscription.id),
            ),
        )

    def _row_to_subscription(self, row: sqlite3.Row) -> Subscription:
        return Subscription(
            name=row["name"],
            amount=Money(Decimal(row["amount"]), row["currency"]),
            cadence=SubscriptionCadence(row["cadence"]),
            next_due_date=date.fromisoformat(row["next_due_date"]),
            id=UUID(row["id"]),
            category=row["category"],
            reminder_days_before=row["reminder_days_before"],
            notes=row["notes"],
            is_paused=bool(row["is_paused"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )


class SQLiteReminderRepository(ReminderRepository):
    def __init__(self, db: SQLiteDatabase) -> None:
        self._db = db

    def add(self, reminder: Reminder) -> None:
        with self._db.transaction() as conn:
            conn.execute(
                """
                INSERT INTO reminders (id, subscription_id, scheduled_at, notification_id,
                                       is_snoozed, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    str(reminder.id),
                    str(reminder.subscription_id),
                    reminder.scheduled_at.isoformat(),
                    reminder.notification_id,
                    1 if reminder.is_snoozed else 0,
                    reminder.created_at.isoformat(),
                ),
            )

    def get(self, reminder_id: UUID) -> Reminder | None:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM reminders WHERE id = ?", (str(reminder_id),)
        ).fetchone()
        if row is None:
            return None
        return self._row_to_reminder(row)

    def update(self, reminder: Reminder) -> None:
        with self._db.transaction() as conn:
            conn.execute(
                """
                UPDATE reminders SET
                    scheduled_at = ?,
                    notification_id = ?,
                    is_snoozed = ?
                WHERE id = ?
                """,
                (
                    reminder.scheduled_at.isoformat(),
                    reminder.notification_id,
                    1 if reminder.is_snoozed else 0,
                    str(reminder.id),
                ),
            )

    def delete(self, reminder_id: UUID) -> None:
        with self._db.transaction() as conn:
            conn.execute("DELETE FROM reminders WHERE id = ?", (str(reminder_id),))

    def list_by_subscription(self, subscription_id: UUID) -> Iterable[Reminder]:
        conn = self._db.get_connection()
        rows = conn.execute(
            """
            SELECT * FROM reminders
            WHERE subscription_id = ?
            ORDER BY scheduled_at
            """,
            (str(subscription_id),),
        ).fetchall()
        return [self._row_to_reminder(row) for row in rows]

    def _row_to_reminder(self, row: sqlite3.Row) -> Reminder:
        return Reminder(
            subscription_id=UUID(row["subscription_id"]),
            scheduled_at=datetime.fromisoformat(row["scheduled_at"]),
            notification_id=row["notification_id"],
            id=UUID(row["id"]),
            is_snoozed=bool(row["is_snoozed"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )


class SQLiteSettingsRepository(SettingsRepository):
    def __init__(
        self,
        db: SQLiteDatabase,
        default_factory: Callable[[], AppSettings] = AppSettings,
    ) -> None:
        self._db = db
        self._default_factory = default_factory

    def get(self) -> AppSettings:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM app_settings ORDER BY created_at LIMIT 1"
        ).fetchone()
        if row is not None:
            return self._row_to_settings(row)

        settings = self._default_factory()
        with self._db.transaction() as conn:
            conn.execute(
                """
                INSERT INTO app_settings (id, default_tax_rate, currency, enable_reminders,
                                          reminder_time, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    str(settings.id),
                    str(settings.default_tax_rate),
                    Currency(settings.currency).value,
                    1 if settings.enable_reminders else 0,
                    settings.reminder_time.isoformat(),
                    settings.created_at.isoformat(),
                    settings.updated_at.isoformat(),
                ),
            )
        return settings

    def update(self, settings: AppSettings) -> None:
        settings.touch()
        with self._db.transaction() as conn:
            conn.execute(
                """
                UPDATE app_settings SET
                    default_tax_rate = ?,
                    currency = ?,
                    enable_reminders = ?,
                    reminder_time = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (
                    str(settings.default_tax_rate),
                    Currency(settings.currency).value,
                    1 if settings.enable_reminders else 0,
                    settings.reminder_time.isoformat(),
                    settings.updated_at.isoformat(),
                    str(settings.id),
                ),
            )

    def _row_to_settings(self, row: sqlite3.Row) -> AppSettings:
        return AppSettings(
            default_tax_rate=Decimal(row["default_tax_rate"]),
            currency=Currency(row["currency"]),
            enable_reminders=bool(row["enable_reminders"]),
            reminder_time=time.fromisoformat(row["reminder_time"]),
            id=UUID(row["id"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
