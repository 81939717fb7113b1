from flow_ledger.repositories.interfaces import (
    InvoiceRepository,
    ReminderRepository,
    SettingsRepository,
    SubscriptionRepository,
)
from flow_ledger.repositories.sqlite import (
    SQLiteDatabase,
    SQLiteInvoiceRepository,
    SQLiteReminderRepository,
    SQLiteSettingsRepository,
    SQLiteSubscriptionRepository,
)

__all__ = [
    "InvoiceRepository",
    "ReminderRepository",
    "SettingsRepository",
    "SubscriptionRepository",
    "SQLiteDatabase",
    "SQLiteInvoiceRepository",
    "SQLiteReminderRepository",
    "SQLiteSettingsRepository",
    "SQLiteSubscriptionRepository",
]
