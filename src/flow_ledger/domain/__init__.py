from flow_ledger.domain.invoices import (
    Client,
    Invoice,
    InvoiceTotals,
    LineItem,
    compute_invoice_totals,
)
from flow_ledger.domain.recurrence import advance_due_date, month_bounds
from flow_ledger.domain.settings import AppSettings
from flow_ledger.domain.subscriptions import BillPayment, Reminder, Subscription
from flow_ledger.domain.value_objects import (
    Currency,
    InvoiceStatus,
    Money,
    Quantity,
    SubscriptionCadence,
)

__all__ = [
    "AppSettings",
    "BillPayment",
    "Client",
    "Currency",
    "Invoice",
    "InvoiceStatus",
    "InvoiceTotals",
    "LineItem",
    "Money",
    "Quantity",
    "Reminder",
    "Subscription",
    "SubscriptionCadence",
    "advance_due_date",
    "compute_invoice_totals",
    "month_bounds",
]
