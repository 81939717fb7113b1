from flow_ledger.domain.invoices import (
    Client,
    Invoice,
    LineItem,
    compute_invoice_totals,
)
from flow_ledger.domain.recurrence import advance_due_date
from flow_ledger.domain.subscriptions import BillPayment, Reminder, Subscription
from flow_ledger.domain.value_objects import (
    Currency,
    InvoiceStatus,
    Money,
    Quantity,
    SubscriptionCadence,
)

__all__ = [
    "BillPayment",
    "Client",
    "Currency",
    "Invoice",
    "InvoiceStatus",
    "LineItem",
    "Money",
    "Quantity",
    "Reminder",
    "Subscription",
    "SubscriptionCadence",
    "advance_due_date",
    "compute_invoice_totals",
]

__version__ = "0.1.0"
