"""Domain exception hierarchy for Flow Ledger.

All domain-specific exceptions inherit from FlowLedgerError so callers can
catch every application error with a single base class while keeping the
specific type available for targeted handling.
"""

from datetime import date
from typing import Any
from uuid import UUID


class FlowLedgerError(Exception):
    """Base exception for all Flow Ledger errors.

    Carries an error_code and extra context for whoever surfaces the error
    to the user.
    """

    error_code: str = "FLOW_LEDGER_ERROR"

    def __init__(
        self,
        message: str,
        *,
        error_code: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for display or logging."""
        return {
            "error": self.error_code,
            "message": self.message,
            "context": self.context,
        }


# =============================================================================
# Invoice Errors
# =============================================================================


class InvoiceError(FlowLedgerError):
    """Base exception for invoice-related errors."""

    error_code = "INVOICE_ERROR"


class InvoiceNotFoundError(InvoiceError):
    """Raised when an invoice cannot be found."""

    error_code = "INVOICE_NOT_FOUND"

    def __init__(self, invoice_id: UUID | str) -> None:
        super().__init__(
            f"Invoice not found: {invoice_id}",
            context={"invoice_id": str(invoice_id)},
        )


class LineItemNotFoundError(InvoiceError):
    """Raised when a line item is not part of the invoice."""

    error_code = "LINE_ITEM_NOT_FOUND"

    def __init__(self, invoice_id: UUID | str, line_item_id: UUID | str) -> None:
        super().__init__(
            f"Line item {line_item_id} not found on invoice {invoice_id}",
            context={
                "invoice_id": str(invoice_id),
                "line_item_id": str(line_item_id),
            },
        )


# =============================================================================
# Subscription Errors
# =============================================================================


class SubscriptionError(FlowLedgerError):
    """Base exception for subscription-related errors."""

    error_code = "SUBSCRIPTION_ERROR"


class SubscriptionNotFoundError(SubscriptionError):
    """Raised when a subscription cannot be found."""

    error_code = "SUBSCRIPTION_NOT_FOUND"

    def __init__(self, subscription_id: UUID | str) -> None:
        super().__init__(
            f"Subscription not found: {subscription_id}",
            context={"subscription_id": str(subscription_id)},
        )


class ReminderNotFoundError(SubscriptionError):
    """Raised when a reminder cannot be found."""

    error_code = "REMINDER_NOT_FOUND"

    def __init__(self, reminder_id: UUID | str) -> None:
        super().__init__(
            f"Reminder not found: {reminder_id}",
            context={"reminder_id": str(reminder_id)},
        )


class NotificationDeliveryError(SubscriptionError):
    """Raised by a notifier when the platform rejects a reminder."""

    error_code = "NOTIFICATION_DELIVERY_ERROR"

    def __init__(self, notification_id: str, reason: str) -> None:
        super().__init__(
            f"Could not deliver notification {notification_id}: {reason}",
            context={"notification_id": notification_id, "reason": reason},
        )


class DateComputationError(FlowLedgerError):
    """Raised when a calendar computation cannot produce a valid date.

    Recoverable: the caller decides whether to fall back or show a message.
    """

    error_code = "DATE_COMPUTATION_ERROR"

    def __init__(self, start: date, operation: str) -> None:
        super().__init__(
            f"Cannot compute date: {operation} from {start.isoformat()}",
            context={"start": start.isoformat(), "operation": operation},
        )


# =============================================================================
# Database Errors
# =============================================================================


class DatabaseError(FlowLedgerError):
    """Base exception for database-related errors."""

    error_code = "DATABASE_ERROR"


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(FlowLedgerError):
    """Base exception for validation errors."""

    error_code = "VALIDATION_ERROR"


class InvalidAmountError(ValidationError):
    """Raised when an invalid monetary amount is provided."""

    error_code = "INVALID_AMOUNT"

    def __init__(self, amount: str, reason: str) -> None:
        super().__init__(
            f"Invalid amount '{amount}': {reason}",
            context={"amount": amount, "reason": reason},
        )


class InvalidQuantityError(ValidationError):
    """Raised when a line item quantity is negative."""

    error_code = "INVALID_QUANTITY"

    def __init__(self, quantity: str) -> None:
        super().__init__(
            f"Invalid quantity '{quantity}': must not be negative",
            context={"quantity": quantity},
        )


class InvalidTaxRateError(ValidationError):
    """Raised when a tax rate is outside [0, 1]."""

    error_code = "INVALID_TAX_RATE"

    def __init__(self, tax_rate: str) -> None:
        super().__init__(
            f"Invalid tax rate '{tax_rate}': must be a fraction between 0 and 1",
            context={"tax_rate": tax_rate},
        )
