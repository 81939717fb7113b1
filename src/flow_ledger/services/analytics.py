"""Product analytics events.

Events are emitted as structured log records under the ``flow_ledger.analytics``
logger so any log shipper can route them. Construct one instance and pass it
to the services that report events.
"""

from decimal import Decimal
from typing import Any

import structlog

from flow_ledger.logging_config import get_logger


class AnalyticsService:
    def __init__(self, logger: structlog.stdlib.BoundLogger | None = None) -> None:
        self._logger = logger or get_logger("flow_ledger.analytics")

    def log_event(self, event: str, **parameters: Any) -> None:
        self._logger.info(event, analytics=True, **parameters)

    def log_non_fatal_error(self, error: Exception, context: str) -> None:
        self._logger.warning(
            "non_fatal_error",
            analytics=True,
            context=context,
            error=str(error),
            error_type=type(error).__name__,
        )

    def log_app_launch(self, source: str) -> None:
        self.log_event("app_launch", source=source)

    def log_dashboard_viewed(self, range_label: str) -> None:
        self.log_event("dashboard_viewed", range=range_label)

    def log_invoice_created(
        self, line_count: int, has_tax: bool, subtotal: Decimal
    ) -> None:
        self.log_event(
            "invoice_created",
            line_count=line_count,
            has_tax=has_tax,
            subtotal=str(subtotal),
        )

    def log_invoice_status_changed(self, from_status: str, to_status: str) -> None:
        self.log_event("invoice_status_changed", from_status=from_status, to_status=to_status)

    def log_subscription_added(self, cadence: str, category: str | None) -> None:
        parameters: dict[str, Any] = {"cadence": cadence}
        if category is not None:
            parameters["category"] = category
        self.log_event("subscription_added", **parameters)

    def log_bill_marked_paid(self, amount: Decimal) -> None:
        self.log_event("bill_marked_paid", amount=str(amount))
