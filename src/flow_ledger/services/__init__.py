from flow_ledger.services.analytics import AnalyticsService
from flow_ledger.services.dashboard import (
    FORECAST_DAYS,
    DashboardService,
    DashboardSnapshot,
    ForecastPoint,
    MonthlyMetrics,
    compute_forecast,
    compute_monthly_metrics,
)
from flow_ledger.services.interfaces import InvoiceService, SubscriptionService
from flow_ledger.services.invoicing import InvoiceServiceImpl, generate_invoice_number
from flow_ledger.services.reminders import (
    LoggingNotifier,
    Notifier,
    ReminderService,
    plan_reminder_time,
)
from flow_ledger.services.subscriptions import SubscriptionServiceImpl

__all__ = [
    "FORECAST_DAYS",
    "AnalyticsService",
    "DashboardService",
    "DashboardSnapshot",
    "ForecastPoint",
    "InvoiceService",
    "InvoiceServiceImpl",
    "LoggingNotifier",
    "MonthlyMetrics",
    "Notifier",
    "ReminderService",
    "SubscriptionService",
    "SubscriptionServiceImpl",
    "compute_forecast",
    "compute_monthly_metrics",
    "generate_invoice_number",
    "plan_reminder_time",
]
