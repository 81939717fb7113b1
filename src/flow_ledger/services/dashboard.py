"""Dashboard metrics and short-term cash flow forecast.

Provides:
- Paid income, bills due and net result for the current calendar month
- A day-by-day forecast of invoice inflows and bill outflows

The two ``compute_*`` functions are pure: they read the collections they are
given and nothing else. ``DashboardService`` fetches those collections from
the repositories.

The currency is a display label only. Amounts are summed as stored and the
totals carry the requested currency, so records saved before the user switched
currency still count.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from flow_ledger.domain.invoices import Invoice
from flow_ledger.domain.recurrence import as_date, month_bounds
from flow_ledger.domain.subscriptions import Subscription
from flow_ledger.domain.value_objects import Currency, InvoiceStatus, Money
from flow_ledger.exceptions import DateComputationError
from flow_ledger.logging_config import get_logger
from flow_ledger.repositories.interfaces import (
    InvoiceRepository,
    SettingsRepository,
    SubscriptionRepository,
)
from flow_ledger.services.analytics import AnalyticsService

logger = get_logger(__name__)

FORECAST_DAYS = 30


def _relabel(money: Money, currency: Currency) -> Money:
    return Money(money.amount, currency)


@dataclass(frozen=True)
class MonthlyMetrics:
    """Cash results for one calendar month."""

    period_start: date
    period_end: date
    paid_income: Money
    bills_due: Money
    net: Money


@dataclass(frozen=True)
class ForecastPoint:
    """Projected flows for a single day."""

    date: date
    inflow: Money
    outflow: Money

    @property
    def net(self) -> Money:
        return self.inflow - self.outflow


@dataclass(frozen=True)
class DashboardSnapshot:
    generated_at: datetime
    metrics: MonthlyMetrics
    forecast: list[ForecastPoint] = field(default_factory=list)

    @property
    def forecast_inflow(self) -> Money:
        total = Money.zero(self.metrics.net.currency)
        for point in self.forecast:
            total = total + _relabel(point.inflow, total.currency)
        return total

    @property
    def forecast_outflow(self) -> Money:
        total = Money.zero(self.metrics.net.currency)
        for point in self.forecast:
            total = total + _relabel(point.outflow, total.currency)
        return total


def compute_monthly_metrics(
    now: date,
    paid_invoices: Iterable[Invoice],
    active_subscriptions: Iterable[Subscription],
    currency: Currency | str = Currency.USD,
) -> MonthlyMetrics:
    """Paid income, bills due and net for the month containing ``now``.

    Args:
        now: Any moment in the month of interest (date or datetime)
        paid_invoices: Invoices to consider; only ``paid`` ones with a paid
            date inside the month count
        active_subscriptions: Subscriptions to consider; paused ones never count
        currency: Currency label of every total

    Returns:
        MonthlyMetrics with the inclusive month range
    """
    currency = Currency(currency)
    start_of_month, end_of_month = month_bounds(now)

    paid_income = Money.zero(currency)
    for invoice in paid_invoices:
        if invoice.status != InvoiceStatus.PAID or invoice.paid_date is None:
            continue
        if start_of_month <= as_date(invoice.paid_date) <= end_of_month:
            paid_income = paid_income + _relabel(invoice.total, currency)

    bills_due = Money.zero(currency)
    for subscription in active_subscriptions:
        if subscription.is_paused:
            continue
        if start_of_month <= as_date(subscription.next_due_date) <= end_of_month:
            bills_due = bills_due + _relabel(subscription.amount, currency)

    return MonthlyMetrics(
        period_start=start_of_month,
        period_end=end_of_month,
        paid_income=paid_income,
        bills_due=bills_due,
        net=paid_income - bills_due,
    )


def compute_forecast(
    today: date,
    sent_invoices: Iterable[Invoice],
    subscriptions: Iterable[Subscription],
    currency: Currency | str = Currency.USD,
    days: int = FORECAST_DAYS,
) -> list[ForecastPoint]:
    """Day-by-day projection starting at ``today``.

    Returns exactly ``days`` points in ascending date order, zero-filled.
    Inflows are ``sent`` invoices due on the day. Outflows are every supplied
    subscription due on the day; the paused flag is not consulted here, the
    caller decides which subscriptions to pass.
    """
    currency = Currency(currency)
    start = as_date(today)
    try:
        window = [start + timedelta(days=offset) for offset in range(days)]
    except OverflowError as exc:
        raise DateComputationError(start, f"forecast {days} days") from exc

    zero = Money.zero(currency)
    inflows: dict[date, Money] = {}
    for invoice in sent_invoices:
        if invoice.status != InvoiceStatus.SENT or invoice.due_date is None:
            continue
        day = as_date(invoice.due_date)
        inflows[day] = inflows.get(day, zero) + _relabel(invoice.total, currency)

    outflows: dict[date, Money] = {}
    for subscription in subscriptions:
        day = as_date(subscription.next_due_date)
        outflows[day] = outflows.get(day, zero) + _relabel(
            subscription.amount, currency
        )

    return [
        ForecastPoint(
            date=day,
            inflow=inflows.get(day, zero),
            outflow=outflows.get(day, zero),
        )
        for day in window
    ]


class DashboardService:
    """Loads the collections the dashboard needs and runs the computations.

    With a ``settings_repo`` the display currency is read from the stored
    preferences on every call; ``currency`` is only the fallback.
    """

    def __init__(
        self,
        invoice_repo: InvoiceRepository,
        subscription_repo: SubscriptionRepository,
        *,
        settings_repo: SettingsRepository | None = None,
        currency: Currency | str = Currency.USD,
        forecast_days: int = FORECAST_DAYS,
        include_paused_in_forecast: bool = True,
        clock: Callable[[], datetime] = datetime.now,
        analytics: AnalyticsService | None = None,
    ) -> None:
        self._invoice_repo = invoice_repo
        self._subscription_repo = subscription_repo
        self._settings_repo = settings_repo
        self._currency = Currency(currency)
        self._forecast_days = forecast_days
        self._include_paused_in_forecast = include_paused_in_forecast
        self._clock = clock
        self._analytics = analytics

    def monthly_metrics(self, now: date | None = None) -> MonthlyMetrics:
        now = now if now is not None else self._clock()
        metrics = compute_monthly_metrics(
            now,
            self._invoice_repo.list_by_status(InvoiceStatus.PAID),
            self._subscription_repo.list_active(),
            self._display_currency(),
        )
        logger.info(
            "monthly_metrics_computed",
            period_start=metrics.period_start.isoformat(),
            paid_income=str(metrics.paid_income.amount),
            bills_due=str(metrics.bills_due.amount),
        )
        return metrics

    def forecast(self, today: date | None = None) -> list[ForecastPoint]:
        today = today if today is not None else self._clock()
        if self._include_paused_in_forecast:
            subscriptions = self._subscription_repo.list_all()
        else:
            subscriptions = self._subscription_repo.list_active()

        points = compute_forecast(
            today,
            self._invoice_repo.list_by_status(InvoiceStatus.SENT),
            subscriptions,
            self._display_currency(),
            self._forecast_days,
        )
        logger.info(
            "forecast_computed",
            start=points[0].date.isoformat() if points else None,
            days=len(points),
            include_paused=self._include_paused_in_forecast,
        )
        return points

    def _display_currency(self) -> Currency:
        if self._settings_repo is None:
            return self._currency
        return Currency(self._settings_repo.get().currency)

    def snapshot(self, now: datetime | None = None) -> DashboardSnapshot:
        now = now if now is not None else self._clock()
        snapshot = DashboardSnapshot(
            generated_at=now,
            metrics=self.monthly_metrics(now),
            forecast=self.forecast(now),
        )
        if self._analytics is not None:
            self._analytics.log_dashboard_viewed(range_label="this_month")
        return snapshot
