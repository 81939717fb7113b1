"""Tests for monthly metrics, the 30-day forecast and DashboardService."""

from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest
from structlog.testing import capture_logs

from flow_ledger.domain.invoices import Invoice
from flow_ledger.domain.subscriptions import Subscription
from flow_ledger.domain.value_objects import (
    Currency,
    InvoiceStatus,
    Money,
    SubscriptionCadence,
)
from flow_ledger.exceptions import DateComputationError
from flow_ledger.repositories.sqlite import (
    SQLiteInvoiceRepository,
    SQLiteSubscriptionRepository,
)
from flow_ledger.services.analytics import AnalyticsService
from flow_ledger.services.dashboard import (
    FORECAST_DAYS,
    DashboardService,
    compute_forecast,
    compute_monthly_metrics,
)

TODAY = date(2025, 6, 15)


class TestComputeMonthlyMetrics:
    def test_empty_inputs_give_zero_metrics(self):
        metrics = compute_monthly_metrics(TODAY, [], [])

        assert metrics.period_start == date(2025, 6, 1)
        assert metrics.period_end == date(2025, 6, 30)
        assert metrics.paid_income == Money.zero()
        assert metrics.bills_due == Money.zero()
        assert metrics.net == Money.zero()

    def test_paid_income_counts_paid_dates_inside_month(self, invoice_factory):
        invoices = [
            invoice_factory("100.00", InvoiceStatus.PAID, paid_date=date(2025, 6, 1)),
            invoice_factory("50.00", InvoiceStatus.PAID, paid_date=date(2025, 6, 30)),
            invoice_factory("999.00", InvoiceStatus.PAID, paid_date=date(2025, 5, 31)),
            invoice_factory("999.00", InvoiceStatus.PAID, paid_date=date(2025, 7, 1)),
        ]

        metrics = compute_monthly_metrics(TODAY, invoices, [])

        assert metrics.paid_income == Money(Decimal("150.00"))

    def test_unpaid_or_undated_invoices_ignored(self, invoice_factory):
        invoices = [
            invoice_factory("100.00", InvoiceStatus.SENT, due_date=date(2025, 6, 20)),
            invoice_factory("100.00", InvoiceStatus.DRAFT),
            invoice_factory("100.00", InvoiceStatus.PAID, paid_date=None),
        ]

        metrics = compute_monthly_metrics(TODAY, invoices, [])

        assert metrics.paid_income == Money.zero()

    def test_bills_due_ignores_paused_subscriptions(self, subscription_factory):
        subscriptions = [
            subscription_factory("25.00", date(2025, 6, 20)),
            subscription_factory("40.00", date(2025, 6, 2), is_paused=True),
            subscription_factory("10.00", date(2025, 7, 2)),
        ]

        metrics = compute_monthly_metrics(TODAY, [], subscriptions)

        assert metrics.bills_due == Money(Decimal("25.00"))

    def test_net_is_income_minus_bills(self, invoice_factory, subscription_factory):
        metrics = compute_monthly_metrics(
            TODAY,
            [invoice_factory("30.00", InvoiceStatus.PAID, paid_date=date(2025, 6, 3))],
            [subscription_factory("45.50", date(2025, 6, 28))],
        )

        assert metrics.net == Money(Decimal("-15.50"))

    def test_datetime_now_is_truncated(self, invoice_factory):
        metrics = compute_monthly_metrics(
            datetime(2025, 6, 30, 23, 59),
            [invoice_factory("10.00", InvoiceStatus.PAID, paid_date=date(2025, 6, 30))],
            [],
        )

        assert metrics.paid_income == Money(Decimal("10.00"))

    def test_zero_totals_use_requested_currency(self):
        metrics = compute_monthly_metrics(TODAY, [], [], Currency.EUR)

        assert metrics.net.currency == Currency.EUR

    def test_monthly_metrics_are_idempotent(self, invoice_factory, subscription_factory):
        invoices = [invoice_factory("70.00", InvoiceStatus.PAID, paid_date=date(2025, 6, 9))]
        subscriptions = [subscription_factory("20.00", date(2025, 6, 21))]

        first = compute_monthly_metrics(TODAY, invoices, subscriptions)
        second = compute_monthly_metrics(TODAY, invoices, subscriptions)

        assert first == second
        assert invoices[0].total == Money(Decimal("70.00"))

    def test_amounts_in_other_currencies_are_summed(
        self, invoice_factory, subscription_factory
    ):
        euro_invoice = Invoice(invoice_number="INV-EUR", currency="EUR")
        euro_invoice.add_line_item("Audit", 1, Decimal("60"))
        euro_invoice.mark_status(InvoiceStatus.PAID, on=date(2025, 6, 2))
        invoices = [
            invoice_factory("100.00", InvoiceStatus.PAID, paid_date=date(2025, 6, 1)),
            euro_invoice,
        ]
        subscriptions = [
            subscription_factory("5.00", date(2025, 6, 20)),
            Subscription(
                name="Storage",
                amount=Money(Decimal("3.00"), "GBP"),
                cadence=SubscriptionCadence.MONTHLY,
                next_due_date=date(2025, 6, 21),
            ),
        ]

        metrics = compute_monthly_metrics(TODAY, invoices, subscriptions, Currency.EUR)

        assert metrics.paid_income == Money(Decimal("160.00"), "EUR")
        assert metrics.bills_due == Money(Decimal("8.00"), "EUR")
        assert metrics.net == Money(Decimal("152.00"), "EUR")


class TestComputeForecast:
    def test_empty_inputs_give_thirty_zero_points(self):
        points = compute_forecast(TODAY, [], [])

        assert len(points) == FORECAST_DAYS
        assert points[0].date == TODAY
        assert points[-1].date == TODAY + timedelta(days=29)
        assert all(p.inflow.is_zero and p.outflow.is_zero for p in points)

    def test_points_are_consecutive_days(self):
        points = compute_forecast(TODAY, [], [])

        for earlier, later in zip(points, points[1:]):
            assert later.date - earlier.date == timedelta(days=1)

    def test_inflows_only_from_sent_invoices(self, invoice_factory):
        due = date(2025, 6, 20)
        invoices = [
            invoice_factory("100.00", InvoiceStatus.SENT, due_date=due),
            invoice_factory("20.00", InvoiceStatus.SENT, due_date=due),
            invoice_factory("500.00", InvoiceStatus.DRAFT, due_date=due),
            invoice_factory("500.00", InvoiceStatus.PAID, due_date=due, paid_date=due),
            invoice_factory("500.00", InvoiceStatus.SENT, due_date=None),
        ]

        points = compute_forecast(TODAY, invoices, [])
        by_day = {p.date: p for p in points}

        assert by_day[due].inflow == Money(Decimal("120.00"))
        assert sum(p.inflow.amount for p in points) == Decimal("120.00")

    def test_outflows_include_every_supplied_subscription(self, subscription_factory):
        subscriptions = [
            subscription_factory("25.00", date(2025, 6, 16)),
            subscription_factory("40.00", date(2025, 6, 16), is_paused=True),
        ]

        points = compute_forecast(TODAY, [], subscriptions)

        assert points[1].outflow == Money(Decimal("65.00"))
        assert points[1].net == Money(Decimal("-65.00"))

    def test_items_outside_window_ignored(self, invoice_factory, subscription_factory):
        points = compute_forecast(
            TODAY,
            [invoice_factory("10.00", InvoiceStatus.SENT, due_date=date(2025, 6, 14))],
            [subscription_factory("10.00", TODAY + timedelta(days=30))],
        )

        assert all(p.inflow.is_zero and p.outflow.is_zero for p in points)

    def test_datetime_inputs_truncated_to_day(self, invoice_factory):
        invoice = invoice_factory("10.00", InvoiceStatus.SENT)
        invoice.due_date = datetime(2025, 6, 15, 18, 0)

        points = compute_forecast(datetime(2025, 6, 15, 9, 0), [invoice], [])

        assert points[0].date == TODAY
        assert points[0].inflow == Money(Decimal("10.00"))

    def test_forecast_is_idempotent(self, invoice_factory, subscription_factory):
        invoices = [invoice_factory("10.00", InvoiceStatus.SENT, due_date=date(2025, 6, 18))]
        subscriptions = [subscription_factory("5.00", date(2025, 6, 19))]

        first = compute_forecast(TODAY, invoices, subscriptions)
        second = compute_forecast(TODAY, invoices, subscriptions)

        assert first == second

    def test_amounts_in_other_currencies_are_summed(self, invoice_factory):
        euro_invoice = Invoice(
            invoice_number="INV-EUR",
            currency="EUR",
            status=InvoiceStatus.SENT,
            due_date=TODAY,
        )
        euro_invoice.add_line_item("Audit", 1, Decimal("60"))
        invoices = [
            invoice_factory("40.00", InvoiceStatus.SENT, due_date=TODAY),
            euro_invoice,
        ]

        points = compute_forecast(TODAY, invoices, [], Currency.GBP)

        assert points[0].inflow == Money(Decimal("100.00"), "GBP")
        assert points[1].inflow == Money.zero("GBP")

    def test_window_past_calendar_end_raises(self):
        with pytest.raises(DateComputationError):
            compute_forecast(date(9999, 12, 20), [], [])


@pytest.fixture
def dashboard_data(
    invoice_repo: SQLiteInvoiceRepository,
    subscription_repo: SQLiteSubscriptionRepository,
    invoice_factory,
    subscription_factory,
) -> None:
    invoice_repo.add(
        invoice_factory(
            "200.00", InvoiceStatus.PAID, paid_date=date(2025, 6, 5), number="INV-1"
        )
    )
    invoice_repo.add(
        invoice_factory(
            "80.00", InvoiceStatus.SENT, due_date=date(2025, 6, 25), number="INV-2"
        )
    )
    subscription_repo.add(subscription_factory("30.00", date(2025, 6, 20)))
    subscription_repo.add(subscription_factory("12.00", date(2025, 6, 22), is_paused=True))


@pytest.mark.usefixtures("dashboard_data")
class TestDashboardService:
    def test_monthly_metrics_from_repositories(self, invoice_repo, subscription_repo, clock):
        service = DashboardService(invoice_repo, subscription_repo, clock=clock)

        metrics = service.monthly_metrics()

        assert metrics.paid_income == Money(Decimal("200.00"))
        assert metrics.bills_due == Money(Decimal("30.00"))
        assert metrics.net == Money(Decimal("170.00"))

    def test_forecast_includes_paused_by_default(self, invoice_repo, subscription_repo, clock):
        service = DashboardService(invoice_repo, subscription_repo, clock=clock)

        points = {p.date: p for p in service.forecast()}

        assert points[date(2025, 6, 20)].outflow == Money(Decimal("30.00"))
        assert points[date(2025, 6, 22)].outflow == Money(Decimal("12.00"))
        assert points[date(2025, 6, 25)].inflow == Money(Decimal("80.00"))

    def test_forecast_can_exclude_paused(self, invoice_repo, subscription_repo, clock):
        service = DashboardService(
            invoice_repo, subscription_repo, include_paused_in_forecast=False, clock=clock
        )

        points = {p.date: p for p in service.forecast()}

        assert points[date(2025, 6, 22)].outflow == Money.zero()

    def test_forecast_days_configurable(self, invoice_repo, subscription_repo, clock):
        service = DashboardService(
            invoice_repo, subscription_repo, forecast_days=7, clock=clock
        )

        assert len(service.forecast()) == 7

    def test_snapshot_totals_and_analytics(self, invoice_repo, subscription_repo, clock):
        service = DashboardService(
            invoice_repo, subscription_repo, clock=clock, analytics=AnalyticsService()
        )

        with capture_logs() as logs:
            snapshot = service.snapshot()

        assert snapshot.generated_at == clock()
        assert snapshot.forecast_inflow == Money(Decimal("80.00"))
        assert snapshot.forecast_outflow == Money(Decimal("42.00"))
        events = [entry["event"] for entry in logs]
        assert "monthly_metrics_computed" in events
        assert "forecast_computed" in events
        viewed = next(e for e in logs if e["event"] == "dashboard_viewed")
        assert viewed["range"] == "this_month"

    def test_currency_read_from_stored_settings_each_call(
        self, invoice_repo, subscription_repo, settings_repo, clock
    ):
        service = DashboardService(
            invoice_repo, subscription_repo, settings_repo=settings_repo, clock=clock
        )
        assert service.monthly_metrics().net.currency == Currency.USD

        preferences = settings_repo.get()
        preferences.currency = Currency.EUR
        settings_repo.update(preferences)

        metrics = service.monthly_metrics()
        snapshot = service.snapshot()

        assert metrics.paid_income == Money(Decimal("200.00"), "EUR")
        assert metrics.net == Money(Decimal("170.00"), "EUR")
        assert snapshot.forecast_inflow == Money(Decimal("80.00"), "EUR")
        assert snapshot.forecast_outflow == Money(Decimal("42.00"), "EUR")
