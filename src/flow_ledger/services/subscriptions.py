from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from flow_ledger.domain.subscriptions import BillPayment, Subscription
from flow_ledger.domain.value_objects import Money, SubscriptionCadence
from flow_ledger.exceptions import SubscriptionNotFoundError
from flow_ledger.logging_config import LogContext, get_logger
from flow_ledger.repositories.interfaces import (
    SettingsRepository,
    SubscriptionRepository,
)
from flow_ledger.services.analytics import AnalyticsService
from flow_ledger.services.interfaces import SubscriptionService

if TYPE_CHECKING:
    from flow_ledger.services.reminders import ReminderService

logger = get_logger(__name__)


class SubscriptionServiceImpl(SubscriptionService):
    def __init__(
        self,
        subscription_repo: SubscriptionRepository,
        settings_repo: SettingsRepository,
        *,
        default_reminder_days_before: int = 2,
        clock: Callable[[], datetime] = datetime.now,
        analytics: AnalyticsService | None = None,
        reminder_service: ReminderService | None = None,
    ) -> None:
        self._subscription_repo = subscription_repo
        self._settings_repo = settings_repo
        self._default_reminder_days_before = default_reminder_days_before
        self._clock = clock
        self._analytics = analytics
        self._reminder_service = reminder_service

    def create_subscription(
        self,
        name: str,
        amount: Money | Decimal,
        cadence: SubscriptionCadence,
        next_due_date: date,
        category: str | None = None,
        reminder_days_before: int | None = None,
        notes: str | None = None,
        is_paused: bool = False,
    ) -> Subscription:
        if not isinstance(amount, Money):
            amount = Money(amount, self._settings_repo.get().currency)
        subscription = Subscription(
            name=name,
            amount=amount,
            cadence=SubscriptionCadence(cadence),
            next_due_date=next_due_date,
            id=uuid4(),
            category=category or None,
            reminder_days_before=(
                reminder_days_before
                if reminder_days_before is not None
                else self._default_reminder_days_before
            ),
            notes=notes or None,
            is_paused=is_paused,
        )
        self._subscription_repo.add(subscription)
        logger.info(
            "subscription_created",
            subscription_id=str(subscription.id),
            cadence=subscription.cadence.value,
        )
        if self._analytics is not None:
            self._analytics.log_subscription_added(
                subscription.cadence.value, subscription.category
            )
        if self._reminder_service is not None:
            self._reminder_service.schedule(subscription)
        return subscription

    def get_subscription(self, subscription_id: UUID) -> Subscription | None:
        return self._subscription_repo.get(subscription_id)

    def list_subscriptions(
        self, category: str | None = None, include_paused: bool = False
    ) -> list[Subscription]:
        if category is not None:
            subscriptions = list(self._subscription_repo.list_by_category(category))
            if include_paused:
                return subscriptions
            return [s for s in subscriptions if s.is_active]
        if include_paused:
            return list(self._subscription_repo.list_all())
        return list(self._subscription_repo.list_active())

    def categories(self) -> list[str]:
        return sorted(
            {s.category for s in self._subscription_repo.list_all() if s.category}
        )

    def update_subscription(self, subscription: Subscription) -> None:
        self._require(subscription.id)
        self._subscription_repo.update(subscription)

    def delete_subscription(self, subscription_id: UUID) -> None:
        self._require(subscription_id)
        self._subscription_repo.delete(subscription_id)
        logger.info("subscription_deleted", subscription_id=str(subscription_id))

    def pause(self, subscription_id: UUID) -> Subscription:
        subscription = self._require(subscription_id)
        subscription.pause()
        self._subscription_repo.update(subscription)
        if self._reminder_service is not None:
            self._reminder_service.cancel_for_subscription(subscription.id)
        return subscription

    def resume(self, subscription_id: UUID) -> Subscription:
        subscription = self._require(subscription_id)
        subscription.resume()
        self._subscription_repo.update(subscription)
        if self._reminder_service is not None:
            self._reminder_service.schedule(subscription)
        return subscription

    def mark_as_paid(
        self, subscription_id: UUID, paid_on: date | None = None
    ) -> BillPayment:
        """Advance the due date and log the payment as a single unit.

        If the repository fails, nothing is stored and the subscription keeps
        its previous due date.
        """
        subscription = self._require(subscription_id)
        previous_due_date = subscription.next_due_date
        payment = BillPayment(
            subscription_id=subscription.id,
            amount=subscription.amount,
            paid_date=paid_on if paid_on is not None else self._clock().date(),
            id=uuid4(),
        )

        with LogContext(subscription_id=str(subscription.id)):
            subscription.advance_due_date()
            try:
                self._subscription_repo.record_payment(subscription, payment)
            except Exception:
                subscription.next_due_date = previous_due_date
                logger.warning("bill_payment_rolled_back", due_date=previous_due_date.isoformat())
                raise

        logger.info(
            "bill_marked_paid",
            subscription_id=str(subscription.id),
            amount=str(payment.amount.amount),
            previous_due_date=previous_due_date.isoformat(),
            next_due_date=subscription.next_due_date.isoformat(),
        )
        if self._analytics is not None:
            self._analytics.log_bill_marked_paid(payment.amount.amount)
        if self._reminder_service is not None:
            self._reminder_service.schedule(subscription)
        return payment

    def list_payments(self, subscription_id: UUID) -> list[BillPayment]:
        return list(self._subscription_repo.list_payments(subscription_id))

    def _require(self, subscription_id: UUID) -> Subscription:
        subscription = self._subscription_repo.get(subscription_id)
        if subscription is None:
            raise SubscriptionNotFoundError(subscription_id)
        return subscription
