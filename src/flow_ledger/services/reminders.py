"""Bill reminder planning.

Works out when a reminder should fire and keeps the reminder records in step
with the subscriptions. Delivery is delegated to a ``Notifier``; the bundled
``LoggingNotifier`` only records what would have been sent.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime, time, timedelta
from uuid import UUID, uuid4

from flow_ledger.domain.recurrence import as_date
from flow_ledger.domain.subscriptions import Reminder, Subscription
from flow_ledger.exceptions import (
    DateComputationError,
    NotificationDeliveryError,
    ReminderNotFoundError,
)
from flow_ledger.logging_config import get_logger
from flow_ledger.repositories.interfaces import (
    ReminderRepository,
    SettingsRepository,
    SubscriptionRepository,
)
from flow_ledger.services.analytics import AnalyticsService

logger = get_logger(__name__)

REMINDER_TITLE = "Bill Due Soon"
SNOOZE_INTERVAL = timedelta(days=1)


class Notifier(ABC):
    @abstractmethod
    def schedule(
        self,
        notification_id: str,
        title: str,
        body: str,
        fire_at: datetime,
        payload: dict[str, str],
    ) -> None:
        """Register a notification; raise NotificationDeliveryError on refusal."""

    @abstractmethod
    def cancel(self, notification_id: str) -> None:
        pass


class LoggingNotifier(Notifier):
    def schedule(
        self,
        notification_id: str,
        title: str,
        body: str,
        fire_at: datetime,
        payload: dict[str, str],
    ) -> None:
        logger.info(
            "notification_scheduled",
            notification_id=notification_id,
            title=title,
            body=body,
            fire_at=fire_at.isoformat(),
            **payload,
        )

    def cancel(self, notification_id: str) -> None:
        logger.info("notification_cancelled", notification_id=notification_id)


def notification_id_for(subscription_id: UUID) -> str:
    return f"subscription-{subscription_id}"


def plan_reminder_time(
    subscription: Subscription, reminder_time: time, now: datetime
) -> datetime | None:
    """When the reminder for ``subscription`` should fire.

    The reminder falls ``reminder_days_before`` days ahead of the due date at
    ``reminder_time``. Returns None for paused subscriptions and for moments
    that are not in the future.
    """
    if subscription.is_paused:
        return None
    due_date = as_date(subscription.next_due_date)
    try:
        reminder_day = due_date - timedelta(days=subscription.reminder_days_before)
    except OverflowError as exc:
        raise DateComputationError(due_date, "reminder lead time") from exc

    fire_at = datetime.combine(reminder_day, reminder_time, tzinfo=now.tzinfo)
    if fire_at <= now:
        return None
    return fire_at


class ReminderService:
    def __init__(
        self,
        reminder_repo: ReminderRepository,
        subscription_repo: SubscriptionRepository,
        settings_repo: SettingsRepository,
        notifier: Notifier,
        *,
        clock: Callable[[], datetime] = datetime.now,
        analytics: AnalyticsService | None = None,
    ) -> None:
        self._reminder_repo = reminder_repo
        self._subscription_repo = subscription_repo
        self._settings_repo = settings_repo
        self._notifier = notifier
        self._clock = clock
        self._analytics = analytics

    def schedule(self, subscription: Subscription) -> Reminder | None:
        """Replace any pending reminder for ``subscription`` with a fresh one.

        Returns None when reminders are disabled, the subscription is paused,
        the reminder moment has passed, or delivery was refused. In the paused
        and passed cases the old reminder is cancelled as well.
        """
        settings = self._settings_repo.get()
        if not settings.enable_reminders:
            return None

        fire_at = plan_reminder_time(subscription, settings.reminder_time, self._clock())
        if fire_at is None:
            self.cancel_for_subscription(subscription.id)
            return None

        notification_id = notification_id_for(subscription.id)
        body = f"{subscription.name} is due in {subscription.reminder_days_before} days"
        try:
            self._notifier.schedule(
                notification_id,
                REMINDER_TITLE,
                body,
                fire_at,
                {"subscription_id": str(subscription.id)},
            )
        except NotificationDeliveryError as exc:
            self._report_delivery_failure(exc, "notification_schedule")
            return None

        for existing in self._reminder_repo.list_by_subscription(subscription.id):
            self._reminder_repo.delete(existing.id)
        reminder = Reminder(
            subscription_id=subscription.id,
            scheduled_at=fire_at,
            notification_id=notification_id,
            id=uuid4(),
        )
        self._reminder_repo.add(reminder)
        logger.info(
            "reminder_scheduled",
            subscription_id=str(subscription.id),
            scheduled_at=fire_at.isoformat(),
        )
        return reminder

    def snooze(self, reminder_id: UUID) -> Reminder:
        """Push the reminder back by one day and flag it as snoozed."""
        reminder = self._require(reminder_id)
        subscription = self._subscription_repo.get(reminder.subscription_id)
        if subscription is None:
            return reminder

        self._notifier.cancel(reminder.notification_id)
        new_time = reminder.scheduled_at + SNOOZE_INTERVAL
        try:
            self._notifier.schedule(
                reminder.notification_id,
                REMINDER_TITLE,
                f"{subscription.name} is due soon",
                new_time,
                {"subscription_id": str(subscription.id)},
            )
        except NotificationDeliveryError as exc:
            self._report_delivery_failure(exc, "notification_snooze")
            return reminder

        reminder.scheduled_at = new_time
        reminder.is_snoozed = True
        self._reminder_repo.update(reminder)
        logger.info(
            "reminder_snoozed",
            reminder_id=str(reminder.id),
            scheduled_at=new_time.isoformat(),
        )
        return reminder

    def cancel(self, reminder_id: UUID) -> None:
        reminder = self._require(reminder_id)
        self._notifier.cancel(reminder.notification_id)
        self._reminder_repo.delete(reminder.id)

    def cancel_for_subscription(self, subscription_id: UUID) -> None:
        for reminder in self._reminder_repo.list_by_subscription(subscription_id):
            self._notifier.cancel(reminder.notification_id)
            self._reminder_repo.delete(reminder.id)

    def reschedule_all(self) -> list[Reminder]:
        reminders: list[Reminder] = []
        for subscription in self._subscription_repo.list_active():
            reminder = self.schedule(subscription)
            if reminder is not None:
                reminders.append(reminder)
        logger.info("reminders_rescheduled", count=len(reminders))
        return reminders

    def _report_delivery_failure(
        self, error: NotificationDeliveryError, context: str
    ) -> None:
        logger.warning("notification_delivery_failed", context=context, **error.context)
        if self._analytics is not None:
            self._analytics.log_non_fatal_error(error, context=context)

    def _require(self, reminder_id: UUID) -> Reminder:
        reminder = self._reminder_repo.get(reminder_id)
        if reminder is None:
            raise ReminderNotFoundError(reminder_id)
        return reminder
