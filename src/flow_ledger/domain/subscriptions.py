from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from uuid import UUID, uuid4

from flow_ledger.domain.recurrence import advance_due_date
from flow_ledger.domain.value_objects import Money, SubscriptionCadence


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class Subscription:
    name: str
    amount: Money
    cadence: SubscriptionCadence
    next_due_date: date
    id: UUID = field(default_factory=uuid4)
    category: str | None = None
    reminder_days_before: int = 2
    notes: str | None = None
    is_paused: bool = False
    created_at: datetime = field(default_factory=_utc_now)

    def __post_init__(self) -> None:
        self.cadence = SubscriptionCadence(self.cadence)
        if self.reminder_days_before < 0:
            raise ValueError("reminder_days_before must not be negative")

    @property
    def is_active(self) -> bool:
        return not self.is_paused

    def advance_due_date(self) -> date:
        """Move ``next_due_date`` forward by one cadence step.

        Only the due date changes; the amount and paused flag are untouched.
        """
        self.next_due_date = advance_due_date(self.next_due_date, self.cadence)
        return self.next_due_date

    def pause(self) -> None:
        self.is_paused = True

    def resume(self) -> None:
        self.is_paused = False


@dataclass(frozen=True)
class BillPayment:
    subscription_id: UUID
    amount: Money
    paid_date: date
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=_utc_now)


@dataclass
class Reminder:
    subscription_id: UUID
    scheduled_at: datetime
    notification_id: str
    id: UUID = field(default_factory=uuid4)
    is_snoozed: bool = False
    created_at: datetime = field(default_factory=_utc_now)


__all__ = [
    "BillPayment",
    "Reminder",
    "Subscription",
]
