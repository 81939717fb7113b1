from dataclasses import dataclass, field
from datetime import UTC, datetime, time
from decimal import Decimal
from uuid import UUID, uuid4

from flow_ledger.domain.value_objects import Currency


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class AppSettings:
    """User preferences kept in the store, as opposed to deployment settings."""

    default_tax_rate: Decimal = Decimal("0")
    currency: Currency = Currency.USD
    enable_reminders: bool = True
    reminder_time: time = time(9, 0)
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)

    def touch(self) -> None:
        self.updated_at = _utc_now()


__all__ = ["AppSettings"]
