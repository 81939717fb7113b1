"""Calendar arithmetic for recurring bills.

Month and year steps go through ``relativedelta``, which clamps to the last
valid day of the target month (Jan 31 + 1 month is Feb 28/29, Feb 29 + 1 year
is Feb 28 in a non-leap year).
"""

from datetime import date, datetime

from dateutil.relativedelta import relativedelta  # type: ignore[import-untyped]

from flow_ledger.domain.value_objects import SubscriptionCadence
from flow_ledger.exceptions import DateComputationError

CADENCE_STEPS: dict[SubscriptionCadence, relativedelta] = {
    SubscriptionCadence.WEEKLY: relativedelta(weeks=1),
    SubscriptionCadence.MONTHLY: relativedelta(months=1),
    SubscriptionCadence.QUARTERLY: relativedelta(months=3),
    SubscriptionCadence.YEARLY: relativedelta(years=1),
}


def advance_due_date(due_date: date, cadence: SubscriptionCadence) -> date:
    """Return the due date one cadence step after ``due_date``.

    A ``datetime`` keeps its time of day. Raises DateComputationError when the
    result falls outside the representable calendar.
    """
    cadence = SubscriptionCadence(cadence)
    step = CADENCE_STEPS[cadence]
    try:
        return due_date + step
    except (OverflowError, ValueError) as exc:
        raise DateComputationError(due_date, f"advance {cadence.value}") from exc


def month_bounds(moment: date) -> tuple[date, date]:
    """First and last calendar day of the month containing ``moment``."""
    day = as_date(moment)
    start_of_month = day.replace(day=1)
    end_of_month = start_of_month + relativedelta(months=1, days=-1)
    return start_of_month, end_of_month


def as_date(moment: date) -> date:
    """Truncate a datetime to its calendar day; dates pass through."""
    if isinstance(moment, datetime):
        return moment.date()
    return moment


__all__ = [
    "CADENCE_STEPS",
    "advance_due_date",
    "as_date",
    "month_bounds",
]
