from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

Number = Decimal | int | float


class Currency(str, Enum):
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    INR = "INR"
    JPY = "JPY"
    CHF = "CHF"
    CAD = "CAD"
    AUD = "AUD"
    SGD = "SGD"
    AED = "AED"


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"


class SubscriptionCadence(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


def to_decimal(value: Number | str) -> Decimal:
    """Floats go through ``str`` so 0.1 becomes Decimal("0.1"), not its binary expansion."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _to_currency(value: object) -> Currency:
    if isinstance(value, Currency):
        return value
    if isinstance(value, str) and value in Currency.__members__:
        return Currency[value]
    raise ValueError(f"Invalid currency: {value}")


@dataclass(frozen=True, slots=True)
class Money:
    """An exact decimal amount in one currency.

    Arithmetic between different currencies raises ValueError. Amounts are
    never rounded here.
    """

    amount: Decimal
    currency: Currency | str = "USD"

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_decimal(self.amount))
        object.__setattr__(self, "currency", _to_currency(self.currency))

    def _same_currency(self, other: "Money", verb: str) -> None:
        if other.currency != self.currency:
            raise ValueError(f"Cannot {verb} {self.currency} and {other.currency}")

    def __add__(self, other: "Money") -> "Money":
        self._same_currency(other, "add")
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: "Money") -> "Money":
        self._same_currency(other, "subtract")
        return Money(self.amount - other.amount, self.currency)

    def __mul__(self, factor: Number) -> "Money":
        return Money(self.amount * to_decimal(factor), self.currency)

    __rmul__ = __mul__

    def __neg__(self) -> "Money":
        return Money(-self.amount, self.currency)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Money):
            return (self.amount, self.currency) == (other.amount, other.currency)
        return NotImplemented

    def __hash__(self) -> int:
        return hash((self.amount, self.currency))

    def __lt__(self, other: "Money") -> bool:
        self._same_currency(other, "compare")
        return self.amount < other.amount

    def __le__(self, other: "Money") -> bool:
        self._same_currency(other, "compare")
        return self.amount <= other.amount

    @property
    def is_zero(self) -> bool:
        return not self.amount

    @property
    def is_positive(self) -> bool:
        return self.amount > 0

    @property
    def is_negative(self) -> bool:
        return self.amount < 0

    @classmethod
    def zero(cls, currency: Currency | str = "USD") -> "Money":
        return cls(Decimal(0), currency)


@dataclass(frozen=True, slots=True)
class Quantity:
    """Line item quantity; fractional values such as 1.5 hours are allowed."""

    value: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", to_decimal(self.value))

    def __add__(self, other: "Quantity") -> "Quantity":
        return Quantity(self.value + other.value)

    def __sub__(self, other: "Quantity") -> "Quantity":
        return Quantity(self.value - other.value)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Quantity):
            return self.value == other.value
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.value)

    def __lt__(self, other: "Quantity") -> bool:
        return self.value < other.value

    def __le__(self, other: "Quantity") -> bool:
        return self.value <= other.value

    @property
    def is_zero(self) -> bool:
        return not self.value

    @property
    def is_negative(self) -> bool:
        return self.value < 0


__all__ = [
    "Currency",
    "InvoiceStatus",
    "Money",
    "Number",
    "Quantity",
    "SubscriptionCadence",
    "to_decimal",
]
