from decimal import Decimal

import pytest

from flow_ledger.domain.value_objects import (
    Currency,
    InvoiceStatus,
    Money,
    Quantity,
    SubscriptionCadence,
)


class TestMoney:
    def test_money_creation_with_decimal(self):
        money = Money(Decimal("100.50"), "USD")

        assert money.amount == Decimal("100.50")
        assert money.currency == Currency.USD

    def test_money_creation_converts_float_through_str(self):
        money = Money(0.1, "USD")

        assert isinstance(money.amount, Decimal)
        assert money.amount == Decimal("0.1")

    def test_money_rejects_unknown_currency(self):
        with pytest.raises(ValueError, match="Invalid currency"):
            Money(Decimal("1"), "XYZ")

    def test_money_addition_same_currency(self):
        result = Money(Decimal("100.00")) + Money(Decimal("50.00"))

        assert result == Money(Decimal("150.00"))

    def test_money_addition_different_currency_raises(self):
        with pytest.raises(ValueError, match="Cannot add"):
            Money(Decimal("100.00"), "USD") + Money(Decimal("50.00"), "EUR")

    def test_money_subtraction_can_go_negative(self):
        result = Money(Decimal("10.00")) - Money(Decimal("30.00"))

        assert result == Money(Decimal("-20.00"))
        assert result.is_negative is True

    def test_money_subtraction_different_currency_raises(self):
        with pytest.raises(ValueError, match="Cannot subtract"):
            Money(Decimal("100.00"), "USD") - Money(Decimal("30.00"), "GBP")

    def test_money_multiplication_by_decimal_rate(self):
        result = Money(Decimal("90.00")) * Decimal("0.18")

        assert result == Money(Decimal("16.20"))

    def test_money_right_multiplication(self):
        result = Decimal("3") * Money(Decimal("0.10"))

        assert result == Money(Decimal("0.30"))

    def test_decimal_sum_of_tenths_is_exact(self):
        total = Money.zero()
        for _ in range(3):
            total = total + Money(Decimal("0.1"))

        assert total == Money(Decimal("0.3"))

    def test_money_equality_ignores_trailing_zeros(self):
        assert Money(Decimal("5.0")) == Money(Decimal("5.00"))
        assert hash(Money(Decimal("5.0"))) == hash(Money(Decimal("5.00")))

    def test_money_ordering(self):
        assert Money(Decimal("1")) < Money(Decimal("2"))
        assert Money(Decimal("2")) <= Money(Decimal("2"))

    def test_money_ordering_different_currency_raises(self):
        with pytest.raises(ValueError, match="Cannot compare"):
            Money(Decimal("1"), "USD") < Money(Decimal("2"), "EUR")

    def test_money_negation(self):
        assert -Money(Decimal("100.00")) == Money(Decimal("-100.00"))

    def test_money_zero(self):
        zero = Money.zero("INR")

        assert zero.is_zero is True
        assert zero.is_positive is False
        assert zero.currency == Currency.INR

    def test_money_is_immutable(self):
        money = Money(Decimal("1"))

        with pytest.raises(AttributeError):
            money.amount = Decimal("2")  # type: ignore[misc]


class TestQuantity:
    def test_quantity_converts_int(self):
        assert Quantity(3).value == Decimal("3")

    def test_quantity_arithmetic(self):
        assert Quantity(Decimal("2.5")) + Quantity(Decimal("0.5")) == Quantity(Decimal("3"))
        assert Quantity(Decimal("1")) - Quantity(Decimal("2")) == Quantity(Decimal("-1"))

    def test_quantity_flags(self):
        assert Quantity(0).is_zero is True
        assert Quantity(-1).is_negative is True
        assert Quantity(1) < Quantity(2)


class TestEnums:
    def test_invoice_status_values(self):
        assert [s.value for s in InvoiceStatus] == ["draft", "sent", "paid"]

    def test_subscription_cadence_values(self):
        assert [c.value for c in SubscriptionCadence] == [
            "weekly",
            "monthly",
            "quarterly",
            "yearly",
        ]

    def test_cadence_from_string(self):
        assert SubscriptionCadence("quarterly") is SubscriptionCadence.QUARTERLY

    def test_unknown_cadence_rejected(self):
        with pytest.raises(ValueError):
            SubscriptionCadence("daily")
