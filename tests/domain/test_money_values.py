"""Tests for Currency, Money and ExchangeRate value objects."""

from decimal import Decimal

import pytest

from ledger_kernel.domain.currency import CurrencyRegistry
from ledger_kernel.domain.values import Currency, ExchangeRate, Money, sum_money
from ledger_kernel.exceptions import CurrencyMismatchError


class TestCurrency:

    def test_code_is_normalized(self):
        assert Currency("usd").code == "USD"
        assert Currency(" eur ").code == "EUR"

    def test_unknown_code_rejected(self):
        with pytest.raises(ValueError, match="Invalid ISO 4217"):
            Currency("XYZ")

    def test_decimal_places(self):
        assert Currency("USD").decimal_places == 2
        assert Currency("JPY").decimal_places == 0
        assert Currency("KWD").decimal_places == 3

    def test_register_new_currency(self):
        CurrencyRegistry.register("XAU", 4, "Gold Ounce")
        assert Currency("XAU").decimal_places == 4

    def test_register_conflicting_currency_rejected(self):
        with pytest.raises(ValueError, match="already registered"):
            CurrencyRegistry.register("USD", 3, "Other Dollar")


class TestMoneyConstruction:

    def test_float_rejected(self):
        with pytest.raises(ValueError, match="float"):
            Money(1.5, Currency("USD"))

    def test_string_and_int_amounts(self):
        assert Money.of("10.25", "USD").amount == Decimal("10.25")
        assert Money.of(10, "USD").amount == Decimal("10")

    def test_non_finite_rejected(self):
        with pytest.raises(ValueError, match="finite"):
            Money.of("Infinity", "USD")

    def test_zero(self):
        zero = Money.zero("EUR")
        assert zero.is_zero
        assert zero.currency == Currency("EUR")


class TestMoneyArithmetic:

    def test_add_and_subtract(self):
        a = Money.of("100.10", "USD")
        b = Money.of("0.90", "USD")
        assert a + b == Money.of("101.00", "USD")
        assert a - b == Money.of("99.20", "USD")

    def test_negate_and_abs(self):
        m = Money.of("42", "USD")
        assert (-m).amount == Decimal("-42")
        assert abs(-m) == m

    def test_no_rounding_inside_arithmetic(self):
        third = Money.of("1", "USD") / 3
        assert third.amount == Decimal("1") / Decimal("3")
        assert third.round().amount == Decimal("0.33")

    def test_round_uses_currency_minor_unit(self):
        assert Money.of("1234.5", "JPY").round().amount == Decimal("1235")
        assert Money.of("1.23456", "KWD").round().amount == Decimal("1.235")

    def test_scalar_multiplication(self):
        assert Money.of("10", "USD") * Decimal("0.25") == Money.of("2.5", "USD")
        assert 2 * Money.of("10", "USD") == Money.of("20", "USD")

    def test_mismatched_currencies_raise(self):
        usd = Money.of("1", "USD")
        eur = Money.of("1", "EUR")
        with pytest.raises(CurrencyMismatchError) as exc_info:
            usd + eur
        assert exc_info.value.operation == "add"
        with pytest.raises(CurrencyMismatchError):
            usd - eur
        with pytest.raises(CurrencyMismatchError):
            usd.compare(eur)
        with pytest.raises(CurrencyMismatchError):
            usd < eur

    def test_compare(self):
        small = Money.of("1", "USD")
        big = Money.of("2", "USD")
        assert small.compare(big) == -1
        assert big.compare(small) == 1
        assert small.compare(Money.of("1.00", "USD")) == 0
        assert min(big, small) == small

    def test_sum_money_empty_is_zero(self):
        assert sum_money([], "USD") == Money.zero("USD")


class TestExchangeRate:

    def test_convert(self):
        rate = ExchangeRate.of("EUR", "USD", "1.10")
        assert rate.convert(Money.of("100", "EUR")) == Money.of("110.00", "USD")

    def test_convert_wrong_currency_raises(self):
        rate = ExchangeRate.of("EUR", "USD", "1.10")
        with pytest.raises(CurrencyMismatchError):
            rate.convert(Money.of("100", "GBP"))

    def test_inverse(self):
        rate = ExchangeRate.of("USD", "EUR", "0.8")
        inverse = rate.inverse()
        assert inverse.pair == ("EUR", "USD")
        assert inverse.rate == Decimal("1.25")

    def test_non_positive_rate_rejected(self):
        with pytest.raises(ValueError, match="positive"):
            ExchangeRate.of("USD", "EUR", "0")

    def test_identity(self):
        rate = ExchangeRate.identity("USD")
        assert rate.convert(Money.of("5", "USD")) == Money.of("5", "USD")
