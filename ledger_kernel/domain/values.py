"""
Values -- Immutable, self-validating monetary value objects.

Responsibility:
    Provides Currency, Money and ExchangeRate.  Every amount that flows
    through aggregation, translation and consolidation is a Money value;
    raw Decimals appear only inside these types and in presentation fields.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by every engine and module.  No outward dependencies except
    ledger_kernel.domain.currency and ledger_kernel.exceptions.

Invariants enforced:
    - Amounts are exact Decimals; floats are rejected at construction.
    - Arithmetic and comparison require matching currencies.
    - No rounding inside arithmetic.  ``round()`` exists for presentation
      boundaries only.

Failure modes:
    - ValueError on construction with invalid amounts, currencies, or rates
    - CurrencyMismatchError when arithmetic mixes two currencies

Audit relevance:
    Rounding once at presentation (instead of per line) keeps thousands of
    aggregated lines free of compounding rounding error.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from ledger_kernel.domain.currency import CurrencyRegistry
from ledger_kernel.exceptions import CurrencyMismatchError

_ZERO = Decimal("0")


@dataclass(frozen=True, slots=True)
class Currency:
    """
    ISO 4217 currency code value object.

    Contract:
        Wraps a three-letter code, normalized to upper case and validated
        against CurrencyRegistry on construction.

    Guarantees:
        - Immutable and hashable
        - code is always a registered ISO 4217 code
    """

    code: str

    def __post_init__(self) -> None:
        normalized = self.code.upper().strip() if self.code else ""
        if not CurrencyRegistry.is_valid(normalized):
            raise ValueError(f"Invalid ISO 4217 currency code: {self.code}")
        object.__setattr__(self, "code", normalized)

    @property
    def decimal_places(self) -> int:
        return CurrencyRegistry.get_decimal_places(self.code)

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"Currency({self.code!r})"


def _as_currency(currency: str | Currency) -> Currency:
    return Currency(currency) if isinstance(currency, str) else currency


@dataclass(frozen=True, slots=True)
class Money:
    """
    Monetary amount value object.

    Contract:
        Pairs a Decimal amount with its Currency.  They are never separated.

    Guarantees:
        - Immutable and hashable
        - amount is always a Decimal (never float)
        - +, -, compare and ordering raise CurrencyMismatchError across
          currencies instead of silently mixing them

    Non-goals:
        - Does NOT perform currency conversion (use ExchangeRate.convert)
        - Does NOT auto-round; callers call .round() at presentation
    """

    amount: Decimal
    currency: Currency

    def __post_init__(self) -> None:
        if isinstance(self.amount, float):
            raise ValueError(f"Money amount must not be float: {self.amount!r}")
        if not isinstance(self.amount, Decimal):
            try:
                object.__setattr__(self, "amount", Decimal(str(self.amount)))
            except (InvalidOperation, ValueError) as e:
                raise ValueError(f"Invalid amount: {self.amount}") from e
        if not self.amount.is_finite():
            raise ValueError(f"Money amount must be finite: {self.amount}")

        if isinstance(self.currency, str):
            object.__setattr__(self, "currency", Currency(self.currency))
        elif not isinstance(self.currency, Currency):
            raise TypeError(f"currency must be Currency or str, got {type(self.currency)}")

    @classmethod
    def of(cls, amount: Decimal | str | int, currency: str | Currency) -> Money:
        """
        Factory method for creating Money.

        Args:
            amount: Decimal, int, or decimal string (never float).
            currency: ISO 4217 code or Currency.

        Raises:
            ValueError: If the amount or currency is invalid.
        """
        if isinstance(amount, (str, int)) and not isinstance(amount, bool):
            amount = Decimal(str(amount))
        return cls(amount=amount, currency=_as_currency(currency))

    @classmethod
    def zero(cls, currency: str | Currency) -> Money:
        """Create a zero amount in the given currency."""
        return cls(amount=_ZERO, currency=_as_currency(currency))

    @property
    def is_zero(self) -> bool:
        return self.amount == _ZERO

    @property
    def is_positive(self) -> bool:
        return self.amount > _ZERO

    @property
    def is_negative(self) -> bool:
        return self.amount < _ZERO

    def _require_same_currency(self, other: Money, operation: str) -> None:
        if self.currency != other.currency:
            raise CurrencyMismatchError(
                self.currency.code, other.currency.code, operation,
            )

    def round(self, rounding: str = ROUND_HALF_UP) -> Money:
        """
        Round to the currency's minor unit.

        Presentation only: aggregation, translation and consolidation never
        call this.
        """
        info = CurrencyRegistry.get_info(self.currency.code)
        quantum = info.quantum if info else Decimal("0.01")
        return Money(self.amount.quantize(quantum, rounding=rounding), self.currency)

    def compare(self, other: Money) -> int:
        """Return -1, 0 or 1.  Raises CurrencyMismatchError across currencies."""
        self._require_same_currency(other, "compare")
        if self.amount < other.amount:
            return -1
        if self.amount > other.amount:
            return 1
        return 0

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._require_same_currency(other, "add")
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._require_same_currency(other, "subtract")
        return Money(self.amount - other.amount, self.currency)

    def __neg__(self) -> Money:
        return Money(-self.amount, self.currency)

    def __abs__(self) -> Money:
        return Money(abs(self.amount), self.currency)

    def __mul__(self, factor: Decimal | int) -> Money:
        """Multiply by a scalar."""
        if isinstance(factor, int) and not isinstance(factor, bool):
            factor = Decimal(factor)
        if not isinstance(factor, Decimal):
            return NotImplemented
        return Money(self.amount * factor, self.currency)

    def __rmul__(self, factor: Decimal | int) -> Money:
        return self.__mul__(factor)

    def __truediv__(self, divisor: Decimal | int) -> Money:
        """Divide by a scalar."""
        if isinstance(divisor, int) and not isinstance(divisor, bool):
            divisor = Decimal(divisor)
        if not isinstance(divisor, Decimal):
            return NotImplemented
        return Money(self.amount / divisor, self.currency)

    def __lt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.compare(other) < 0

    def __le__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.compare(other) <= 0

    def __gt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.compare(other) > 0

    def __ge__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.compare(other) >= 0

    def __str__(self) -> str:
        return f"{self.amount} {self.currency.code}"

    def __repr__(self) -> str:
        return f"Money({self.amount!r}, {self.currency!r})"


def sum_money(amounts, currency: str | Currency) -> Money:
    """Sum an iterable of Money, starting from zero in ``currency``."""
    total = Money.zero(currency)
    for amount in amounts:
        total = total + amount
    return total


@dataclass(frozen=True, slots=True)
class ExchangeRate:
    """
    Exchange rate between two currencies.

    Contract:
        1 unit of from_currency = rate units of to_currency.

    Guarantees:
        - rate is always a positive Decimal
        - convert() refuses Money in any currency but from_currency
    """

    from_currency: Currency
    to_currency: Currency
    rate: Decimal

    def __post_init__(self) -> None:
        if isinstance(self.from_currency, str):
            object.__setattr__(self, "from_currency", Currency(self.from_currency))
        if isinstance(self.to_currency, str):
            object.__setattr__(self, "to_currency", Currency(self.to_currency))
        if isinstance(self.rate, float):
            raise ValueError(f"Exchange rate must not be float: {self.rate!r}")
        if not isinstance(self.rate, Decimal):
            try:
                object.__setattr__(self, "rate", Decimal(str(self.rate)))
            except (InvalidOperation, ValueError) as e:
                raise ValueError(f"Invalid exchange rate: {self.rate}") from e
        if self.rate <= _ZERO:
            raise ValueError(f"Exchange rate must be positive: {self.rate}")

    @classmethod
    def of(
        cls,
        from_currency: str | Currency,
        to_currency: str | Currency,
        rate: Decimal | str | int,
    ) -> ExchangeRate:
        if isinstance(rate, (str, int)):
            rate = Decimal(str(rate))
        return cls(_as_currency(from_currency), _as_currency(to_currency), rate)

    @classmethod
    def identity(cls, currency: str | Currency) -> ExchangeRate:
        currency = _as_currency(currency)
        return cls(currency, currency, Decimal("1"))

    def convert(self, money: Money) -> Money:
        """
        Convert money from from_currency to to_currency.

        Raises:
            CurrencyMismatchError: If money is not in from_currency.
        """
        if money.currency != self.from_currency:
            raise CurrencyMismatchError(
                money.currency.code, self.from_currency.code, "convert",
            )
        return Money(money.amount * self.rate, self.to_currency)

    def inverse(self) -> ExchangeRate:
        """If this is USD->EUR at 0.8, the inverse is EUR->USD at 1.25."""
        return ExchangeRate(self.to_currency, self.from_currency, Decimal("1") / self.rate)

    @property
    def pair(self) -> tuple[str, str]:
        return (self.from_currency.code, self.to_currency.code)

    def __str__(self) -> str:
        return f"{self.from_currency}/{self.to_currency} = {self.rate}"
