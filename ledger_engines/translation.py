"""
Module: ledger_engines.translation
Responsibility:
    Translate a member company's natural balances from its functional
    currency into the group reporting currency and compute the cumulative
    translation adjustment (CTA) that keeps the translated balances
    self-balancing.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Rates arrive as an
    ExchangeRateTable snapshot supplied by the caller.

Invariants enforced:
    - ASSET and LIABILITY balances translate at the closing rate
      (period end).
    - EQUITY balances translate at a historical rate: an account-specific
      override when supplied, otherwise a HISTORICAL quote in effect at
      period start, otherwise the closing rate in effect at period start.
    - REVENUE and EXPENSE balances translate at the period average rate.
    - The CTA is reported separately as an other-comprehensive-income
      amount; it is never folded into another account.
    - functional == group currency is the identity: balances are returned
      unchanged and no rate is looked up.

Failure modes:
    - MissingExchangeRateError when a required rate is absent.  Rates are
      never defaulted.
"""

from __future__ import annotations

from bisect import bisect_right
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum
from uuid import UUID

from ledger_engines.tracer import traced_engine
from ledger_kernel.domain.accounts import Account, AccountType
from ledger_kernel.domain.values import Currency, ExchangeRate, Money
from ledger_kernel.exceptions import MissingExchangeRateError
from ledger_kernel.logging_config import get_logger

logger = get_logger("engines.translation")


class RateType(str, Enum):
    """Kinds of published exchange rates."""

    CLOSING = "closing"
    AVERAGE = "average"
    HISTORICAL = "historical"


@dataclass(frozen=True)
class RateQuote:
    """One published rate: 1 from_currency = rate to_currency."""

    from_currency: Currency
    to_currency: Currency
    effective_date: date
    rate: Decimal
    rate_type: RateType = RateType.CLOSING

    def __post_init__(self) -> None:
        if isinstance(self.from_currency, str):
            object.__setattr__(self, "from_currency", Currency(self.from_currency))
        if isinstance(self.to_currency, str):
            object.__setattr__(self, "to_currency", Currency(self.to_currency))
        if not isinstance(self.rate, Decimal):
            object.__setattr__(self, "rate", Decimal(str(self.rate)))
        if self.rate <= 0:
            raise ValueError(f"Exchange rate must be positive: {self.rate}")

    def as_exchange_rate(self) -> ExchangeRate:
        return ExchangeRate(self.from_currency, self.to_currency, self.rate)


class ExchangeRateTable:
    """
    Immutable snapshot of rate quotes indexed by (pair, rate type).

    ``find`` returns the latest quote effective on or before the requested
    date.  When only the reverse pair is quoted its inverse is used.
    """

    def __init__(self, quotes: Iterable[RateQuote] = ()):
        index: dict[tuple[str, str, RateType], list[RateQuote]] = {}
        for q in quotes:
            key = (q.from_currency.code, q.to_currency.code, q.rate_type)
            index.setdefault(key, []).append(q)
        self._index = {
            key: sorted(items, key=lambda q: q.effective_date)
            for key, items in index.items()
        }
        self._dates = {
            key: [q.effective_date for q in items]
            for key, items in self._index.items()
        }

    def __len__(self) -> int:
        return sum(len(v) for v in self._index.values())

    def _latest(
        self,
        from_code: str,
        to_code: str,
        rate_type: RateType,
        as_of: date,
        not_before: date | None,
    ) -> RateQuote | None:
        key = (from_code, to_code, rate_type)
        dates = self._dates.get(key)
        if not dates:
            return None
        pos = bisect_right(dates, as_of)
        if pos == 0:
            return None
        quote = self._index[key][pos - 1]
        if not_before is not None and quote.effective_date < not_before:
            return None
        return quote

    def find(
        self,
        from_currency: Currency,
        to_currency: Currency,
        rate_type: RateType,
        as_of: date,
        not_before: date | None = None,
    ) -> ExchangeRate | None:
        """Rate in effect on ``as_of``, or None."""
        if from_currency == to_currency:
            return ExchangeRate.identity(from_currency)
        direct = self._latest(
            from_currency.code, to_currency.code, rate_type, as_of, not_before,
        )
        if direct is not None:
            return direct.as_exchange_rate()
        reverse = self._latest(
            to_currency.code, from_currency.code, rate_type, as_of, not_before,
        )
        if reverse is not None:
            return reverse.as_exchange_rate().inverse()
        return None

    def require(
        self,
        from_currency: Currency,
        to_currency: Currency,
        rate_type: RateType,
        as_of: date,
        not_before: date | None = None,
        company_id: UUID | None = None,
    ) -> ExchangeRate:
        """Like ``find`` but raises MissingExchangeRateError instead of None."""
        rate = self.find(from_currency, to_currency, rate_type, as_of, not_before)
        if rate is None:
            raise MissingExchangeRateError(
                from_currency.code,
                to_currency.code,
                as_of,
                rate_type.value,
                str(company_id) if company_id else None,
            )
        return rate


@dataclass(frozen=True)
class TranslationRates:
    """The rates one member's translation uses, resolved up front."""

    closing: ExchangeRate
    average: ExchangeRate
    historical: ExchangeRate
    account_historical: Mapping[str, ExchangeRate] = field(default_factory=dict)

    def rate_for(self, account: Account) -> tuple[ExchangeRate, RateType]:
        """Rate and rate type applied to an account's balance."""
        if account.account_type in (AccountType.ASSET, AccountType.LIABILITY):
            return self.closing, RateType.CLOSING
        if account.account_type == AccountType.EQUITY:
            override = self.account_historical.get(account.account_number)
            return (override or self.historical), RateType.HISTORICAL
        return self.average, RateType.AVERAGE


def resolve_translation_rates(
    table: ExchangeRateTable,
    functional_currency: Currency,
    group_currency: Currency,
    period_start: date,
    period_end: date,
    historical_overrides: Mapping[str, Decimal] | None = None,
    company_id: UUID | None = None,
) -> TranslationRates:
    """
    Look up every rate a member translation needs.

    The average rate must be quoted inside the period.  The equity rate is
    a HISTORICAL quote in effect at period start, else the closing rate in
    effect the day before the period opens (the previous period's close),
    else the closing rate on period start.

    Raises:
        MissingExchangeRateError: For the first rate that cannot be found.
    """
    closing = table.require(
        functional_currency, group_currency, RateType.CLOSING, period_end,
        company_id=company_id,
    )
    average = table.require(
        functional_currency, group_currency, RateType.AVERAGE, period_end,
        not_before=period_start, company_id=company_id,
    )
    historical = (
        table.find(functional_currency, group_currency, RateType.HISTORICAL, period_start)
        or table.find(
            functional_currency, group_currency, RateType.CLOSING,
            period_start - timedelta(days=1),
        )
        or table.find(functional_currency, group_currency, RateType.CLOSING, period_start)
    )
    if historical is None:
        raise MissingExchangeRateError(
            functional_currency.code,
            group_currency.code,
            period_start,
            RateType.HISTORICAL.value,
            str(company_id) if company_id else None,
        )
    overrides = {
        number: ExchangeRate(functional_currency, group_currency, rate)
        for number, rate in (historical_overrides or {}).items()
    }
    return TranslationRates(
        closing=closing,
        average=average,
        historical=historical,
        account_historical=overrides,
    )


@dataclass(frozen=True)
class AccountBalance:
    """Natural balance of one account."""

    account: Account
    balance: Money


@dataclass(frozen=True)
class TranslatedLine:
    """Audit detail of one account's translation."""

    account_id: UUID
    account_number: str
    functional_amount: Money
    translated_amount: Money
    rate: Decimal
    rate_type: RateType | None


@dataclass(frozen=True)
class TranslationResult:
    """
    Translated balances plus the translation adjustment.

    ``cta`` is a credit-normal (equity) natural amount: positive is a
    translation gain.
    """

    currency: Currency
    balances: tuple[AccountBalance, ...]
    lines: tuple[TranslatedLine, ...]
    cta: Money

    @property
    def is_identity(self) -> bool:
        return all(line.rate_type is None for line in self.lines)


def _translation_difference(balances: Iterable[AccountBalance], currency: Currency) -> Money:
    """
    Plug that re-balances translated natural amounts.

    In a balanced ledger A = L + E + R - X holds in natural terms; the
    difference after translation is A - L - E - R + X.
    """
    cta = Money.zero(currency)
    for item in balances:
        if item.account.account_type in (AccountType.ASSET, AccountType.EXPENSE):
            cta = cta + item.balance
        else:
            cta = cta - item.balance
    return cta


@traced_engine(
    "translation", "1.0",
    fingerprint_fields=("functional_currency", "group_currency"),
)
def translate(
    balances: Iterable[AccountBalance],
    *,
    functional_currency: Currency,
    group_currency: Currency,
    rates: TranslationRates | None = None,
) -> TranslationResult:
    """
    Translate natural balances into the group currency.

    When the currencies are equal the input balances come back unchanged,
    ``rates`` is ignored and the CTA is zero.

    Raises:
        ValueError: Currencies differ and no rates were supplied.
        CurrencyMismatchError: A balance is not in the functional currency.
    """
    items = tuple(balances)

    if functional_currency == group_currency:
        return TranslationResult(
            currency=group_currency,
            balances=items,
            lines=tuple(
                TranslatedLine(
                    account_id=b.account.id,
                    account_number=b.account.account_number,
                    functional_amount=b.balance,
                    translated_amount=b.balance,
                    rate=Decimal("1"),
                    rate_type=None,
                )
                for b in items
            ),
            cta=Money.zero(group_currency),
        )

    if rates is None:
        raise ValueError(
            f"Rates are required to translate {functional_currency} to {group_currency}"
        )

    translated: list[AccountBalance] = []
    lines: list[TranslatedLine] = []
    for item in items:
        rate, rate_type = rates.rate_for(item.account)
        amount = rate.convert(item.balance)
        translated.append(AccountBalance(account=item.account, balance=amount))
        lines.append(
            TranslatedLine(
                account_id=item.account.id,
                account_number=item.account.account_number,
                functional_amount=item.balance,
                translated_amount=amount,
                rate=rate.rate,
                rate_type=rate_type,
            )
        )

    cta = _translation_difference(translated, group_currency)

    logger.debug(
        "balances_translated",
        extra={
            "functional_currency": functional_currency.code,
            "group_currency": group_currency.code,
            "account_count": len(translated),
            "cta": str(cta.amount),
        },
    )

    return TranslationResult(
        currency=group_currency,
        balances=tuple(translated),
        lines=tuple(lines),
        cta=cta,
    )
