"""Currency -- ISO 4217 registry with minor-unit precision for presentation."""

from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar


@dataclass(frozen=True)
class CurrencyInfo:
    """Minor-unit metadata for a single ISO 4217 currency."""

    code: str
    decimal_places: int
    name: str

    @property
    def quantum(self) -> Decimal:
        """Smallest presentable unit, used by ``Decimal.quantize``."""
        return Decimal(1).scaleb(-self.decimal_places)


class CurrencyRegistry:
    """
    Registry of the currencies the engine accepts.

    Ledgers and consolidation groups in the field use a small set of
    currencies; the table carries the common ones and callers may
    ``register`` more at start-up.
    """

    _CURRENCIES: ClassVar[dict[str, CurrencyInfo]] = {
        info.code: info
        for info in (
            CurrencyInfo("USD", 2, "US Dollar"),
            CurrencyInfo("EUR", 2, "Euro"),
            CurrencyInfo("GBP", 2, "Pound Sterling"),
            CurrencyInfo("CHF", 2, "Swiss Franc"),
            CurrencyInfo("CAD", 2, "Canadian Dollar"),
            CurrencyInfo("AUD", 2, "Australian Dollar"),
            CurrencyInfo("NZD", 2, "New Zealand Dollar"),
            CurrencyInfo("SEK", 2, "Swedish Krona"),
            CurrencyInfo("NOK", 2, "Norwegian Krone"),
            CurrencyInfo("DKK", 2, "Danish Krone"),
            CurrencyInfo("PLN", 2, "Polish Zloty"),
            CurrencyInfo("CNY", 2, "Chinese Yuan"),
            CurrencyInfo("HKD", 2, "Hong Kong Dollar"),
            CurrencyInfo("SGD", 2, "Singapore Dollar"),
            CurrencyInfo("INR", 2, "Indian Rupee"),
            CurrencyInfo("MXN", 2, "Mexican Peso"),
            CurrencyInfo("BRL", 2, "Brazilian Real"),
            CurrencyInfo("ZAR", 2, "South African Rand"),
            CurrencyInfo("AED", 2, "UAE Dirham"),
            CurrencyInfo("JPY", 0, "Japanese Yen"),
            CurrencyInfo("KRW", 0, "South Korean Won"),
            CurrencyInfo("CLP", 0, "Chilean Peso"),
            CurrencyInfo("ISK", 0, "Icelandic Krona"),
            CurrencyInfo("BHD", 3, "Bahraini Dinar"),
            CurrencyInfo("KWD", 3, "Kuwaiti Dinar"),
            CurrencyInfo("OMR", 3, "Omani Rial"),
        )
    }

    @classmethod
    def is_valid(cls, code: str) -> bool:
        return code in cls._CURRENCIES

    @classmethod
    def get_info(cls, code: str) -> CurrencyInfo | None:
        return cls._CURRENCIES.get(code)

    @classmethod
    def get_decimal_places(cls, code: str) -> int:
        info = cls._CURRENCIES.get(code)
        if info is None:
            raise ValueError(f"Unknown currency: {code}")
        return info.decimal_places

    @classmethod
    def register(cls, code: str, decimal_places: int, name: str) -> CurrencyInfo:
        """Add a currency to the registry (idempotent for identical data)."""
        code = code.upper().strip()
        if len(code) != 3 or not code.isalpha():
            raise ValueError(f"Currency code must be three letters: {code!r}")
        if decimal_places < 0:
            raise ValueError("decimal_places cannot be negative")
        info = CurrencyInfo(code, decimal_places, name)
        existing = cls._CURRENCIES.get(code)
        if existing is not None and existing != info:
            raise ValueError(f"Currency {code} already registered as {existing}")
        cls._CURRENCIES[code] = info
        return info
