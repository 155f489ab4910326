"""
Payment value objects - Money and Country.

Both are immutable; two instances with the same value are equal.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

from domain.common.exceptions import DomainValidationException


SUPPORTED_COUNTRIES = frozenset({"KR", "US"})

# Minor-unit precision used by scale(); amounts are kept in whole units
MINOR_UNIT = Decimal("1")

Number = Union[int, str, float, Decimal]


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, bool):
        raise DomainValidationException(f"Invalid amount: {value!r}", field="amount")
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise DomainValidationException(f"Invalid amount: {value!r}", field="amount")
    if not amount.is_finite():
        raise DomainValidationException(f"Invalid amount: {value!r}", field="amount")
    return amount


@dataclass(frozen=True, order=True)
class Money:
    """
    Non-negative amount of money.

    Business rules:
    1. amount >= 0, checked at construction
    2. every operation returns a new instance
    """

    amount: Decimal

    def __post_init__(self) -> None:
        amount = _to_decimal(self.amount)
        if amount < 0:
            raise DomainValidationException(
                f"Amount must not be negative: {amount}",
                field="amount",
            )
        object.__setattr__(self, "amount", amount)

    @classmethod
    def of(cls, amount: Number) -> "Money":
        return cls(_to_decimal(amount))

    @classmethod
    def zero(cls) -> "Money":
        return cls(Decimal("0"))

    def add(self, other: "Money") -> "Money":
        return Money(self.amount + other.amount)

    def subtract(self, other: "Money") -> "Money":
        """Caller must know the result is non-negative; otherwise construction fails."""
        return Money(self.amount - other.amount)

    def scale(self, rate: Number) -> "Money":
        """Multiply by rate and round half-up to the minor unit."""
        scaled = self.amount * _to_decimal(rate)
        return Money(scaled.quantize(MINOR_UNIT, rounding=ROUND_HALF_UP))

    def is_greater_than(self, threshold: Number) -> bool:
        return self.amount > _to_decimal(threshold)

    def __str__(self) -> str:
        return f"{self.amount:,}"


@dataclass(frozen=True)
class Country:
    """Supported two-letter country code, normalized to upper case."""

    code: str

    def __post_init__(self) -> None:
        if not isinstance(self.code, str) or not self.code.strip():
            raise DomainValidationException("Country code is required", field="country_code")
        code = self.code.strip().upper()
        if code not in SUPPORTED_COUNTRIES:
            raise DomainValidationException(
                f"Unsupported country code: {code}",
                field="country_code",
                details={"supported": sorted(SUPPORTED_COUNTRIES)},
            )
        object.__setattr__(self, "code", code)

    @classmethod
    def of(cls, code: str) -> "Country":
        return cls(code)

    def is_korea(self) -> bool:
        return self.code == "KR"

    def is_us(self) -> bool:
        return self.code == "US"

    def __str__(self) -> str:
        return self.code
