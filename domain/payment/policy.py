"""
Payment policies - pricing (discount then tax) and per-country approval rules.
"""
from __future__ import annotations

from abc import ABC
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, Optional, Tuple

from domain.common.exceptions import BusinessException
from shared.codes.payment_codes import PaymentCode
from .entity import Payment
from .value_objects import Country, Money, SUPPORTED_COUNTRIES


DEFAULT_VIP_DISCOUNT_RATE = Decimal("0.10")
DEFAULT_REGULAR_DISCOUNT_RATE = Decimal("0.05")
DEFAULT_TAX_RATE = Decimal("0.10")
DEFAULT_VIP_MAX_ATTEMPTS = 3
DEFAULT_US_HIGH_VALUE_THRESHOLD = Decimal("100000")


class PolicyNotConfiguredException(BusinessException):
    def __init__(self, country_code: str):
        super().__init__(
            code=PaymentCode.POLICY_NOT_CONFIGURED,
            message=f"No approval policy configured for country {country_code}",
            error_type="PolicyNotConfigured",
            details={"country_code": country_code},
        )


@dataclass(frozen=True)
class PricingPolicy:
    """Applies the customer discount first, then tax on the discounted amount."""

    vip_discount_rate: Decimal = DEFAULT_VIP_DISCOUNT_RATE
    regular_discount_rate: Decimal = DEFAULT_REGULAR_DISCOUNT_RATE
    tax_rate: Decimal = DEFAULT_TAX_RATE

    def discount_rate(self, vip: bool) -> Decimal:
        return self.vip_discount_rate if vip else self.regular_discount_rate

    def price(self, original_price: Money, vip: bool) -> Tuple[Money, Money]:
        """Return (discounted_amount, taxed_amount)."""
        discount = original_price.scale(self.discount_rate(vip))
        discounted = original_price.subtract(discount)
        taxed = discounted.scale(Decimal("1") + self.tax_rate)
        return discounted, taxed

    def describe_discount(self, vip: bool) -> str:
        pct = (self.discount_rate(vip) * 100).normalize()
        return f"{pct:f}%"


class ApprovalPolicy(ABC):
    """Country-specific approval behaviour layered over the default retry loop."""

    country_code: str = ""

    def __init__(self, *, vip_max_attempts: int = DEFAULT_VIP_MAX_ATTEMPTS) -> None:
        if vip_max_attempts < 1:
            raise ValueError("vip_max_attempts must be >= 1")
        self.vip_max_attempts = vip_max_attempts

    def max_attempts(self, vip: bool) -> int:
        return self.vip_max_attempts if vip else 1

    def pre_check(self, payment: Payment) -> Optional[str]:
        """Return a rejection note to reject without consulting the oracle."""
        return None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(vip_max_attempts={self.vip_max_attempts})"


class KoreaApprovalPolicy(ApprovalPolicy):
    country_code = "KR"


class UsApprovalPolicy(ApprovalPolicy):
    """High-value US payments are rejected outright, never retried, VIP or not."""

    country_code = "US"

    def __init__(
        self,
        *,
        vip_max_attempts: int = DEFAULT_VIP_MAX_ATTEMPTS,
        high_value_threshold: Decimal = DEFAULT_US_HIGH_VALUE_THRESHOLD,
    ) -> None:
        super().__init__(vip_max_attempts=vip_max_attempts)
        self.high_value_threshold = Decimal(high_value_threshold)

    def pre_check(self, payment: Payment) -> Optional[str]:
        if payment.taxed_amount.is_greater_than(self.high_value_threshold):
            return f"US high-value payment rejected (> {self.high_value_threshold})"
        return None


class PolicyRegistry:
    """Maps each supported country code to exactly one approval policy."""

    def __init__(self, policies: Iterable[ApprovalPolicy]) -> None:
        self._policies: Dict[str, ApprovalPolicy] = {}
        for policy in policies:
            if policy.country_code in self._policies:
                raise ValueError(f"duplicate approval policy for {policy.country_code}")
            self._policies[policy.country_code] = policy

    @classmethod
    def default(
        cls,
        *,
        vip_max_attempts: int = DEFAULT_VIP_MAX_ATTEMPTS,
        us_high_value_threshold: Decimal = DEFAULT_US_HIGH_VALUE_THRESHOLD,
    ) -> "PolicyRegistry":
        return cls([
            KoreaApprovalPolicy(vip_max_attempts=vip_max_attempts),
            UsApprovalPolicy(
                vip_max_attempts=vip_max_attempts,
                high_value_threshold=us_high_value_threshold,
            ),
        ])

    def select(self, country: Country) -> ApprovalPolicy:
        policy = self._policies.get(country.code)
        if policy is None:
            raise PolicyNotConfiguredException(country.code)
        return policy

    def covers_supported_countries(self) -> bool:
        return SUPPORTED_COUNTRIES.issubset(self._policies)
