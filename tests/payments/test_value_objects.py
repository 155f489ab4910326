from decimal import Decimal

import pytest

from domain.common.exceptions import DomainValidationException
from domain.payment.value_objects import Country, Money


def test_money_add_sums_amounts():
    a, b = Money.of(1200), Money.of("300.50")
    result = a.add(b)
    assert result.amount == Decimal("1500.50")
    assert result.amount >= 0
    # operands untouched
    assert a.amount == Decimal("1200")


@pytest.mark.parametrize("bad", [-1, "-0.01", Decimal("-100")])
def test_money_rejects_negative_amount_every_time(bad):
    for _ in range(2):
        with pytest.raises(DomainValidationException) as ei:
            Money.of(bad)
        assert ei.value.field == "amount"


@pytest.mark.parametrize("bad", ["abc", "NaN", "Infinity", True])
def test_money_rejects_non_numeric(bad):
    with pytest.raises(DomainValidationException):
        Money.of(bad)


def test_money_subtract_below_zero_fails():
    with pytest.raises(DomainValidationException):
        Money.of(5).subtract(Money.of(6))


def test_money_scale_rounds_half_up_to_whole_units():
    assert Money.of(10000).scale(Decimal("0.05")).amount == Decimal("500")
    assert Money.of(9500).scale(Decimal("1.10")).amount == Decimal("10450")
    assert Money.of(15).scale(Decimal("0.1")).amount == Decimal("2")  # 1.5 -> 2


def test_money_from_float_has_no_binary_noise():
    assert Money.of(0.1).amount == Decimal("0.1")


def test_money_equality_and_ordering():
    assert Money.of(100) == Money.of("100")
    assert Money.of(100) < Money.of(101)
    assert Money.of(100001).is_greater_than(100000)
    assert not Money.of(100000).is_greater_than(100000)
    assert Money.zero().amount == 0


def test_country_normalizes_code():
    country = Country.of(" kr ")
    assert country.code == "KR"
    assert country.is_korea() and not country.is_us()
    assert Country.of("us").is_us()
    assert Country.of("US") == Country.of("us")


@pytest.mark.parametrize("bad", ["", "   ", "JP", "XX", None])
def test_country_rejects_blank_or_unsupported(bad):
    for _ in range(2):
        with pytest.raises(DomainValidationException) as ei:
            Country.of(bad)
        assert ei.value.field == "country_code"
