"""Tests for date and money helpers."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from repayment_planner.utils import (
    add_months,
    as_date,
    ceil_cents,
    days_in_year,
    decimal_from_str,
    parse_date,
    round_money,
    to_decimal,
)


class TestDates:
    """Date parsing and stepping."""

    def test_parse_date(self):
        assert parse_date(" 2020-02-29 ") == date(2020, 2, 29)

    def test_parse_date_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_date("2020-02-30")

    def test_as_date_drops_time(self):
        assert as_date(datetime(2021, 3, 4, 15, 30)) == date(2021, 3, 4)
        assert as_date("2021-03-04") == date(2021, 3, 4)

    def test_add_months_clamps_day(self):
        assert add_months(date(2020, 1, 31), 1) == date(2020, 2, 29)
        assert add_months(date(2020, 11, 15), 3) == date(2021, 2, 15)

    @pytest.mark.parametrize(
        "year, expected", [(2019, 365), (2020, 366), (1900, 365), (2000, 366)]
    )
    def test_days_in_year(self, year, expected):
        assert days_in_year(date(year, 6, 1)) == expected


class TestMoney:
    """Decimal conversion and rounding."""

    def test_float_goes_through_its_repr(self):
        assert to_decimal(0.02) == Decimal("0.02")
        assert to_decimal(120000) == Decimal("120000")
        assert to_decimal("1,500.25") == Decimal("1500.25")

    def test_booleans_are_not_numbers(self):
        with pytest.raises(ValueError):
            to_decimal(True)

    def test_decimal_from_str_rejects_text(self):
        with pytest.raises(ValueError):
            decimal_from_str("abc")

    def test_round_half_away_from_zero(self):
        assert round_money(Decimal("2.675")) == Decimal("2.68")
        assert round_money(Decimal("-2.675")) == Decimal("-2.68")
        assert round_money(Decimal("2.5"), 0) == Decimal("3")

    def test_round_never_returns_negative_zero(self):
        assert str(round_money(Decimal("-0.001"))) == "0.00"

    def test_ceil_cents(self):
        assert ceil_cents(Decimal("10.001")) == Decimal("10.01")
        assert ceil_cents(Decimal("10.00")) == Decimal("10.00")
        assert ceil_cents(Decimal("-10.009")) == Decimal("-10.00")
