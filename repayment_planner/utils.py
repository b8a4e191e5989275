"""Utility functions for the repayment planner.

This module provides helpers for parsing user input into Python data types,
for stepping through calendar dates and for the money arithmetic shared by the
engine: converting numbers to ``Decimal``, rounding to cents and taking the
cent ceiling used by annuity installments. It relies on Python's ``datetime``
and ``decimal`` modules only.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from decimal import ROUND_CEILING, ROUND_HALF_UP, Decimal, getcontext
from typing import Union

getcontext().prec = 28  # increase decimal precision to avoid rounding errors

Number = Union[Decimal, int, float, str]

ZERO = Decimal("0")
ONE = Decimal("1")
CENT = Decimal("0.01")
ONE_DAY = timedelta(days=1)


def parse_date(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` string into a ``date`` object.

    Parameters
    ----------
    value: str
        A string in the form ``"YYYY-MM-DD"``. Surrounding whitespace is
        ignored.

    Returns
    -------
    date
        The parsed calendar date.

    Raises
    ------
    ValueError
        If the string is not a valid date.
    """
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except Exception as exc:
        raise ValueError(f"Invalid date string: {value}") from exc


def as_date(value: Union[date, datetime, str]) -> date:
    """Return ``value`` as a plain ``date`` (time of day is dropped)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parse_date(value)


def add_months(dt: date, months: int) -> date:
    """Return a new date a number of months after ``dt``.

    The day of the month is clamped to the last valid day if needed (e.g.,
    adding one month to Jan 31 yields Feb 28 or 29).
    """
    year = dt.year + (dt.month - 1 + months) // 12
    month = (dt.month - 1 + months) % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def days_in_year(dt: date) -> int:
    """Return 365 or 366 depending on whether the year of ``dt`` is leap."""
    return 366 if calendar.isleap(dt.year) else 365


def decimal_from_str(value: str) -> Decimal:
    """Convert a numeric string into a ``Decimal``.

    The function strips any commas and handles both integer and float-like
    strings. It raises ``ValueError`` if conversion fails.
    """
    try:
        cleaned = value.replace(",", "").strip()
        return Decimal(cleaned)
    except Exception as exc:
        raise ValueError(f"Invalid numeric value: {value}") from exc


def to_decimal(value: Number) -> Decimal:
    """Convert an int, float, string or Decimal into a ``Decimal``.

    Floats go through their shortest string representation so that ``0.02``
    becomes ``Decimal("0.02")`` rather than its binary expansion.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Invalid numeric value: {value!r}")
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(repr(value))
    return decimal_from_str(str(value))


def round_money(value: Number, places: int = 2) -> Decimal:
    """Round half away from zero to ``places`` decimal places."""
    exponent = ONE.scaleb(-places)
    # Adding zero turns a negative zero result into a plain zero.
    return to_decimal(value).quantize(exponent, rounding=ROUND_HALF_UP) + ZERO


def ceil_cents(value: Number) -> Decimal:
    """Round ``value`` up (towards positive infinity) to whole cents."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_CEILING)
