"""Shared fixtures for repayment planner tests.

Most tests use the same reference loan: 120 000 disbursed on 2019-12-31 at 2 %
a year, repaid over the twelve months of 2020.
"""

from __future__ import annotations

from datetime import date

import pytest

from repayment_planner.engine import ScheduleEngine

DISBURSED = date(2019, 12, 31)
YEAR_END = date(2020, 12, 31)


def make_engine(
    amount=120000,
    rate=0.02,
    start: date = DISBURSED,
    end: date = YEAR_END,
    granularity: str = "monthly",
) -> ScheduleEngine:
    """Create an engine without choosing a repayment style."""
    return ScheduleEngine(amount, rate, start, end, granularity)


@pytest.fixture
def engine() -> ScheduleEngine:
    return make_engine()


@pytest.fixture
def engine_factory():
    return make_engine
