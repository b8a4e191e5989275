"""Tests for the schedule engine and ``compute_schedule``."""

from datetime import date
from decimal import Decimal

import pytest

from repayment_planner.data_models import RepaymentStyle, ScheduleConfig
from repayment_planner.engine import ScheduleEngine, compute_schedule
from repayment_planner.exceptions import (
    InvalidDateRangeError,
    InvalidGranularityError,
    InvalidPrecisionError,
    NegativeAmountError,
    NegativeRateError,
    PeriodOutOfRangeError,
    RepaymentPlannerError,
)


class TestConstruction:
    """Engine set-up and validation."""

    def test_schedule_starts_after_disbursement(self, engine):
        assert engine.disbursement_date == date(2019, 12, 31)
        assert engine.schedule_start == date(2020, 1, 1)
        assert engine.first_repayment_date == date(2020, 1, 1)
        assert engine.ledger.total_payments() == Decimal(120000)
        assert engine.rate_at(date(2020, 1, 1)) == Decimal("0.02")
        assert engine.repayment_style is RepaymentStyle.MANUAL

    def test_accepts_iso_strings(self):
        engine = ScheduleEngine("5000", "0.03", "2020-03-31", "2020-09-30", "quarterly")
        assert engine.schedule_start == date(2020, 4, 1)
        assert len(engine.installments) == 2

    def test_empty_schedule(self):
        with pytest.raises(InvalidDateRangeError):
            ScheduleEngine(1000, 0.01, date(2020, 1, 1), date(2020, 1, 1))

    def test_invalid_input(self):
        with pytest.raises(NegativeAmountError):
            ScheduleEngine(-1, 0.01, date(2020, 1, 1), date(2020, 12, 31))
        with pytest.raises(NegativeRateError):
            ScheduleEngine(1000, -0.01, date(2020, 1, 1), date(2020, 12, 31))
        with pytest.raises(InvalidGranularityError):
            ScheduleEngine(1000, 0.01, date(2020, 1, 1), date(2020, 12, 31), "weekly")

    def test_errors_share_a_base_class(self):
        assert issubclass(PeriodOutOfRangeError, RepaymentPlannerError)
        assert issubclass(RepaymentPlannerError, ValueError)


class TestMutations:
    """Payments, rates and settings."""

    def test_flows_outside_window(self, engine):
        with pytest.raises(PeriodOutOfRangeError):
            engine.add_payment(date(2021, 1, 1), 100)
        with pytest.raises(PeriodOutOfRangeError):
            engine.add_repayment(date(2019, 12, 30), 100)
        with pytest.raises(PeriodOutOfRangeError):
            engine.add_rate(date(2021, 1, 1), 0.05)
        with pytest.raises(PeriodOutOfRangeError):
            engine.add_rate(date(2019, 12, 30), 0.05)
        engine.add_payment(date(2019, 12, 31), 100)
        assert engine.ledger.total_payments() == Decimal(120100)

    def test_first_repayment_date_must_be_in_schedule(self, engine):
        with pytest.raises(InvalidDateRangeError):
            engine.set_first_repayment_date(date(2019, 12, 31))
        engine.set_first_repayment_date("2020-04-01")
        assert engine.first_repayment_date == date(2020, 4, 1)

    def test_engagements_follow_ledger_after_rebuild(self, engine):
        engine.add_repayment(date(2020, 2, 15), 20000)
        engine.rebuild_engagements()
        assert engine.engagement_at(date(2020, 2, 15)) == Decimal(120000)
        assert engine.engagement_at(date(2020, 2, 16)) == Decimal(100000)
        ticks = engine.ticks_between("2020-02-01", "2020-02-29")
        assert [tick.days for tick in ticks] == [15, 14]

    @pytest.mark.parametrize("decimals", [-1, 11, 40])
    def test_annuity_decimals_out_of_range(self, engine, decimals):
        engine.set_linear_style()
        with pytest.raises(InvalidPrecisionError):
            engine.set_annuity_style(decimals=decimals)
        assert engine.repayment_style is RepaymentStyle.LINEAR
        assert engine.annuity_decimals == 2

    def test_switching_styles_regenerates(self, engine):
        engine.set_linear_style()
        engine.set_balloon_style()
        engine.calc()
        assert engine.repayment_style is RepaymentStyle.BALLOON
        assert engine.installments[0].capital == Decimal("0.00")
        assert engine.installments.last.capital == Decimal("120000.00")


@pytest.mark.parametrize("style", ["linear", "annuity", "balloon"])
@pytest.mark.parametrize("granularity", ["monthly", "quarterly", "yearly"])
@pytest.mark.parametrize("daily", [False, True])
def test_capital_matches_payments(engine_factory, style, granularity, daily):
    engine = engine_factory(granularity=granularity)
    engine.add_payment(date(2020, 5, 20), 30000)
    engine.set_daily_accrual(daily)
    engine.set_repayment_style(style)
    engine.calc()
    total = engine.installments.sum_of_capital()
    assert total == Decimal("150000.00")
    assert engine.ledger.total_repayments() == engine.ledger.total_payments()


@pytest.mark.parametrize("granularity, count", [("monthly", 12), ("quarterly", 4), ("yearly", 1)])
def test_installments_tile_schedule(engine_factory, granularity, count):
    engine = engine_factory(granularity=granularity)
    periods = [inst.period for inst in engine.installments]
    assert len(periods) == count
    assert periods[0].first_day == engine.schedule_start
    assert periods[-1].last_day == engine.schedule_end
    for previous, current in zip(periods, periods[1:]):
        assert current.first_day == previous.next_day


def test_quarterly_linear(engine_factory):
    engine = engine_factory(granularity="quarterly")
    engine.set_linear_style()
    engine.calc()
    assert [inst.capital for inst in engine.installments] == [Decimal("30000.00")] * 4
    assert engine.installments[0].interest == Decimal("600.00")


def test_calc_does_not_change_ledger(engine):
    engine.set_annuity_style()
    before = [(flow.date, flow.payment, flow.repayment) for flow in engine.ledger]
    engine.calc()
    engine.calc()
    after = [(flow.date, flow.payment, flow.repayment) for flow in engine.ledger]
    assert before == after


def test_summary(engine):
    engine.set_linear_style()
    engine.calc()
    summary = engine.summary()
    assert summary["schedule_start"] == "2020-01-01"
    assert summary["period_type"] == "month"
    assert summary["repayment_style"] == "linear"
    assert summary["installments"] == 12
    assert summary["total_interest"] == pytest.approx(1300.0)
    assert summary["total_capital"] == pytest.approx(120000.0)
    assert summary["total_repayments"] == pytest.approx(120000.0)
    assert summary["max_whole"] == pytest.approx(10200.0)


def test_compute_schedule_from_config():
    config = ScheduleConfig(
        amount=Decimal(120000),
        rate=Decimal("0.02"),
        start=date(2019, 12, 31),
        end=date(2020, 12, 31),
        repayment_style=RepaymentStyle.LINEAR,
        payments=[(date(2020, 7, 10), Decimal(60000))],
        rate_changes=[(date(2020, 7, 1), Decimal("0.03"))],
    )
    installments, summary = compute_schedule(config)
    assert len(installments) == 12
    assert installments[6].capital == Decimal("20000.00")
    assert installments[6].interest > Decimal("150.00")
    assert summary["total_capital"] == pytest.approx(180000.0)
    assert summary["repayment_style"] == "linear"
