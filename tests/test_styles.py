"""Tests for the repayment style generators."""

from datetime import date
from decimal import Decimal

import pytest

from repayment_planner.data_models import RepaymentStyle
from repayment_planner.ledger import FlowLedger
from repayment_planner.styles import (
    AnnuityStyle,
    LinearStyle,
    _calculate_annuity_payment,
    add_end_of_schedule_correction,
    generator_for,
)
from repayment_planner.utils import round_money


def capitals(engine):
    return [inst.capital for inst in engine.installments]


class TestAnnuityPayment:
    """The level installment formula."""

    def test_zero_rate_divides_evenly(self):
        assert _calculate_annuity_payment(Decimal(1200), Decimal(0), 12) == Decimal("100.00")

    def test_rounds_up_to_cents(self):
        assert _calculate_annuity_payment(Decimal(1000), Decimal(0), 3) == Decimal("333.34")

    def test_decimals(self):
        assert _calculate_annuity_payment(Decimal(1000), Decimal(0), 3, decimals=0) == Decimal("333")

    def test_payment_covers_principal_and_interest(self):
        payment = _calculate_annuity_payment(Decimal(120000), Decimal("0.02") / 12, 12)
        assert Decimal(10000) < payment < Decimal(10200)
        assert payment * 12 > Decimal(120000)

    def test_requires_positive_periods(self):
        with pytest.raises(ValueError):
            _calculate_annuity_payment(Decimal(1000), Decimal("0.01"), 0)


def test_end_of_schedule_correction():
    ledger = FlowLedger()
    ledger.add_payment(date(2020, 1, 1), 100)
    for day in (date(2020, 1, 31), date(2020, 2, 29), date(2020, 3, 31)):
        ledger.add_repayment(day, Decimal("33.33"))

    correction = add_end_of_schedule_correction(ledger, date(2020, 3, 31))

    assert correction == Decimal("0.01")
    assert ledger.get(date(2020, 3, 31)).repayment == Decimal("33.34")
    assert ledger.total_repayments() == ledger.total_payments()
    assert add_end_of_schedule_correction(ledger, date(2020, 3, 31)) == Decimal(0)


def test_generator_registry():
    assert isinstance(generator_for(RepaymentStyle.LINEAR), LinearStyle)
    annuity = generator_for(RepaymentStyle.ANNUITY, decimals=0)
    assert isinstance(annuity, AnnuityStyle)
    assert annuity.decimals == 0
    with pytest.raises(ValueError):
        generator_for(RepaymentStyle.MANUAL)


class TestLinear:
    """Equal capital parts."""

    def test_reference_loan(self, engine):
        engine.set_linear_style()
        engine.calc()
        assert capitals(engine) == [Decimal("10000.00")] * 12
        interests = [inst.interest for inst in engine.installments]
        assert interests[:3] == [Decimal("200.00"), Decimal("183.33"), Decimal("166.67")]
        assert interests[-1] == Decimal("16.67")
        assert engine.installments.sum_of_interest() == Decimal("1300.00")

    def test_rounding_goes_to_last_installment(self, engine_factory):
        engine = engine_factory(amount=100000)
        engine.set_linear_style()
        engine.calc()
        assert capitals(engine)[:11] == [Decimal("8333.33")] * 11
        assert capitals(engine)[-1] == Decimal("8333.37")

    def test_grace_period(self, engine):
        engine.set_first_repayment_date(date(2020, 6, 15))
        engine.set_linear_style()
        engine.calc()
        assert capitals(engine) == (
            [Decimal("0.00")] * 5 + [Decimal("17142.86")] * 6 + [Decimal("17142.84")]
        )

    def test_second_tranche(self, engine):
        engine.add_payment(date(2020, 7, 10), 60000)
        engine.set_linear_style()
        engine.calc()
        assert capitals(engine) == [Decimal("10000.00")] * 6 + [Decimal("20000.00")] * 6

    def test_regenerating_replaces_previous_repayments(self, engine):
        engine.set_linear_style()
        engine.set_linear_style()
        engine.calc()
        assert engine.installments.sum_of_capital() == Decimal("120000.00")


class TestBalloon:
    """Bullet repayment on the last day."""

    def test_reference_loan(self, engine):
        engine.set_balloon_style()
        engine.calc()
        assert capitals(engine) == [Decimal("0.00")] * 11 + [Decimal("120000.00")]
        assert {inst.interest for inst in engine.installments} == {Decimal("200.00")}
        assert engine.installments.sum_of_interest() == Decimal("2400.00")

    def test_yearly(self, engine_factory):
        engine = engine_factory(granularity="yearly")
        engine.set_balloon_style()
        engine.calc()
        assert len(engine.installments) == 1
        assert engine.installments[0].interest == Decimal("2400.00")
        assert engine.installments[0].capital == Decimal("120000.00")


class TestAnnuity:
    """Level installments."""

    def test_reference_loan(self, engine):
        engine.set_annuity_style()
        engine.calc()
        installments = engine.installments.installments
        wholes = {inst.whole for inst in installments[:11]}
        assert len(wholes) == 1
        interests = [inst.interest for inst in installments]
        capital = capitals(engine)
        assert all(a > b for a, b in zip(interests, interests[1:]))
        assert all(a < b for a, b in zip(capital, capital[1:]))
        assert engine.installments.sum_of_capital() == Decimal("120000.00")

    def test_whole_units(self, engine):
        engine.set_annuity_style(decimals=0)
        engine.calc()
        for inst in engine.installments.installments[:11]:
            assert inst.whole == inst.whole.to_integral_value()

    def test_zero_rate(self, engine_factory):
        engine = engine_factory(amount=1200, rate=0)
        engine.set_annuity_style()
        engine.calc()
        assert capitals(engine) == [Decimal("100.00")] * 12
        assert engine.installments.sum_of_interest() == Decimal("0.00")

    def test_second_tranche_resolves_installment(self, engine):
        engine.add_payment(date(2020, 7, 10), 60000)
        engine.set_annuity_style()
        engine.calc()
        installments = engine.installments.installments
        assert len({inst.whole for inst in installments[:6]}) == 1
        assert len({inst.whole for inst in installments[7:11]}) == 1
        assert installments[7].whole > installments[0].whole
        assert engine.installments.sum_of_capital() == Decimal("180000.00")

    def test_daily_accrual_with_grace_period(self, engine):
        engine.set_daily_accrual(True)
        engine.set_first_repayment_date(date(2020, 3, 15))
        engine.set_annuity_style()
        engine.calc()
        installments = engine.installments
        assert installments[0].capital == Decimal("0.00")
        assert installments[1].capital == Decimal("0.00")
        assert installments[0].interest == Decimal("203.28")
        assert installments[1].interest == Decimal("190.16")
        assert installments.sum_of_capital() == Decimal("120000.00")
        assert installments.first_capital_possible == Decimal(0)

    @pytest.mark.parametrize("granularity", ["monthly", "quarterly"])
    def test_daily_accrual_with_grace_until_last_day(self, engine_factory, granularity):
        engine = engine_factory(120000, 0.05, date(2021, 1, 10), date(2021, 12, 31), granularity)
        engine.set_daily_accrual(True)
        engine.set_first_repayment_date(engine.schedule_end)
        engine.set_annuity_style()
        engine.calc()
        installments = engine.installments
        assert all(inst.capital == Decimal("0.00") for inst in installments.installments[:-1])
        assert installments.sum_of_capital() == Decimal("120000.00")
        assert installments.sum_of_capital() == round_money(engine.ledger.total_repayments())
        assert installments.first_capital_possible == Decimal(0)


@pytest.mark.parametrize("style", ["linear", "annuity", "balloon"])
def test_unfunded_engine_gives_empty_schedule(engine_factory, style):
    engine = engine_factory(amount=0)
    engine.set_repayment_style(style)
    engine.calc()
    assert len(engine.installments) == 12
    assert all(inst.whole == Decimal("0.00") for inst in engine.installments)
    assert engine.ledger.total_repayments() == Decimal(0)
