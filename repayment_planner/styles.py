"""Repayment style generators.

Each generator wipes every repayment in the engine's ledger and posts new
ones according to its style, then books the end-of-schedule correction so that
repayments add up to payments to the cent. Generators run before
``ScheduleEngine.calc``; the engine records which style produced the ledger.

Running a generator on a ledger without payments leaves an all-zero schedule.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Dict, Optional, Type

from .data_models import RepaymentStyle
from .installments import Installment
from .ledger import FlowLedger
from .utils import ONE, ONE_DAY, ZERO, ceil_cents, round_money

if TYPE_CHECKING:  # pragma: no cover
    from .engine import ScheduleEngine

logger = logging.getLogger(__name__)


def _calculate_annuity_payment(
    engagement: Decimal, rate_per_period: Decimal, periods: int, decimals: int = 2
) -> Decimal:
    """Return the level installment repaying ``engagement`` in ``periods``.

    The formula is:

        payment = E * (i * (1 + i)^n) / ((1 + i)^n - 1)

    where ``E`` is the engagement, ``i`` is the rate per period and ``n`` is
    the number of periods left. When the interest rate is zero, the payment
    simplifies to ``E / n``. The result is rounded up to whole cents and then
    to ``decimals`` places.
    """
    if periods <= 0:
        raise ValueError("Number of periods must be positive")
    if rate_per_period == ZERO:
        payment = engagement / Decimal(periods)
    else:
        factor = (ONE + rate_per_period) ** periods
        payment = engagement * (rate_per_period * factor) / (factor - ONE)
    return round_money(ceil_cents(payment), decimals)


def add_end_of_schedule_correction(ledger: FlowLedger, schedule_end: date) -> Decimal:
    """Post the rounding difference between payments and repayments on ``schedule_end``.

    Returns the posted amount, which may be negative or zero.
    """
    correction = round_money(ledger.total_payments() - ledger.total_repayments())
    if correction != ZERO:
        ledger.add_repayment(schedule_end, correction)
        logger.debug("End-of-schedule correction of %s on %s", correction, schedule_end.isoformat())
    return correction


class RepaymentStyleGenerator:
    """Base class: clear repayments, generate new ones, add the correction."""

    style: RepaymentStyle = RepaymentStyle.MANUAL

    def apply(self, engine: "ScheduleEngine") -> None:
        engine.ledger.clear_repayments()
        self.generate(engine)
        add_end_of_schedule_correction(engine.ledger, engine.schedule_end)
        logger.debug(
            "Applied %s repayments: payments %s, repayments %s",
            self.style.value,
            engine.ledger.total_payments(),
            engine.ledger.total_repayments(),
        )

    def generate(self, engine: "ScheduleEngine") -> None:
        raise NotImplementedError

    @staticmethod
    def eligible_installment(engine: "ScheduleEngine", flow_date: date) -> Installment:
        """Installment from which a payment dated ``flow_date`` starts being repaid."""
        first_day = max(flow_date, engine.first_repayment_date, engine.schedule_start)
        return engine.installments.installment_for_date(first_day)


class BalloonStyle(RepaymentStyleGenerator):
    """Everything is repaid on the last day by the end-of-schedule correction."""

    style = RepaymentStyle.BALLOON

    def generate(self, engine: "ScheduleEngine") -> None:
        pass


class LinearStyle(RepaymentStyleGenerator):
    """Equal capital parts for every payment over the installments left."""

    style = RepaymentStyle.LINEAR

    def generate(self, engine: "ScheduleEngine") -> None:
        installments = engine.installments
        for flow in engine.ledger.payment_flows():
            eligible = self.eligible_installment(engine, flow.date)
            periods_left = len(installments) - eligible.order + 1
            amount = round_money(flow.payment / Decimal(periods_left))
            logger.debug(
                "Linear: %s paid on %s repaid as %s x %s from %s",
                flow.payment,
                flow.date.isoformat(),
                periods_left,
                amount,
                eligible.period.label,
            )
            for installment in installments.starting_from(eligible):
                engine.ledger.add_repayment(installment.period.last_day, amount)


class AnnuityStyle(RepaymentStyleGenerator):
    """Level installments solved per payment until the next payment arrives."""

    style = RepaymentStyle.ANNUITY

    def __init__(self, decimals: int = 2) -> None:
        self.decimals = decimals

    def generate(self, engine: "ScheduleEngine") -> None:
        engine.rebuild_engagements()
        installments = engine.installments
        periods_per_year = Decimal(engine.granularity.periods_per_year)
        payment_flows = engine.ledger.payment_flows()

        for index, flow in enumerate(payment_flows):
            next_date: Optional[date] = None
            if index + 1 < len(payment_flows):
                next_date = payment_flows[index + 1].date

            eligible = self.eligible_installment(engine, flow.date)
            periods_left = len(installments) - eligible.order + 1
            rate = engine.rate_at(flow.date) / periods_per_year
            engagement = engine.engagement_at(flow.date + ONE_DAY)
            amount = _calculate_annuity_payment(engagement, rate, periods_left, self.decimals)
            logger.debug(
                "Annuity: engagement %s from %s repaid by %s x %s from %s",
                engagement,
                flow.date.isoformat(),
                periods_left,
                amount,
                eligible.period.label,
            )

            for installment in installments.starting_from(eligible):
                period = installment.period
                # The installment holding the next payment is served by that payment.
                if next_date is not None and period.last_day >= next_date:
                    break
                day = period.last_day
                interest = round_money(
                    engine.engagement_at(day)
                    * period.fraction_of_year
                    * period.fraction_of_calendar_period
                    * engine.rate_at(day)
                )
                engine.ledger.add_repayment(day, amount - interest)
                engine.rebuild_engagements()


STYLE_GENERATORS: Dict[RepaymentStyle, Type[RepaymentStyleGenerator]] = {
    RepaymentStyle.LINEAR: LinearStyle,
    RepaymentStyle.ANNUITY: AnnuityStyle,
    RepaymentStyle.BALLOON: BalloonStyle,
}


def generator_for(style: RepaymentStyle, decimals: int = 2) -> RepaymentStyleGenerator:
    """Return a generator instance for ``style`` (``manual`` has none)."""
    if style is RepaymentStyle.ANNUITY:
        return AnnuityStyle(decimals)
    try:
        return STYLE_GENERATORS[style]()
    except KeyError as exc:
        raise ValueError(f"No repayment generator for style {style.value!r}") from exc
