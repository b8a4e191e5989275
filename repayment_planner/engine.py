"""Core calculation engine for the repayment planner.

This module wires the pieces together: a ``ScheduleEngine`` owns the flow
ledger, the rate and engagement timelines, the period granularity and the
installment collection. Callers fund the ledger, set rates, pick a repayment
style and then call ``calc()``; results are read back from the installments.
``compute_schedule`` does all of that from a ``ScheduleConfig`` and returns the
installments along with a summary dictionary.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Tuple, Union

from .data_models import RepaymentStyle, ScheduleConfig, Tick
from .exceptions import InvalidDateRangeError, InvalidPrecisionError, PeriodOutOfRangeError
from .installments import ComputationContext, Installment, InstallmentCollection
from .ledger import FlowLedger
from .periods import PeriodGranularity, is_within_schedule
from .styles import generator_for
from .timelines import EngagementTimeline, RateTimeline, ticks_between
from .utils import ONE_DAY, Number, as_date, round_money

logger = logging.getLogger(__name__)

DateLike = Union[date, str]

MAX_ANNUITY_DECIMALS = 10


class ScheduleEngine:
    """Repayment schedule of a single loan.

    Parameters
    ----------
    amount: Number
        Principal disbursed on ``start``.
    rate: Number
        Annual interest rate as a fraction (``0.02`` for 2 %), effective from
        ``start``.
    start: date
        Disbursement date. The schedule itself begins the day after, the
        first day on which the principal is outstanding.
    end: date
        Last day of the schedule.
    granularity: str
        ``monthly`` (default), ``quarterly`` or ``yearly``.
    """

    def __init__(
        self,
        amount: Number,
        rate: Number,
        start: DateLike,
        end: DateLike,
        granularity: str = "monthly",
    ) -> None:
        start = as_date(start)
        end = as_date(end)
        self.granularity = PeriodGranularity(granularity)
        self.disbursement_date = start
        self.schedule_start = start + ONE_DAY
        self.schedule_end = end
        if self.schedule_start > self.schedule_end:
            raise InvalidDateRangeError(
                f"Schedule start {self.schedule_start.isoformat()} is later than "
                f"its end {self.schedule_end.isoformat()}"
            )

        self.ledger = FlowLedger()
        self.rates = RateTimeline()
        self.engagements = EngagementTimeline()
        self.repayment_style = RepaymentStyle.MANUAL
        self.daily_accrual = False
        self.annuity_decimals = 2
        self._first_repayment_date: Optional[date] = None

        self.ledger.add_payment(start, amount)
        self.rates.add_rate(start, rate)
        self.installments = InstallmentCollection(
            self.schedule_start, self.schedule_end, self.granularity
        )

    @classmethod
    def from_config(cls, config: ScheduleConfig) -> "ScheduleEngine":
        """Build an engine and apply every setting of ``config`` (without ``calc``)."""
        engine = cls(config.amount, config.rate, config.start, config.end, config.granularity)
        for day, amount in sorted(config.payments, key=lambda item: item[0]):
            engine.add_payment(day, amount)
        for day, rate in sorted(config.rate_changes, key=lambda item: item[0]):
            engine.add_rate(day, rate)
        if config.first_repayment_date is not None:
            engine.set_first_repayment_date(config.first_repayment_date)
        engine.set_daily_accrual(config.daily_accrual)
        engine.set_repayment_style(config.repayment_style, decimals=config.annuity_decimals)
        return engine

    # Settings

    @property
    def first_repayment_date(self) -> date:
        """End of the grace period; the schedule start when none was set."""
        return self._first_repayment_date or self.schedule_start

    def set_first_repayment_date(self, day: DateLike) -> None:
        day = as_date(day)
        if not self.is_within_schedule(day):
            raise InvalidDateRangeError(
                f"First repayment date {day.isoformat()} is outside the schedule "
                f"{self.schedule_start.isoformat()} - {self.schedule_end.isoformat()}"
            )
        self._first_repayment_date = day

    def set_daily_accrual(self, daily_accrual: bool) -> None:
        self.daily_accrual = bool(daily_accrual)

    def is_within_schedule(self, day: date) -> bool:
        return is_within_schedule(day, self.schedule_start, self.schedule_end)

    # Ledger and rates

    def _check_flow_date(self, day: date) -> None:
        if not self.disbursement_date <= day <= self.schedule_end:
            raise PeriodOutOfRangeError(
                f"{day.isoformat()} is outside {self.disbursement_date.isoformat()}"
                f" - {self.schedule_end.isoformat()}"
            )

    def add_payment(
        self,
        day: DateLike,
        amount: Number,
        is_repayment: bool = False,
        overwrite: bool = False,
    ) -> None:
        day = as_date(day)
        self._check_flow_date(day)
        self.ledger.add_payment(day, amount, is_repayment=is_repayment, overwrite=overwrite)

    def add_repayment(self, day: DateLike, amount: Number, overwrite: bool = False) -> None:
        self.add_payment(day, amount, is_repayment=True, overwrite=overwrite)

    def add_rate(self, day: DateLike, rate: Number) -> None:
        day = as_date(day)
        self._check_flow_date(day)
        self.rates.add_rate(day, rate)

    def rate_at(self, day: date) -> Decimal:
        return self.rates.rate_at(day)

    def engagement_at(self, day: date) -> Decimal:
        return self.engagements.engagement_at(day)

    def rebuild_engagements(self) -> None:
        self.engagements.rebuild(self.ledger)

    def ticks_between(self, first: DateLike, last: DateLike) -> List[Tick]:
        return ticks_between(as_date(first), as_date(last), self.rates, self.engagements)

    # Repayment styles

    def set_repayment_style(
        self, style: Union[RepaymentStyle, str], decimals: Optional[int] = None
    ) -> None:
        """Regenerate repayments in ``style``; ``manual`` keeps the ledger as is."""
        style = RepaymentStyle(style)
        if decimals is not None:
            if not 0 <= decimals <= MAX_ANNUITY_DECIMALS:
                raise InvalidPrecisionError(
                    f"Annuity decimals must be between 0 and {MAX_ANNUITY_DECIMALS}; got {decimals}"
                )
            self.annuity_decimals = decimals
        if style is not RepaymentStyle.MANUAL:
            generator_for(style, self.annuity_decimals).apply(self)
        self.repayment_style = style

    def set_linear_style(self) -> None:
        self.set_repayment_style(RepaymentStyle.LINEAR)

    def set_annuity_style(self, decimals: int = 2) -> None:
        self.set_repayment_style(RepaymentStyle.ANNUITY, decimals=decimals)

    def set_balloon_style(self) -> None:
        self.set_repayment_style(RepaymentStyle.BALLOON)

    # Calculation

    def context(self) -> ComputationContext:
        return ComputationContext(
            schedule_start=self.schedule_start,
            schedule_end=self.schedule_end,
            first_repayment_date=self.first_repayment_date,
            repayment_style=self.repayment_style,
            daily_accrual=self.daily_accrual,
            ledger=self.ledger.copy(),
            rates=self.rates,
            engagements=self.engagements,
        )

    def calc(self) -> None:
        """Rebuild the engagement timeline and compute every installment."""
        self.rebuild_engagements()
        self.installments.calc(self.context())
        logger.info(
            "Calculated %s installments (%s, %s): interest %s, capital %s",
            len(self.installments),
            self.repayment_style.value,
            "daily" if self.daily_accrual else "period",
            self.installments.sum_of_interest(),
            self.installments.sum_of_capital(),
        )

    def summary(self) -> Dict[str, object]:
        """Aggregate figures of the last calculation."""
        wholes = [inst.whole for inst in self.installments]
        return {
            "schedule_start": self.schedule_start.isoformat(),
            "schedule_end": self.schedule_end.isoformat(),
            "first_repayment_date": self.first_repayment_date.isoformat(),
            "period_type": self.granularity.unit,
            "repayment_style": self.repayment_style.value,
            "daily_accrual": self.daily_accrual,
            "installments": len(self.installments),
            "total_payments": float(round_money(self.ledger.total_payments())),
            "total_repayments": float(round_money(self.ledger.total_repayments())),
            "total_interest": float(self.installments.sum_of_interest()),
            "total_capital": float(self.installments.sum_of_capital()),
            "total_whole": float(self.installments.sum_of_whole()),
            "max_whole": float(max(wholes)) if wholes else 0.0,
        }


def compute_schedule(config: ScheduleConfig) -> Tuple[List[Installment], Dict[str, object]]:
    """Compute the repayment schedule and summary for a configuration.

    Returns
    -------
    installments: List[Installment]
        One calculated installment per calendar period, in order.
    summary: Dict[str, object]
        Aggregate metrics including total interest, total capital and the
        highest installment.
    """
    engine = ScheduleEngine.from_config(config)
    engine.calc()
    return engine.installments.installments, engine.summary()
