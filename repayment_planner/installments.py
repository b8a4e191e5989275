"""Installments: one schedule row per calendar period.

An installment knows its period and its position in the schedule. Its interest
and capital are (re)computed by ``Installment.calc`` from an explicit
``ComputationContext`` (ledger, timelines and settings) and an ``AccrualState``
carrying the schedule-wide daily-accrual drift from one installment to the next.
"""

from __future__ import annotations

import bisect
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, Iterator, List, Optional

from .data_models import RepaymentStyle, Tick
from .exceptions import InstallmentNotFoundError
from .ledger import FlowLedger
from .periods import CalendarPeriod, PeriodGranularity, is_within_schedule
from .timelines import EngagementTimeline, RateTimeline, ticks_between
from .utils import ZERO, round_money

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ComputationContext:
    """Everything an installment reads while computing itself."""

    schedule_start: date
    schedule_end: date
    first_repayment_date: date
    repayment_style: RepaymentStyle
    daily_accrual: bool
    ledger: FlowLedger
    rates: RateTimeline
    engagements: EngagementTimeline

    @property
    def reconciles_conventions(self) -> bool:
        """Annuity schedules accrued daily keep their level installment."""
        return self.daily_accrual and self.repayment_style is RepaymentStyle.ANNUITY

    def ticks_between(self, first: date, last: date) -> List[Tick]:
        return ticks_between(first, last, self.rates, self.engagements)


@dataclass
class AccrualState:
    """Schedule-wide accumulators of one calculation pass.

    Attributes
    ----------
    global_diff: Decimal
        Sum over all ticks of (period-convention interest - daily interest).
        It is taken off the capital of the final installment.
    first_capital_possible: Decimal
        Drift collected while no capital is repaid yet (grace period). It is
        moved from interest to capital by the first installment ending after
        the first repayment date, or by the final installment.
    """

    global_diff: Decimal = ZERO
    first_capital_possible: Decimal = ZERO

    def release_first_capital(self) -> Decimal:
        pending = self.first_capital_possible
        self.first_capital_possible = ZERO
        return pending


class Installment:
    """One row of the schedule."""

    def __init__(self, period: CalendarPeriod, order: int) -> None:
        self.period = period
        self.order = order
        self._interest = ZERO
        self._capital = ZERO

    def __repr__(self) -> str:
        return f"Installment({self.order}, {self.period.label}, {self.interest}, {self.capital})"

    @property
    def raw_interest(self) -> Decimal:
        return self._interest

    @property
    def raw_capital(self) -> Decimal:
        return self._capital

    @property
    def interest(self) -> Decimal:
        return round_money(self._interest)

    @property
    def capital(self) -> Decimal:
        return round_money(self._capital)

    @property
    def whole(self) -> Decimal:
        """Interest plus capital, each rounded to cents first."""
        return self.interest + self.capital

    def is_last(self, schedule_end: date) -> bool:
        return self.period.last_day == schedule_end

    def calc(self, context: ComputationContext, state: AccrualState) -> None:
        """Compute interest and capital of this installment.

        Interest accrues per tick, either on the period convention (annual rate
        times the period's fraction of a year) or on the daily convention
        (annual rate / days in year times the days in the period). Capital is
        the sum of repayments dated inside the period.

        For annuity schedules accrued daily, the installment amount was solved
        on the period convention, so the difference between both conventions
        is shifted into capital to keep the installment level. Until the first
        repayment date there is no capital to shift into and the difference is
        parked in ``state.first_capital_possible``, released by the first
        installment ending after that date or, failing one, by the last. The
        last installment gives back the total difference so capital still sums
        to the repayments.
        """
        period = self.period
        interest = ZERO
        capital = ZERO

        for tick in context.ticks_between(period.first_day, period.last_day):
            period_rate = tick.annual_rate * period.fraction_of_year * tick.percentage
            daily_rate = (
                tick.annual_rate / Decimal(period.days_in_year)
                * Decimal(period.length)
                * tick.percentage
            )

            if context.reconciles_conventions:
                non_daily = round_money(tick.engagement * period_rate)
                daily = round_money(tick.engagement * daily_rate)
                diff = non_daily - daily
                state.global_diff += diff
                interest += daily

                # Only the released grace amount comes off interest; diff goes to capital.
                if period.last_day > context.first_repayment_date:
                    pending = state.release_first_capital()
                    capital += diff + pending
                    interest -= pending
                else:
                    state.first_capital_possible += diff
            elif context.daily_accrual:
                interest += tick.engagement * daily_rate
            else:
                interest += tick.engagement * period_rate

        capital += context.ledger.repayments_between(period.first_day, period.last_day)

        if self.is_last(context.schedule_end):
            # A grace period running to the last day never released its drift.
            pending = state.release_first_capital()
            capital += pending - state.global_diff
            interest -= pending

        self._interest = interest
        self._capital = capital


class InstallmentCollection:
    """All installments of a schedule, in order, covering it without gaps."""

    def __init__(
        self,
        schedule_start: date,
        schedule_end: date,
        granularity: PeriodGranularity,
    ) -> None:
        self.schedule_start = schedule_start
        self.schedule_end = schedule_end
        self.granularity = granularity
        self.global_diff = ZERO
        self.first_capital_possible = ZERO
        self._installments: List[Installment] = []
        self._by_label: Dict[str, Installment] = {}

        anchor = schedule_start
        while is_within_schedule(anchor, schedule_start, schedule_end):
            period = CalendarPeriod(schedule_start, schedule_end, granularity, anchor)
            installment = Installment(period, order=len(self._installments) + 1)
            self._installments.append(installment)
            self._by_label[period.label] = installment
            anchor = granularity.step(period.full_first_day)

        self._first_days = [inst.period.first_day for inst in self._installments]
        logger.debug(
            "Created %s %s installments from %s to %s",
            len(self._installments),
            granularity.kind,
            schedule_start.isoformat(),
            schedule_end.isoformat(),
        )

    def __iter__(self) -> Iterator[Installment]:
        return iter(self._installments)

    def __len__(self) -> int:
        return len(self._installments)

    def __getitem__(self, index: int) -> Installment:
        return self._installments[index]

    @property
    def installments(self) -> List[Installment]:
        return list(self._installments)

    @property
    def last(self) -> Optional[Installment]:
        return self._installments[-1] if self._installments else None

    def installment_for_date(self, day: date) -> Installment:
        index = bisect.bisect_right(self._first_days, day) - 1
        if index >= 0 and self._installments[index].period.contains(day):
            return self._installments[index]
        raise InstallmentNotFoundError(f"No installment covers {day.isoformat()}")

    def installment_for_label(self, label: str) -> Installment:
        try:
            return self._by_label[label]
        except KeyError as exc:
            raise InstallmentNotFoundError(f"No installment for period {label}") from exc

    def starting_from(self, installment: Installment) -> List[Installment]:
        """The given installment and every one after it."""
        return self._installments[installment.order - 1 :]

    def calc(self, context: ComputationContext) -> AccrualState:
        """Compute every installment in order with fresh accumulators."""
        state = AccrualState()
        for installment in self._installments:
            installment.calc(context, state)
        self.global_diff = state.global_diff
        self.first_capital_possible = state.first_capital_possible
        return state

    def sum_of_interest(self) -> Decimal:
        return sum((inst.interest for inst in self._installments), ZERO)

    def sum_of_capital(self) -> Decimal:
        return sum((inst.capital for inst in self._installments), ZERO)

    def sum_of_whole(self) -> Decimal:
        return sum((inst.whole for inst in self._installments), ZERO)
