"""Step-function timelines of interest rates and outstanding principal.

Both timelines answer "what value applies on this day" with the latest entry
effective on or before that day, defaulting to zero before the first entry.
The rate timeline is edited directly; the engagement timeline is always
rebuilt in full from the flow ledger.
"""

from __future__ import annotations

import bisect
import logging
from collections import OrderedDict
from datetime import date
from decimal import Decimal
from typing import Dict, Iterator, List, Tuple

from .data_models import EngagementEntry, RateEntry, Tick
from .exceptions import NegativeRateError
from .ledger import FlowLedger
from .utils import ONE, ONE_DAY, ZERO, Number, to_decimal

logger = logging.getLogger(__name__)


class RateTimeline:
    """Sorted annual rates; the last write for a date wins."""

    def __init__(self) -> None:
        self._dates: List[date] = []
        self._rates: Dict[date, Decimal] = {}

    def __iter__(self) -> Iterator[RateEntry]:
        for day in self._dates:
            yield RateEntry(date=day, rate=self._rates[day])

    def __len__(self) -> int:
        return len(self._dates)

    def add_rate(self, day: date, rate: Number) -> None:
        """Make ``rate`` effective from ``day`` onwards.

        A zero rate is not stored (zero is what applies before any entry) and
        a negative rate raises ``NegativeRateError``.
        """
        value = to_decimal(rate)
        if value < ZERO:
            raise NegativeRateError(f"Interest rate must not be negative; got {value}")
        if value == ZERO:
            return
        if day not in self._rates:
            bisect.insort(self._dates, day)
        self._rates[day] = value

    def rate_at(self, day: date) -> Decimal:
        index = bisect.bisect_right(self._dates, day)
        if index == 0:
            return ZERO
        return self._rates[self._dates[index - 1]]


class EngagementTimeline:
    """Outstanding principal over time, derived from a flow ledger.

    A flow dated D changes the engagement starting on D + 1.
    """

    def __init__(self) -> None:
        self._dates: List[date] = []
        self._values: List[Decimal] = []

    def __iter__(self) -> Iterator[EngagementEntry]:
        for day, value in zip(self._dates, self._values):
            yield EngagementEntry(date=day, engagement=value)

    def __len__(self) -> int:
        return len(self._dates)

    def rebuild(self, ledger: FlowLedger) -> None:
        """Recompute every entry from scratch by scanning ``ledger`` in date order."""
        cumulative: Dict[date, Decimal] = {}
        balance = ZERO
        for flow in ledger:
            balance += flow.balance
            effective = flow.date + ONE_DAY
            cumulative[effective] = cumulative.get(effective, ZERO) + balance
            # Repayments exceeding payments are reported, not rejected.
            if balance.quantize(Decimal("0.01")) < ZERO:
                logger.warning(
                    "Engagement turns negative (%s) from %s", balance, effective.isoformat()
                )
        self._dates = sorted(cumulative)
        self._values = [cumulative[day] for day in self._dates]
        logger.debug("Rebuilt engagement timeline with %s entries", len(self._dates))

    def engagement_at(self, day: date) -> Decimal:
        index = bisect.bisect_right(self._dates, day)
        if index == 0:
            return ZERO
        return self._values[index - 1]


def ticks_between(
    first: date,
    last: date,
    rates: RateTimeline,
    engagements: EngagementTimeline,
) -> List[Tick]:
    """Divide ``[first, last]`` into ticks of equal rate and engagement.

    Days are grouped by their (rate, engagement) pair over the whole span, so
    a pair recurring on non-adjacent days forms a single tick. Ticks are
    ordered by the first day of their pair. Percentages always add up to
    exactly one; any residual goes to the last tick.
    """
    span = (last - first).days + 1
    if span <= 0:
        return []

    groups: "OrderedDict[Tuple[Decimal, Decimal], List]" = OrderedDict()
    day = first
    while day <= last:
        key = (rates.rate_at(day), engagements.engagement_at(day))
        if key in groups:
            groups[key][1] += 1
        else:
            groups[key] = [day, 1]
        day += ONE_DAY

    ticks: List[Tick] = []
    total = ZERO
    for (rate, engagement), (first_seen, days) in groups.items():
        percentage = Decimal(days) / Decimal(span)
        total += percentage
        ticks.append(Tick(first_seen, rate, engagement, days, percentage))

    if total != ONE:
        closing = ticks[-1]
        ticks[-1] = Tick(
            closing.date,
            closing.annual_rate,
            closing.engagement,
            closing.days,
            closing.percentage + (ONE - total),
        )
    return ticks
