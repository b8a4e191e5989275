"""Ledger of daily payments and repayments.

The ledger keeps one ``Flow`` per calendar day, always sorted by date. Flows
are created lazily the first time a payment or repayment lands on a day and
are never removed; regenerating repayments only zeroes them.
"""

from __future__ import annotations

import bisect
import logging
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Dict, Iterator, List, Optional

from .data_models import Flow
from .exceptions import NegativeAmountError
from .utils import ZERO, Number, to_decimal

logger = logging.getLogger(__name__)


class FlowLedger:
    """Date-keyed collection of flows kept in ascending date order."""

    def __init__(self) -> None:
        self._flows: Dict[date, Flow] = {}
        self._dates: List[date] = []

    def __iter__(self) -> Iterator[Flow]:
        for day in self._dates:
            yield self._flows[day]

    def __len__(self) -> int:
        return len(self._dates)

    def __contains__(self, day: object) -> bool:
        return day in self._flows

    def get(self, day: date) -> Optional[Flow]:
        return self._flows.get(day)

    @property
    def dates(self) -> List[date]:
        return list(self._dates)

    def add_payment(
        self,
        day: date,
        amount: Number,
        is_repayment: bool = False,
        overwrite: bool = False,
    ) -> None:
        """Post a payment (or, with ``is_repayment``, a repayment) on ``day``.

        A zero amount is ignored. Payments must not be negative; repayments
        may be, since they are also used to carry corrections. By default the
        amount is added to what the day already holds; ``overwrite`` replaces
        both the payment and the repayment of the day instead.
        """
        value = to_decimal(amount)
        if value == ZERO:
            return
        if value < ZERO and not is_repayment:
            raise NegativeAmountError(
                f"Payment amount must not be negative; got {value} on {day.isoformat()}"
            )

        payment, repayment = (ZERO, value) if is_repayment else (value, ZERO)
        flow = self._flows.get(day)
        if flow is None:
            flow = Flow(date=day)
            self._flows[day] = flow
            bisect.insort(self._dates, day)

        if overwrite:
            flow.payment = payment
            flow.repayment = repayment
        else:
            flow.payment += payment
            flow.repayment += repayment

    def add_repayment(self, day: date, amount: Number, overwrite: bool = False) -> None:
        self.add_payment(day, amount, is_repayment=True, overwrite=overwrite)

    def clear_repayments(self) -> None:
        """Zero the repayment of every flow; flows themselves stay."""
        for flow in self._flows.values():
            flow.repayment = ZERO
        logger.debug("Cleared repayments of %s flows", len(self._flows))

    def payment_flows(self) -> List[Flow]:
        """Flows carrying a non-zero payment, in date order."""
        return [flow for flow in self if flow.payment != ZERO]

    def repayments_between(self, first: date, last: date) -> Decimal:
        """Sum of repayments dated within ``[first, last]``."""
        lo = bisect.bisect_left(self._dates, first)
        hi = bisect.bisect_right(self._dates, last)
        return sum((self._flows[day].repayment for day in self._dates[lo:hi]), ZERO)

    def total_payments(self) -> Decimal:
        return sum((flow.payment for flow in self._flows.values()), ZERO)

    def total_repayments(self) -> Decimal:
        return sum((flow.repayment for flow in self._flows.values()), ZERO)

    def copy(self) -> "FlowLedger":
        """Return a ledger holding detached copies of every flow."""
        clone = FlowLedger()
        clone._flows = {day: replace(flow) for day, flow in self._flows.items()}
        clone._dates = list(self._dates)
        return clone
