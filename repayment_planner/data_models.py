"""Data models for the repayment planner.

This module defines dataclasses representing the different entities used by the
engine: daily cash flows, rate and engagement timeline entries, the ticks an
installment is divided into, and the overall schedule configuration. Using
dataclasses makes it easy to construct, inspect and serialize these structures.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Tuple

from .utils import ZERO


class RepaymentStyle(str, Enum):
    """How capital repayments are generated before the final calculation.

    ``manual`` keeps whatever repayments the caller posted. The other styles
    wipe every repayment and regenerate them.
    """

    MANUAL = "manual"
    LINEAR = "linear"
    ANNUITY = "annuity"
    BALLOON = "balloon"


@dataclass
class Flow:
    """Net cash movement of a single calendar day.

    Attributes
    ----------
    date: date
        The day of the flow. A ledger holds at most one flow per day.
    payment: Decimal
        Money disbursed to the borrower on ``date`` (never negative).
    repayment: Decimal
        Capital returned on ``date``. It may be negative when it carries a
        rounding correction.
    """

    date: date
    payment: Decimal = ZERO
    repayment: Decimal = ZERO

    @property
    def balance(self) -> Decimal:
        """Change of outstanding principal caused by this flow."""
        return self.payment - self.repayment


@dataclass(frozen=True)
class RateEntry:
    """An annual interest rate effective from ``date`` onwards."""

    date: date
    rate: Decimal


@dataclass(frozen=True)
class EngagementEntry:
    """Outstanding principal effective from ``date`` onwards."""

    date: date
    engagement: Decimal


@dataclass(frozen=True)
class Tick:
    """A group of days inside an installment sharing rate and engagement.

    Attributes
    ----------
    date: date
        First day on which this rate/engagement pair occurs in the span.
    annual_rate: Decimal
        Annual interest rate of the grouped days.
    engagement: Decimal
        Outstanding principal of the grouped days.
    days: int
        Number of days in the span carrying this pair. The days need not be
        contiguous.
    percentage: Decimal
        Share of the span covered by this tick; all ticks of a span sum to 1.
    """

    date: date
    annual_rate: Decimal
    engagement: Decimal
    days: int
    percentage: Decimal


@dataclass
class ScheduleConfig:
    """Configuration of a repayment schedule.

    This configuration collects all user inputs into a single object, making
    it easy to pass around and serialize. ``start`` is the disbursement date:
    the principal is paid out on that day and interest accrues from the day
    after.
    """

    amount: Decimal
    rate: Decimal  # annual rate as a fraction, 0.02 means 2 %
    start: date
    end: date
    granularity: str = "monthly"  # 'monthly', 'quarterly' or 'yearly'
    repayment_style: RepaymentStyle = RepaymentStyle.MANUAL
    first_repayment_date: Optional[date] = None
    daily_accrual: bool = False
    annuity_decimals: int = 2
    # Additional disbursements (tranches) and rate changes, as (date, value).
    payments: List[Tuple[date, Decimal]] = field(default_factory=list)
    rate_changes: List[Tuple[date, Decimal]] = field(default_factory=list)
