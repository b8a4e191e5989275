"""Calendar segmentation of a schedule.

A ``PeriodGranularity`` turns the configured period type (monthly, quarterly or
yearly) into calendar arithmetic: where the segment containing a date starts
and ends, how it is labelled and how much of a year it represents. A
``CalendarPeriod`` is one such segment clipped to the schedule bounds; every
installment owns exactly one.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Tuple

from .exceptions import InvalidGranularityError, PeriodOutOfRangeError
from .utils import ONE, ONE_DAY, ZERO, add_months, days_in_year

# kind -> (unit, months per step, periods per year)
_GRANULARITIES = {
    "monthly": ("month", 1, 12),
    "quarterly": ("quarter", 3, 4),
    "yearly": ("year", 12, 1),
}


def is_within_schedule(day: date, schedule_start: date, schedule_end: date) -> bool:
    return schedule_start <= day <= schedule_end


class PeriodGranularity:
    """Period type used to cut the schedule into installments."""

    def __init__(self, kind: str = "monthly") -> None:
        normalized = (kind or "").strip().lower()
        if normalized not in _GRANULARITIES:
            raise InvalidGranularityError(
                f"Period type must be one of {', '.join(_GRANULARITIES)}; got {kind!r}"
            )
        unit, months, periods = _GRANULARITIES[normalized]
        self.kind = normalized
        self.unit = unit
        self.months_per_step = months
        self.periods_per_year = periods
        self.fraction_of_year = ONE / Decimal(periods)

    def __repr__(self) -> str:
        return f"PeriodGranularity({self.kind!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, PeriodGranularity) and other.kind == self.kind

    def __hash__(self) -> int:
        return hash(self.kind)

    def segment_bounds(self, any_date: date) -> Tuple[date, date]:
        """Return the first and last day of the full segment holding ``any_date``."""
        if self.unit == "month":
            first = date(any_date.year, any_date.month, 1)
        elif self.unit == "quarter":
            first_month = ((any_date.month - 1) // 3) * 3 + 1
            first = date(any_date.year, first_month, 1)
        else:
            first = date(any_date.year, 1, 1)
        last = self.step(first) - ONE_DAY
        return first, last

    def step(self, day: date) -> date:
        """Move ``day`` forward by one calendar unit."""
        return add_months(day, self.months_per_step)

    def label_for_date(self, any_date: date) -> str:
        """Return the segment label for a date, e.g. ``2020M02``, ``2020Q1``, ``2020Y``."""
        if self.unit == "month":
            return f"{any_date.year}M{any_date.month:02d}"
        if self.unit == "quarter":
            return f"{any_date.year}Q{(any_date.month - 1) // 3 + 1}"
        return f"{any_date.year}Y"


class CalendarPeriod:
    """The calendar segment containing a date, clipped to the schedule.

    Attributes
    ----------
    label: str
        Segment label such as ``2020M02``.
    first_day, last_day: date
        Clipped bounds, never outside ``[schedule_start, schedule_end]``.
    full_first_day, full_last_day: date
        Bounds of the whole, unclipped calendar segment.
    length: int
        Number of days in ``[first_day, last_day]``.
    fraction_of_calendar_period: Decimal
        Clipped span divided by the full span, both measured as the number of
        days between the first and the last day.
    fraction_of_year: Decimal
        Weight of a whole segment in a year (1/12, 1/4 or 1).
    """

    def __init__(
        self,
        schedule_start: date,
        schedule_end: date,
        granularity: PeriodGranularity,
        any_date: date,
    ) -> None:
        full_first, full_last = granularity.segment_bounds(any_date)
        first = max(schedule_start, full_first)
        last = min(schedule_end, full_last)
        if first > last:
            raise PeriodOutOfRangeError(
                f"Period containing {any_date.isoformat()} lies outside the schedule "
                f"{schedule_start.isoformat()} - {schedule_end.isoformat()}"
            )

        self.granularity = granularity
        self.label = granularity.label_for_date(full_first)
        self.first_day = first
        self.last_day = last
        self.full_first_day = full_first
        self.full_last_day = full_last
        self.length = (last - first).days + 1
        full_span = (full_last - full_first).days
        self.fraction_of_calendar_period = (
            Decimal((last - first).days) / Decimal(full_span) if full_span else ZERO
        )
        self.fraction_of_year = granularity.fraction_of_year

    def __repr__(self) -> str:
        return (
            f"CalendarPeriod({self.label}, {self.first_day.isoformat()}"
            f" - {self.last_day.isoformat()})"
        )

    @property
    def next_day(self) -> date:
        """Day following ``last_day``."""
        return self.last_day + ONE_DAY

    @property
    def days_in_year(self) -> int:
        """Day-count denominator for daily accrual in this period."""
        return days_in_year(self.first_day)

    def contains(self, day: date) -> bool:
        return self.first_day <= day <= self.last_day
