"""Errors raised by the repayment planner engine.

Every error derives from ``RepaymentPlannerError`` which is itself a
``ValueError``, so callers that only care about invalid input can keep
catching ``ValueError``.
"""


class RepaymentPlannerError(ValueError):
    """Base class for all repayment planner errors."""

    pass


class NegativeAmountError(RepaymentPlannerError):
    """Raised when a payment (not a repayment) amount is negative."""

    pass


class NegativeRateError(RepaymentPlannerError):
    """Raised when a negative annual interest rate is added."""

    pass


class InvalidGranularityError(RepaymentPlannerError):
    """Raised for a period type other than monthly, quarterly or yearly."""

    pass


class PeriodOutOfRangeError(RepaymentPlannerError):
    """Raised when a date or period lies entirely outside the schedule."""

    pass


class InstallmentNotFoundError(RepaymentPlannerError):
    """Raised when no installment covers the requested date or label."""

    pass


class InvalidDateRangeError(RepaymentPlannerError):
    """Raised when the schedule starts after it ends or the grace date is outside it."""

    pass


class InvalidPrecisionError(RepaymentPlannerError):
    """Raised when annuity installments are to be rounded to an unsupported number of places."""

    pass
