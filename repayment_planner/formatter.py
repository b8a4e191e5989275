"""Output helpers for the repayment planner.

This module renders a calculated ``ScheduleEngine`` as a fixed-width text
report, as CSV rows, or as plain dictionaries ready for JSON. The renderers
only read the engine; they never trigger a calculation.
"""

from __future__ import annotations

import csv
import io
from decimal import Decimal
from typing import Dict, List

from .engine import ScheduleEngine

RULE = "|-----|---------|------------|------------|------|---------------|---------------|---------------|"
CSV_HEADER = ["number", "period", "start", "stop", "length", "interests", "capital", "whole"]


def format_amount(value: Decimal, width: int = 13) -> str:
    """Two decimals, backtick thousands separator, right aligned."""
    return f"{value:,.2f}".replace(",", "`").rjust(width)


def render_schedule_text(engine: ScheduleEngine) -> str:
    """Return the full text report: settings, payments, rates, table and sums."""
    installments = engine.installments
    lines: List[str] = ["", ""]

    lines.append("Settings:")
    lines.append(f"  - first day:   {engine.schedule_start.isoformat()}")
    lines.append(f"  - grace till:  {engine.first_repayment_date.isoformat()}")
    lines.append(f"  - last day:    {engine.schedule_end.isoformat()}")
    lines.append(f"  - repayments:  {engine.repayment_style.value}")
    lines.append(f"  - daily calcs: {'yes' if engine.daily_accrual else 'no'}")
    lines.append(f"  - period type: {engine.granularity.unit}")

    lines.append("")
    lines.append("Payments:")
    for flow in engine.ledger.payment_flows():
        lines.append(f"  - {flow.date.isoformat()}: {format_amount(flow.payment)}")

    lines.append("")
    lines.append("Interests rates:")
    for entry in engine.rates:
        lines.append(f"  - {entry.date.isoformat()}: {format_amount(entry.rate * 100, 5)}%")

    lines.append("")
    lines.append(RULE)
    lines.append("| no  | period  | start      |     end    | days |   interests   |    capital    |     whole     |")
    lines.append(RULE)
    for installment in installments:
        period = installment.period
        lines.append(
            "| "
            + f"{installment.order:>3} | "
            + f"{period.label:<7} | "
            + f"{period.first_day.isoformat()} | "
            + f"{period.last_day.isoformat()} | "
            + f"{period.length:>4} | "
            + f"{format_amount(installment.interest)} | "
            + f"{format_amount(installment.capital)} | "
            + f"{format_amount(installment.whole)} |"
        )
    lines.append(RULE)

    lines.append("")
    lines.append("Sum of:")
    lines.append(f"  - capital:   {format_amount(installments.sum_of_capital())}")
    lines.append(f"  - interests: {format_amount(installments.sum_of_interest())}")
    lines.append("")
    lines.append("")
    return "\n".join(lines) + "\n"


def schedule_rows(engine: ScheduleEngine) -> List[List[str]]:
    """CSV-ready rows (header excluded), one per installment."""
    rows: List[List[str]] = []
    for installment in engine.installments:
        period = installment.period
        rows.append(
            [
                str(installment.order),
                period.label,
                period.first_day.isoformat(),
                period.last_day.isoformat(),
                str(period.length),
                str(installment.interest),
                str(installment.capital),
                str(installment.whole),
            ]
        )
    return rows


def render_schedule_csv(engine: ScheduleEngine) -> str:
    """Return the schedule as comma separated values with a header line."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    writer.writerows(schedule_rows(engine))
    return buffer.getvalue()


def serialize_installments(engine: ScheduleEngine) -> List[Dict[str, object]]:
    """Convert installments into JSON-serialisable dictionaries."""
    serialized = []
    for installment in engine.installments:
        period = installment.period
        serialized.append(
            {
                "order": installment.order,
                "period": period.label,
                "first_day": period.first_day.isoformat(),
                "last_day": period.last_day.isoformat(),
                "days": period.length,
                "interest": float(installment.interest),
                "capital": float(installment.capital),
                "whole": float(installment.whole),
            }
        )
    return serialized


def print_summary(summary: Dict[str, object]) -> None:
    """Print a summary of schedule totals in a human-readable format."""
    print("Summary")
    print("-" * 72)
    print(f"Schedule           : {summary['schedule_start']} - {summary['schedule_end']}")
    print(f"Grace till         : {summary['first_repayment_date']}")
    print(f"Repayment style    : {summary['repayment_style']}")
    print(f"Installments       : {summary['installments']} ({summary['period_type']})")
    print(f"Total payments     : {summary['total_payments']:.2f}")
    print(f"Total capital      : {summary['total_capital']:.2f}")
    print(f"Total interest     : {summary['total_interest']:.2f}")
    print(f"Total to repay     : {summary['total_whole']:.2f}")
    if summary.get("max_whole"):
        print(f"Highest installment: {summary['max_whole']:.2f}")
    print("-" * 72)


def print_schedule(engine: ScheduleEngine) -> None:
    print(render_schedule_text(engine), end="")
