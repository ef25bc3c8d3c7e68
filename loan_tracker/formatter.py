"""Output helpers for the loan tracker.

This module provides simple functions to format money and percentages and to
render schedules, summaries and a printable report in plain text. We rely
only on built‑in printing and string formatting; the CLI decides where the
text goes.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional

from .data_models import AmortizationSchedule, LoanParameters, LoanSummary, ScheduledPayment
from .payments import status_label

CURRENCY_OPTIONS = {
    "USD": {"label": "US dollar", "prefix": "$", "suffix": ""},
    "EUR": {"label": "Euro", "prefix": "€", "suffix": ""},
    "GBP": {"label": "British pound", "prefix": "£", "suffix": ""},
    "PLN": {"label": "Polish złoty", "prefix": "", "suffix": " zł"},
}


def format_currency(amount, currency: str = "USD") -> str:
    """Format ``amount`` with thousands separators and two decimals.

    Unknown currency codes are shown as a ``"CODE "`` prefix.
    """
    meta = CURRENCY_OPTIONS.get(currency.upper(), {"prefix": f"{currency.upper()} ", "suffix": ""})
    value = Decimal(str(amount))
    sign = "-" if value < 0 else ""
    return f"{sign}{meta['prefix']}{abs(value):,.2f}{meta['suffix']}"


def format_percentage(value, decimals: int = 2) -> str:
    return f"{Decimal(str(value)):.{decimals}f}%"


def format_term(months: int) -> str:
    """Render a term as ``"30 years 0 months"``."""
    return f"{months // 12} years {months % 12} months"


def format_date(value: Optional[date]) -> str:
    return value.strftime("%Y-%m-%d") if value else ""


def summary_lines(summary: LoanSummary, currency: str = "USD") -> List[str]:
    return [
        f"Monthly payment    : {format_currency(summary.monthly_payment, currency)}",
        f"Total interest     : {format_currency(summary.total_interest, currency)}",
        f"Total amount       : {format_currency(summary.total_amount, currency)}",
        f"Paid amount        : {format_currency(summary.paid_amount, currency)}",
        f"Remaining balance  : {format_currency(summary.remaining_balance, currency)}",
        f"Payments paid      : {summary.paid_payments} of {summary.total_payments}",
        f"Progress           : {format_percentage(summary.progress_percentage)}",
        f"Completion date    : {format_date(summary.completion_date)}",
    ]


def print_summary(summary: LoanSummary, currency: str = "USD") -> None:
    """Print a summary of loan metrics in a human‑readable format."""
    print("Summary")
    print("-" * 72)
    for line in summary_lines(summary, currency):
        print(line)
    print("-" * 72)


def schedule_rows(payments: Iterable[ScheduledPayment]) -> List[List[str]]:
    rows = []
    for p in payments:
        rows.append(
            [
                str(p.payment_number),
                format_date(p.due_date),
                f"{p.total_payment:.2f}",
                f"{p.principal_amount:.2f}",
                f"{p.interest_amount:.2f}",
                f"{p.remaining_balance:.2f}",
                status_label(p),
                format_date(p.paid_date),
                p.notes or "",
            ]
        )
    return rows


SCHEDULE_HEADERS = ["No", "Due", "Payment", "Principal", "Interest", "Balance", "Status", "Paid", "Notes"]


def print_schedule(payments: Iterable[ScheduledPayment]) -> None:
    """Print the amortization schedule as a tab separated table."""
    print("\t".join(SCHEDULE_HEADERS))
    for row in schedule_rows(payments):
        print("\t".join(row))


def render_report(
    loan: LoanParameters,
    schedule: AmortizationSchedule,
    summary: LoanSummary,
    generated_on: date,
    currency: str = "USD",
) -> str:
    """Build a plain-text printable report for a loan."""
    title = loan.description or "Untitled Loan"
    lines = [
        "Loan Payment Schedule",
        title,
        f"Generated on {generated_on.strftime('%B %d, %Y')}",
        "=" * 72,
        "Loan Details",
        f"Principal          : {format_currency(loan.principal, currency)}",
        f"Interest rate      : {loan.interest_rate}%",
        f"Term               : {format_term(loan.term_months)}",
        f"Start date         : {loan.start_date.strftime('%B %d, %Y')}",
        f"Lender             : {loan.loan_source or 'Not specified'}",
        "-" * 72,
        "Payment Summary",
    ]
    lines.extend(summary_lines(summary, currency))
    lines.append("-" * 72)
    lines.append("\t".join(SCHEDULE_HEADERS))
    lines.extend("\t".join(row) for row in schedule_rows(schedule.payments))
    return "\n".join(lines) + "\n"
