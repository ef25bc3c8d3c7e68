"""Loan summary derived from a schedule's paid/unpaid state."""

from __future__ import annotations

from decimal import Decimal

from .data_models import AmortizationSchedule, LoanParameters, LoanSummary
from .utils import round2


def calculate_loan_summary(parameters: LoanParameters, schedule: AmortizationSchedule) -> LoanSummary:
    """Summarize progress over the schedule's current payments.

    The amortization itself is not recomputed. ``remaining_balance`` is the
    sum of the principal portions still unpaid, which differs from the
    running balance column when payments are marked paid out of order.
    ``completion_date`` is the due date of the last unpaid payment, or the
    loan start date once every payment is paid.
    """
    payments = schedule.payments
    paid = [p for p in payments if p.is_paid]
    unpaid = [p for p in payments if not p.is_paid]

    paid_amount = sum((p.total_payment for p in paid), Decimal("0"))
    remaining_balance = sum((p.principal_amount for p in unpaid), Decimal("0"))

    total = len(payments)
    if total:
        progress = round2(Decimal(100) * len(paid) / Decimal(total))
    else:
        progress = Decimal("0.00")

    completion_date = unpaid[-1].due_date if unpaid else parameters.start_date

    return LoanSummary(
        monthly_payment=schedule.monthly_payment,
        total_interest=schedule.total_interest,
        total_amount=schedule.total_amount,
        remaining_balance=round2(remaining_balance),
        paid_amount=round2(paid_amount),
        paid_payments=len(paid),
        total_payments=total,
        completion_date=completion_date,
        progress_percentage=progress,
    )
