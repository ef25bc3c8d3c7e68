"""Core calculation engine for the loan tracker.

This module implements the financial logic required to build a standard
fixed-payment (annuity) amortization schedule. Results are returned as an
``AmortizationSchedule`` holding one ``ScheduledPayment`` per month together
with the schedule totals.

The engine does not validate its input beyond what is needed to avoid a
division by zero; checking user input is the calculator session's job.
"""

from __future__ import annotations

from decimal import Decimal, getcontext
from typing import List

from .data_models import AmortizationSchedule, LoanParameters, ScheduledPayment
from .utils import CENT, add_months, round2

getcontext().prec = 28  # increase precision for financial calculations


def _to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def monthly_rate(annual_rate) -> Decimal:
    """Convert an annual percentage rate into a monthly decimal rate."""
    return _to_decimal(annual_rate) / Decimal(100) / Decimal(12)


def calculate_monthly_payment(principal, annual_rate, term_months: int) -> Decimal:
    """Return the unrounded fixed monthly payment for a loan.

    The formula is:

        payment = P * (r * (1 + r)^n) / ((1 + r)^n - 1)

    where ``P`` is the principal, ``r`` is the monthly interest rate and
    ``n`` is the number of payments. When the interest rate is zero, the
    payment simplifies to ``P / n``.
    """
    if term_months <= 0:
        raise ValueError("Term must be positive")
    principal = _to_decimal(principal)
    rate = monthly_rate(annual_rate)
    if rate == 0:
        return principal / Decimal(term_months)
    factor = (1 + rate) ** term_months
    return principal * (rate * factor) / (factor - 1)


def generate_amortization_schedule(parameters: LoanParameters) -> AmortizationSchedule:
    """Compute the amortization schedule for ``parameters``.

    Every amount is rounded to cents where it is computed: interest accrues on
    the cent balance, the principal portion is the rounded installment minus
    that interest, and the balance is reduced by the principal portion. The
    final installment takes whatever balance is left, so the principal
    portions add up to the principal and the last balance is exactly zero.

    Parameters
    ----------
    parameters: LoanParameters
        The loan to amortize. Only ``principal``, ``interest_rate``,
        ``term_months`` and ``start_date`` are read.

    Returns
    -------
    AmortizationSchedule
        Payments numbered ``1..term_months``, all unpaid and unlocked.
    """
    term = parameters.term_months
    rate = monthly_rate(parameters.interest_rate)
    payment = round2(calculate_monthly_payment(parameters.principal, parameters.interest_rate, term))

    balance = round2(_to_decimal(parameters.principal))
    financed = balance
    total_interest = Decimal("0")
    payments: List[ScheduledPayment] = []

    for number in range(1, term + 1):
        interest = round2(balance * rate)
        if number == term:
            principal_part = balance
        else:
            principal_part = min(payment - interest, balance)
        if principal_part < 0:
            # interest exceeds the installment; nothing goes to principal
            principal_part = Decimal("0.00")

        balance -= principal_part
        # Clamp rounding drift so the running balance never goes below a cent
        if balance < CENT:
            balance = Decimal("0.00")
        total_interest += interest

        payments.append(
            ScheduledPayment(
                payment_number=number,
                due_date=add_months(parameters.start_date, number - 1),
                principal_amount=principal_part,
                interest_amount=interest,
                total_payment=principal_part + interest,
                remaining_balance=balance,
            )
        )

    return AmortizationSchedule(
        monthly_payment=payment,
        total_interest=round2(total_interest),
        total_amount=round2(financed + total_interest),
        payments=payments,
    )
