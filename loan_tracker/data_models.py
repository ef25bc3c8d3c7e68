"""Data models for the loan tracker.

This module defines dataclasses representing the entities used by the tracker:
the loan parameters entered by the user, the individual scheduled payments,
the amortization schedule that owns them and the derived loan summary. Using
dataclasses makes it easy to construct, inspect, copy and serialize these
structures.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import uuid4

from .config import DEFAULT_INTEREST_RATE, DEFAULT_PRINCIPAL, DEFAULT_TERM_MONTHS


def _new_loan_id() -> str:
    return uuid4().hex


@dataclass
class LoanParameters:
    """User inputs describing a single loan.

    Attributes
    ----------
    principal: Decimal
        The borrowed amount in currency units.
    interest_rate: Decimal
        Annual nominal interest rate in percent (``5.5`` means 5.5 %).
    term_months: int
        Number of monthly payments.
    start_date: date
        Due date of the first payment.
    description, loan_source: str
        Free text shown in reports and used in export file names.
    """

    principal: Decimal = DEFAULT_PRINCIPAL
    interest_rate: Decimal = DEFAULT_INTEREST_RATE
    term_months: int = DEFAULT_TERM_MONTHS
    start_date: date = field(default_factory=date.today)
    description: str = ""
    loan_source: str = ""
    id: str = field(default_factory=_new_loan_id)
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)


@dataclass
class ScheduledPayment:
    """One installment of an amortization schedule.

    The amounts, due date and payment number are fixed when the schedule is
    generated. Only ``is_paid``, ``paid_date``, ``is_locked`` and ``notes``
    change afterwards.
    """

    payment_number: int
    due_date: date
    principal_amount: Decimal
    interest_amount: Decimal
    total_payment: Decimal
    remaining_balance: Decimal
    is_paid: bool = False
    paid_date: Optional[datetime] = None
    is_locked: bool = False
    notes: Optional[str] = None


@dataclass
class AmortizationSchedule:
    """Ordered payments plus the schedule level aggregates."""

    monthly_payment: Decimal
    total_interest: Decimal
    total_amount: Decimal
    payments: List[ScheduledPayment]


@dataclass
class LoanSummary:
    """Progress and cost figures derived from a schedule's paid state."""

    monthly_payment: Decimal
    total_interest: Decimal
    total_amount: Decimal
    remaining_balance: Decimal
    paid_amount: Decimal
    paid_payments: int
    total_payments: int
    completion_date: date
    progress_percentage: Decimal


@dataclass
class StoredLoan:
    loan_details: LoanParameters
    payments: List[ScheduledPayment]
