"""Conversion between the data models and JSON-friendly dictionaries.

The persisted and exported documents use camelCase keys, ISO-8601 strings for
dates and plain JSON numbers for money, so files written by earlier versions
of the tracker remain readable. Parsing turns the strings back into ``date``,
``datetime`` and ``Decimal`` values.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from .data_models import (
    AmortizationSchedule,
    LoanParameters,
    LoanSummary,
    ScheduledPayment,
    StoredLoan,
)


class LoanDataError(ValueError):
    """Raised when a stored or imported document cannot be parsed."""


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse_datetime(value: str) -> datetime:
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def _parse_date(value: str) -> date:
    return date.fromisoformat(str(value).strip()[:10])


def _decimal(value: Any) -> Decimal:
    return Decimal(str(value))


def loan_parameters_to_dict(params: LoanParameters) -> Dict[str, Any]:
    return {
        "id": params.id,
        "principal": float(params.principal),
        "interestRate": float(params.interest_rate),
        "termMonths": params.term_months,
        "startDate": _iso(params.start_date),
        "description": params.description,
        "loanSource": params.loan_source,
        "createdAt": _iso(params.created_at),
        "updatedAt": _iso(params.updated_at),
    }


def payment_to_dict(payment: ScheduledPayment) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "paymentNumber": payment.payment_number,
        "dueDate": _iso(payment.due_date),
        "principalAmount": float(payment.principal_amount),
        "interestAmount": float(payment.interest_amount),
        "totalPayment": float(payment.total_payment),
        "remainingBalance": float(payment.remaining_balance),
        "isPaid": payment.is_paid,
        "isLocked": payment.is_locked,
    }
    if payment.paid_date is not None:
        data["paidDate"] = _iso(payment.paid_date)
    if payment.notes is not None:
        data["notes"] = payment.notes
    return data


def schedule_to_dict(schedule: AmortizationSchedule) -> Dict[str, Any]:
    return {
        "monthlyPayment": float(schedule.monthly_payment),
        "totalInterest": float(schedule.total_interest),
        "totalAmount": float(schedule.total_amount),
        "payments": [payment_to_dict(p) for p in schedule.payments],
    }


def summary_to_dict(summary: LoanSummary) -> Dict[str, Any]:
    return {
        "monthlyPayment": float(summary.monthly_payment),
        "totalInterest": float(summary.total_interest),
        "totalAmount": float(summary.total_amount),
        "remainingBalance": float(summary.remaining_balance),
        "paidAmount": float(summary.paid_amount),
        "paidPayments": summary.paid_payments,
        "totalPayments": summary.total_payments,
        "completionDate": _iso(summary.completion_date),
        "progressPercentage": float(summary.progress_percentage),
    }


def stored_loan_to_dict(loan: StoredLoan) -> Dict[str, Any]:
    return {
        "loanDetails": loan_parameters_to_dict(loan.loan_details),
        "payments": [payment_to_dict(p) for p in loan.payments],
    }


def loan_parameters_from_dict(data: Dict[str, Any]) -> LoanParameters:
    try:
        return LoanParameters(
            id=str(data["id"]),
            principal=_decimal(data["principal"]),
            interest_rate=_decimal(data["interestRate"]),
            term_months=int(data["termMonths"]),
            start_date=_parse_date(data["startDate"]),
            description=data.get("description") or "",
            loan_source=data.get("loanSource") or "",
            created_at=_parse_datetime(data["createdAt"]),
            updated_at=_parse_datetime(data["updatedAt"]),
        )
    except (AttributeError, KeyError, TypeError, ValueError, ArithmeticError) as exc:
        raise LoanDataError(f"Invalid loan details: {exc}") from exc


def payment_from_dict(data: Dict[str, Any]) -> ScheduledPayment:
    try:
        paid_date = data.get("paidDate")
        return ScheduledPayment(
            payment_number=int(data["paymentNumber"]),
            due_date=_parse_date(data["dueDate"]),
            principal_amount=_decimal(data["principalAmount"]),
            interest_amount=_decimal(data["interestAmount"]),
            total_payment=_decimal(data["totalPayment"]),
            remaining_balance=_decimal(data["remainingBalance"]),
            is_paid=bool(data.get("isPaid", False)),
            paid_date=_parse_datetime(paid_date) if paid_date else None,
            is_locked=bool(data.get("isLocked", False)),
            notes=data.get("notes"),
        )
    except (AttributeError, KeyError, TypeError, ValueError, ArithmeticError) as exc:
        raise LoanDataError(f"Invalid payment: {exc}") from exc


def stored_loan_from_dict(data: Dict[str, Any]) -> StoredLoan:
    if not isinstance(data, dict) or "loanDetails" not in data or not isinstance(data.get("payments"), list):
        raise LoanDataError("Invalid data structure")
    return StoredLoan(
        loan_details=loan_parameters_from_dict(data["loanDetails"]),
        payments=[payment_from_dict(p) for p in data["payments"]],
    )


def stored_loans_from_dict(data: Any) -> Dict[str, StoredLoan]:
    if not isinstance(data, dict):
        raise LoanDataError("Stored loans must be a mapping of loan id to loan data")
    return {loan_id: stored_loan_from_dict(loan) for loan_id, loan in data.items()}


def stored_loans_to_dict(loans: Dict[str, StoredLoan]) -> Dict[str, Any]:
    return {loan_id: stored_loan_to_dict(loan) for loan_id, loan in loans.items()}
