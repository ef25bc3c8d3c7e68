"""Payment status and lock changes.

All functions take a list of ``ScheduledPayment`` and return a new list in the
same order. Payments that are not addressed are passed through as the same
objects; addressed payments are replaced by modified copies, so the input list
is never mutated.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Iterable, List, Optional

from .data_models import ScheduledPayment
from .utils import now

STATUS_FILTERS = ("all", "paid", "unpaid", "locked")


def _with_status(
    payment: ScheduledPayment,
    is_paid: bool,
    paid_date: Optional[datetime],
    notes: Optional[str],
) -> ScheduledPayment:
    return replace(
        payment,
        is_paid=is_paid,
        paid_date=(paid_date or now()) if is_paid else None,
        notes=notes,
    )


def update_payment_status(
    payments: List[ScheduledPayment],
    payment_number: int,
    is_paid: bool,
    paid_date: Optional[datetime] = None,
    notes: Optional[str] = None,
) -> List[ScheduledPayment]:
    """Mark a single payment paid or unpaid.

    ``paid_date`` defaults to the current time when marking paid and is
    cleared when marking unpaid. ``notes`` replaces any existing note. The
    lock flag is not consulted here; only bulk updates honour it.
    """
    return [
        _with_status(p, is_paid, paid_date, notes) if p.payment_number == payment_number else p
        for p in payments
    ]


def toggle_payment_lock(payments: List[ScheduledPayment], payment_number: int) -> List[ScheduledPayment]:
    """Flip ``is_locked`` on one payment."""
    return [
        replace(p, is_locked=not p.is_locked) if p.payment_number == payment_number else p
        for p in payments
    ]


def bulk_update_payments(
    payments: List[ScheduledPayment],
    payment_numbers: Iterable[int],
    is_paid: bool,
    paid_date: Optional[datetime] = None,
    notes: Optional[str] = None,
) -> List[ScheduledPayment]:
    """Apply a status change to every selected payment that is not locked.

    Locked payments in the selection are left as they are and numbers that do
    not exist in ``payments`` are ignored.
    """
    selected = set(payment_numbers)
    return [
        _with_status(p, is_paid, paid_date, notes)
        if p.payment_number in selected and not p.is_locked
        else p
        for p in payments
    ]


def payment_status(payment: ScheduledPayment) -> str:
    state = "paid" if payment.is_paid else "unpaid"
    return f"locked-{state}" if payment.is_locked else state


def status_label(payment: ScheduledPayment) -> str:
    """Human readable status, e.g. ``"Locked - Paid"``."""
    label = "Paid" if payment.is_paid else "Unpaid"
    return f"Locked - {label}" if payment.is_locked else label


def filter_payments(payments: Iterable[ScheduledPayment], status: str = "all") -> List[ScheduledPayment]:
    if status not in STATUS_FILTERS:
        raise ValueError(f"Unknown payment filter: {status}")
    if status == "paid":
        return [p for p in payments if p.is_paid]
    if status == "unpaid":
        return [p for p in payments if not p.is_paid]
    if status == "locked":
        return [p for p in payments if p.is_locked]
    return list(payments)
