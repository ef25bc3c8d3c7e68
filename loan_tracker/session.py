"""Calculator session: the loan being edited plus its schedule and summary.

The session is a small state machine. Changing any parameter that affects the
amortization drops the current schedule and runs

    VALIDATING -> ERROR                      (invalid fields)
    VALIDATING -> COMPUTING -> READY         (schedule and summary rebuilt)
    VALIDATING -> COMPUTING -> ERROR         (unexpected failure)

Only ``READY`` carries a usable schedule. Payment changes (status, lock, bulk
status) go through :mod:`loan_tracker.payments` and refresh the summary
without re-running the engine.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional, Set

from .data_models import AmortizationSchedule, LoanParameters, LoanSummary, ScheduledPayment
from .engine import generate_amortization_schedule
from .payments import bulk_update_payments, toggle_payment_lock, update_payment_status
from .summary import calculate_loan_summary
from .utils import now

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Failed to calculate loan schedule"

# Parameters that feed the amortization; editing any of them recomputes it
SCHEDULE_FIELDS = ("principal", "interest_rate", "term_months", "start_date")

SaveCallback = Callable[[LoanParameters, List[ScheduledPayment]], None]


class SessionStatus(enum.Enum):
    VALIDATING = "validating"
    COMPUTING = "computing"
    READY = "ready"
    ERROR = "error"


def _is_number(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return False
    # NaN and infinities cannot be compared or amortized
    return Decimal(value).is_finite()


def validate_loan_parameters(params: LoanParameters) -> Dict[str, str]:
    """Return a field -> message mapping; empty when the loan is valid."""
    errors: Dict[str, str] = {}
    if not _is_number(params.principal) or params.principal <= 0:
        errors["principal"] = "Principal amount must be greater than 0"
    if not _is_number(params.interest_rate) or params.interest_rate < 0:
        errors["interest_rate"] = "Interest rate cannot be negative"
    if not isinstance(params.term_months, int) or isinstance(params.term_months, bool) or params.term_months <= 0:
        errors["term_months"] = "Loan term must be greater than 0"
    return errors


class CalculatorSession:
    """Owns the current loan, its schedule, summary and payment selection.

    ``on_save`` is called with the loan and its payments after every payment
    change, which lets a caller persist edits as they happen. ``on_status``
    receives every status transition.
    """

    def __init__(
        self,
        loan_details: Optional[LoanParameters] = None,
        *,
        on_save: Optional[SaveCallback] = None,
        on_status: Optional[Callable[[SessionStatus], None]] = None,
    ) -> None:
        self.loan_details = loan_details or LoanParameters()
        self.schedule: Optional[AmortizationSchedule] = None
        self.summary: Optional[LoanSummary] = None
        self.selected_payments: Set[int] = set()
        self.errors: Dict[str, str] = {}
        self.status = SessionStatus.VALIDATING
        self._on_save = on_save
        self._on_status = on_status
        self.recalculate()

    @property
    def is_calculating(self) -> bool:
        return self.status is SessionStatus.COMPUTING

    @property
    def is_ready(self) -> bool:
        return self.status is SessionStatus.READY

    def _set_status(self, status: SessionStatus) -> None:
        self.status = status
        if self._on_status:
            self._on_status(status)

    def _fail(self, errors: Dict[str, str]) -> bool:
        self.errors = errors
        self.schedule = None
        self.summary = None
        self._set_status(SessionStatus.ERROR)
        return False

    def recalculate(self) -> bool:
        """Validate the current loan and rebuild its schedule and summary."""
        self._set_status(SessionStatus.VALIDATING)
        errors = validate_loan_parameters(self.loan_details)
        if errors:
            logger.info("Loan %s failed validation: %s", self.loan_details.id, errors)
            return self._fail(errors)

        self.errors = {}
        self._set_status(SessionStatus.COMPUTING)
        try:
            schedule = generate_amortization_schedule(self.loan_details)
            summary = calculate_loan_summary(self.loan_details, schedule)
        except Exception:
            logger.exception("Calculation error for loan %s", self.loan_details.id)
            return self._fail({"general": GENERIC_ERROR})

        self.schedule = schedule
        self.summary = summary
        self._set_status(SessionStatus.READY)
        return True

    def update_loan_details(self, **changes) -> bool:
        """Apply edits to the loan; recompute if an amortization input changed.

        Returns whether the session is ``READY`` afterwards.
        """
        recompute = any(
            name in changes and changes[name] != getattr(self.loan_details, name)
            for name in SCHEDULE_FIELDS
        )
        self.loan_details = replace(self.loan_details, **{**changes, "updated_at": now()})
        if recompute:
            self.schedule = None
            self.summary = None
            return self.recalculate()
        return self.is_ready

    def _apply_payments(self, payments: List[ScheduledPayment]) -> None:
        self.schedule = replace(self.schedule, payments=payments)
        self.summary = calculate_loan_summary(self.loan_details, self.schedule)
        if self._on_save:
            self._on_save(self.loan_details, payments)

    def update_payment(
        self,
        payment_number: int,
        is_paid: bool,
        paid_date: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> bool:
        if self.schedule is None:
            return False
        self._apply_payments(
            update_payment_status(self.schedule.payments, payment_number, is_paid, paid_date, notes)
        )
        return True

    def toggle_lock(self, payment_number: int) -> bool:
        if self.schedule is None:
            return False
        self._apply_payments(toggle_payment_lock(self.schedule.payments, payment_number))
        return True

    def bulk_update_payment_status(
        self,
        payment_numbers: Optional[Iterable[int]],
        is_paid: bool,
        paid_date: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> bool:
        """Update every unlocked payment in ``payment_numbers``.

        ``None`` uses the current selection. The selection is cleared once
        the update has been applied.
        """
        if self.schedule is None:
            return False
        numbers = self.selected_payments if payment_numbers is None else payment_numbers
        self._apply_payments(
            bulk_update_payments(self.schedule.payments, numbers, is_paid, paid_date, notes)
        )
        self.selected_payments = set()
        return True

    def toggle_payment_selection(self, payment_number: int) -> None:
        if payment_number in self.selected_payments:
            self.selected_payments.discard(payment_number)
        else:
            self.selected_payments.add(payment_number)

    def clear_selection(self) -> None:
        self.selected_payments = set()

    def load_loan_data(self, loan_details: LoanParameters, payments: Iterable[ScheduledPayment]) -> bool:
        """Rebuild the schedule for a saved loan and restore its payment state.

        Amounts, dates and numbering always come from a fresh schedule; only
        ``is_paid``, ``paid_date``, ``is_locked`` and ``notes`` are taken from
        the saved payments, matched by payment number.
        """
        self.loan_details = loan_details
        self.selected_payments = set()
        if not self.recalculate():
            return False
        self._restore_payments(payments)
        return True

    @classmethod
    def from_stored(cls, stored, **kwargs) -> "CalculatorSession":
        """Build a session straight from a ``StoredLoan``.

        The schedule is computed once, for the stored parameters. Check
        ``is_ready`` on the result; invalid stored parameters leave it in
        ``ERROR``.
        """
        session = cls(stored.loan_details, **kwargs)
        if session.is_ready:
            session._restore_payments(stored.payments)
        return session

    def _restore_payments(self, payments: Iterable[ScheduledPayment]) -> None:
        saved = {p.payment_number: p for p in payments}
        merged = [
            replace(
                fresh,
                is_paid=saved[fresh.payment_number].is_paid,
                paid_date=saved[fresh.payment_number].paid_date,
                is_locked=saved[fresh.payment_number].is_locked,
                notes=saved[fresh.payment_number].notes,
            )
            if fresh.payment_number in saved
            else fresh
            for fresh in self.schedule.payments
        ]
        self.schedule = replace(self.schedule, payments=merged)
        self.summary = calculate_loan_summary(self.loan_details, self.schedule)

    def save(self, storage) -> LoanParameters:
        """Write the loan and its payments to a ``LoanStorage``."""
        payments = self.schedule.payments if self.schedule else []
        self.loan_details = storage.save_loan(self.loan_details, payments)
        return self.loan_details

    def load(self, storage, loan_id: str) -> bool:
        """Load a saved loan; returns False and keeps the current state if missing."""
        stored = storage.load_loan(loan_id)
        if stored is None:
            logger.warning("No stored loan with id %s", loan_id)
            return False
        return self.load_loan_data(stored.loan_details, stored.payments)
