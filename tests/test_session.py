from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal

import pytest

from loan_tracker import session as session_module
from loan_tracker.config import DEFAULT_PRINCIPAL, DEFAULT_TERM_MONTHS
from loan_tracker.data_models import StoredLoan
from loan_tracker.engine import generate_amortization_schedule
from loan_tracker.session import GENERIC_ERROR, CalculatorSession, SessionStatus

PAID_ON = datetime(2024, 2, 1)


@pytest.fixture
def session(mortgage):
    return CalculatorSession(mortgage)


class TestRecalculate:
    def test_defaults(self):
        session = CalculatorSession()
        assert session.is_ready
        assert session.loan_details.principal == DEFAULT_PRINCIPAL
        assert session.loan_details.interest_rate == Decimal("5.5")
        assert session.loan_details.term_months == DEFAULT_TERM_MONTHS
        assert len(session.schedule.payments) == 360

    def test_status_transitions(self, mortgage):
        seen = []
        session = CalculatorSession(mortgage, on_status=seen.append)
        assert seen == [SessionStatus.VALIDATING, SessionStatus.COMPUTING, SessionStatus.READY]
        assert session.summary.monthly_payment == Decimal("599.55")
        assert session.errors == {}

    def test_invalid_fields(self, session):
        seen = []
        session._on_status = seen.append
        ready = session.update_loan_details(principal=Decimal("0"), interest_rate=Decimal("-1"), term_months=0)
        assert not ready
        assert session.status is SessionStatus.ERROR
        assert set(session.errors) == {"principal", "interest_rate", "term_months"}
        assert session.schedule is None
        assert session.summary is None
        assert seen == [SessionStatus.VALIDATING, SessionStatus.ERROR]

    def test_single_invalid_field(self, session):
        session.update_loan_details(interest_rate=Decimal("-0.5"))
        assert session.errors == {"interest_rate": "Interest rate cannot be negative"}

    @pytest.mark.parametrize("value", [Decimal("NaN"), Decimal("Infinity"), float("nan"), float("-inf")])
    def test_non_finite_numbers_are_field_errors(self, mortgage, value):
        session = CalculatorSession(replace(mortgage, principal=value, interest_rate=value))
        assert session.status is SessionStatus.ERROR
        assert session.errors == {
            "principal": "Principal amount must be greater than 0",
            "interest_rate": "Interest rate cannot be negative",
        }
        assert session.schedule is None

    def test_recovers_after_fix(self, session):
        session.update_loan_details(principal=Decimal("-5"))
        assert session.update_loan_details(principal=Decimal("50000"))
        assert session.errors == {}
        assert session.summary.remaining_balance == Decimal("50000")

    def test_unexpected_failure(self, session, monkeypatch):
        def boom(params):
            raise ArithmeticError("overflow")

        monkeypatch.setattr(session_module, "generate_amortization_schedule", boom)
        assert not session.update_loan_details(term_months=120)
        assert session.status is SessionStatus.ERROR
        assert session.errors == {"general": GENERIC_ERROR}
        assert session.schedule is None

    def test_parameter_change_rebuilds_schedule(self, session):
        session.update_payment(1, True, PAID_ON)
        session.update_loan_details(term_months=180)
        assert len(session.schedule.payments) == 180
        assert session.summary.paid_payments == 0

    def test_description_change_keeps_schedule(self, session):
        session.update_payment(1, True, PAID_ON)
        before = session.loan_details.updated_at
        assert session.update_loan_details(description="Cabin")
        assert session.loan_details.description == "Cabin"
        assert session.loan_details.updated_at >= before
        assert session.summary.paid_payments == 1


class TestPaymentChanges:
    def test_update_payment(self, session):
        assert session.update_payment(1, True, PAID_ON, "first")
        assert session.schedule.payments[0].is_paid
        assert session.summary.paid_payments == 1
        assert session.summary.paid_amount == Decimal("599.55")

    def test_does_not_rerun_engine(self, session, monkeypatch):
        monkeypatch.setattr(session_module, "generate_amortization_schedule", None)
        session.update_payment(1, True, PAID_ON)
        session.toggle_lock(2)
        session.bulk_update_payment_status([3], True, PAID_ON)
        assert session.summary.paid_payments == 2

    def test_toggle_lock(self, session):
        assert session.toggle_lock(5)
        assert session.schedule.payments[4].is_locked
        assert not session.schedule.payments[4].is_paid

    def test_bulk_uses_and_clears_selection(self, session):
        session.toggle_lock(2)
        for number in (1, 2, 3):
            session.toggle_payment_selection(number)
        assert session.selected_payments == {1, 2, 3}
        assert session.bulk_update_payment_status(None, True, PAID_ON)
        assert [p.is_paid for p in session.schedule.payments[:3]] == [True, False, True]
        assert session.selected_payments == set()
        assert session.summary.paid_payments == 2

    def test_selection_toggle_and_clear(self, session):
        session.toggle_payment_selection(7)
        session.toggle_payment_selection(8)
        session.toggle_payment_selection(7)
        assert session.selected_payments == {8}
        session.clear_selection()
        assert session.selected_payments == set()

    def test_no_schedule_means_no_changes(self, session):
        session.update_loan_details(principal=Decimal("0"))
        assert not session.update_payment(1, True)
        assert not session.toggle_lock(1)
        assert not session.bulk_update_payment_status([1], True)

    def test_on_save_called_after_changes(self, mortgage):
        saved = []
        session = CalculatorSession(mortgage, on_save=lambda loan, payments: saved.append((loan.id, payments)))
        session.update_payment(1, True, PAID_ON)
        session.toggle_lock(1)
        assert len(saved) == 2
        assert saved[-1][0] == "mortgage"
        assert saved[-1][1][0].is_locked


class TestLoadAndSave:
    def test_load_merges_mutable_fields(self, session, mortgage):
        saved = generate_amortization_schedule(mortgage).payments
        saved[0] = replace(saved[0], is_paid=True, paid_date=PAID_ON, notes="ok", principal_amount=Decimal("1"))
        saved[1] = replace(saved[1], is_locked=True, due_date=date(1999, 1, 1))

        assert session.load_loan_data(mortgage, saved[:2])
        first, second = session.schedule.payments[:2]
        assert first.is_paid and first.paid_date == PAID_ON and first.notes == "ok"
        assert first.principal_amount == Decimal("99.55")
        assert second.is_locked
        assert second.due_date == date(2024, 2, 1)
        assert session.summary.paid_payments == 1

    def test_load_after_parameter_change(self, mortgage):
        saved = generate_amortization_schedule(mortgage).payments
        saved[0] = replace(saved[0], is_paid=True, paid_date=PAID_ON)
        shorter = replace(mortgage, term_months=120)
        session = CalculatorSession()
        assert session.load_loan_data(shorter, saved)
        assert len(session.schedule.payments) == 120
        assert session.schedule.payments[0].is_paid
        assert session.schedule.payments[-1].remaining_balance == Decimal("0")

    def test_load_clears_selection(self, session, mortgage):
        session.toggle_payment_selection(3)
        session.load_loan_data(mortgage, [])
        assert session.selected_payments == set()

    def test_load_invalid_saved_loan(self, session, mortgage):
        assert not session.load_loan_data(replace(mortgage, term_months=0), [])
        assert session.status is SessionStatus.ERROR

    def test_save_and_load_roundtrip(self, session, storage):
        session.update_payment(3, True, PAID_ON, "late")
        session.toggle_lock(3)
        session.save(storage)

        other = CalculatorSession()
        assert other.load(storage, "mortgage")
        payment = other.schedule.payments[2]
        assert payment.is_paid and payment.is_locked and payment.notes == "late"
        assert other.summary.paid_payments == 1

    def test_load_missing(self, session, storage):
        assert not session.load(storage, "nope")
        assert session.is_ready
        assert session.loan_details.id == "mortgage"

    def test_from_stored_computes_once(self, session, storage, monkeypatch):
        session.update_payment(2, True, PAID_ON)
        session.save(storage)

        calls = []

        def counting(params):
            calls.append(params.id)
            return generate_amortization_schedule(params)

        monkeypatch.setattr(session_module, "generate_amortization_schedule", counting)
        loaded = CalculatorSession.from_stored(storage.load_loan("mortgage"))
        assert calls == ["mortgage"]
        assert loaded.is_ready
        assert loaded.schedule.payments[1].is_paid
        assert loaded.summary.paid_payments == 1

    def test_from_stored_invalid_parameters(self, mortgage):
        stored = StoredLoan(loan_details=replace(mortgage, term_months=0), payments=[])
        loaded = CalculatorSession.from_stored(stored)
        assert loaded.status is SessionStatus.ERROR
        assert "term_months" in loaded.errors
