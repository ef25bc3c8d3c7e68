from datetime import datetime

import pytest

from loan_tracker import payments as payments_module
from loan_tracker.payments import (
    bulk_update_payments,
    filter_payments,
    payment_status,
    status_label,
    toggle_payment_lock,
    update_payment_status,
)

PAID_ON = datetime(2024, 2, 3, 12, 30)


@pytest.fixture
def payments(mortgage_schedule):
    return mortgage_schedule.payments[:5]


class TestUpdatePaymentStatus:
    def test_marks_only_the_addressed_payment(self, payments):
        updated = update_payment_status(payments, 2, True, PAID_ON, "online")
        assert updated[1].is_paid
        assert updated[1].paid_date == PAID_ON
        assert updated[1].notes == "online"
        for before, after in zip(payments, updated):
            assert after.principal_amount == before.principal_amount
            assert after.interest_amount == before.interest_amount
            assert after.due_date == before.due_date
        assert [p.is_paid for p in updated] == [False, True, False, False, False]

    def test_does_not_mutate_input(self, payments):
        update_payment_status(payments, 1, True, PAID_ON)
        assert not payments[0].is_paid

    def test_defaults_paid_date_to_now(self, payments, monkeypatch):
        monkeypatch.setattr(payments_module, "now", lambda: PAID_ON)
        updated = update_payment_status(payments, 1, True)
        assert updated[0].paid_date == PAID_ON

    def test_unpaid_clears_date_and_overwrites_notes(self, payments):
        paid = update_payment_status(payments, 1, True, PAID_ON, "cash")
        unpaid = update_payment_status(paid, 1, False)
        assert not unpaid[0].is_paid
        assert unpaid[0].paid_date is None
        assert unpaid[0].notes is None

    def test_ignores_lock(self, payments):
        locked = toggle_payment_lock(payments, 3)
        updated = update_payment_status(locked, 3, True, PAID_ON)
        assert updated[2].is_paid
        assert updated[2].is_locked

    def test_unknown_number_is_noop(self, payments):
        assert update_payment_status(payments, 99, True, PAID_ON) == payments


class TestTogglePaymentLock:
    def test_flips_lock_only(self, payments):
        paid = update_payment_status(payments, 1, True, PAID_ON)
        locked = toggle_payment_lock(paid, 1)
        assert locked[0].is_locked
        assert locked[0].is_paid
        assert not toggle_payment_lock(locked, 1)[0].is_locked

    def test_preserves_order(self, payments):
        locked = toggle_payment_lock(payments, 4)
        assert [p.payment_number for p in locked] == [1, 2, 3, 4, 5]


class TestBulkUpdatePayments:
    def test_skips_locked_payments(self, payments):
        locked = toggle_payment_lock(payments, 2)
        updated = bulk_update_payments(locked, [2, 3], True, PAID_ON, "batch")
        assert not updated[1].is_paid
        assert updated[1].notes is None
        assert updated[2].is_paid
        assert updated[2].notes == "batch"

    def test_ignores_unknown_numbers(self, payments):
        updated = bulk_update_payments(payments, [1, 42], True, PAID_ON)
        assert [p.is_paid for p in updated] == [True, False, False, False, False]

    def test_bulk_unpay(self, payments):
        paid = bulk_update_payments(payments, [1, 2, 3], True, PAID_ON)
        updated = bulk_update_payments(paid, [1, 2], False, PAID_ON)
        assert [p.is_paid for p in updated] == [False, False, True, False, False]
        assert updated[0].paid_date is None


class TestStatusHelpers:
    def test_status_and_label(self, payments):
        paid = update_payment_status(payments, 1, True, PAID_ON)
        marked = toggle_payment_lock(toggle_payment_lock(paid, 1), 2)
        assert payment_status(marked[0]) == "locked-paid"
        assert status_label(marked[0]) == "Locked - Paid"
        assert payment_status(marked[1]) == "locked-unpaid"
        assert status_label(marked[1]) == "Locked - Unpaid"
        assert payment_status(marked[2]) == "unpaid"
        assert status_label(marked[2]) == "Unpaid"

    def test_filter(self, payments):
        marked = toggle_payment_lock(update_payment_status(payments, 1, True, PAID_ON), 5)
        assert [p.payment_number for p in filter_payments(marked, "paid")] == [1]
        assert [p.payment_number for p in filter_payments(marked, "unpaid")] == [2, 3, 4, 5]
        assert [p.payment_number for p in filter_payments(marked, "locked")] == [5]
        assert len(filter_payments(marked)) == 5

    def test_unknown_filter(self, payments):
        with pytest.raises(ValueError):
            filter_payments(payments, "overdue")
