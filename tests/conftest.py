"""Shared fixtures for the loan tracker tests.

Reference loan: $100,000 at 6% for 30 years, first payment 2024-01-01.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from loan_tracker.data_models import LoanParameters
from loan_tracker.engine import generate_amortization_schedule
from loan_tracker.storage import LoanStorage, MemoryStore


@pytest.fixture
def mortgage() -> LoanParameters:
    return LoanParameters(
        principal=Decimal("100000"),
        interest_rate=Decimal("6"),
        term_months=360,
        start_date=date(2024, 1, 1),
        description="House",
        loan_source="First Bank",
        id="mortgage",
        created_at=datetime(2024, 1, 1, 9, 0),
        updated_at=datetime(2024, 1, 1, 9, 0),
    )


@pytest.fixture
def interest_free() -> LoanParameters:
    return LoanParameters(
        principal=Decimal("12000"),
        interest_rate=Decimal("0"),
        term_months=12,
        start_date=date(2024, 1, 1),
        id="interest-free",
    )


@pytest.fixture
def short_loan() -> LoanParameters:
    return LoanParameters(
        principal=Decimal("3000"),
        interest_rate=Decimal("12"),
        term_months=3,
        start_date=date(2024, 1, 15),
        id="short",
    )


@pytest.fixture
def mortgage_schedule(mortgage):
    return generate_amortization_schedule(mortgage)


@pytest.fixture
def storage() -> LoanStorage:
    return LoanStorage(MemoryStore())
