"""Settings for the loan tracker.

Defaults live here as module constants. Deployment specific values (where the
stored loans are kept, how verbose logging is) are read from environment
variables so the command-line tool can be pointed at another store without
code changes.
"""

from __future__ import annotations

import logging
import os
from decimal import Decimal

# Loan defaults used when a new calculator session starts
DEFAULT_PRINCIPAL = Decimal("100000")
DEFAULT_INTEREST_RATE = Decimal("5.5")
DEFAULT_TERM_MONTHS = 360

# Key under which the whole stored-loans document is kept
DEFAULT_STORAGE_KEY = "loanCalculatorData"
DEFAULT_STORE_URL = "sqlite:///loan_tracker.sqlite3"

EXPORT_VERSION = "1.0"

# Limit schedule length printed to avoid flooding the terminal
DEFAULT_MAX_ROWS = 120


def store_url() -> str:
    return os.environ.get("LOAN_TRACKER_STORE_URL", DEFAULT_STORE_URL)


def storage_key() -> str:
    return os.environ.get("LOAN_TRACKER_STORAGE_KEY", DEFAULT_STORAGE_KEY)


def max_rows() -> int:
    value = os.environ.get("LOAN_TRACKER_MAX_ROWS")
    try:
        return int(value) if value else DEFAULT_MAX_ROWS
    except ValueError:
        return DEFAULT_MAX_ROWS


def configure_logging(level: str | None = None) -> None:
    """Configure root logging from ``level`` or ``LOAN_TRACKER_LOG_LEVEL``."""
    name = (level or os.environ.get("LOAN_TRACKER_LOG_LEVEL", "WARNING")).upper()
    logging.basicConfig(
        level=getattr(logging, name, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
