"""Export a loan schedule to CSV or JSON files."""

from __future__ import annotations

import csv
import io
import json
import re
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Optional

from .config import EXPORT_VERSION
from .data_models import AmortizationSchedule, LoanParameters, LoanSummary
from .formatter import format_date
from .serialization import loan_parameters_to_dict, schedule_to_dict, summary_to_dict
from .utils import now

CSV_HEADER = [
    "Payment Number",
    "Due Date",
    "Monthly Payment",
    "Principal Amount",
    "Interest Amount",
    "Remaining Balance",
    "Status",
    "Paid Date",
    "Notes",
]


def schedule_to_csv(schedule: AmortizationSchedule) -> str:
    """Render one CSV row per payment, preceded by a header row."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for p in schedule.payments:
        writer.writerow(
            [
                p.payment_number,
                format_date(p.due_date),
                f"{p.total_payment:.2f}",
                f"{p.principal_amount:.2f}",
                f"{p.interest_amount:.2f}",
                f"{p.remaining_balance:.2f}",
                "Paid" if p.is_paid else "Unpaid",
                format_date(p.paid_date),
                p.notes or "",
            ]
        )
    return buffer.getvalue()


def build_export_document(
    loan: LoanParameters,
    schedule: Optional[AmortizationSchedule],
    summary: Optional[LoanSummary],
    exported_at: Optional[datetime] = None,
) -> Dict[str, Any]:
    return {
        "loanDetails": loan_parameters_to_dict(loan),
        "amortizationSchedule": schedule_to_dict(schedule) if schedule else None,
        "loanSummary": summary_to_dict(summary) if summary else None,
        "exportDate": (exported_at or now()).isoformat(),
        "exportVersion": EXPORT_VERSION,
    }


def export_to_csv(path: Path, schedule: AmortizationSchedule) -> None:
    """Export schedule to a CSV file."""
    with path.open("w", newline="", encoding="utf-8") as f:
        f.write(schedule_to_csv(schedule))


def export_to_json(
    path: Path,
    loan: LoanParameters,
    schedule: Optional[AmortizationSchedule],
    summary: Optional[LoanSummary],
) -> None:
    """Export loan, schedule and summary to a JSON file."""
    with path.open("w", encoding="utf-8") as f:
        json.dump(build_export_document(loan, schedule, summary), f, indent=2)


def default_export_filename(loan: LoanParameters, kind: str, today: Optional[date] = None) -> str:
    """Suggest a file name such as ``loan-schedule-car-2024-05-01.csv``."""
    if kind not in ("csv", "json"):
        raise ValueError("Export kind must be 'csv' or 'json'")
    name = re.sub(r"[^\w.-]+", "-", loan.description.strip()).strip("-") or "untitled"
    stamp = (today or date.today()).strftime("%Y-%m-%d")
    prefix = "loan-schedule" if kind == "csv" else "loan-data"
    return f"{prefix}-{name}-{stamp}.{kind}"
