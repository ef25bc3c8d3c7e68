"""Command‑line interface for the loan tracker.

This module uses the ``click`` library to implement a multi‑command interface.
Users can compute amortization schedules and summaries for ad-hoc loans, save
loans to the configured store, mark scheduled payments paid or unpaid, lock
them against bulk changes and export the results to CSV or JSON files.
"""

from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from pathlib import Path
from typing import Optional, Tuple

import click

from . import config
from .data_models import LoanParameters
from .export import default_export_filename, export_to_csv, export_to_json
from .formatter import format_currency, format_percentage, print_schedule, print_summary, render_report
from .payments import STATUS_FILTERS, filter_payments
from .session import CalculatorSession
from .storage import LoanStorage, create_store_from_env
from .utils import parse_amount, parse_date


def _parse_start_date(value: Optional[str]) -> date:
    if not value:
        return date.today()
    try:
        return parse_date(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc))


def _parse_paid_date(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.combine(parse_date(value), time())
    except ValueError as exc:
        raise click.BadParameter(str(exc))


def build_loan_from_options(
    principal: str,
    rate: float,
    term: int,
    start_date: Optional[str],
    description: str = "",
    source: str = "",
) -> LoanParameters:
    try:
        principal_value = parse_amount(principal)
    except ValueError as exc:
        raise click.BadParameter(str(exc))
    return LoanParameters(
        principal=principal_value,
        interest_rate=Decimal(str(rate)),
        term_months=term,
        start_date=_parse_start_date(start_date),
        description=description,
        loan_source=source,
    )


def _ready_session(loan: LoanParameters) -> CalculatorSession:
    session = CalculatorSession(loan)
    if not session.is_ready:
        messages = "; ".join(f"{field}: {msg}" for field, msg in session.errors.items())
        raise click.ClickException(messages)
    return session


def _storage(ctx: click.Context) -> LoanStorage:
    return ctx.obj["storage"]


def _stored_session(storage: LoanStorage, loan_id: str) -> CalculatorSession:
    stored = storage.load_loan(loan_id)
    if stored is None:
        raise click.ClickException(f"Loan '{loan_id}' not found")
    # Payment edits are written back to the store as they happen
    session = CalculatorSession.from_stored(
        stored, on_save=lambda loan, payments: storage.update_payments(loan.id, payments)
    )
    if not session.is_ready:
        raise click.ClickException(f"Loan '{loan_id}' could not be loaded")
    return session


def _require_payment(session: CalculatorSession, payment_number: int) -> None:
    if not any(p.payment_number == payment_number for p in session.schedule.payments):
        raise click.BadParameter(f"No payment number {payment_number}")


def _export(path: Path, session: CalculatorSession) -> None:
    suffix = path.suffix.lower()
    if suffix == ".json":
        export_to_json(path, session.loan_details, session.schedule, session.summary)
    elif suffix == ".csv":
        export_to_csv(path, session.schedule)
    else:
        raise click.BadParameter("Unsupported output format; use .json or .csv")
    click.echo(f"Schedule exported to {path}")


def _print_schedule(session: CalculatorSession, status: str = "all") -> None:
    payments = filter_payments(session.schedule.payments, status)
    limit = config.max_rows()
    if len(payments) > limit:
        click.echo(f"Schedule has {len(payments)} rows; showing first {limit} rows.")
        payments = payments[:limit]
    print_schedule(payments)


def loan_options(func):
    """Options describing an ad-hoc loan, shared by several commands."""
    options = [
        click.option("--principal", "-p", "principal", required=True, help="Loan amount, e.g. 250000 or 250k"),
        click.option("--rate", "-r", "rate", required=True, type=float, help="Annual interest rate (percent)"),
        click.option("--term", "-t", "term", required=True, type=int, help="Loan term in months"),
        click.option("--start-date", "-s", "start_date", help="First payment date (YYYY-MM-DD), defaults to today"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.option("--store", "store_url", default=None, help="Store URL (SQLAlchemy URL, .json path or memory://)")
@click.option("--log-level", "log_level", default=None, help="Logging level, e.g. DEBUG")
@click.pass_context
def cli(ctx: click.Context, store_url: Optional[str], log_level: Optional[str]) -> None:
    """A command‑line loan calculator and payment tracker."""
    config.configure_logging(log_level)
    ctx.ensure_object(dict)
    if "storage" not in ctx.obj:
        ctx.obj["storage"] = LoanStorage(create_store_from_env(store_url), key=config.storage_key())


@cli.command()
@loan_options
@click.option("--currency", default="USD", help="Currency code used for display")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def schedule(
    principal: str, rate: float, term: int, start_date: Optional[str], currency: str, output: Optional[str]
) -> None:
    """Compute and print the full amortization schedule."""
    session = _ready_session(build_loan_from_options(principal, rate, term, start_date))
    if output:
        _export(Path(output), session)
        return
    print_summary(session.summary, currency)
    _print_schedule(session)


@cli.command()
@loan_options
@click.option("--currency", default="USD", help="Currency code used for display")
@click.option("--output", "output", type=str, help="Output file path (.json)")
def summary(
    principal: str, rate: float, term: int, start_date: Optional[str], currency: str, output: Optional[str]
) -> None:
    """Compute and print only the summary metrics for a loan."""
    session = _ready_session(build_loan_from_options(principal, rate, term, start_date))
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Summary export must use .json extension")
        export_to_json(path, session.loan_details, None, session.summary)
        click.echo(f"Summary exported to {path}")
    else:
        print_summary(session.summary, currency)


@cli.command()
@loan_options
@click.option("--description", default="", help="What the loan is for")
@click.option("--source", default="", help="Lender or loan source")
@click.pass_context
def new(
    ctx: click.Context, principal: str, rate: float, term: int, start_date: Optional[str], description: str, source: str
) -> None:
    """Save a new loan and print its id."""
    session = _ready_session(build_loan_from_options(principal, rate, term, start_date, description, source))
    saved = session.save(_storage(ctx))
    click.echo(saved.id)


@cli.command(name="list")
@click.pass_context
def list_loans(ctx: click.Context) -> None:
    """List stored loans."""
    loans = _storage(ctx).get_all_loans()
    if not loans:
        click.echo("No stored loans.")
        return
    for loan in loans:
        details = loan.loan_details
        paid = sum(1 for p in loan.payments if p.is_paid)
        click.echo(
            f"{details.id}\t{details.description or 'Untitled'}\t"
            f"{format_currency(details.principal)}\t{details.interest_rate}%\t"
            f"{paid}/{details.term_months} paid"
        )


@cli.command()
@click.argument("loan_id")
@click.option("--status", "status", type=click.Choice(STATUS_FILTERS), default="all", help="Only show these payments")
@click.option("--report", is_flag=True, help="Print a full report instead of the summary and table")
@click.option("--currency", default="USD", help="Currency code used for display")
@click.pass_context
def show(ctx: click.Context, loan_id: str, status: str, report: bool, currency: str) -> None:
    """Show a stored loan with its payment progress."""
    session = _stored_session(_storage(ctx), loan_id)
    if report:
        click.echo(render_report(session.loan_details, session.schedule, session.summary, date.today(), currency), nl=False)
        return
    print_summary(session.summary, currency)
    _print_schedule(session, status)


@cli.command()
@click.argument("loan_id")
@click.argument("payment_number", type=int)
@click.option("--date", "paid_date", help="Date the payment was made (YYYY-MM-DD), defaults to now")
@click.option("--notes", default=None, help="Note stored with the payment")
@click.pass_context
def pay(ctx: click.Context, loan_id: str, payment_number: int, paid_date: Optional[str], notes: Optional[str]) -> None:
    """Mark a single payment as paid."""
    session = _stored_session(_storage(ctx), loan_id)
    _require_payment(session, payment_number)
    session.update_payment(payment_number, True, _parse_paid_date(paid_date), notes)
    click.echo(f"Progress: {format_percentage(session.summary.progress_percentage)}")


@cli.command()
@click.argument("loan_id")
@click.argument("payment_number", type=int)
@click.option("--notes", default=None, help="Note stored with the payment")
@click.pass_context
def unpay(ctx: click.Context, loan_id: str, payment_number: int, notes: Optional[str]) -> None:
    """Mark a single payment as unpaid."""
    session = _stored_session(_storage(ctx), loan_id)
    _require_payment(session, payment_number)
    session.update_payment(payment_number, False, None, notes)
    click.echo(f"Progress: {format_percentage(session.summary.progress_percentage)}")


@cli.command()
@click.argument("loan_id")
@click.argument("payment_number", type=int)
@click.pass_context
def lock(ctx: click.Context, loan_id: str, payment_number: int) -> None:
    """Lock or unlock a payment against bulk updates."""
    session = _stored_session(_storage(ctx), loan_id)
    _require_payment(session, payment_number)
    session.toggle_lock(payment_number)
    payment = session.schedule.payments[payment_number - 1]
    click.echo(f"Payment {payment_number} {'locked' if payment.is_locked else 'unlocked'}")


@cli.command()
@click.argument("loan_id")
@click.argument("payment_numbers", nargs=-1, type=int, required=True)
@click.option("--status", "status", type=click.Choice(["paid", "unpaid"]), default="paid")
@click.option("--date", "paid_date", help="Date the payments were made (YYYY-MM-DD), defaults to now")
@click.option("--notes", default=None, help="Note stored with every updated payment")
@click.pass_context
def bulk(
    ctx: click.Context,
    loan_id: str,
    payment_numbers: Tuple[int, ...],
    status: str,
    paid_date: Optional[str],
    notes: Optional[str],
) -> None:
    """Set the status of several payments at once; locked payments are skipped."""
    session = _stored_session(_storage(ctx), loan_id)
    is_paid = status == "paid"
    paid_on = _parse_paid_date(paid_date) if is_paid else None
    session.bulk_update_payment_status(set(payment_numbers), is_paid, paid_on, notes)
    click.echo(f"Progress: {format_percentage(session.summary.progress_percentage)}")


@cli.command()
@click.argument("loan_id")
@click.pass_context
def delete(ctx: click.Context, loan_id: str) -> None:
    """Delete a stored loan."""
    if not _storage(ctx).delete_loan(loan_id):
        raise click.ClickException(f"Loan '{loan_id}' not found")
    click.echo(f"Deleted {loan_id}")


@cli.command(name="export")
@click.argument("loan_id")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
@click.option("--format", "fmt", type=click.Choice(["csv", "json"]), default="csv", help="Used when --output is omitted")
@click.pass_context
def export_loan(ctx: click.Context, loan_id: str, output: Optional[str], fmt: str) -> None:
    """Export a stored loan's schedule."""
    session = _stored_session(_storage(ctx), loan_id)
    path = Path(output) if output else Path(default_export_filename(session.loan_details, fmt))
    _export(path, session)


@cli.command()
@click.argument("path", type=click.Path(dir_okay=False))
@click.pass_context
def backup(ctx: click.Context, path: str) -> None:
    """Write every stored loan to a JSON file."""
    Path(path).write_text(_storage(ctx).export_data(), encoding="utf-8")
    click.echo(f"Stored loans written to {path}")


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def restore(ctx: click.Context, path: str) -> None:
    """Replace all stored loans with the contents of a backup file."""
    if not _storage(ctx).import_data(Path(path).read_text(encoding="utf-8")):
        raise click.ClickException("Backup file is not valid loan data")
    click.echo(f"Stored loans restored from {path}")


if __name__ == "__main__":
    cli()
