# Spendlog - Personal double-entry ledger CLI
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Command-Line Interface (CLI) for Spendlog.

This module wires together the building blocks of Spendlog:

- configuration (database location, display options, logging level),
- the SQLite store (opened once per invocation and always closed),
- the ledger directory and the posting engine (writes),
- period resolution and the aggregation engine (reads),
- view helpers (text tables and CSV export).

The CLI is intentionally thin: it does not implement accounting logic
itself. Each subcommand parses its arguments, resolves periods before any
query runs, calls the engine and prints the rendered report.


Commands
--------

- ``setup`` (alias ``db-setup``):
    Create the database file and schema. Safe to run repeatedly.
- ``add-ledger CODE NAME DESCRIPTION SORT KIND``:
    Create a ledger. KIND is LIABILITY or any other label (ASSET, EXPENSE...).
- ``spend PATRON OUTLAY AMOUNT NARRATION [--date YYYY-MM-DD]``:
    Record a posting crediting PATRON and debiting OUTLAY.
- ``report [today|week|month|all] [--date D | --from F --to T]``:
    Net amount per ledger for a period (default: all).
- ``ledger-report CODE [today|week|month|all] [--date D | --from F --to T]``:
    Statement of one ledger for a period (default: all).
- ``calendar [MONTH] [CAP]``:
    Daily totals for a month, optionally compared with a daily cap. A
    single numeric argument is read as the cap for the current month.
- ``list-ledgers``:
    All ledgers ordered by code.
- ``recent`` (alias ``last``):
    The most recent postings.
- ``clear [--yes]``:
    Delete all ledgers and postings after confirmation.


Period selection
----------------

A named period, ``--date`` and ``--from``/``--to`` are mutually exclusive.
Combining them, or giving only one side of a range, is an error reported
before the database is queried.


Display modes and output
------------------------

``display.mode`` in the configuration (or ``--display-mode``) selects:

- ``table``: print text reports to stdout,
- ``csv``:   write CSV files only,
- ``both``:  do both.

CSV files are written to ``--output DIR`` or ``data/output`` with a
timestamp-based name, e.g. ``balance_report_YYYY-MM-DD-HH-MM-SS.csv``.


Exit status
-----------

0 on success (including a declined ``clear``), 1 when any validation or
database error occurs; the error is printed on stderr.
"""

import argparse
import logging
import sqlite3
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

import pandas as pd

from . import __version__
from .config import COLOR_MODES, DISPLAY_MODES, AppConfig, load_app_config
from .db import DatabaseConfig, clear_database, connect, has_ledgers, init_database
from .engine import daily_totals, ledger_statement, net_balances
from .errors import SpendlogError
from .ledgers import create_ledger, list_ledgers
from .periods import (
    PERIOD_NAMES,
    period_spec_from_args,
    resolve_calendar_month,
    resolve_period,
    split_calendar_args,
)
from .postings import record_spend, recent_postings
from .views import (
    export_csv,
    render_balance_report,
    render_calendar_report,
    render_ledger_list,
    render_ledger_statement,
    render_recent,
    should_use_color,
)

logger = logging.getLogger("spendlog")

_FAILURE_MESSAGES = {
    "setup": "Failed to set up the database",
    "add-ledger": "Failed to add ledger",
    "spend": "Failed to record spending",
    "report": "Failed to generate report",
    "ledger-report": "Failed to generate ledger report",
    "calendar": "Failed to generate calendar report",
    "list-ledgers": "Failed to list ledgers",
    "recent": "Failed to generate recent transactions report",
    "clear": "Failed to clear tables",
}


def _configure_logging(level: str) -> None:
    """Send log records to stderr with a short "[LEVEL] message" format."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))

    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False


def _add_period_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "period",
        nargs="?",
        choices=PERIOD_NAMES,
        help="Named period relative to today (UTC). Defaults to 'all'.",
    )
    parser.add_argument(
        "--date",
        dest="on_date",
        metavar="YYYY-MM-DD",
        help="Report a single day.",
    )
    parser.add_argument(
        "--from",
        dest="from_day",
        metavar="YYYY-MM-DD",
        help="Start of an inclusive date range (requires --to).",
    )
    parser.add_argument(
        "--to",
        dest="to_day",
        metavar="YYYY-MM-DD",
        help="End of an inclusive date range (requires --from).",
    )


def _build_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for the CLI."""
    ap = argparse.ArgumentParser(
        prog="spendlog",
        description=(
            "Spendlog - a personal double-entry ledger. Records money moving "
            "between ledgers and reports balances, ledger statements and "
            "daily spending against a cap."
        ),
    )

    # Generic options
    ap.add_argument(
        "--version",
        action="store_true",
        help="Show the installed version of spendlog and exit.",
    )
    ap.add_argument(
        "--config",
        dest="config_path",
        help=(
            "Path to the TOML configuration file. If omitted, "
            "'spendlog_config.toml' in the current directory is used when present."
        ),
    )
    ap.add_argument(
        "--db",
        dest="db_path",
        help="Override the SQLite database path from the configuration.",
    )
    ap.add_argument(
        "--display-mode",
        dest="display_mode",
        choices=DISPLAY_MODES,
        help=(
            "Override display.mode: 'table' prints reports, 'csv' writes CSV "
            "files only, 'both' does both."
        ),
    )
    ap.add_argument(
        "--output",
        dest="output_dir",
        help="Directory for CSV files (default: data/output).",
    )
    ap.add_argument(
        "--color",
        choices=COLOR_MODES,
        help="Override display.color for coloured output.",
    )
    ap.add_argument(
        "--no-color",
        dest="color",
        action="store_const",
        const="never",
        help="Disable coloured output.",
    )
    ap.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging on stderr.",
    )

    subparsers = ap.add_subparsers(dest="command")

    subparsers.add_parser(
        "setup",
        aliases=["db-setup"],
        help="Create the database and its schema.",
    )

    add_ledger = subparsers.add_parser("add-ledger", help="Create a ledger.")
    add_ledger.add_argument("code", help="Unique short code, e.g. CASH.")
    add_ledger.add_argument("name", help="Display name.")
    add_ledger.add_argument("description", help="Free-text description (may be empty).")
    add_ledger.add_argument("sort", help="Free-text grouping hint.")
    add_ledger.add_argument(
        "kind",
        help="LIABILITY, or any other label for asset-like ledgers (ASSET, EXPENSE...).",
    )

    spend = subparsers.add_parser(
        "spend",
        help="Record money moving from PATRON to OUTLAY.",
    )
    spend.add_argument("patron", help="Code of the ledger credited (source).")
    spend.add_argument("outlay", help="Code of the ledger debited (destination).")
    spend.add_argument("amount", help="Positive amount.")
    spend.add_argument("narration", help="Description of the transaction.")
    spend.add_argument(
        "--date",
        dest="on_date",
        metavar="YYYY-MM-DD",
        help="Backdate the posting to this day (00:00:00 UTC).",
    )

    report = subparsers.add_parser("report", help="Net amount per ledger.")
    _add_period_arguments(report)

    ledger_report = subparsers.add_parser(
        "ledger-report",
        help="Statement of one ledger.",
    )
    ledger_report.add_argument("code", help="Ledger code.")
    _add_period_arguments(ledger_report)

    calendar = subparsers.add_parser(
        "calendar",
        help="Daily totals for a month, optionally against a daily cap.",
    )
    calendar.add_argument(
        "month",
        nargs="?",
        help=(
            "Month name (e.g. 'april') or cap value (e.g. '500') if used "
            "without a month."
        ),
    )
    calendar.add_argument("cap", nargs="?", help="Daily spending cap (e.g. '500').")

    subparsers.add_parser("list-ledgers", help="List all ledgers.")

    subparsers.add_parser(
        "recent",
        aliases=["last"],
        help="Show the most recent transactions.",
    )

    clear = subparsers.add_parser("clear", help="Delete all ledgers and postings.")
    clear.add_argument(
        "--yes",
        action="store_true",
        help="Do not ask for confirmation.",
    )

    return ap


def _canonical_command(command: str) -> str:
    return {"db-setup": "setup", "last": "recent"}.get(command, command)


def _emit(
    args: argparse.Namespace,
    config: AppConfig,
    text: str,
    frame: pd.DataFrame,
    stem: str,
) -> None:
    """Print a rendered report and/or export its frame, per the display mode."""
    mode = config.display.mode
    if mode in {"table", "both"}:
        print()
        print(text)
    if mode in {"csv", "both"}:
        output_dir = Path(args.output_dir) if args.output_dir else Path("data/output")
        path = export_csv(frame, output_dir, stem)
        print(f"Wrote {path} ({len(frame)} rows)")


def _warn_if_empty(conn: sqlite3.Connection) -> None:
    if not has_ledgers(conn):
        print(
            "Warning: no ledgers defined yet. Use 'add-ledger' to create one.",
            file=sys.stderr,
        )


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _handle_setup(args, config, conn) -> None:
    init_database(conn)
    print(f"Db setup completed successfully ({config.database.path})")


def _handle_add_ledger(args, config, conn) -> None:
    ledger = create_ledger(
        conn,
        code=args.code,
        name=args.name,
        description=args.description,
        sort=args.sort,
        kind=args.kind,
    )
    print(f"Added ledger: {ledger.code} - {ledger.name}")


def _handle_spend(args, config, conn) -> None:
    posting = record_spend(
        conn,
        patron_code=args.patron,
        outlay_code=args.outlay,
        amount=args.amount,
        narration=args.narration,
        on_date=args.on_date,
    )
    print(
        f"Added spending: {args.patron} -> {args.outlay}: "
        f"{posting.amount:.2f} ({posting.narration})"
    )


def _resolve_window(command: str, args: argparse.Namespace) -> None:
    """
    Validate period and calendar arguments before the store is opened.

    Sets ``args.window`` (and ``args.cap_value`` for the calendar) so the
    handlers only run queries.
    """
    if command in {"report", "ledger-report"}:
        spec = period_spec_from_args(args.period, args.on_date, args.from_day, args.to_day)
        args.window = resolve_period(spec)
    elif command == "calendar":
        month_name, args.cap_value = split_calendar_args(args.month, args.cap)
        args.window = resolve_calendar_month(month_name)


def _handle_report(args, config, conn) -> None:
    _warn_if_empty(conn)

    report = net_balances(conn, args.window)
    _emit(args, config, render_balance_report(report), report.rows, "balance_report")


def _handle_ledger_report(args, config, conn) -> None:
    statement = ledger_statement(conn, args.code, args.window)
    _emit(
        args,
        config,
        render_ledger_statement(statement),
        statement.rows,
        f"ledger_report_{statement.ledger.code}",
    )


def _handle_calendar(args, config, conn) -> None:
    report = daily_totals(conn, args.window, cap=args.cap_value)
    use_color = should_use_color(config.display.color, sys.stdout)
    _emit(
        args,
        config,
        render_calendar_report(report, use_color=use_color),
        report.rows,
        "calendar_report",
    )


def _handle_list_ledgers(args, config, conn) -> None:
    df = list_ledgers(conn)
    _emit(args, config, render_ledger_list(df), df, "ledgers")


def _handle_recent(args, config, conn) -> None:
    limit = config.display.recent_limit
    df = recent_postings(conn, limit=limit)
    _emit(args, config, render_recent(df, limit=limit), df, "recent_transactions")


def _confirm(prompt: str) -> bool:
    """Ask a yes/no question on the terminal; anything but yes means no."""
    try:
        answer = input(f"{prompt} [y/N] ")
    except (EOFError, KeyboardInterrupt):
        print()
        return False
    return answer.strip().lower() in {"y", "yes"}


def _handle_clear(args, config, conn) -> None:
    confirmed = args.yes or _confirm(
        "Are you sure you want to delete all data from the database? "
        "This action cannot be undone."
    )
    if not confirmed:
        print("Operation canceled. No data was deleted.")
        return

    postings_deleted, ledgers_deleted = clear_database(conn)
    print(
        "All data cleared from ledgers and postings tables "
        f"({ledgers_deleted} ledgers, {postings_deleted} postings)."
    )


_HANDLERS = {
    "setup": _handle_setup,
    "add-ledger": _handle_add_ledger,
    "spend": _handle_spend,
    "report": _handle_report,
    "ledger-report": _handle_ledger_report,
    "calendar": _handle_calendar,
    "list-ledgers": _handle_list_ledgers,
    "recent": _handle_recent,
    "clear": _handle_clear,
}


def _apply_overrides(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    """Apply command-line overrides on top of the loaded configuration."""
    database = config.database
    if args.db_path:
        database = DatabaseConfig(
            engine=database.engine,
            path=Path(args.db_path).resolve(),
        )

    display = config.display
    if args.display_mode:
        display = replace(display, mode=args.display_mode)
    if args.color:
        display = replace(display, color=args.color)

    log_level = "DEBUG" if args.verbose else config.log_level
    return replace(config, database=database, display=display, log_level=log_level)


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point for the Spendlog CLI.

    Parses command-line arguments, loads the configuration, opens the
    database for the duration of the command and dispatches to the
    matching handler. Returns the process exit status.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    # --version: short-circuit and exit early.
    if args.version:
        print(f"spendlog version {__version__}")
        return 0

    if not args.command:
        parser.error("a command is required")

    command = _canonical_command(args.command)

    try:
        config = _apply_overrides(load_app_config(args.config_path), args)
    except (OSError, ValueError) as exc:
        print(f"Error: invalid configuration: {exc}", file=sys.stderr)
        return 1

    _configure_logging(config.log_level)
    logger.debug("Running %r against %s", command, config.database.path)

    try:
        _resolve_window(command, args)
        with connect(config.database) as conn:
            _HANDLERS[command](args, config, conn)
    except (SpendlogError, ValueError) as exc:
        print(f"{_FAILURE_MESSAGES[command]}: {exc}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
