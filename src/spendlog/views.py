# Spendlog - Personal double-entry ledger CLI
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
View utilities for Spendlog.

This module renders the results of the aggregation engine as plain text
tables and CSV files. It performs no computation of its own: every figure
comes from the report objects built in ``engine.py`` or from the frames
returned by ``ledgers.list_ledgers`` and ``postings.recent_postings``.

Every text report has the same layout:

    <title>
    <header row>
    <rule>
    <rows...>
    <rule>
    <totals row(s)>

Amounts are rendered with two decimals and right-aligned. The calendar
report colours the skimp column (green under the cap, red at or over it)
when colour is enabled; colour never changes the numbers or the alignment.
"""

import os
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path
from typing import Optional, TextIO

import pandas as pd

from .engine import BalanceReport, CalendarReport, LedgerStatement

GREEN = "\033[32m"
RED = "\033[31m"
RESET = "\033[0m"

_DATETIME_FMT = "%Y-%m-%d %H:%M:%S"


def should_use_color(mode: str, stream: TextIO) -> bool:
    """
    Decide whether ANSI colours should be emitted.

    ``mode`` is "always", "never" or "auto". In auto mode colours are used
    only for an interactive stream and when NO_COLOR is not set.
    """
    if mode == "always":
        return True
    if mode == "never":
        return False
    if os.environ.get("NO_COLOR"):
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def format_amount(value: float) -> str:
    """Format an amount with two decimals, never as '-0.00'."""
    if round(value, 2) == 0:
        value = 0.0
    return f"{value:.2f}"


def _colorize(text: str, color: Optional[str]) -> str:
    if not color:
        return text
    return f"{color}{text}{RESET}"


def _render_table(
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
    alignments: str,
    footer: Sequence[Sequence[str]] = (),
    colors: Optional[Sequence[Sequence[Optional[str]]]] = None,
) -> list[str]:
    """
    Lay out a table as a list of lines.

    Column widths fit the widest cell (header, rows and footer). ``alignments``
    holds one character per column: 'l' for left, 'r' for right. Optional
    colour grid wraps already padded cells, so escapes do not shift columns.
    """
    widths = [len(h) for h in headers]
    for row in list(rows) + list(footer):
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    def _fmt(row: Sequence[str], row_colors: Optional[Sequence[Optional[str]]]) -> str:
        cells = []
        for i, cell in enumerate(row):
            padded = cell.rjust(widths[i]) if alignments[i] == "r" else cell.ljust(widths[i])
            color = row_colors[i] if row_colors is not None else None
            cells.append(_colorize(padded, color))
        return "  ".join(cells).rstrip()

    rule = "-" * (sum(widths) + 2 * (len(widths) - 1))

    lines = [_fmt(headers, None), rule]
    if not rows:
        lines.append("(no data)")
    for idx, row in enumerate(rows):
        lines.append(_fmt(row, colors[idx] if colors is not None else None))
    if footer:
        lines.append(rule)
        for row in footer:
            lines.append(_fmt(row, None))
    return lines


def _skimp_color(skimp: float) -> str:
    return GREEN if skimp > 0 else RED


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


def render_balance_report(report: BalanceReport) -> str:
    """Render the per-ledger net amounts and their grand total."""
    rows = [
        [str(r.code), str(r.name), format_amount(float(r.net))]
        for r in report.rows.itertuples(index=False)
    ]
    lines = [f"Spending Report ({report.period.label}):"]
    lines += _render_table(
        ["Code", "Name", "Net Amount"],
        rows,
        "llr",
        footer=[["Grand Total", "", format_amount(report.grand_total)]],
    )
    return "\n".join(lines)


def render_ledger_statement(statement: LedgerStatement) -> str:
    """Render one ledger's postings with credit/debit totals and net balance."""
    rows = [
        [
            r.created_at.strftime(_DATETIME_FMT),
            str(r.counterparty),
            str(r.narration),
            format_amount(float(r.credit)),
            format_amount(float(r.debit)),
        ]
        for r in statement.rows.itertuples(index=False)
    ]
    ledger = statement.ledger
    lines = [
        f"Ledger Report for {ledger.code} - {ledger.name} ({statement.period.label}):"
    ]
    lines += _render_table(
        ["Date", "Counterparty", "Narration", "Credit", "Debit"],
        rows,
        "lllrr",
        footer=[
            [
                "Totals",
                "",
                "",
                format_amount(statement.total_credits),
                format_amount(statement.total_debits),
            ]
        ],
    )
    lines.append(
        f"Net Balance (Debits - Credits): {format_amount(statement.net_balance)}"
    )
    return "\n".join(lines)


def render_calendar_report(report: CalendarReport, use_color: bool = False) -> str:
    """
    Render daily totals, with the skimp column when a cap is set.

    Skimp cells are green when the day stayed under the cap and red
    otherwise, if ``use_color`` is True.
    """
    title = report.period.label
    if report.cap is not None:
        title = f"{title} (Daily Cap: {format_amount(report.cap)})"
    lines = [f"Daily Spending Report for {title}:"]

    if report.cap is None:
        rows = [
            [r.day.isoformat(), format_amount(float(r.amount))]
            for r in report.rows.itertuples(index=False)
        ]
        lines += _render_table(
            ["Date", "Total Spent"],
            rows,
            "lr",
            footer=[["Grand Total", format_amount(report.grand_total)]],
        )
        return "\n".join(lines)

    rows = []
    colors = []
    for r in report.rows.itertuples(index=False):
        skimp = float(r.skimp)
        rows.append(
            [r.day.isoformat(), format_amount(float(r.amount)), format_amount(skimp)]
        )
        colors.append([None, None, _skimp_color(skimp) if use_color else None])

    lines += _render_table(
        ["Date", "Total Spent", "Skimp"],
        rows,
        "lrr",
        footer=[
            [
                "Grand Total",
                format_amount(report.grand_total),
                format_amount(report.total_skimp),
            ]
        ],
        colors=colors,
    )
    return "\n".join(lines)


def render_recent(df: pd.DataFrame, limit: int = 10) -> str:
    """Render the recent transactions list."""
    rows = [
        [
            r.created_at.strftime(_DATETIME_FMT),
            str(r.cr_from_code),
            str(r.db_to_code),
            format_amount(float(r.amount)),
            str(r.narration),
        ]
        for r in df.itertuples(index=False)
    ]
    lines = [f"Recent Transactions Report (Last {limit}):"]
    lines += _render_table(["Date", "From", "To", "Amount", "Narration"], rows, "lllrl")
    return "\n".join(lines)


def render_ledger_list(df: pd.DataFrame) -> str:
    """Render the list of ledgers."""
    rows = [
        [str(r.code), str(r.name), str(r.sort), str(r.kind)]
        for r in df.itertuples(index=False)
    ]
    lines = ["List of Ledgers:"]
    lines += _render_table(["Code", "Name", "Sort", "Kind"], rows, "llll")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# CSV export
# ---------------------------------------------------------------------------


def export_csv(
    df: pd.DataFrame,
    output_dir: Path,
    stem: str,
    timestamp: Optional[datetime] = None,
) -> Path:
    """
    Write a report frame to ``<output_dir>/<stem>_YYYY-MM-DD-HH-MM-SS.csv``.

    The directory is created if needed. Returns the written path.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    stamp = (timestamp or datetime.now()).strftime("%Y-%m-%d-%H-%M-%S")
    path = output_dir / f"{stem}_{stamp}.csv"
    df.to_csv(path, index=False)
    return path
