# Spendlog - Personal double-entry ledger CLI
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Spendlog
--------

A small personal double-entry ledger for the command line. Money moves
between named ledgers (cash, cards, expense heads, loans...) and every
movement is recorded as one immutable posting that credits a source ledger
and debits a destination ledger.

Main capabilities:
- ledger directory with asset-like and LIABILITY ledgers,
- spend recording with optional backdating,
- period-based reports (today, week, month, all, single date, date range),
- per-ledger statements with credit/debit totals,
- daily calendar report with an optional daily spending cap,
- recent transactions list,
- SQLite storage, TOML configuration, table or CSV output.

Usage:
    spendlog --help
    python -m spendlog --help
"""

__all__ = ["engine", "periods", "postings", "ledgers", "views"]

__version__ = "0.2.0"
