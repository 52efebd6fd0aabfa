# Spendlog - Personal double-entry ledger CLI
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Ledger directory for Spendlog.

A ledger is a named account (cash, a bank card, an expense head, a loan...)
identified externally by a short unique code such as "CASH". Every command
refers to ledgers by code; this module maps codes to the internal ids used
by postings.

Responsibilities:
- Create ledgers (immutable once created).
- Resolve a code to its id or full row, failing with LedgerNotFoundError.
- List all ledgers for display.

Ledger ``kind`` is stored upper-cased. Only "LIABILITY" has a meaning for
the engine (it flips the sign convention in reports, see engine.py); any
other kind is treated as asset-like.
"""

import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import pandas as pd

from .db import from_db_timestamp
from .errors import DuplicateLedgerError, LedgerNotFoundError

logger = logging.getLogger(__name__)

LIABILITY = "LIABILITY"

_LEDGER_COLUMNS = "id, code, name, description, sort, kind, created_at, updated_at"


@dataclass(frozen=True)
class Ledger:
    """A row of the ``ledgers`` table."""

    id: int
    code: str
    name: str
    description: Optional[str]
    sort: str
    kind: str
    created_at: datetime
    updated_at: datetime

    @property
    def is_liability(self) -> bool:
        return self.kind == LIABILITY


def _row_to_ledger(row: tuple) -> Ledger:
    return Ledger(
        id=int(row[0]),
        code=row[1],
        name=row[2],
        description=row[3],
        sort=row[4],
        kind=row[5],
        created_at=from_db_timestamp(row[6]),
        updated_at=from_db_timestamp(row[7]),
    )


def _require(value: Optional[str], field: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValueError(f"Ledger {field} must not be empty.")
    return cleaned


def create_ledger(
    conn: sqlite3.Connection,
    code: str,
    name: str,
    description: Optional[str],
    sort: str,
    kind: str,
) -> Ledger:
    """
    Insert a new ledger and return it.

    Args:
        conn: Open database connection.
        code: Unique external key (e.g. "CASH"), stored as given (trimmed).
        name: Display label.
        description: Optional free text; empty strings are stored as NULL.
        sort: Free-text grouping/ordering hint.
        kind: Ledger classification, stored upper-cased.

    Returns:
        The created Ledger, as read back from the database.

    Raises:
        ValueError: if code, name, sort or kind is empty.
        DuplicateLedgerError: if a ledger with the same code already exists.
    """
    code = _require(code, "code")
    name = _require(name, "name")
    sort = _require(sort, "sort")
    kind = _require(kind, "kind").upper()
    description = (description or "").strip() or None

    try:
        with conn:
            cur = conn.execute(
                """
                INSERT INTO ledgers (code, name, description, sort, kind)
                VALUES (?, ?, ?, ?, ?);
                """,
                (code, name, description, sort, kind),
            )
    except sqlite3.IntegrityError as exc:
        raise DuplicateLedgerError(f"Ledger code already exists: {code}") from exc

    logger.info("Created ledger %s (id=%s, kind=%s)", code, cur.lastrowid, kind)
    return get_ledger(conn, code)


def get_ledger(conn: sqlite3.Connection, code: str) -> Ledger:
    """
    Return the ledger with the given code (exact match).

    Raises:
        LedgerNotFoundError: if no ledger has that code.
    """
    cur = conn.execute(
        f"SELECT {_LEDGER_COLUMNS} FROM ledgers WHERE code = ?;",
        (code,),
    )
    row = cur.fetchone()
    if row is None:
        raise LedgerNotFoundError(f"Ledger not found: {code}")
    return _row_to_ledger(row)


def resolve_ledger_id(conn: sqlite3.Connection, code: str) -> int:
    """Return the id of the ledger with the given code."""
    cur = conn.execute("SELECT id FROM ledgers WHERE code = ?;", (code,))
    row = cur.fetchone()
    if row is None:
        raise LedgerNotFoundError(f"Ledger not found: {code}")
    return int(row[0])


def list_ledgers(conn: sqlite3.Connection) -> pd.DataFrame:
    """
    Return all ledgers ordered by code.

    Columns: code, name, sort, kind.
    """
    return pd.read_sql_query(
        "SELECT code, name, sort, kind FROM ledgers ORDER BY code;",
        conn,
    )


def load_ledgers(conn: sqlite3.Connection) -> pd.DataFrame:
    """
    Return the ledger attributes needed by the aggregation engine.

    Columns: id, code, name, kind.
    """
    df = pd.read_sql_query(
        "SELECT id, code, name, kind FROM ledgers ORDER BY id;",
        conn,
    )
    df["id"] = df["id"].astype("int64")
    return df
