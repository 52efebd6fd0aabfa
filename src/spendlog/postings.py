# Spendlog - Personal double-entry ledger CLI
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.


"""
Posting engine for Spendlog.

A posting records one movement of value: ``amount`` is credited from a
source ledger (the patron, e.g. CASH) and debited to a destination ledger
(the outlay, e.g. FOOD). Postings are append-only; the schema rejects any
update and there is no delete operation short of clearing the whole store.

Responsibilities
----------------
1) Recording
   - ``record_spend`` validates the amount, resolves both ledger codes and
     inserts exactly one row, all inside a single transaction.
   - An explicit day backdates the posting to that day at 00:00:00 UTC;
     otherwise the store clock stamps it.

2) Reading
   - ``load_postings`` returns the raw postings of a reporting window for
     the aggregation engine.
   - ``recent_postings`` returns the latest postings system-wide.

Amounts are stored as integer cents and exposed as floats.
"""

from __future__ import annotations

import logging
import math
import sqlite3
from dataclasses import dataclass
from datetime import date, datetime

import pandas as pd

from .db import from_cents, from_db_timestamp, to_cents, to_db_timestamp
from .errors import InvalidAmountError
from .ledgers import resolve_ledger_id
from .periods import Period, parse_day, start_of_day

logger = logging.getLogger(__name__)

RECENT_LIMIT = 10

# Largest cent count floats represent exactly. Sums of up to 1024 such
# amounts fit in int64.
MAX_AMOUNT_CENTS = 2**53
_CENT_TOLERANCE = 1e-6


@dataclass(frozen=True)
class Posting:
    """A row of the ``postings`` table, with the amount in monetary units."""

    id: int
    cr_from: int
    db_to: int
    amount: float
    narration: str
    created_at: datetime
    updated_at: datetime


def _validate_amount(amount: float | int | str) -> int:
    """
    Return the amount in cents, or raise InvalidAmountError.

    The amount must be a finite number strictly greater than zero, with at
    most two decimals, and no larger than ``MAX_AMOUNT_CENTS`` cents.
    """
    try:
        value = float(amount)
    except (TypeError, ValueError) as exc:
        raise InvalidAmountError(f"Invalid amount: {amount!r}") from exc

    if not math.isfinite(value) or value <= 0:
        raise InvalidAmountError("Amount must be positive")

    scaled = value * 100
    if scaled > MAX_AMOUNT_CENTS:
        raise InvalidAmountError(
            f"Amount must not exceed {from_cents(MAX_AMOUNT_CENTS):.2f}"
        )
    if abs(scaled - round(scaled)) > _CENT_TOLERANCE:
        raise InvalidAmountError(
            f"Amount must have at most two decimals: {amount}"
        )

    cents = to_cents(value)
    if cents <= 0:
        raise InvalidAmountError("Amount must be at least 0.01")
    return cents


def _get_posting(conn: sqlite3.Connection, posting_id: int) -> Posting:
    cur = conn.execute(
        """
        SELECT id, cr_from, db_to, amount_cents, narration, created_at, updated_at
          FROM postings
         WHERE id = ?;
        """,
        (posting_id,),
    )
    row = cur.fetchone()
    return Posting(
        id=int(row[0]),
        cr_from=int(row[1]),
        db_to=int(row[2]),
        amount=from_cents(int(row[3])),
        narration=row[4],
        created_at=from_db_timestamp(row[5]),
        updated_at=from_db_timestamp(row[6]),
    )


def record_spend(
    conn: sqlite3.Connection,
    patron_code: str,
    outlay_code: str,
    amount: float | int | str,
    narration: str,
    on_date: date | str | None = None,
) -> Posting:
    """
    Record one posting from ``patron_code`` to ``outlay_code``.

    Parameters
    ----------
    conn:
        Open database connection.
    patron_code:
        Code of the ledger credited (source of funds).
    outlay_code:
        Code of the ledger debited (destination).
    amount:
        Strictly positive amount.
    narration:
        Required free-text description.
    on_date:
        Optional day (``date`` or "YYYY-MM-DD") used as ``created_at`` at
        00:00:00. When omitted the store clock assigns ``created_at``.

    Returns
    -------
    Posting
        The inserted row.

    Raises
    ------
    InvalidAmountError
        If the amount is not positive, has more than two decimals or
        exceeds MAX_AMOUNT_CENTS. Nothing is written.
    InvalidDateError
        If ``on_date`` is malformed.
    LedgerNotFoundError
        If either code is unknown. Nothing is written.
    ValueError
        If the narration is empty.
    """
    amount_cents = _validate_amount(amount)

    narration = (narration or "").strip()
    if not narration:
        raise ValueError("Narration must not be empty.")

    created_at = None
    if on_date is not None:
        created_at = to_db_timestamp(start_of_day(parse_day(on_date)))

    # Lookups and insert share one transaction: either the row is written
    # with both ledgers resolved, or nothing is written.
    with conn:
        patron_id = resolve_ledger_id(conn, patron_code)
        outlay_id = resolve_ledger_id(conn, outlay_code)

        if created_at is not None:
            cur = conn.execute(
                """
                INSERT INTO postings (
                    cr_from, db_to, amount_cents, narration, created_at, updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?);
                """,
                (patron_id, outlay_id, amount_cents, narration, created_at, created_at),
            )
        else:
            cur = conn.execute(
                """
                INSERT INTO postings (cr_from, db_to, amount_cents, narration)
                VALUES (?, ?, ?, ?);
                """,
                (patron_id, outlay_id, amount_cents, narration),
            )
        posting_id = cur.lastrowid

    logger.info(
        "Recorded posting #%s: %s -> %s %.2f",
        posting_id,
        patron_code,
        outlay_code,
        from_cents(amount_cents),
    )
    return _get_posting(conn, posting_id)


def window_clause(period: Period, column: str) -> tuple[str, list[str]]:
    """Build the SQL predicate and parameters restricting ``column`` to a window."""
    clauses = [f"{column} >= ?"]
    params = [to_db_timestamp(period.start)]
    if period.end is not None:
        clauses.append(f"{column} <= ?")
        params.append(to_db_timestamp(period.end))
    return " AND ".join(clauses), params


def load_postings(conn: sqlite3.Connection, period: Period) -> pd.DataFrame:
    """
    Load all postings whose ``created_at`` falls inside the window.

    Returns
    -------
    pandas.DataFrame
        Columns: id, cr_from, db_to, amount_cents (int), narration,
        created_at (datetime64[ns]).
    """
    where, params = window_clause(period, "created_at")
    df = pd.read_sql_query(
        f"""
        SELECT id, cr_from, db_to, amount_cents, narration, created_at
          FROM postings
         WHERE {where}
         ORDER BY created_at, id;
        """,
        conn,
        params=params,
    )
    for column in ("id", "cr_from", "db_to", "amount_cents"):
        df[column] = df[column].astype("int64")
    df["created_at"] = pd.to_datetime(df["created_at"], format="%Y-%m-%d %H:%M:%S")
    return df


def recent_postings(conn: sqlite3.Connection, limit: int = RECENT_LIMIT) -> pd.DataFrame:
    """
    Return the most recent postings, newest first, with no window filter.

    Returns
    -------
    pandas.DataFrame
        Columns: created_at (datetime64[ns]), cr_from_code, db_to_code,
        amount (float), narration.
    """
    df = pd.read_sql_query(
        """
        SELECT p.created_at,
               lf.code AS cr_from_code,
               lt.code AS db_to_code,
               p.amount_cents,
               p.narration
          FROM postings p
          JOIN ledgers lf ON lf.id = p.cr_from
          JOIN ledgers lt ON lt.id = p.db_to
         ORDER BY p.created_at DESC, p.id DESC
         LIMIT ?;
        """,
        conn,
        params=[int(limit)],
    )
    df["created_at"] = pd.to_datetime(df["created_at"], format="%Y-%m-%d %H:%M:%S")
    df["amount"] = df["amount_cents"].astype("int64") / 100.0
    return df[["created_at", "cr_from_code", "db_to_code", "amount", "narration"]]
