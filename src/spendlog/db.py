# Spendlog - Personal double-entry ledger CLI
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.


"""
Database layer for Spendlog.

This module owns the SQLite store used by the application. It is
responsible for:

- Opening a connection as a scoped handle (``connect``) that is always
  closed, with foreign keys enabled.
- Creating the schema (tables, indexes, triggers) idempotently.
- Clearing the whole store.
- Converting between Python values and their stored representation
  (timestamps as text, amounts as integer cents).

Higher layers (ledgers, postings, engine) receive the open connection as an
explicit argument; nothing in the package keeps a global connection.

------------------------------------------------------------------------------
Schema Overview
------------------------------------------------------------------------------

1) ledgers
   One row per named account.

   Columns:
   - id           INTEGER PRIMARY KEY AUTOINCREMENT
   - code         TEXT    NOT NULL UNIQUE  -- short external key, e.g. "CASH"
   - name         TEXT    NOT NULL
   - description  TEXT
   - sort         TEXT    NOT NULL         -- free-text grouping hint
   - kind         TEXT    NOT NULL         -- "LIABILITY" or anything else
   - created_at   TEXT    NOT NULL         -- UTC "YYYY-MM-DD HH:MM:SS"
   - updated_at   TEXT    NOT NULL


2) postings
   One row per double-entry movement: `amount` leaves `cr_from` and lands
   on `db_to`.

   Columns:
   - id            INTEGER PRIMARY KEY AUTOINCREMENT
   - cr_from       INTEGER NOT NULL  -- ledger credited (source, "patron")
   - db_to         INTEGER NOT NULL  -- ledger debited (destination, "outlay")
   - amount_cents  INTEGER NOT NULL  -- strictly positive
   - narration     TEXT    NOT NULL
   - created_at    TEXT    NOT NULL  -- UTC "YYYY-MM-DD HH:MM:SS"
   - updated_at    TEXT    NOT NULL

   Postings are append-only: a trigger aborts any UPDATE. Rows only
   disappear through `clear_database`.

------------------------------------------------------------------------------
SQLite Notes
------------------------------------------------------------------------------

- Timestamps use the same text layout as SQLite's CURRENT_TIMESTAMP, so the
  store clock and explicit Python timestamps compare lexically.
- AUTOINCREMENT guarantees ids are never reused, even after a clear.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import pandas as pd

from .errors import StoreError

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class DatabaseConfig:
    """
    Database configuration for Spendlog.

    Attributes
    ----------
    engine:
        Database engine identifier. Only "sqlite" is supported.
    path:
        Path to the SQLite database file.
    """

    engine: str
    path: Path


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _ensure_sqlite(cfg: DatabaseConfig) -> None:
    """Raise if the configuration does not refer to a supported engine."""
    if cfg.engine.lower() != "sqlite":
        msg = (
            f"Unsupported database engine: {cfg.engine!r}. "
            "Only 'sqlite' is supported for now."
        )
        raise ValueError(msg)


def _create_schema_if_needed(conn: sqlite3.Connection) -> None:
    """
    Create tables, indexes and triggers if they do not exist yet.

    This function is idempotent and can be called multiple times safely.
    """
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS ledgers (
            id           INTEGER PRIMARY KEY AUTOINCREMENT,
            code         TEXT    NOT NULL UNIQUE,
            name         TEXT    NOT NULL,
            description  TEXT,
            sort         TEXT    NOT NULL,
            kind         TEXT    NOT NULL,
            created_at   TEXT    NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at   TEXT    NOT NULL DEFAULT CURRENT_TIMESTAMP
        );
        """
    )

    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS postings (
            id            INTEGER PRIMARY KEY AUTOINCREMENT,
            cr_from       INTEGER NOT NULL,
            db_to         INTEGER NOT NULL,
            amount_cents  INTEGER NOT NULL CHECK (amount_cents > 0),
            narration     TEXT    NOT NULL,
            created_at    TEXT    NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at    TEXT    NOT NULL DEFAULT CURRENT_TIMESTAMP,

            FOREIGN KEY (cr_from) REFERENCES ledgers(id),
            FOREIGN KEY (db_to)   REFERENCES ledgers(id)
        );
        """
    )

    # Indexes
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_postings_created_at ON postings(created_at);"
    )
    conn.execute("CREATE INDEX IF NOT EXISTS idx_postings_cr_from ON postings(cr_from);")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_postings_db_to ON postings(db_to);")

    # Postings are append-only.
    conn.execute(
        """
        CREATE TRIGGER IF NOT EXISTS trg_postings_immutable
        BEFORE UPDATE ON postings
        BEGIN
            SELECT RAISE(ABORT, 'postings are append-only');
        END;
        """
    )

    conn.commit()


# ---------------------------------------------------------------------------
# Conversions
# ---------------------------------------------------------------------------


def to_db_timestamp(value: datetime) -> str:
    """Format a naive UTC datetime the way it is stored in the database."""
    return value.strftime(TIMESTAMP_FORMAT)


def from_db_timestamp(value: str) -> datetime:
    """Parse a stored timestamp back into a naive UTC datetime."""
    return datetime.strptime(value, TIMESTAMP_FORMAT)


def to_cents(amount: float) -> int:
    """Convert a monetary amount into integer cents."""
    return int(round(amount * 100))


def from_cents(cents: int) -> float:
    """Convert integer cents back into a float amount."""
    return cents / 100.0


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


@contextmanager
def connect(cfg: DatabaseConfig) -> Iterator[sqlite3.Connection]:
    """
    Open the database as a scoped handle.

    - Creates the parent directory and the SQLite file if needed.
    - Enables foreign keys and ensures the schema exists.
    - Translates any ``sqlite3.Error`` (or pandas' wrapper around it) raised
      inside the block into a ``StoreError``.
    - Always closes the connection when the block exits.

    Raises
    ------
    ValueError
        If cfg.engine is not supported.
    StoreError
        If the database cannot be opened or a statement fails.
    """
    _ensure_sqlite(cfg)
    cfg.path.parent.mkdir(parents=True, exist_ok=True)

    try:
        conn = sqlite3.connect(cfg.path)
    except sqlite3.Error as exc:
        raise StoreError(f"Cannot open database {cfg.path}: {exc}") from exc

    logger.debug("Opened database %s", cfg.path)
    try:
        conn.execute("PRAGMA foreign_keys = ON;")
        _create_schema_if_needed(conn)
        yield conn
    except (sqlite3.Error, pd.errors.DatabaseError) as exc:
        raise StoreError(f"Database error: {exc}") from exc
    finally:
        conn.close()
        logger.debug("Closed database %s", cfg.path)


def init_database(conn: sqlite3.Connection) -> None:
    """
    Ensure the schema exists on an open connection.

    ``connect`` already does this; the function is exposed for the explicit
    ``setup`` command and is idempotent.
    """
    _create_schema_if_needed(conn)
    logger.info("Database schema is up to date")


def clear_database(conn: sqlite3.Connection) -> tuple[int, int]:
    """
    Delete every posting and every ledger.

    Postings are removed first so foreign keys never dangle. Ids are not
    recycled afterwards.

    Returns
    -------
    tuple[int, int]
        Number of postings and ledgers deleted.
    """
    with conn:
        postings_deleted = conn.execute("DELETE FROM postings;").rowcount
        ledgers_deleted = conn.execute("DELETE FROM ledgers;").rowcount

    logger.info(
        "Cleared %d posting(s) and %d ledger(s)", postings_deleted, ledgers_deleted
    )
    return postings_deleted, ledgers_deleted


def has_ledgers(conn: sqlite3.Connection) -> bool:
    """Return True if at least one ledger exists."""
    cur = conn.execute("SELECT 1 FROM ledgers LIMIT 1;")
    return cur.fetchone() is not None
