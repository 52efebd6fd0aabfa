# Spendlog - Personal double-entry ledger CLI
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Aggregation engine for Spendlog.

This module turns raw postings into the figures shown by the reports. It is
read-only: it never writes to the database.

1. Sign policy
   -----------
   Every posting has two legs: a debit leg on ``db_to`` and a credit leg on
   ``cr_from``. How much a leg counts towards its ledger depends only on the
   ledger ``kind``:

   - LIABILITY: debits count positive, credits count negative,
   - any other kind: debits count positive, credits are ignored.

   ``sign_policy(kind)`` is the single place where this rule lives.
   ``signed_legs()`` applies it to a set of postings and is shared by the
   balance and calendar reports.

2. Reports
   -------
   - ``net_balances``     : net amount per ledger for a window, plus a
                            grand total.
   - ``ledger_statement`` : every posting touching one ledger, with credit
                            and debit columns and their totals.
   - ``daily_totals``     : signed amounts grouped by calendar day, with an
                            optional daily cap comparison ("skimp").

All sums are computed on integer cents and converted to monetary units at
the end, so totals are exact to the cent.
"""

import logging
import sqlite3
from dataclasses import dataclass
from typing import Optional

import pandas as pd

from .ledgers import LIABILITY, Ledger, get_ledger, load_ledgers
from .periods import Period
from .postings import load_postings, window_clause

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignPolicy:
    """Multipliers applied to the debit and credit legs of a ledger."""

    debit: int
    credit: int

    def factor(self, side: str) -> int:
        return self.debit if side == "debit" else self.credit


def sign_policy(kind: str) -> SignPolicy:
    """Return the sign convention for a ledger kind."""
    if kind == LIABILITY:
        return SignPolicy(debit=1, credit=-1)
    return SignPolicy(debit=1, credit=0)


@dataclass(frozen=True)
class BalanceReport:
    """Net amount per ledger over a window."""

    period: Period
    rows: pd.DataFrame  # code, name, kind, net
    grand_total: float


@dataclass(frozen=True)
class LedgerStatement:
    """All postings touching one ledger over a window."""

    ledger: Ledger
    period: Period
    rows: pd.DataFrame  # created_at, counterparty, narration, credit, debit
    total_credits: float
    total_debits: float
    net_balance: float


@dataclass(frozen=True)
class CalendarReport:
    """Signed amounts per calendar day, optionally compared with a daily cap."""

    period: Period
    cap: Optional[float]
    rows: pd.DataFrame  # day, amount[, skimp]
    grand_total: float
    total_skimp: float


def signed_legs(postings: pd.DataFrame, ledgers: pd.DataFrame) -> pd.DataFrame:
    """
    Split postings into debit and credit legs and sign them by ledger kind.

    Parameters
    ----------
    postings:
        DataFrame with at least: id, created_at, cr_from, db_to, amount_cents.
    ledgers:
        DataFrame with at least: id, kind.

    Returns
    -------
    pandas.DataFrame
        One row per leg with columns: posting_id, created_at, ledger_id,
        side ("debit" | "credit"), kind, signed_cents.

    Notes
    -----
    A posting from a ledger to itself yields two legs on the same ledger;
    their sum is the debit minus the credit for a LIABILITY ledger and the
    debit alone otherwise.
    """
    base_cols = ["id", "created_at", "amount_cents"]
    debit = postings[base_cols + ["db_to"]].rename(columns={"db_to": "ledger_id"})
    debit["side"] = "debit"
    credit = postings[base_cols + ["cr_from"]].rename(columns={"cr_from": "ledger_id"})
    credit["side"] = "credit"

    legs = pd.concat([debit, credit], ignore_index=True)
    kinds = ledgers[["id", "kind"]].rename(columns={"id": "ledger_id"})
    legs = legs.merge(kinds, on="ledger_id", how="inner")

    policies = {kind: sign_policy(kind) for kind in legs["kind"].unique()}
    factors = pd.Series(
        [policies[kind].factor(side) for kind, side in zip(legs["kind"], legs["side"])],
        index=legs.index,
        dtype="int64",
    )
    legs["signed_cents"] = legs["amount_cents"].astype("int64") * factors

    return legs.rename(columns={"id": "posting_id"})[
        ["posting_id", "created_at", "ledger_id", "side", "kind", "signed_cents"]
    ]


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


def net_balances(conn: sqlite3.Connection, period: Period) -> BalanceReport:
    """
    Compute the net amount of every ledger over a window.

    For a LIABILITY ledger the net is debits minus credits; for any other
    ledger it is the debits alone. Ledgers without activity are listed with
    a net of 0. Rows are ordered by net descending, then by code.
    """
    ledgers = load_ledgers(conn)
    legs = signed_legs(load_postings(conn, period), ledgers)

    net_by_ledger = legs.groupby("ledger_id")["signed_cents"].sum()

    out = ledgers.copy()
    out["net_cents"] = out["id"].map(net_by_ledger).fillna(0).astype("int64")
    out = out.sort_values(
        ["net_cents", "code"], ascending=[False, True], kind="stable"
    ).reset_index(drop=True)
    out["net"] = out["net_cents"] / 100.0

    grand_total = int(out["net_cents"].sum()) / 100.0
    logger.debug("Balance report %s: %d ledger(s)", period.label, len(out))

    return BalanceReport(
        period=period,
        rows=out[["code", "name", "kind", "net"]],
        grand_total=grand_total,
    )


def ledger_statement(conn: sqlite3.Connection, code: str, period: Period) -> LedgerStatement:
    """
    List every posting where the ledger is credited or debited, newest first.

    Each row shows the counterparty code (the other end of the posting), the
    narration, ``credit`` (amount when the ledger is ``cr_from``, else 0) and
    ``debit`` (amount when the ledger is ``db_to``, else 0).

    ``net_balance`` is ``total_debits - total_credits`` over the listed rows.

    Raises
    ------
    LedgerNotFoundError
        If the code is unknown.
    """
    ledger = get_ledger(conn, code)

    where, params = window_clause(period, "p.created_at")
    df = pd.read_sql_query(
        f"""
        SELECT p.created_at,
               p.cr_from,
               p.db_to,
               lf.code AS cr_from_code,
               lt.code AS db_to_code,
               p.narration,
               p.amount_cents
          FROM postings p
          JOIN ledgers lf ON lf.id = p.cr_from
          JOIN ledgers lt ON lt.id = p.db_to
         WHERE (p.cr_from = ? OR p.db_to = ?)
           AND {where}
         ORDER BY p.created_at DESC, p.id DESC;
        """,
        conn,
        params=[ledger.id, ledger.id, *params],
    )

    amount_cents = df["amount_cents"].astype("int64")
    is_credit = df["cr_from"].astype("int64") == ledger.id
    is_debit = df["db_to"].astype("int64") == ledger.id

    credit_cents = amount_cents.where(is_credit, 0)
    debit_cents = amount_cents.where(is_debit, 0)

    rows = pd.DataFrame(
        {
            "created_at": pd.to_datetime(df["created_at"], format="%Y-%m-%d %H:%M:%S"),
            "counterparty": df["db_to_code"].where(is_credit, df["cr_from_code"]),
            "narration": df["narration"],
            "credit": credit_cents / 100.0,
            "debit": debit_cents / 100.0,
        }
    )

    total_credit_cents = int(credit_cents.sum())
    total_debit_cents = int(debit_cents.sum())

    return LedgerStatement(
        ledger=ledger,
        period=period,
        rows=rows,
        total_credits=total_credit_cents / 100.0,
        total_debits=total_debit_cents / 100.0,
        net_balance=(total_debit_cents - total_credit_cents) / 100.0,
    )


def daily_totals(
    conn: sqlite3.Connection,
    period: Period,
    cap: Optional[float] = None,
) -> CalendarReport:
    """
    Sum signed legs per calendar day over a window.

    The per-leg sign convention is the same as in ``net_balances``. Days
    whose total is exactly 0 are left out. With a cap, each day also gets
    ``skimp = cap - amount``; ``total_skimp`` adds up the positive skimps
    only, i.e. what was saved on days spent under the cap.
    """
    legs = signed_legs(load_postings(conn, period), load_ledgers(conn))

    by_day = legs.groupby(legs["created_at"].dt.date)["signed_cents"].sum()
    by_day = by_day[by_day != 0].sort_index()

    rows = pd.DataFrame(
        {
            "day": list(by_day.index),
            "amount": by_day.to_numpy(dtype="int64") / 100.0,
        }
    )
    grand_total = int(by_day.sum()) / 100.0

    total_skimp = 0.0
    if cap is not None:
        rows["skimp"] = cap - rows["amount"]
        total_skimp = float(rows.loc[rows["skimp"] > 0, "skimp"].sum())

    return CalendarReport(
        period=period,
        cap=cap,
        rows=rows,
        grand_total=grand_total,
        total_skimp=total_skimp,
    )
