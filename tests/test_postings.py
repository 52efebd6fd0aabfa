from datetime import date, datetime, timedelta, timezone

import pytest

from spendlog.db import DatabaseConfig, connect
from spendlog.errors import InvalidAmountError, InvalidDateError, LedgerNotFoundError
from spendlog.ledgers import create_ledger
from spendlog.periods import Period
from spendlog.postings import (
    MAX_AMOUNT_CENTS,
    load_postings,
    record_spend,
    recent_postings,
)


@pytest.fixture
def cfg(tmp_path) -> DatabaseConfig:
    cfg = DatabaseConfig(engine="sqlite", path=tmp_path / "postings.sqlite")
    with connect(cfg) as conn:
        create_ledger(conn, "CASH", "Cash", None, "current", "ASSET")
        create_ledger(conn, "FOOD", "Food", None, "expense", "EXPENSE")
        create_ledger(conn, "CARD", "Credit card", None, "debt", "LIABILITY")
    return cfg


def _utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0)


def _count_postings(conn) -> int:
    return conn.execute("SELECT COUNT(*) FROM postings;").fetchone()[0]


def test_record_spend_inserts_one_row(cfg):
    with connect(cfg) as conn:
        posting = record_spend(conn, "CASH", "FOOD", "12.50", "Lunch")

        assert _count_postings(conn) == 1
        cash_id, food_id = (
            conn.execute("SELECT id FROM ledgers WHERE code = ?;", (code,)).fetchone()[0]
            for code in ("CASH", "FOOD")
        )

    assert posting.amount == 12.5
    assert posting.narration == "Lunch"
    assert posting.cr_from == cash_id
    assert posting.db_to == food_id


def test_store_clock_stamps_current_utc_time(cfg):
    before = _utc_now() - timedelta(seconds=1)
    with connect(cfg) as conn:
        posting = record_spend(conn, "CASH", "FOOD", 5, "Snack")
    after = _utc_now() + timedelta(seconds=1)

    assert before <= posting.created_at <= after
    assert posting.updated_at == posting.created_at


def test_explicit_date_backdates_to_midnight(cfg):
    with connect(cfg) as conn:
        posting = record_spend(conn, "CASH", "FOOD", 20, "Groceries", on_date="2025-03-02")
        other = record_spend(conn, "CASH", "FOOD", 1, "Gum", on_date=date(2025, 3, 3))

    assert posting.created_at == datetime(2025, 3, 2, 0, 0, 0)
    assert other.created_at == datetime(2025, 3, 3, 0, 0, 0)


@pytest.mark.parametrize("amount", [0, -5, "0", "-0.01", "abc", "", "nan", "inf", 0.004])
def test_invalid_amounts_write_nothing(cfg, amount):
    with connect(cfg) as conn:
        with pytest.raises(InvalidAmountError):
            record_spend(conn, "CASH", "FOOD", amount, "Nope")
        assert _count_postings(conn) == 0


def test_invalid_amount_is_also_a_value_error(cfg):
    with connect(cfg) as conn:
        with pytest.raises(ValueError):
            record_spend(conn, "CASH", "FOOD", -1, "Nope")


@pytest.mark.parametrize(
    "patron, outlay, missing",
    [("NOPE", "FOOD", "NOPE"), ("CASH", "GONE", "GONE")],
)
def test_unknown_ledger_writes_nothing(cfg, patron, outlay, missing):
    with connect(cfg) as conn:
        with pytest.raises(LedgerNotFoundError, match=missing):
            record_spend(conn, patron, outlay, 10, "Lunch")
        assert _count_postings(conn) == 0


def test_bad_date_writes_nothing(cfg):
    with connect(cfg) as conn:
        with pytest.raises(InvalidDateError):
            record_spend(conn, "CASH", "FOOD", 10, "Lunch", on_date="02/03/2025")
        assert _count_postings(conn) == 0


def test_empty_narration_is_rejected(cfg):
    with connect(cfg) as conn:
        with pytest.raises(ValueError):
            record_spend(conn, "CASH", "FOOD", 10, "   ")
        assert _count_postings(conn) == 0


def test_self_posting_is_allowed(cfg):
    with connect(cfg) as conn:
        posting = record_spend(conn, "CASH", "CASH", 10, "Move", on_date="2025-03-01")
    assert posting.cr_from == posting.db_to


def test_load_postings_respects_window(cfg):
    with connect(cfg) as conn:
        record_spend(conn, "CASH", "FOOD", 1, "Before", on_date="2025-02-28")
        record_spend(conn, "CASH", "FOOD", 2, "First day", on_date="2025-03-01")
        record_spend(conn, "CASH", "FOOD", 3, "Last day", on_date="2025-03-31")
        record_spend(conn, "CASH", "FOOD", 4, "After", on_date="2025-04-01")

        march = Period(
            start=datetime(2025, 3, 1),
            end=datetime(2025, 3, 31, 23, 59, 59),
            label="March",
        )
        df = load_postings(conn, march)
        open_ended = load_postings(
            conn, Period(start=datetime(2025, 3, 1), end=None, label="Since March")
        )

    assert df["narration"].tolist() == ["First day", "Last day"]
    assert df["amount_cents"].tolist() == [200, 300]
    assert open_ended["narration"].tolist() == ["First day", "Last day", "After"]


def test_recent_postings_newest_first_with_limit(cfg):
    with connect(cfg) as conn:
        for day in range(1, 13):
            record_spend(conn, "CASH", "FOOD", day, f"Day {day}", on_date=f"2025-03-{day:02d}")

        df = recent_postings(conn)
        three = recent_postings(conn, limit=3)

    assert len(df) == 10
    assert df["narration"].iloc[0] == "Day 12"
    assert df["narration"].iloc[-1] == "Day 3"
    assert three["narration"].tolist() == ["Day 12", "Day 11", "Day 10"]
    assert list(df.columns) == ["created_at", "cr_from_code", "db_to_code", "amount", "narration"]
    assert df["cr_from_code"].iloc[0] == "CASH"
    assert df["db_to_code"].iloc[0] == "FOOD"
    assert df["amount"].iloc[0] == 12.0


def test_recent_postings_same_timestamp_orders_by_insertion(cfg):
    with connect(cfg) as conn:
        record_spend(conn, "CASH", "FOOD", 1, "First", on_date="2025-03-01")
        record_spend(conn, "CASH", "FOOD", 2, "Second", on_date="2025-03-01")

        df = recent_postings(conn)

    assert df["narration"].tolist() == ["Second", "First"]


def test_recent_postings_on_empty_store(cfg):
    with connect(cfg) as conn:
        assert recent_postings(conn).empty


@pytest.mark.parametrize("amount", ["12.345", 0.125, "0.001"])
def test_amounts_with_more_than_two_decimals_are_rejected(cfg, amount):
    with connect(cfg) as conn:
        with pytest.raises(InvalidAmountError, match="at most two decimals"):
            record_spend(conn, "CASH", "FOOD", amount, "Too precise")
        assert _count_postings(conn) == 0


@pytest.mark.parametrize("amount", ["1e17", 5e16, MAX_AMOUNT_CENTS / 100 + 1])
def test_amounts_above_the_bound_are_rejected(cfg, amount):
    with connect(cfg) as conn:
        with pytest.raises(InvalidAmountError, match="must not exceed"):
            record_spend(conn, "CASH", "FOOD", amount, "Too big")
        assert _count_postings(conn) == 0


def test_largest_amount_is_stored_exactly(cfg):
    largest = MAX_AMOUNT_CENTS // 100
    with connect(cfg) as conn:
        posting = record_spend(conn, "CASH", "FOOD", largest, "Everything")
        stored = conn.execute("SELECT amount_cents FROM postings;").fetchone()[0]

    assert stored == largest * 100
    assert posting.amount == float(largest)
