import pytest

from spendlog.db import DatabaseConfig, connect
from spendlog.errors import DuplicateLedgerError, LedgerNotFoundError, StoreError
from spendlog.ledgers import (
    create_ledger,
    get_ledger,
    list_ledgers,
    load_ledgers,
    resolve_ledger_id,
)


def setup_test_db(tmp_path) -> DatabaseConfig:
    return DatabaseConfig(engine="sqlite", path=tmp_path / "ledgers.sqlite")


def test_create_and_resolve_round_trip(tmp_path):
    cfg = setup_test_db(tmp_path)
    with connect(cfg) as conn:
        created = create_ledger(
            conn, "CASH", "Cash in hand", "Wallet", "current", "asset"
        )
        fetched = get_ledger(conn, "CASH")

        assert fetched == created
        assert resolve_ledger_id(conn, "CASH") == created.id
        assert fetched.name == "Cash in hand"
        assert fetched.description == "Wallet"
        assert fetched.sort == "current"


def test_kind_is_stored_upper_cased(tmp_path):
    cfg = setup_test_db(tmp_path)
    with connect(cfg) as conn:
        card = create_ledger(conn, "CARD", "Credit card", None, "debt", "liability")
        cash = create_ledger(conn, "CASH", "Cash", None, "current", "Asset")

    assert card.kind == "LIABILITY"
    assert card.is_liability is True
    assert cash.kind == "ASSET"
    assert cash.is_liability is False


def test_blank_description_is_stored_as_null(tmp_path):
    cfg = setup_test_db(tmp_path)
    with connect(cfg) as conn:
        ledger = create_ledger(conn, "FOOD", "Food", "   ", "expense", "EXPENSE")
        raw = conn.execute("SELECT description FROM ledgers WHERE code = 'FOOD';").fetchone()

    assert ledger.description is None
    assert raw[0] is None


def test_fields_are_trimmed(tmp_path):
    cfg = setup_test_db(tmp_path)
    with connect(cfg) as conn:
        ledger = create_ledger(conn, "  RENT ", " Rent ", None, " fixed ", " expense ")

    assert ledger.code == "RENT"
    assert ledger.name == "Rent"
    assert ledger.sort == "fixed"
    assert ledger.kind == "EXPENSE"


@pytest.mark.parametrize("field", ["code", "name", "sort", "kind"])
def test_required_fields_must_not_be_empty(tmp_path, field):
    cfg = setup_test_db(tmp_path)
    values = {"code": "CASH", "name": "Cash", "sort": "current", "kind": "ASSET"}
    values[field] = "  "
    with connect(cfg) as conn:
        with pytest.raises(ValueError):
            create_ledger(conn, description=None, **values)
        assert list_ledgers(conn).empty


def test_duplicate_code_is_rejected(tmp_path):
    cfg = setup_test_db(tmp_path)
    with connect(cfg) as conn:
        create_ledger(conn, "CASH", "Cash", None, "current", "ASSET")

        with pytest.raises(DuplicateLedgerError) as excinfo:
            create_ledger(conn, "CASH", "Other cash", None, "current", "ASSET")

        assert isinstance(excinfo.value, StoreError)
        assert "CASH" in str(excinfo.value)
        assert len(list_ledgers(conn)) == 1
        assert get_ledger(conn, "CASH").name == "Cash"


def test_codes_are_case_sensitive(tmp_path):
    cfg = setup_test_db(tmp_path)
    with connect(cfg) as conn:
        create_ledger(conn, "CASH", "Cash", None, "current", "ASSET")

        with pytest.raises(LedgerNotFoundError):
            resolve_ledger_id(conn, "cash")


def test_unknown_code_raises_not_found(tmp_path):
    cfg = setup_test_db(tmp_path)
    with connect(cfg) as conn:
        with pytest.raises(LedgerNotFoundError, match="Ledger not found: NOPE"):
            get_ledger(conn, "NOPE")
        with pytest.raises(LookupError):
            resolve_ledger_id(conn, "NOPE")


def test_list_ledgers_is_ordered_by_code(tmp_path):
    cfg = setup_test_db(tmp_path)
    with connect(cfg) as conn:
        create_ledger(conn, "RENT", "Rent", None, "fixed", "EXPENSE")
        create_ledger(conn, "CASH", "Cash", None, "current", "ASSET")
        create_ledger(conn, "FOOD", "Food", None, "expense", "EXPENSE")

        df = list_ledgers(conn)
        frame = load_ledgers(conn)

    assert list(df.columns) == ["code", "name", "sort", "kind"]
    assert df["code"].tolist() == ["CASH", "FOOD", "RENT"]
    assert list(frame.columns) == ["id", "code", "name", "kind"]
    assert frame["code"].tolist() == ["RENT", "CASH", "FOOD"]


def test_list_ledgers_on_empty_store(tmp_path):
    cfg = setup_test_db(tmp_path)
    with connect(cfg) as conn:
        assert list_ledgers(conn).empty
        assert load_ledgers(conn).empty
