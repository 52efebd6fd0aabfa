import io
from datetime import date, datetime

import pandas as pd
import pytest

from spendlog.engine import BalanceReport, CalendarReport, LedgerStatement
from spendlog.ledgers import Ledger
from spendlog.periods import Period
from spendlog.views import (
    GREEN,
    RED,
    export_csv,
    format_amount,
    render_balance_report,
    render_calendar_report,
    render_ledger_list,
    render_ledger_statement,
    render_recent,
    should_use_color,
)

MARCH = Period(
    start=datetime(2025, 3, 1),
    end=datetime(2025, 3, 31, 23, 59, 59),
    label="From 2025-03-01 to 2025-03-31",
)


class _Tty(io.StringIO):
    def isatty(self) -> bool:
        return True


@pytest.fixture(scope="module")
def balance_report() -> BalanceReport:
    rows = pd.DataFrame(
        {
            "code": ["FOOD", "CASH", "CARD"],
            "name": ["Food", "Cash", "Credit card"],
            "kind": ["EXPENSE", "ASSET", "LIABILITY"],
            "net": [1234.5, 0.0, -20.0],
        }
    )
    return BalanceReport(period=MARCH, rows=rows, grand_total=1214.5)


@pytest.fixture(scope="module")
def calendar_report() -> CalendarReport:
    rows = pd.DataFrame(
        {
            "day": [date(2025, 3, 1), date(2025, 3, 2)],
            "amount": [50.0, 30.0],
            "skimp": [-10.0, 10.0],
        }
    )
    return CalendarReport(
        period=Period(datetime(2025, 3, 1), datetime(2025, 3, 31, 23, 59, 59), "March 2025"),
        cap=40.0,
        rows=rows,
        grand_total=80.0,
        total_skimp=10.0,
    )


@pytest.mark.parametrize(
    "value, expected",
    [(0, "0.00"), (-0.001, "0.00"), (12.5, "12.50"), (-20, "-20.00"), (1999.999, "2000.00")],
)
def test_format_amount(value, expected) -> None:
    assert format_amount(value) == expected


def test_balance_report_layout(balance_report: BalanceReport) -> None:
    lines = render_balance_report(balance_report).splitlines()

    assert lines[0] == "Spending Report (From 2025-03-01 to 2025-03-31):"
    assert lines[1].startswith("Code")
    assert lines[1].endswith("Net Amount")
    assert set(lines[2]) == {"-"}
    assert lines[3].startswith("FOOD")
    assert lines[3].endswith("1234.50")
    assert lines[5].endswith("-20.00")
    assert set(lines[6]) == {"-"}
    assert lines[7].startswith("Grand Total")
    assert lines[7].endswith("1214.50")

    # Amounts are right-aligned on the same column.
    widths = {len(line) for line in lines[1:]}
    assert len(widths) == 1


def test_balance_report_without_rows() -> None:
    empty = BalanceReport(
        period=MARCH,
        rows=pd.DataFrame(columns=["code", "name", "kind", "net"]),
        grand_total=0.0,
    )
    text = render_balance_report(empty)

    assert "(no data)" in text
    assert text.splitlines()[-1].endswith("0.00")


def test_ledger_statement_layout() -> None:
    ledger = Ledger(
        id=1,
        code="CARD",
        name="Credit card",
        description=None,
        sort="debt",
        kind="LIABILITY",
        created_at=datetime(2025, 1, 1),
        updated_at=datetime(2025, 1, 1),
    )
    rows = pd.DataFrame(
        {
            "created_at": pd.to_datetime(["2025-03-02 00:00:00", "2025-03-01 00:00:00"]),
            "counterparty": ["FOOD", "CASH"],
            "narration": ["Dinner", "Repay"],
            "credit": [30.0, 0.0],
            "debit": [0.0, 50.0],
        }
    )
    statement = LedgerStatement(
        ledger=ledger,
        period=MARCH,
        rows=rows,
        total_credits=30.0,
        total_debits=50.0,
        net_balance=20.0,
    )

    lines = render_ledger_statement(statement).splitlines()

    assert lines[0] == (
        "Ledger Report for CARD - Credit card (From 2025-03-01 to 2025-03-31):"
    )
    assert lines[3].startswith("2025-03-02 00:00:00  FOOD")
    assert lines[-2].startswith("Totals")
    assert lines[-2].split() == ["Totals", "30.00", "50.00"]
    assert lines[-1] == "Net Balance (Debits - Credits): 20.00"


def test_calendar_report_with_cap_and_color(calendar_report: CalendarReport) -> None:
    plain = render_calendar_report(calendar_report)
    colored = render_calendar_report(calendar_report, use_color=True)

    assert plain.splitlines()[0] == "Daily Spending Report for March 2025 (Daily Cap: 40.00):"
    assert "\033[" not in plain
    assert GREEN in colored
    assert RED in colored
    assert plain.splitlines()[-1].startswith("Grand Total")
    assert plain.splitlines()[-1].split() == ["Grand", "Total", "80.00", "10.00"]


def test_calendar_color_does_not_shift_columns(calendar_report: CalendarReport) -> None:
    plain = render_calendar_report(calendar_report).splitlines()
    colored = render_calendar_report(calendar_report, use_color=True).splitlines()

    stripped = [
        line.replace(GREEN, "").replace(RED, "").replace("\033[0m", "") for line in colored
    ]
    assert stripped == plain


def test_calendar_report_without_cap() -> None:
    report = CalendarReport(
        period=Period(datetime(2025, 3, 1), datetime(2025, 3, 31, 23, 59, 59), "March 2025"),
        cap=None,
        rows=pd.DataFrame({"day": [date(2025, 3, 1)], "amount": [12.0]}),
        grand_total=12.0,
        total_skimp=0.0,
    )
    lines = render_calendar_report(report).splitlines()

    assert lines[0] == "Daily Spending Report for March 2025:"
    assert lines[1].split() == ["Date", "Total", "Spent"]
    assert lines[3].split() == ["2025-03-01", "12.00"]


def test_recent_and_ledger_list() -> None:
    recent = pd.DataFrame(
        {
            "created_at": pd.to_datetime(["2025-03-02 08:30:00"]),
            "cr_from_code": ["CASH"],
            "db_to_code": ["FOOD"],
            "amount": [12.0],
            "narration": ["Lunch"],
        }
    )
    ledgers = pd.DataFrame(
        {"code": ["CASH"], "name": ["Cash"], "sort": ["current"], "kind": ["ASSET"]}
    )

    recent_lines = render_recent(recent, limit=5).splitlines()
    list_lines = render_ledger_list(ledgers).splitlines()

    assert recent_lines[0] == "Recent Transactions Report (Last 5):"
    assert recent_lines[3].split() == ["2025-03-02", "08:30:00", "CASH", "FOOD", "12.00", "Lunch"]
    assert list_lines[0] == "List of Ledgers:"
    assert list_lines[3].split() == ["CASH", "Cash", "current", "ASSET"]


def test_should_use_color(monkeypatch) -> None:
    monkeypatch.delenv("NO_COLOR", raising=False)

    assert should_use_color("always", io.StringIO()) is True
    assert should_use_color("never", _Tty()) is False
    assert should_use_color("auto", io.StringIO()) is False
    assert should_use_color("auto", _Tty()) is True

    monkeypatch.setenv("NO_COLOR", "1")
    assert should_use_color("auto", _Tty()) is False
    assert should_use_color("always", io.StringIO()) is True


def test_export_csv_writes_timestamped_file(tmp_path) -> None:
    df = pd.DataFrame({"code": ["FOOD"], "net": [12.5]})
    path = export_csv(
        df, tmp_path / "out", "spending_report", timestamp=datetime(2025, 3, 2, 8, 30, 5)
    )

    assert path.name == "spending_report_2025-03-02-08-30-05.csv"
    assert path.exists()
    back = pd.read_csv(path)
    assert back["code"].tolist() == ["FOOD"]
    assert back["net"].tolist() == [12.5]
