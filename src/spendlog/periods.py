# Spendlog - Personal double-entry ledger CLI
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Period helpers for Spendlog.

This module turns a report request into a concrete time window. A request
is one of three mutually exclusive shapes:

- a named period (today, week, month, all),
- a single explicit date,
- an explicit from/to date range.

Each shape is its own small dataclass; ``PeriodSpec`` is their union.
``resolve_period`` maps a specifier and a pinned "now" to a ``Period`` value
object with an inclusive start, an optional inclusive end and a label.

All datetimes are naive and expressed in UTC. No timezone conversion is
performed anywhere.
"""

import calendar
import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Literal, Optional, Union

from .errors import DateRangeError, InvalidCapError, InvalidDateError, InvalidMonthError

PeriodName = Literal["today", "week", "month", "all"]
PERIOD_NAMES: tuple[str, ...] = ("today", "week", "month", "all")

EPOCH = datetime(1970, 1, 1)

MONTH_NAMES: tuple[str, ...] = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

_END_OF_DAY = time(23, 59, 59)


@dataclass(frozen=True)
class Period:
    """A resolved reporting window; ``end`` is None for an open window."""

    start: datetime
    end: Optional[datetime]
    label: str


@dataclass(frozen=True)
class NamedPeriod:
    """A period relative to "now": today, week, month or all."""

    name: PeriodName


@dataclass(frozen=True)
class OnDate:
    """A single calendar day, as a raw YYYY-MM-DD string."""

    day: str


@dataclass(frozen=True)
class Between:
    """An inclusive range of calendar days, as raw YYYY-MM-DD strings."""

    from_day: str
    to_day: str


PeriodSpec = Union[NamedPeriod, OnDate, Between]


def _utc_now() -> datetime:
    """Return the current naive UTC datetime (isolated for easier testing)."""
    return datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0)


def parse_day(raw: Union[str, date], what: str = "") -> date:
    """
    Parse a YYYY-MM-DD string into a date.

    ``date`` instances are returned unchanged. ``what`` is an optional
    qualifier used in the error message (e.g. "'from' ").

    Raises:
        InvalidDateError: if the value is not a valid YYYY-MM-DD date.
    """
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    try:
        return datetime.strptime(str(raw).strip(), "%Y-%m-%d").date()
    except ValueError as exc:
        raise InvalidDateError(
            f"Invalid {what}date format: {raw}. Use YYYY-MM-DD"
        ) from exc


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, _END_OF_DAY)


def resolve_period(spec: PeriodSpec, now: Optional[datetime] = None) -> Period:
    """
    Resolve a period specifier into a concrete window.

    Rules:

    - today  -> [now at 00:00:00, open)
    - week   -> [Monday of now's ISO week at 00:00:00, open)
    - month  -> [1st of now's month at 00:00:00, open)
    - all    -> [1970-01-01 00:00:00, open)
    - OnDate(d)     -> [d 00:00:00, d 23:59:59]
    - Between(f, t) -> [f 00:00:00, t 23:59:59]

    The function is pure for a given ``now``.

    Raises:
        InvalidDateError: if a date is malformed or the period name unknown.
        DateRangeError: if a range starts after it ends.
    """
    if now is None:
        now = _utc_now()
    today = now.date()

    if isinstance(spec, NamedPeriod):
        if spec.name == "today":
            return Period(start=start_of_day(today), end=None, label="Today")
        if spec.name == "week":
            monday = today - timedelta(days=today.weekday())
            return Period(start=start_of_day(monday), end=None, label="This Week")
        if spec.name == "month":
            first = today.replace(day=1)
            return Period(start=start_of_day(first), end=None, label="This Month")
        if spec.name == "all":
            return Period(start=EPOCH, end=None, label="All Time")
        raise InvalidDateError(f"Unknown period: {spec.name!r}")

    if isinstance(spec, OnDate):
        day = parse_day(spec.day)
        return Period(
            start=start_of_day(day),
            end=end_of_day(day),
            label=f"Date: {day.isoformat()}",
        )

    if isinstance(spec, Between):
        from_day = parse_day(spec.from_day, "'from' ")
        to_day = parse_day(spec.to_day, "'to' ")
        if from_day > to_day:
            raise DateRangeError(
                "The 'from' date must be earlier than or equal to the 'to' date."
            )
        return Period(
            start=start_of_day(from_day),
            end=end_of_day(to_day),
            label=f"From {from_day.isoformat()} to {to_day.isoformat()}",
        )

    raise TypeError(f"Unsupported period specifier: {spec!r}")


def period_spec_from_args(
    period: Optional[str] = None,
    on_date: Optional[str] = None,
    from_day: Optional[str] = None,
    to_day: Optional[str] = None,
) -> PeriodSpec:
    """
    Build a period specifier from the raw report arguments.

    Exactly one request shape may be given: a named period, a single date,
    or a complete from/to range. Giving none defaults to "all".

    Raises:
        InvalidDateError: for any other combination (including a range with
            only one side), before anything is queried.
    """
    has_range = from_day is not None or to_day is not None

    if period is not None and on_date is not None:
        raise InvalidDateError(
            "Cannot specify both a period and a date. "
            "Use either '<period>' or '--date <YYYY-MM-DD>'."
        )
    if period is not None and has_range:
        raise InvalidDateError(
            "Cannot specify both a period and a date range. "
            "Use either '<period>' or '--from <YYYY-MM-DD> --to <YYYY-MM-DD>'."
        )
    if on_date is not None and has_range:
        raise InvalidDateError(
            "Cannot specify both a date and a date range. "
            "Use either '--date <YYYY-MM-DD>' or '--from <YYYY-MM-DD> --to <YYYY-MM-DD>'."
        )
    if has_range and (from_day is None or to_day is None):
        raise InvalidDateError("Must specify both --from and --to dates for a date range.")

    if period is not None:
        name = period.lower()
        if name not in PERIOD_NAMES:
            raise InvalidDateError(
                f"Unknown period: {period!r}. Use one of: {', '.join(PERIOD_NAMES)}."
            )
        return NamedPeriod(name=name)  # type: ignore[arg-type]
    if on_date is not None:
        return OnDate(day=on_date)
    if from_day is not None and to_day is not None:
        return Between(from_day=from_day, to_day=to_day)

    return NamedPeriod(name="all")


# ---------------------------------------------------------------------------
# Calendar report window
# ---------------------------------------------------------------------------


def parse_month_name(raw: str) -> int:
    """
    Return the month number (1-12) for a full English month name.

    Matching is case-insensitive and ignores surrounding whitespace.

    Raises:
        InvalidMonthError: if the name is not a month.
    """
    wanted = raw.strip().lower()
    for number, name in enumerate(MONTH_NAMES, start=1):
        if name.lower() == wanted:
            return number
    raise InvalidMonthError(
        f"Invalid month: {raw}. Use full month name (e.g., 'April')."
    )


def resolve_calendar_month(
    month_name: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Period:
    """
    Resolve the window of a daily calendar report.

    - No month name: the current month of the current year.
    - A month name after the current month refers to last year; any other
      month refers to the current year.

    The window starts on the 1st at 00:00:00. It ends at ``now`` when the
    target is the current month, otherwise on the last day of the target
    month at 23:59:59.
    """
    if now is None:
        now = _utc_now()

    if month_name is None:
        month, year = now.month, now.year
    else:
        month = parse_month_name(month_name)
        year = now.year - 1 if month > now.month else now.year

    start = datetime(year, month, 1)
    if (year, month) == (now.year, now.month):
        end = now
    else:
        last_day = calendar.monthrange(year, month)[1]
        end = end_of_day(date(year, month, last_day))

    return Period(start=start, end=end, label=f"{MONTH_NAMES[month - 1]} {year}")


def parse_cap(raw: Union[str, float, int]) -> float:
    """
    Validate a daily cap.

    Raises:
        InvalidCapError: if the value is not a finite number greater than 0.
    """
    try:
        cap = float(raw)
    except (TypeError, ValueError) as exc:
        raise InvalidCapError(f"Invalid cap value: {raw}. Must be a number.") from exc

    if not math.isfinite(cap):
        raise InvalidCapError(f"Invalid cap value: {raw}. Must be a number.")
    if cap <= 0:
        raise InvalidCapError("Cap must be a positive number.")
    return cap


def _looks_numeric(raw: str) -> bool:
    try:
        float(raw)
    except ValueError:
        return False
    return True


def split_calendar_args(
    first: Optional[str] = None,
    second: Optional[str] = None,
) -> tuple[Optional[str], Optional[float]]:
    """
    Interpret the positional arguments of ``calendar [MONTH] [CAP]``.

    A single numeric argument is the cap for the current month; a single
    non-numeric argument is a month name. With two arguments the first is
    the month and the second the cap.

    Returns:
        (month_name or None, cap or None)
    """
    if first is not None and second is not None:
        return first, parse_cap(second)
    if first is not None:
        if _looks_numeric(first):
            return None, parse_cap(first)
        return first, None
    if second is not None:
        return None, parse_cap(second)
    return None, None
