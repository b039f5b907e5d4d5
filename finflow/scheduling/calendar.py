"""
Calendar Month Arithmetic

Pure date helpers shared by installment expansion and fixed-expense
generation.

DESIGN DECISION: Adding months clamps the day to the target month's
length. A purchase on Jan 31 has its second installment on Feb 28/29,
never on Mar 2/3.

Dates cross the storage boundary anchored to midnight UTC
("YYYY-MM-DDT00:00:00.000Z"). Parsing reads the calendar day from the
string itself so a local timezone can never move a transaction to the
neighbouring day.
"""

from calendar import monthrange
from datetime import date

MONTHS_PER_YEAR = 12
UTC_MIDNIGHT_SUFFIX = "T00:00:00.000Z"


def days_in_month(year: int, month: int) -> int:
    """Number of days in the given month (month is 1-12)."""
    _check_month(month)
    return monthrange(year, month)[1]


def clamp_day(year: int, month: int, day: int) -> int:
    """Clamp a day-of-month (1-31) to the real length of year/month."""
    _check_day(day)
    return min(day, days_in_month(year, month))


def add_months(year: int, month: int, day: int, delta: int) -> tuple[int, int, int]:
    """
    Add `delta` whole months to (year, month, day).
    
    Month overflow and underflow carry into the year; `delta` may be
    negative. The day is clamped to the target month's length.
    
    Examples:
        add_months(2024, 1, 31, 1)  -> (2024, 2, 29)
        add_months(2023, 1, 31, 1)  -> (2023, 2, 28)
        add_months(2024, 1, 15, -1) -> (2023, 12, 15)
    """
    _check_month(month)
    _check_day(day)
    total_month = month - 1 + delta
    target_year = year + total_month // MONTHS_PER_YEAR
    target_month = total_month % MONTHS_PER_YEAR + 1
    return target_year, target_month, clamp_day(target_year, target_month, day)


def add_months_to_date(value: date, delta: int) -> date:
    """Same as add_months, for a date object."""
    return date(*add_months(value.year, value.month, value.day, delta))


def in_month(value: date, month: int, year: int) -> bool:
    """True when `value` falls inside month/year."""
    return value.year == year and value.month == month


def to_utc_midnight_iso(value: date) -> str:
    """Serialize a calendar date as midnight UTC, e.g. 2024-02-29T00:00:00.000Z."""
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}{UTC_MIDNIGHT_SUFFIX}"


def parse_utc_midnight_iso(value: str) -> date:
    """
    Parse a boundary date string back into a calendar date.
    
    Accepts the anchored form ("2024-02-29T00:00:00.000Z") and a bare
    ISO date ("2024-02-29"). Only the date part is read.
    """
    text = value.strip()
    if len(text) < 10:
        raise ValueError(f"Not an ISO date: {value!r}")
    return date.fromisoformat(text[:10])


def _check_month(month: int) -> None:
    if not 1 <= month <= MONTHS_PER_YEAR:
        raise ValueError(f"month must be between 1 and 12, got {month}")


def _check_day(day: int) -> None:
    if not 1 <= day <= 31:
        raise ValueError(f"day must be between 1 and 31, got {day}")
