"""
Date utilities for rent schedules
Calendar month arithmetic and the "<Month> <Year>" payment month keys
"""

from datetime import date, datetime, timedelta
from typing import NamedTuple, Optional, Union

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta


MONTH_NAMES = (
    'January', 'February', 'March', 'April', 'May', 'June',
    'July', 'August', 'September', 'October', 'November', 'December',
)

_MONTH_NUMBERS = {name.lower(): index for index, name in enumerate(MONTH_NAMES, start=1)}


class InvalidDateError(ValueError):
    """Raised when a date field cannot be parsed"""


class MonthKey(NamedTuple):
    """Structured (year, month) key used to join payments to schedule months"""
    year: int
    month: int

    @classmethod
    def from_date(cls, d: date) -> 'MonthKey':
        return cls(d.year, d.month)

    @classmethod
    def parse(cls, text: str) -> 'MonthKey':
        """
        Parse the backend's metadata.month format, e.g. "January 2024"
        Raises ValueError if the text is not "<Month name> <Year>"
        """
        parts = str(text).split()
        if len(parts) != 2:
            raise ValueError(f"Invalid month key: {text!r}")

        month = _MONTH_NUMBERS.get(parts[0].lower())
        if month is None or not parts[1].isdigit():
            raise ValueError(f"Invalid month key: {text!r}")

        return cls(int(parts[1]), month)

    def __str__(self) -> str:
        return f"{MONTH_NAMES[self.month - 1]} {self.year}"


def parse_date(value: Union[str, date, datetime, None]) -> Optional[date]:
    """
    Parse a date field from an API payload
    Accepts date/datetime objects, ISO strings and US display strings (1/15/2024)
    Returns None for empty values, raises InvalidDateError for garbage
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise InvalidDateError(f"Unsupported date value: {value!r}")

    try:
        return date_parser.parse(value.strip()).date()
    except (ValueError, OverflowError) as e:
        raise InvalidDateError(f"Invalid date {value!r}: {e}") from e


def eomonth(d: date, months: int = 0) -> date:
    """
    Last day of the month, shifted by `months`
    """
    target_month = d + relativedelta(months=months)
    first_of_next = date(target_month.year, target_month.month, 1) + relativedelta(months=1)
    return first_of_next - timedelta(days=1)


def add_months(d: date, months: int) -> date:
    """
    Add calendar months to a date, keeping the day of month when possible
    Days past the end of a shorter month clamp to its last day (Jan 31 + 1 = Feb 29)
    """
    return d + relativedelta(months=months)


def is_same_month(first: date, second: date) -> bool:
    return first.year == second.year and first.month == second.month


def period_key(d: date) -> str:
    """Invoice period for a date, e.g. '2025-10'"""
    return f"{d.year}-{d.month:02d}"


def parse_period(period: str) -> date:
    """First day of a 'YYYY-MM' period"""
    try:
        return datetime.strptime(period.strip(), '%Y-%m').date()
    except (AttributeError, ValueError) as e:
        raise InvalidDateError(f"Invalid period {period!r}, expected YYYY-MM") from e
