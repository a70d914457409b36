"""
Rental period boundaries printed in the receipt's legal clause.

The clause runs from the last day of the previous month to the day before
the last day of the receipt month, e.g. "du 31/07/2024 au 30/08/2024" for
August 2024.
"""
import calendar
from typing import Tuple


def _previous_month(month: int, year: int) -> Tuple[int, int]:
    month, year = int(month), int(year)
    if month == 1:
        return 12, year - 1
    return month - 1, year


def _days_in_month(month: int, year: int) -> int:
    return calendar.monthrange(int(year), int(month))[1]


def last_day_of_previous_month(month: int, year: int) -> str:
    """Zero-padded day count of the month before month/year."""
    prev_month, prev_year = _previous_month(month, year)
    return f"{_days_in_month(prev_month, prev_year):02d}"


def previous_month_formatted(month: int, year: int) -> str:
    """Previous month as "MM/YYYY", rolling January back to December."""
    prev_month, prev_year = _previous_month(month, year)
    return f"{prev_month:02d}/{prev_year}"


def day_before_last_day_of_month(month: int, year: int) -> str:
    """Zero-padded last calendar day of month/year, minus one."""
    return f"{_days_in_month(month, year) - 1:02d}"


def rental_period_clause(month: int, year: int) -> str:
    """Date range used in the main receipt text."""
    return (
        f"du {last_day_of_previous_month(month, year)}/{previous_month_formatted(month, year)}"
        f" au {day_before_last_day_of_month(month, year)}/{int(month):02d}/{int(year)}"
    )
