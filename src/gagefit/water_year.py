"""Water-year calendar helpers.

A water year runs from October 1 of the previous calendar year through
September 30 and is labelled by the calendar year in which it ends:

- Water year 2024 = Oct 1, 2023 - Sep 30, 2024
- A date's water year = calendar year + 1 if month >= 10, else calendar year

Scalar functions are provided for single dates and matching polars
expressions for column-wise use on timestamp columns.
"""

import calendar
from datetime import date

import polars as pl

from .exceptions import InvalidDateError

WATER_YEAR_START_MONTH = 10


def water_year(timestamp: date) -> int:
    """Return the water year of a date or datetime.

    Args:
        timestamp: Calendar date or datetime

    Returns:
        Integer water year

    Examples:
        >>> water_year(date(2023, 10, 1))
        2024
        >>> water_year(date(2024, 9, 30))
        2024
    """
    if timestamp.month >= WATER_YEAR_START_MONTH:
        return timestamp.year + 1
    return timestamp.year


def days_in_month(month: int, year: int) -> int:
    """Return the number of days in a Gregorian month.

    Args:
        month: Month number (1-12)
        year: Calendar year (leap years give February 29 days)

    Returns:
        Number of days in the month

    Raises:
        InvalidDateError: If month is outside 1-12
    """
    if not 1 <= month <= 12:
        raise InvalidDateError(f"Month must be in 1-12, got {month}")
    return calendar.monthrange(year, month)[1]


def water_year_bounds(year: int) -> tuple[date, date]:
    """Return the first and last day of a water year."""
    return date(year - 1, WATER_YEAR_START_MONTH, 1), date(year, WATER_YEAR_START_MONTH - 1, 30)


def water_year_expr(timestamp: pl.Expr) -> pl.Expr:
    """Polars expression computing the water year of a timestamp column."""
    return (
        pl.when(timestamp.dt.month() >= WATER_YEAR_START_MONTH)
        .then(timestamp.dt.year() + 1)
        .otherwise(timestamp.dt.year())
        .cast(pl.Int32)
    )


def days_in_month_expr(timestamp: pl.Expr) -> pl.Expr:
    """Polars expression giving the number of days in each timestamp's month."""
    return timestamp.dt.month_end().dt.day().cast(pl.Int64)
