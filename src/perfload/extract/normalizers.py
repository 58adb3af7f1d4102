"""Cell value normalizers.

Spreadsheet cells arrive as numbers, text, cached formula results or native
dates depending on how the CI job produced the workbook. The helpers here
turn them into the two shapes the loader stores: a float measurement and a
calendar date.

Date strings are resolved by walking :data:`DATE_PARSERS`, an ordered list of
pure parse attempts. Each attempt returns a date or ``None``; the first hit
wins. Name-bearing formats are tried with English month names first and then
with the month names of the running ``LC_TIME`` locale, so results do not
depend on where the loader runs.
"""

from __future__ import annotations

import calendar
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any

logger = logging.getLogger(__name__)

# openpyxl Cell.data_type codes
_NUMERIC = "n"
_TEXT = ("s", "inlineStr")
_FORMULA = "f"


class DateFormatError(ValueError):
    """Raised when a value cannot be resolved to a calendar date."""

    def __init__(self, message: str, value: Any = None):
        super().__init__(message)
        self.value = value


# =============================================================================
# Numbers
# =============================================================================


def _location(row: int | None, column: int | None) -> str:
    if row is None and column is None:
        return ""
    return f" at row {row}, column {column}"


def _parse_float(text: str) -> float | None:
    try:
        return float(text)
    except (TypeError, ValueError):
        return None


def extract_number(cell: Any, row: int | None = None, column: int | None = None) -> float | None:
    """Extract a numeric measurement from a cell, regardless of its format.

    Args:
        cell: openpyxl cell (anything with ``data_type`` and ``value``)
        row: Row index, used for log context only
        column: Column index, used for log context only

    Returns:
        The value as float, or None when the cell holds no usable number.
        Never raises for bad content.
    """
    if cell is None or cell.value is None:
        logger.debug(f"Cell is empty{_location(row, column)}")
        return None

    data_type = getattr(cell, "data_type", None)
    value = cell.value

    if data_type == _NUMERIC:
        return float(value)

    if data_type in _TEXT:
        text = str(value).strip()
        number = _parse_float(text)
        if number is None:
            logger.warning(
                f"Unable to parse numeric value from text: '{text}'{_location(row, column)}"
            )
        return number

    if data_type == _FORMULA:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        text = str(value).strip()
        number = _parse_float(text)
        if number is None:
            logger.warning(
                f"Formula resulted in non-numeric value: '{text}'{_location(row, column)}"
            )
        return number

    logger.warning(f"Unsupported cell type{_location(row, column)}: {data_type}")
    return None


# =============================================================================
# Labels
# =============================================================================


def strip_label(value: Any) -> str:
    """Drop a ``"Label: "`` prefix, e.g. ``"Deployment: v1"`` -> ``"v1"``.

    Only the first ``": "`` separates; text without one is returned as-is.
    """
    text = "" if value is None else str(value)
    parts = text.split(": ", 1)
    return parts[1] if len(parts) > 1 else text


# =============================================================================
# Dates
# =============================================================================

_ENGLISH_MONTH_NAMES = (
    "january",
    "february",
    "march",
    "april",
    "may",
    "june",
    "july",
    "august",
    "september",
    "october",
    "november",
    "december",
)


def _month_table(names: Any, abbreviations: Any) -> dict[str, int]:
    """Map lower-cased full and abbreviated month names to 1..12."""
    table: dict[str, int] = {}
    for number in range(1, 13):
        for name in (names[number], abbreviations[number]):
            key = str(name).strip().rstrip(".").lower()
            if key:
                table.setdefault(key, number)
    return table


_ENGLISH_MONTHS = _month_table(
    [""] + list(_ENGLISH_MONTH_NAMES),
    [""] + [name[:3] for name in _ENGLISH_MONTH_NAMES],
)

# First three letters of an English month name -> month number.
_MONTH_PREFIXES = {name[:3]: number for number, name in enumerate(_ENGLISH_MONTH_NAMES, start=1)}


def _english_months() -> dict[str, int]:
    return _ENGLISH_MONTHS


def _locale_months() -> dict[str, int]:
    # calendar reads month names through strftime, so this follows LC_TIME.
    return _month_table(calendar.month_name, calendar.month_abbr)


def lenient_date(year: int, month: int, day: int) -> date:
    """Build a date, rolling month and day overflow into adjacent dates.

    ``lenient_date(2023, 2, 30)`` is 2023-03-02 and ``lenient_date(2023, 13, 1)``
    is 2024-01-01.

    Raises:
        ValueError: If the rolled date falls outside the supported year range
    """
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    try:
        return date(year, month, 1) + timedelta(days=day - 1)
    except OverflowError as e:
        raise ValueError(f"Date out of range: {year}-{month}-{day}") from e


def format_date(value: date) -> str:
    """Render a date as ``YYYY-MM-DD``."""
    return value.strftime("%Y-%m-%d")


_MONTH_TOKEN = r"(?P<month>[^\W\d_]+)\.?"
_DAY_TOKEN = r"(?P<day>\d{1,2})"
_YEAR_TOKEN = r"(?P<year>\d{4})"


@dataclass(frozen=True)
class DateFormat:
    """One accepted date layout.

    Patterns match at the start of the text; anything after the date
    (a time component, for instance) is ignored.
    """

    name: str
    pattern: re.Pattern[str]
    named_month: bool = False
    max_month: int | None = None


DATE_FORMATS: tuple[DateFormat, ...] = (
    DateFormat(
        "YYYY-MM-DD",
        re.compile(r"(?P<year>\d{4})-(?P<month>\d{1,2})-(?P<day>\d{1,2})"),
    ),
    DateFormat(
        "Mon D YYYY",
        re.compile(rf"{_MONTH_TOKEN}\s+{_DAY_TOKEN}\s+{_YEAR_TOKEN}"),
        named_month=True,
    ),
    DateFormat(
        "Month D, YYYY",
        re.compile(rf"{_MONTH_TOKEN}\s+{_DAY_TOKEN},\s*{_YEAR_TOKEN}"),
        named_month=True,
    ),
    DateFormat(
        "D Mon YYYY",
        re.compile(rf"{_DAY_TOKEN}\s+{_MONTH_TOKEN}\s+{_YEAR_TOKEN}"),
        named_month=True,
    ),
    # Month-first wins for ambiguous input; a first field above 12 can only
    # be a day, so it falls through to the day-first layout.
    DateFormat(
        "MM/DD/YYYY",
        re.compile(r"(?P<month>\d{1,2})/(?P<day>\d{1,2})/(?P<year>\d{4})"),
        max_month=12,
    ),
    DateFormat(
        "DD/MM/YYYY",
        re.compile(r"(?P<day>\d{1,2})/(?P<month>\d{1,2})/(?P<year>\d{4})"),
    ),
)


@dataclass(frozen=True)
class DateParser:
    """A single parse attempt: one format read with one locale's month names."""

    name: str
    date_format: DateFormat
    months: Callable[[], dict[str, int]]

    def __call__(self, text: str) -> date | None:
        match = self.date_format.pattern.match(text)
        if match is None:
            return None

        if self.date_format.named_month:
            month = self.months().get(match.group("month").lower())
            if month is None:
                return None
        else:
            month = int(match.group("month"))
            if self.date_format.max_month is not None and month > self.date_format.max_month:
                return None

        try:
            return lenient_date(int(match.group("year")), month, int(match.group("day")))
        except ValueError:
            return None


def parse_month_day_year_tokens(text: str) -> date | None:
    """Last-resort reading of ``<month-name> <day> <year>``.

    The month is identified by its first three letters, so forms such as
    ``Sept 5 2023`` that no locale spells that way still resolve.
    """
    parts = text.split(" ")
    if len(parts) != 3:
        return None

    month_token, day, year = parts
    month = _MONTH_PREFIXES.get(month_token[:3].lower())
    if month is None:
        logger.debug(f"Manual date parsing failed for: {text} - invalid month: {month_token}")
        return None

    try:
        return lenient_date(int(year), month, int(day))
    except ValueError as e:
        logger.debug(f"Manual date parsing failed for: {text} - {e}")
        return None


def _build_date_parsers() -> list[Callable[[str], date | None]]:
    parsers: list[Callable[[str], date | None]] = []
    for locale_name, months in (("en", _english_months), ("default", _locale_months)):
        for date_format in DATE_FORMATS:
            # Numeric layouts read the same in every locale.
            if locale_name != "en" and not date_format.named_month:
                continue
            parsers.append(DateParser(f"{date_format.name} [{locale_name}]", date_format, months))
    parsers.append(parse_month_day_year_tokens)
    return parsers


DATE_PARSERS: list[Callable[[str], date | None]] = _build_date_parsers()


def parse_date(value: Any) -> date:
    """Resolve a header cell value to a calendar date.

    Args:
        value: A ``date``/``datetime`` from a date-formatted cell, or a
            free-form date string

    Returns:
        The calendar date (time components are dropped)

    Raises:
        DateFormatError: If the value is empty or matches no accepted format
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = "" if value is None else str(value).strip()
    if not text:
        raise DateFormatError("Date string is null or empty", value)

    for parser in DATE_PARSERS:
        parsed = parser(text)
        if parsed is not None:
            return parsed

    logger.warning(f"Could not parse date string: {text}")
    raise DateFormatError(f"Invalid date format: {text}", value)
