"""Extraction module for perfload.

Reads CI performance workbooks and normalizes their cells.
"""

from .normalizers import (
    DATE_PARSERS,
    DateFormatError,
    extract_number,
    format_date,
    lenient_date,
    parse_date,
    strip_label,
)
from .sheets import (
    EntityKind,
    ExtractionError,
    Measurement,
    RunColumn,
    extract_burn_in,
    extract_regression,
    extract_sheet,
    iter_facts,
    load_workbook,
)

__all__ = [
    "DATE_PARSERS",
    "DateFormatError",
    "EntityKind",
    "ExtractionError",
    "Measurement",
    "RunColumn",
    "extract_burn_in",
    "extract_number",
    "extract_regression",
    "extract_sheet",
    "format_date",
    "iter_facts",
    "lenient_date",
    "load_workbook",
    "parse_date",
    "strip_label",
]
