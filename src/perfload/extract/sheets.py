"""Sheet extraction for CI performance workbooks.

Every worksheet follows one fixed layout (0-based indices)::

    row 0    |  <label>  | 2025-04-24        | Apr 25 2025       | ...
    row 1    |           | Deployment: v1    | Deployment: v2    |
    row 2    |           | Image: img1       | Image: img2       |
    row 3-4  |  (free-form notes, ignored)
    row 5+   |  <entity> | <measurement>     | <measurement>     |

Each column from 1 onward is one test run; each row from 5 onward is a metric
(burn-in) or endpoint (regression) measured by every run. Extraction is
tolerant: a bad cell skips its row or column, never the whole sheet.
"""

from __future__ import annotations

import logging
import zipfile
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Any

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from perfload._constants import BURN_IN_SCENARIO, BURN_IN_SHEET

from .normalizers import DateFormatError, extract_number, parse_date, strip_label

logger = logging.getLogger(__name__)

HEADER_ROW = 0
DEPLOYMENT_ROW = 1
IMAGE_ROW = 2
FIRST_DATA_ROW = 5
NAME_COLUMN = 0


class ExtractionError(Exception):
    """Raised when a workbook cannot be opened or read."""

    pass


class EntityKind(str, Enum):
    """Semantic type of a scenario's row labels."""

    METRIC = "metric"
    ENDPOINT = "endpoint"

    @classmethod
    def for_scenario(cls, scenario_name: str) -> EntityKind:
        """Burn-in scenarios measure metrics; everything else measures endpoints."""
        return cls.METRIC if scenario_name.startswith(BURN_IN_SCENARIO) else cls.ENDPOINT


@dataclass
class Measurement:
    """One (entity, value) pair read from a data row."""

    entity_name: str
    value: float


@dataclass
class RunColumn:
    """A spreadsheet column: one build's run of a scenario plus its measurements."""

    scenario_name: str
    entity_kind: EntityKind
    column: int
    job_date: date
    deployment: str
    image: str
    measurements: list[Measurement] = field(default_factory=list)


# =============================================================================
# Workbook access
# =============================================================================


def load_workbook(path: Path | str) -> Workbook:
    """Open a workbook with cached formula results in place of formulas.

    Args:
        path: Path to an ``.xlsx`` file

    Returns:
        The loaded openpyxl Workbook

    Raises:
        ExtractionError: If the file is missing or is not a readable workbook
    """
    path = Path(path)
    if not path.is_file():
        raise ExtractionError(f"Workbook not found: {path}")

    try:
        return openpyxl.load_workbook(path, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, OSError, KeyError, ValueError) as e:
        raise ExtractionError(f"Failed to read workbook {path}: {e}") from e


def read_sheet(sheet: Worksheet) -> list[tuple[Any, ...]]:
    """Materialize a worksheet as a list of cell rows."""
    return [tuple(row) for row in sheet.iter_rows()]


def _cell(grid: list[tuple[Any, ...]], row: int, column: int) -> Any | None:
    """Return the cell at (row, column), or None when absent or empty."""
    if row >= len(grid) or column >= len(grid[row]):
        return None
    cell = grid[row][column]
    if cell is None or cell.value is None:
        return None
    if isinstance(cell.value, str) and not cell.value.strip():
        return None
    return cell


def _row_present(grid: list[tuple[Any, ...]], row: int) -> bool:
    if row >= len(grid):
        return False
    return any(_cell(grid, row, column) is not None for column in range(len(grid[row])))


# =============================================================================
# Extraction
# =============================================================================


def _extract_column(
    grid: list[tuple[Any, ...]],
    column: int,
    sheet_name: str,
    scenario_name: str,
    entity_kind: EntityKind,
) -> RunColumn | None:
    """Read one run column, or None when the column must be skipped."""
    date_cell = _cell(grid, HEADER_ROW, column)
    if date_cell is None:
        logger.debug(f"Skipping empty column {column} in sheet '{sheet_name}'")
        return None

    try:
        job_date = parse_date(date_cell.value)
    except DateFormatError as e:
        logger.warning(f"Skipping column {column} in sheet '{sheet_name}': {e}")
        return None

    if not _row_present(grid, DEPLOYMENT_ROW) or not _row_present(grid, IMAGE_ROW):
        logger.warning(f"Missing deployment or image row in sheet '{sheet_name}'")
        return None

    deployment_cell = _cell(grid, DEPLOYMENT_ROW, column)
    image_cell = _cell(grid, IMAGE_ROW, column)
    if deployment_cell is None or image_cell is None:
        logger.warning(
            f"Missing deployment or image data for column {column} in sheet '{sheet_name}'"
        )
        return None

    run = RunColumn(
        scenario_name=scenario_name,
        entity_kind=entity_kind,
        column=column,
        job_date=job_date,
        deployment=strip_label(deployment_cell.value),
        image=strip_label(image_cell.value),
    )

    for row in range(FIRST_DATA_ROW, len(grid)):
        name_cell = _cell(grid, row, NAME_COLUMN)
        value_cell = _cell(grid, row, column)
        if name_cell is None or value_cell is None:
            logger.debug(f"Skipping row {row} due to missing data in sheet '{sheet_name}'")
            continue

        value = extract_number(value_cell, row, column)
        if value is None:
            logger.debug(f"Skipping row {row} without a numeric value in sheet '{sheet_name}'")
            continue

        run.measurements.append(Measurement(str(name_cell.value).strip(), value))

    return run


def extract_sheet(
    sheet: Worksheet,
    scenario_name: str,
    entity_kind: EntityKind,
) -> Iterator[RunColumn]:
    """Yield one RunColumn per eligible column of a worksheet.

    Args:
        sheet: Worksheet laid out as described in the module docstring
        scenario_name: Scenario every run in this sheet belongs to
        entity_kind: Kind of the row labels (metric or endpoint)

    Yields:
        RunColumn for each column with a parseable header date and
        deployment/image labels, in column order
    """
    grid = read_sheet(sheet)
    if not _row_present(grid, HEADER_ROW):
        logger.warning(f"Header row not found in sheet '{sheet.title}'")
        return

    for column in range(1, len(grid[HEADER_ROW])):
        run = _extract_column(grid, column, sheet.title, scenario_name, entity_kind)
        if run is not None:
            yield run


def extract_burn_in(workbook: Workbook) -> Iterator[RunColumn]:
    """Extract the single ``results`` sheet of a burn-in workbook.

    The sheet title is matched case-insensitively.
    """
    sheet = next((ws for ws in workbook.worksheets if ws.title.lower() == BURN_IN_SHEET), None)
    if sheet is None:
        logger.warning(f"Sheet '{BURN_IN_SHEET}' not found in burn-in workbook")
        return

    yield from extract_sheet(sheet, BURN_IN_SCENARIO, EntityKind.METRIC)


def extract_regression(workbook: Workbook) -> Iterator[RunColumn]:
    """Extract every sheet of a regression workbook.

    Each sheet is its own scenario, named after the lower-cased sheet title.
    """
    for sheet in workbook.worksheets:
        yield from extract_sheet(sheet, sheet.title.lower(), EntityKind.ENDPOINT)


def iter_facts(columns: Iterable[RunColumn]) -> Iterator[tuple[RunColumn, str, float]]:
    """Flatten run columns into (run, entity name, measurement) facts."""
    for run in columns:
        for measurement in run.measurements:
            yield run, measurement.entity_name, measurement.value
