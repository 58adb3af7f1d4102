"""Shared fixtures for the perfload test suite."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any

import openpyxl
import pytest

from perfload._constants import BURN_IN_FILE, REGRESSION_BURN_IN_FILE, REGRESSION_FILE
from perfload.build import BuildInfo
from perfload.config import DatabaseConfig
from perfload.store import open_store


def make_sheet_rows(
    dates: Sequence[Any],
    deployments: Sequence[Any],
    images: Sequence[Any],
    data: Sequence[Sequence[Any]],
    label: str = "Metric",
) -> list[list[Any]]:
    """Lay out rows in the fixed sheet format.

    Row 0 holds the run dates, rows 1-2 the deployment and image labels,
    rows 3-4 free-form notes and rows 5+ one entity per row.
    """
    return [
        [label, *dates],
        [None, *deployments],
        [None, *images],
        ["notes"],
        [],
        *[list(row) for row in data],
    ]


def write_workbook(path: Path, sheets: dict[str, list[list[Any]]]) -> Path:
    """Save a workbook whose sheets hold the given rows, in order."""
    wb = openpyxl.Workbook()
    wb.remove(wb.active)
    for title, rows in sheets.items():
        ws = wb.create_sheet(title)
        for row in rows:
            ws.append(row)
    wb.save(path)
    return path


def make_metadata(**overrides: Any) -> dict[str, Any]:
    """Jenkins build JSON with the fields the loader reads."""
    base: dict[str, Any] = {
        "fullDisplayName": "perf-dolphin #412",
        "id": "412",
        "artifacts": [
            {"fileName": name, "relativePath": f"reports/{name}"}
            for name in (BURN_IN_FILE, REGRESSION_FILE, REGRESSION_BURN_IN_FILE)
        ],
    }
    base.update(overrides)
    return base


def count_rows(connection, table: str) -> int:
    return connection.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]


BURN_IN_ROWS = make_sheet_rows(
    ["2025-04-24", "Apr 25 2025"],
    ["Deployment: v1", "Deployment: v2"],
    ["Image: img1", "Image: img2"],
    [["cpu_seconds", 12.5, 13.0], ["heap_mb", "512", 530]],
)

REGRESSION_SHEETS = {
    "Login": make_sheet_rows(
        ["2025-04-24"],
        ["Deployment: v1"],
        ["Image: img1"],
        [["/api/login", 120], ["/api/logout", 35.5]],
        label="Endpoint",
    ),
    "Checkout": make_sheet_rows(
        ["04/24/2025"],
        ["Deployment: v1"],
        ["Image: img1"],
        [["/api/cart", 210]],
        label="Endpoint",
    ),
}

REGRESSION_BURN_IN_SHEETS = {
    "Burn_In_Api": make_sheet_rows(
        ["24 Apr 2025"],
        ["Deployment: v1"],
        ["Image: img1"],
        [["/api/orders", 88]],
        label="Endpoint",
    ),
}


@pytest.fixture
def build_info() -> BuildInfo:
    """Build identity stamped on every run in tests."""
    return BuildInfo(job_name="perf-dolphin #412", build_number="412")


@pytest.fixture
def database_config(tmp_path) -> DatabaseConfig:
    """Store configuration pointing at a fresh SQLite file."""
    return DatabaseConfig(path=str(tmp_path / "store" / "perf.db"))


@pytest.fixture
def store(database_config):
    """Open, provisioned store connection."""
    connection = open_store(database_config)
    yield connection
    connection.close()


@pytest.fixture
def workbook_dir(tmp_path) -> Path:
    """Directory holding all three spreadsheets of a build."""
    directory = tmp_path / "downloads"
    directory.mkdir()
    write_workbook(directory / BURN_IN_FILE, {"results": BURN_IN_ROWS})
    write_workbook(directory / REGRESSION_FILE, REGRESSION_SHEETS)
    write_workbook(directory / REGRESSION_BURN_IN_FILE, REGRESSION_BURN_IN_SHEETS)
    return directory
