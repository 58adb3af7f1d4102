"""Upload orchestrator.

Loads the three spreadsheets of a CI build into the store, one file at a
time, over a single connection::

    burn_in_analysis.xlsx            -> burn-in extractor   (scenario "burn_in")
    regression_dolphin.xlsx          -> regression extractor (one scenario per sheet)
    regression_dolphin_burn_in.xlsx  -> regression extractor

Files are independent units of work. A file that fails is rolled back and
recorded as a failed :class:`FileOutcome`; the others still load. The upload
as a whole only fails when every file failed, so callers must inspect the
per-file outcomes to know exactly what was loaded.
"""

from __future__ import annotations

import logging
import sqlite3
import time
from collections.abc import Callable, Iterator
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from openpyxl.workbook.workbook import Workbook

from perfload._constants import BURN_IN_FILE, REGRESSION_BURN_IN_FILE, REGRESSION_FILE
from perfload.build import BuildInfo
from perfload.config import DatabaseConfig
from perfload.extract import RunColumn, extract_burn_in, extract_regression, load_workbook
from perfload.store import RunWriter, open_store

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadTarget:
    """A spreadsheet the orchestrator knows how to load."""

    label: str
    filename: str
    extractor: Callable[[Workbook], Iterator[RunColumn]]


UPLOAD_TARGETS: tuple[UploadTarget, ...] = (
    UploadTarget("burn-in", BURN_IN_FILE, extract_burn_in),
    UploadTarget("regression", REGRESSION_FILE, extract_regression),
    UploadTarget("regression burn-in", REGRESSION_BURN_IN_FILE, extract_regression),
)


@dataclass
class FileOutcome:
    """Result of loading one spreadsheet."""

    label: str
    path: Path
    success: bool
    runs: int = 0
    results: int = 0
    error: str | None = None
    elapsed_seconds: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        d = asdict(self)
        d["path"] = str(self.path)
        return d


@dataclass
class UploadSummary:
    """Per-file outcomes of one upload."""

    directory: Path
    outcomes: list[FileOutcome] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """True unless every file failed."""
        return any(o.success for o in self.outcomes)

    @property
    def failed(self) -> list[FileOutcome]:
        return [o for o in self.outcomes if not o.success]

    @property
    def total_runs(self) -> int:
        return sum(o.runs for o in self.outcomes)

    @property
    def total_results(self) -> int:
        return sum(o.results for o in self.outcomes)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "directory": str(self.directory),
            "success": self.success,
            "total_runs": self.total_runs,
            "total_results": self.total_results,
            "files": [o.to_dict() for o in self.outcomes],
        }


class Uploader:
    """Loads a build's spreadsheets into the store.

    Usage::

        build = BuildInfo.from_metadata(jenkins_json)
        summary = Uploader(build, config.database).upload_all("downloads/")
        if not summary.success:
            ...  # every file failed
    """

    def __init__(
        self,
        build: BuildInfo,
        database: DatabaseConfig,
        targets: tuple[UploadTarget, ...] = UPLOAD_TARGETS,
        open_fn: Callable[[DatabaseConfig], sqlite3.Connection] = open_store,
    ):
        self.build = build
        self.database = database
        self.targets = targets
        self._open = open_fn

    def upload_all(self, directory: Path | str) -> UploadSummary:
        """Load every target file found under *directory*.

        Args:
            directory: Directory holding the downloaded spreadsheets

        Returns:
            UploadSummary with one FileOutcome per target, in upload order

        Raises:
            StoreConnectionError: If the store cannot be opened; no file is
                processed in that case
        """
        directory = Path(directory)
        summary = UploadSummary(directory=directory)

        connection = self._open(self.database)
        logger.info("Store connection established")
        try:
            writer = RunWriter(connection, self.build)
            for target in self.targets:
                summary.outcomes.append(self._upload_file(connection, writer, directory, target))
        finally:
            self._close(connection)

        if summary.success:
            logger.info(
                f"Upload finished: {len(summary.outcomes) - len(summary.failed)}"
                f"/{len(summary.outcomes)} files, {summary.total_runs} runs, "
                f"{summary.total_results} results"
            )
        else:
            logger.error("All file uploads failed")
        return summary

    def _upload_file(
        self,
        connection: sqlite3.Connection,
        writer: RunWriter,
        directory: Path,
        target: UploadTarget,
    ) -> FileOutcome:
        """Load one file; its writes are committed together or not at all."""
        path = directory / target.filename
        logger.info(f"Uploading {target.label} results from {path}...")
        start = time.monotonic()
        runs = 0
        results = 0

        try:
            workbook = load_workbook(path)
            for run in target.extractor(workbook):
                writer.write_column(run)
                runs += 1
                results += len(run.measurements)
            connection.commit()
        except Exception as e:
            self._rollback(connection)
            logger.error(f"Error uploading {target.label} results: {e}", exc_info=True)
            return FileOutcome(
                label=target.label,
                path=path,
                success=False,
                error=str(e),
                elapsed_seconds=time.monotonic() - start,
            )

        logger.info(f"Uploaded {target.label} results: {runs} runs, {results} results")
        return FileOutcome(
            label=target.label,
            path=path,
            success=True,
            runs=runs,
            results=results,
            elapsed_seconds=time.monotonic() - start,
        )

    @staticmethod
    def _rollback(connection: sqlite3.Connection) -> None:
        try:
            connection.rollback()
        except sqlite3.Error as e:
            logger.error(f"Error rolling back store transaction: {e}", exc_info=True)

    @staticmethod
    def _close(connection: sqlite3.Connection) -> None:
        try:
            connection.close()
        except sqlite3.Error as e:
            logger.error(f"Error closing store connection: {e}", exc_info=True)


def upload_all(build: BuildInfo, database: DatabaseConfig, directory: Path | str) -> UploadSummary:
    """Convenience wrapper around :meth:`Uploader.upload_all`."""
    return Uploader(build, database).upload_all(directory)
