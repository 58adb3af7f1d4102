"""TEST_RUN and TEST_RESULT writer."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from perfload._constants import (
    BATCH_SIZE,
    MAX_BUILD_NUMBER_LENGTH,
    MAX_DEPLOYMENT_LENGTH,
    MAX_IMAGE_LENGTH,
    MAX_JOB_NAME_LENGTH,
    TABLE_TEST_RESULT,
    TABLE_TEST_RUN,
)
from perfload.build import BuildInfo
from perfload.extract import EntityKind, RunColumn, format_date, parse_date

from .connection import StoreError
from .registry import ScenarioRegistry

logger = logging.getLogger(__name__)

_INSERT_RUN_SQL = (
    f"INSERT INTO {TABLE_TEST_RUN} "
    "(SCENARIO_ID, JOB_DATE, DEPLOYMENT_NAME, IMAGE_NAME, BUILD_NUMBER, JENKINS_JOB_NAME) "
    "VALUES (?, ?, ?, ?, ?, ?)"
)
_INSERT_RESULT_SQL = (
    f"INSERT INTO {TABLE_TEST_RESULT} (RUN_ID, ENTITY_NAME, DURATION_MS) VALUES (?, ?, ?)"
)


@dataclass
class ResultRecord:
    """One TEST_RESULT row waiting to be written."""

    run_id: int
    entity_name: str
    duration: float


def trim_to_length(value: str | None, max_length: int) -> str | None:
    """Strip surrounding whitespace, then cut to *max_length* characters."""
    if value is None:
        return None
    return value.strip()[:max_length]


class RunWriter:
    """Creates test runs and batch-writes their results.

    Args:
        connection: Open store connection shared with the registry
        build: Build whose job name and number are stamped on every run
        registry: Scenario registry (default: one on the same connection)
        batch_size: Rows per executemany() flush
    """

    def __init__(
        self,
        connection: sqlite3.Connection,
        build: BuildInfo,
        registry: ScenarioRegistry | None = None,
        batch_size: int = BATCH_SIZE,
    ):
        self.connection = connection
        self.build = build
        self.registry = registry or ScenarioRegistry(connection)
        self.batch_size = batch_size

    def insert_test_run(
        self,
        scenario_name: str,
        job_date: date | str,
        deployment: str,
        image: str,
        entity_kind: EntityKind | None = None,
    ) -> int:
        """Insert one TEST_RUN row and return its generated id.

        Args:
            scenario_name: Scenario the run belongs to (created if new)
            job_date: Run date, or a date string in any accepted format
            deployment: Deployment label
            image: Image label
            entity_kind: Kind for a newly created scenario
                (default: derived from the scenario name)

        Returns:
            The new RUN_ID

        Raises:
            StoreError: If the scenario or run cannot be written
            DateFormatError: If *job_date* is an unparseable string
        """
        kind = entity_kind or EntityKind.for_scenario(scenario_name)
        run_date = job_date if isinstance(job_date, date) else parse_date(job_date)
        scenario_id = self.registry.get_or_create(scenario_name, kind)

        params = (
            scenario_id,
            format_date(run_date),
            trim_to_length(deployment, MAX_DEPLOYMENT_LENGTH),
            trim_to_length(image, MAX_IMAGE_LENGTH),
            trim_to_length(self.build.build_number, MAX_BUILD_NUMBER_LENGTH),
            trim_to_length(self.build.job_base_name, MAX_JOB_NAME_LENGTH),
        )

        try:
            cursor = self.connection.cursor()
            try:
                cursor.execute(_INSERT_RUN_SQL, params)
                run_id = cursor.lastrowid
            finally:
                cursor.close()
        except sqlite3.Error as e:
            logger.error(f"Error inserting test run for scenario '{scenario_name}': {e}")
            raise StoreError(f"Error inserting test run for scenario '{scenario_name}'") from e

        if run_id is None:
            raise StoreError("Failed to retrieve generated key for test run")

        logger.debug(f"Inserted test run {run_id} for scenario '{scenario_name}' ({run_date})")
        return run_id

    def insert_results_batch(self, results: Iterable[ResultRecord]) -> int:
        """Write results in flushes of ``batch_size`` rows.

        Args:
            results: Rows to insert

        Returns:
            Number of rows written (0 for empty input, which touches nothing)

        Raises:
            StoreError: If any flush fails
        """
        rows = [(r.run_id, r.entity_name, r.duration) for r in results]
        if not rows:
            logger.debug("No test results to insert")
            return 0

        try:
            cursor = self.connection.cursor()
            try:
                for start in range(0, len(rows), self.batch_size):
                    chunk = rows[start : start + self.batch_size]
                    cursor.executemany(_INSERT_RESULT_SQL, chunk)
                    logger.debug(f"Executed batch of {len(chunk)} test results")
            finally:
                cursor.close()
        except sqlite3.Error as e:
            logger.error(f"Error batch inserting test results: {e}")
            raise StoreError("Error batch inserting test results") from e

        return len(rows)

    def write_column(self, run: RunColumn) -> int:
        """Create the run for one extracted column and write its measurements.

        Returns:
            The new RUN_ID
        """
        run_id = self.insert_test_run(
            run.scenario_name,
            run.job_date,
            run.deployment,
            run.image,
            entity_kind=run.entity_kind,
        )
        self.insert_results_batch(
            ResultRecord(run_id, m.entity_name, m.value) for m in run.measurements
        )
        return run_id
