"""Scenario registry: name -> TEST_SCENARIO identifier.

Scenarios are created lazily the first time a run references them. The
lookup is read-then-insert, which is only safe with a single writer per
store; concurrent loaders can race and create duplicate names.
"""

from __future__ import annotations

import logging
import sqlite3

from perfload._constants import TABLE_TEST_SCENARIO
from perfload.extract import EntityKind

from .connection import StoreError

logger = logging.getLogger(__name__)


class ScenarioRegistry:
    """Resolves scenario names to identifiers, creating scenarios on first use."""

    def __init__(self, connection: sqlite3.Connection):
        self.connection = connection

    def get_or_create(self, name: str, entity_kind: EntityKind | str) -> int:
        """Return the scenario id for *name*, inserting the scenario if new.

        Args:
            name: Exact scenario name
            entity_kind: Kind recorded when the scenario is created

        Returns:
            The scenario identifier

        Raises:
            StoreError: If the lookup or insert fails
        """
        kind = EntityKind(entity_kind)

        try:
            cursor = self.connection.cursor()
            try:
                row = cursor.execute(
                    f"SELECT SCENARIO_ID FROM {TABLE_TEST_SCENARIO} WHERE NAME = ?",
                    (name,),
                ).fetchone()
                if row is not None:
                    return int(row[0])

                cursor.execute(
                    f"INSERT INTO {TABLE_TEST_SCENARIO} (NAME, ENTITY_TYPE) VALUES (?, ?)",
                    (name, kind.value),
                )
                scenario_id = cursor.lastrowid
            finally:
                cursor.close()
        except sqlite3.Error as e:
            logger.error(f"Error getting or creating scenario '{name}': {e}")
            raise StoreError(f"Error getting or creating scenario '{name}'") from e

        if scenario_id is None:
            raise StoreError(f"Failed to retrieve generated key for scenario '{name}'")

        logger.info(f"Created scenario '{name}' ({kind.value}) with id {scenario_id}")
        return scenario_id
