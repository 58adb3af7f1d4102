"""Relational store connection and schema provisioning.

The loader talks to SQLite through the DB-API: qmark parameters and
``cursor.lastrowid`` for generated identifiers. A connection is opened once
per upload and handed explicitly to the registry and writer.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from perfload._resources import get_ddl_path
from perfload.config import DatabaseConfig

logger = logging.getLogger(__name__)

MEMORY_DATABASE = ":memory:"


class StoreError(Exception):
    """Base exception for relational store errors."""

    pass


class StoreConnectionError(StoreError):
    """Raised when the store is unreachable or cannot be initialised."""

    pass


def connect(database: DatabaseConfig) -> sqlite3.Connection:
    """Open a connection to the configured store.

    Args:
        database: Store configuration

    Returns:
        Open sqlite3 connection with foreign keys enforced

    Raises:
        StoreConnectionError: If the database cannot be opened
    """
    path = database.path
    try:
        if path != MEMORY_DATABASE:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
        connection = sqlite3.connect(path, timeout=database.timeout_seconds)
        connection.execute("PRAGMA foreign_keys = ON")
    except (sqlite3.Error, OSError) as e:
        logger.error(f"Connection to {path} failed: {e}")
        raise StoreConnectionError(f"Connection to {path} failed") from e

    logger.info(f"Connected to store at {path}")
    return connection


def provision_schema(connection: sqlite3.Connection, ddl_script: Path | str | None = None) -> None:
    """Run the idempotent schema DDL against an open connection.

    Args:
        connection: Open store connection
        ddl_script: DDL file to run (default: the packaged ``ddl.sql``)

    Raises:
        StoreError: If the script cannot be read or executed
    """
    path = Path(ddl_script) if ddl_script else get_ddl_path()
    logger.info(f"Executing DDL script {path}...")

    try:
        script = path.read_text()
    except OSError as e:
        raise StoreError(f"Failed to read DDL script {path}") from e

    try:
        connection.executescript(script)
        connection.commit()
    except sqlite3.Error as e:
        raise StoreError(f"Failed to execute DDL script {path}: {e}") from e

    logger.info("DDL script execution completed")


def open_store(database: DatabaseConfig) -> sqlite3.Connection:
    """Connect and provision the schema; the connection is closed on failure.

    Raises:
        StoreConnectionError: If either step fails
    """
    connection = connect(database)
    try:
        provision_schema(connection, database.ddl_script)
    except StoreError as e:
        connection.close()
        raise StoreConnectionError(f"Failed to initialise store at {database.path}: {e}") from e
    return connection
