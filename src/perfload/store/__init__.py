"""Relational store module for perfload.

Owns the connection, the schema DDL, scenario resolution and run/result writes.
"""

from .connection import (
    StoreConnectionError,
    StoreError,
    connect,
    open_store,
    provision_schema,
)
from .registry import ScenarioRegistry
from .writer import ResultRecord, RunWriter, trim_to_length

__all__ = [
    "ResultRecord",
    "RunWriter",
    "ScenarioRegistry",
    "StoreConnectionError",
    "StoreError",
    "connect",
    "open_store",
    "provision_schema",
    "trim_to_length",
]
