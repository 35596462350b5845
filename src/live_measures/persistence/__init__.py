"""Persistence: the DataStore protocol and its SQLite implementation."""

from .database import MeasureDB
from .sqlite_store import SqliteDataStore
from .store import DataStore

__all__ = ["DataStore", "MeasureDB", "SqliteDataStore"]
