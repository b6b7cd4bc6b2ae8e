"""Result store implementations."""

from footprint.conformance_runner.config import Settings
from footprint.conformance_runner.storage.base import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    ResultStore,
    sort_results,
)
from footprint.conformance_runner.storage.memory import InMemoryResultStore
from footprint.conformance_runner.storage.sql import SqlResultStore


def create_store(settings: Settings) -> ResultStore:
    """Instantiate the store selected by the settings.

    The store still needs ``initialize()`` before use.
    """
    if settings.storage_backend == "sql":
        return SqlResultStore(settings.database_url)
    return InMemoryResultStore()


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    "InMemoryResultStore",
    "ResultStore",
    "SqlResultStore",
    "create_store",
    "sort_results",
]
