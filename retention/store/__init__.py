"""
Store Module - item repository collaborators.

- repository: ItemRepository protocol, InMemoryItemRepository, ItemNotFoundError
- sqlite_store: SqliteItemRepository for the CLI and offline use
"""

from retention.store.repository import (
    InMemoryItemRepository,
    ItemNotFoundError,
    ItemRepository,
)
from retention.store.sqlite_store import SqliteItemRepository

__all__ = [
    "ItemRepository",
    "InMemoryItemRepository",
    "ItemNotFoundError",
    "SqliteItemRepository",
]
