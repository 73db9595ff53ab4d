"""
Item Repository interface.

The engine never talks to storage; session code loads snapshots through a
repository, runs the engine, and commits the results (usually as one batch
at the end of the session).
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Protocol

from loguru import logger

from retention.core.models import LearningItem


class ItemNotFoundError(KeyError):
    """Raised when an item id is not in the repository."""

    def __init__(self, item_id: str):
        super().__init__(item_id)
        self.item_id = item_id

    def __str__(self) -> str:
        return f"Item {self.item_id!r} not found"


class ItemRepository(Protocol):
    """Persistence collaborator for learning items."""

    def get_all(self) -> Sequence[LearningItem]:
        ...

    def get(self, item_id: str) -> LearningItem:
        ...

    def update(self, item: LearningItem) -> None:
        ...

    def update_batch(self, items: Iterable[LearningItem]) -> None:
        ...


class InMemoryItemRepository:
    """Dict-backed repository, insertion ordered. Used by tests and dry runs."""

    def __init__(self, items: Iterable[LearningItem] = ()):
        self._items: dict[str, LearningItem] = {item.item_id: item for item in items}

    def get_all(self) -> list[LearningItem]:
        return list(self._items.values())

    def get(self, item_id: str) -> LearningItem:
        try:
            return self._items[item_id]
        except KeyError:
            raise ItemNotFoundError(item_id) from None

    def update(self, item: LearningItem) -> None:
        self._items[item.item_id] = item

    def update_batch(self, items: Iterable[LearningItem]) -> None:
        batch = list(items)
        self._items.update({item.item_id: item for item in batch})
        logger.debug(f"Committed batch of {len(batch)} items")

    def __len__(self) -> int:
        return len(self._items)
