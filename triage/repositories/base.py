"""
Base Repository - Common storage pattern for repositories.

Provides a generic base class for store-backed collections with
get/list/count patterns. Every committed mutation writes the full
collection back through the PersistentStore immediately.
"""

import logging
from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

from triage.storage.store import PersistentStore, StoreKey


logger = logging.getLogger(__name__)


# Type variable for repository item type
T = TypeVar("T", bound=BaseModel)


class BaseRepository(ABC, Generic[T]):
    """
    Abstract base class for store-backed collections.

    Items are kept in insertion order. Subclasses decide which mutations
    they expose and must implement get_item_id().
    """

    def __init__(self, store: PersistentStore, key: StoreKey):
        """
        Initialize the repository and load its collection.

        Args:
            store: Store used for persistence
            key: Logical key of the collection in the store
        """
        self.store = store
        self.key = key
        self._items: dict[str, T] = {}

        self._load_from_store()

    @abstractmethod
    def get_item_id(self, item: T) -> str:
        """Extract the unique ID from an item."""
        pass

    def get(self, item_id: str) -> Optional[T]:
        """Get an item by ID, or None if unknown."""
        return self._items.get(item_id)

    def exists(self, item_id: Optional[str]) -> bool:
        return item_id is not None and item_id in self._items

    def get_all(self) -> list[T]:
        """Get all items in insertion order."""
        return list(self._items.values())

    def count(self) -> int:
        return len(self._items)

    def clear(self) -> None:
        """Remove every item from the collection."""
        self._items.clear()
        self._save_to_store()
        logger.info(f"Cleared all items from {self.__class__.__name__}")

    def _load_from_store(self) -> None:
        for item in self.store.load(self.key):
            item_id = self.get_item_id(item)
            if item_id in self._items:
                logger.warning(f"Skipping duplicate {self.key.value} id on load: {item_id}")
                continue
            self._items[item_id] = item

        logger.info(f"Loaded {len(self._items)} items into {self.__class__.__name__}")

    def _save_to_store(self) -> None:
        self.store.save(self.key, list(self._items.values()))
