from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from threading import RLock
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .models import KEY_ATTRIBUTE

Item = Dict[str, Any]


class ConditionalCheckFailedError(Exception):
    """
    Raised by a store when a conditional write finds no record under the key.
    Backends translate their own condition failures into this type.
    """

    def __init__(self, key: str) -> None:
        super().__init__(f"No item exists for key {key!r}")
        self.key = key


@dataclass(frozen=True)
class UpdatePlan:
    """
    Declarative partial update for one record.

    - set_fields: attributes to write, in a fixed order
    - remove_fields: attributes to delete from the record if present
    """

    set_fields: Mapping[str, Any] = field(default_factory=dict)
    remove_fields: Tuple[str, ...] = ()

    def apply(self, item: Mapping[str, Any]) -> Item:
        """Return a copy of item with the plan applied."""
        updated: Item = dict(item)
        for name, value in self.set_fields.items():
            updated[name] = value
        for name in self.remove_fields:
            updated.pop(name, None)
        return updated


# PUBLIC_INTERFACE
class KeyValueStore(ABC):
    """
    Abstract contract for a single-table key-value store keyed by 'pk'.

    Only point reads, unconditional puts, existence-conditioned updates and
    deletes, and full scans are required.
    """

    key_attribute: str = KEY_ATTRIBUTE

    @abstractmethod
    def scan(self) -> List[Item]:
        """Return every stored item, in store order."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[Item]:
        """Return the item stored under key, or None."""

    @abstractmethod
    def put_item(self, item: Mapping[str, Any]) -> None:
        """Write item unconditionally, replacing anything stored under its key."""

    @abstractmethod
    def update_item(self, key: str, plan: UpdatePlan) -> Item:
        """
        Apply plan to the item under key and return the full updated item.
        Raises ConditionalCheckFailedError if no item exists for key.
        """

    @abstractmethod
    def delete_item(self, key: str) -> None:
        """
        Delete the item under key.
        Raises ConditionalCheckFailedError if no item exists for key.
        """


class InMemoryStore(KeyValueStore):
    """
    Thread-safe in-memory store suitable for testing and default runtime.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: Dict[str, Item] = {}

    def scan(self) -> List[Item]:
        with self._lock:
            # Return copies to avoid external mutation
            return [copy.deepcopy(item) for item in self._items.values()]

    def get_item(self, key: str) -> Optional[Item]:
        with self._lock:
            item = self._items.get(key)
            return None if item is None else copy.deepcopy(item)

    def put_item(self, item: Mapping[str, Any]) -> None:
        key = item[self.key_attribute]
        with self._lock:
            self._items[key] = copy.deepcopy(dict(item))

    def update_item(self, key: str, plan: UpdatePlan) -> Item:
        with self._lock:
            existing = self._items.get(key)
            if existing is None:
                raise ConditionalCheckFailedError(key)
            updated = plan.apply(existing)
            self._items[key] = updated
            return copy.deepcopy(updated)

    def delete_item(self, key: str) -> None:
        with self._lock:
            if self._items.pop(key, None) is None:
                raise ConditionalCheckFailedError(key)
