"""Cached configuration trees.

Each tree mirrors one key of the property store and carries its own dirty
flag. A tree is loaded from the store on first access, and a loaded tree
whose value is None is logically empty: absent from the store or cleared.
"""
import copy
import logging
from abc import ABC, abstractmethod
from typing import Any

from ..backends.property_store import PropertyStore
from ..keys import DISCOVERY_KEY, INITIATOR_KEY, TARGETS_KEY
from .nodes import InitiatorInfo, TargetInfo

logger = logging.getLogger(__name__)


class CachedTree(ABC):
    """In-memory mirror of one property store key."""

    name: str = ""
    store_key: str = ""

    def __init__(self):
        self.value: Any = None
        self.dirty = False
        self.loaded = False

    @abstractmethod
    def create_empty(self) -> Any:
        """Build the value of a freshly created, empty tree."""
        pass

    @abstractmethod
    def encode(self, value: Any) -> dict:
        """Convert the cached value to its property list form."""
        pass

    @abstractmethod
    def decode(self, data: dict) -> Any:
        """Convert a property list value to the cached form."""
        pass

    def get_or_create(self, store: PropertyStore, create_if_missing: bool) -> Any:
        """Return the cached value, creating an empty one if asked to.

        A tree that is not loaded yet is read from the store first, so a
        write never replaces persisted entries it has not seen.
        """
        if not self.loaded:
            self.reload_from(store)
        if self.value is None and create_if_missing:
            self.value = self.create_empty()
            logger.debug(f"Created empty {self.name} tree")
        return self.value

    def mark_dirty(self) -> None:
        self.dirty = True

    def clear(self) -> None:
        """Drop the whole tree; the next flush removes its store key."""
        self.value = None
        self.dirty = True
        self.loaded = True

    def release(self) -> None:
        """Forget the cached value; the next access reloads it."""
        self.value = None
        self.loaded = False

    def flush_to(self, store: PropertyStore) -> None:
        """Stage the cached value for writing under this tree's key."""
        data = self.encode(self.value) if self.value is not None else None
        store.set_value(self.store_key, data)
        logger.debug(f"Staged {self.name} tree for '{self.store_key}'")

    def reload_from(self, store: PropertyStore) -> None:
        """Replace the cached value with the store's current value."""
        data = store.copy_value(self.store_key)
        if isinstance(data, dict):
            self.value = self.decode(data)
        else:
            if data is not None:
                logger.warning(f"Ignoring non-dictionary value under '{self.store_key}'")
            self.value = None
        self.loaded = True
        logger.debug(f"Reloaded {self.name} tree from '{self.store_key}'")


class TargetsTree(CachedTree):
    """Target IQN -> TargetInfo."""

    name = "targets"
    store_key = TARGETS_KEY

    def create_empty(self) -> dict[str, TargetInfo]:
        return {}

    def encode(self, value: dict[str, TargetInfo]) -> dict:
        return {iqn: info.to_plist() for iqn, info in value.items()}

    def decode(self, data: dict) -> dict[str, TargetInfo]:
        return {
            str(iqn): TargetInfo.from_plist(info)
            for iqn, info in data.items()
            if isinstance(info, dict)
        }


class DiscoveryTree(CachedTree):
    """Flat, schema-less mapping owned by the discovery record codec."""

    name = "discovery"
    store_key = DISCOVERY_KEY

    def create_empty(self) -> dict:
        return {}

    def encode(self, value: dict) -> dict:
        return copy.deepcopy(value)

    def decode(self, data: dict) -> dict:
        return copy.deepcopy(data)


class InitiatorTree(CachedTree):
    """The single initiator record."""

    name = "initiator"
    store_key = INITIATOR_KEY

    def create_empty(self) -> InitiatorInfo:
        return InitiatorInfo()

    def encode(self, value: InitiatorInfo) -> dict:
        return value.to_plist()

    def decode(self, data: dict) -> InitiatorInfo:
        return InitiatorInfo.from_plist(data)
