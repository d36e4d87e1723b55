"""Synchronization of cached trees with the property store.

A dirty tree holds this process's pending changes and is written out. A
clean tree is assumed stale and is reloaded after the flush, picking up
changes made by other writers. Concurrent writers to the same tree between
two synchronizes can still lose updates.
"""
import logging
from typing import Iterable, Optional

from ..backends.property_store import PropertyStore
from ..exceptions import StoreSyncError
from ..utils.logging_config import timed
from .trees import CachedTree

logger = logging.getLogger(__name__)


class Synchronizer:
    """Flushes dirty trees and refreshes clean ones."""

    def __init__(self, store: PropertyStore, trees: Iterable[CachedTree]):
        self.store = store
        self.trees = list(trees)

    @property
    def app_id(self) -> Optional[str]:
        return getattr(self.store, "app_id", None)

    @timed("synchronize")
    def synchronize(self) -> None:
        """
        Reconcile every tree with the store.

        Dirty trees are staged and the store is flushed once. Trees that
        were clean when the call started are then reloaded. Dirty flags are
        reset only when the flush succeeds.

        Raises:
            StoreSyncError: If the store cannot be written; dirty flags and
                cached values are left as they were.
        """
        was_dirty = {tree.name: tree.dirty for tree in self.trees}

        try:
            for tree in self.trees:
                if tree.dirty:
                    tree.flush_to(self.store)
            self.store.synchronize_all()
        except StoreSyncError as e:
            pending = [name for name, dirty in was_dirty.items() if dirty]
            logger.error(f"Synchronize failed, keeping pending trees {pending}: {e}")
            raise

        for tree in self.trees:
            if not was_dirty[tree.name]:
                tree.reload_from(self.store)

        for tree in self.trees:
            tree.dirty = False

        flushed = [name for name, dirty in was_dirty.items() if dirty]
        logger.debug(f"Synchronized trees (flushed: {flushed or 'none'})")

    def reload_all(self) -> None:
        """Discard cached values and load every tree from the store."""
        for tree in self.trees:
            tree.reload_from(self.store)
            tree.dirty = False
