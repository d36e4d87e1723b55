"""Persistent property store backing the configuration cache.

Handles:
- Per application, per host YAML property files
- Staged writes flushed by an explicit synchronize
- Atomic file replacement and retry of transient I/O errors
"""
import copy
import logging
import os
import socket
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

import yaml

from ..exceptions import StoreSyncError
from ..utils.logging_config import timed
from ..utils.retry import with_retry

logger = logging.getLogger(__name__)

# Default store directory and application id
DEFAULT_STORE_DIR = Path.home() / ".iscsi-plist"
DEFAULT_APP_ID = "iscsi-initiator"


class PropertyStore(ABC):
    """Keyed store of structured values with an explicit flush."""

    @abstractmethod
    def copy_value(self, key: str) -> Optional[Any]:
        """Return a private copy of the value under key, or None."""
        pass

    @abstractmethod
    def set_value(self, key: str, value: Optional[Any]) -> None:
        """Stage a value for key. None removes the key."""
        pass

    @abstractmethod
    def synchronize_all(self) -> None:
        """Write staged values and refresh from the persistent copy."""
        pass


class YamlPropertyStore(PropertyStore):
    """
    Property store kept in a single YAML file.

    File layout:
        <base_dir>/<app_id>.<host>.yaml

    Values set with ``set_value`` are staged in memory. ``synchronize_all``
    reads the file as it is on disk, applies the staged keys on top, writes
    it back atomically and keeps the result as the new snapshot, so keys
    written by other processes are preserved.
    """

    def __init__(
        self,
        base_dir: Optional[Path] = None,
        app_id: str = DEFAULT_APP_ID,
        host: Optional[str] = None,
    ):
        """
        Initialize the property store.

        Args:
            base_dir: Directory holding property files (default: ~/.iscsi-plist)
            app_id: Application identifier used as the file name stem
            host: Host scope (default: this machine's hostname)
        """
        self.base_dir = Path(base_dir) if base_dir else DEFAULT_STORE_DIR
        self.app_id = app_id
        self.host = host or socket.gethostname()
        self._snapshot: Optional[dict] = None
        self._pending: dict[str, Any] = {}

    @property
    def path(self) -> Path:
        return self.base_dir / f"{self.app_id}.{self.host}.yaml"

    def copy_value(self, key: str) -> Optional[Any]:
        if key in self._pending:
            return copy.deepcopy(self._pending[key])

        if self._snapshot is None:
            try:
                self._snapshot = self._read_file()
            except (OSError, yaml.YAMLError) as e:
                logger.error(f"Failed to read property list {self.path}: {e}")
                raise StoreSyncError(f"Failed to read {self.path}: {e}") from e

        return copy.deepcopy(self._snapshot.get(key))

    def set_value(self, key: str, value: Optional[Any]) -> None:
        self._pending[key] = copy.deepcopy(value)

    @timed("store_flush")
    def synchronize_all(self) -> None:
        try:
            self._flush()
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to synchronize property list {self.path}: {e}")
            raise StoreSyncError(f"Failed to synchronize {self.path}: {e}") from e

    @with_retry(max_attempts=3, min_wait=0.1, max_wait=1, exceptions=(OSError,))
    def _flush(self) -> None:
        values = self._read_file()

        if self._pending:
            for key, value in self._pending.items():
                if value is None:
                    values.pop(key, None)
                else:
                    values[key] = value
            self._write_file(values)
            logger.info(f"Wrote {len(self._pending)} key(s) to {self.path}")

        self._snapshot = values
        self._pending.clear()

    def _read_file(self) -> dict:
        if not self.path.exists():
            return {}

        data = yaml.safe_load(self.path.read_text(encoding="utf-8"))
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise StoreSyncError(f"{self.path} does not hold a property dictionary")
        return data

    def _write_file(self, values: dict) -> None:
        self.base_dir.mkdir(parents=True, exist_ok=True)

        # Write to temp file then rename for atomicity
        fd, tmp_path = tempfile.mkstemp(dir=self.base_dir, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                yaml.safe_dump(values, f, default_flow_style=False, sort_keys=False)
            os.replace(tmp_path, self.path)
        except Exception:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
