"""Snapshot stores used by the session facade.

A store only moves opaque snapshot strings around; it never interprets them.
Durability is last-snapshot-wins: each save replaces the previous one.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)


class StoreError(RuntimeError):
    """Raised when a snapshot cannot be written or removed."""


class SnapshotStore:
    """Base class for persistence backends."""

    def load(self) -> Optional[str]:
        raise NotImplementedError

    def save(self, snapshot: str) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


class MemoryStore(SnapshotStore):
    """Keeps the latest snapshot in memory; useful for tests and short sessions."""

    def __init__(self, snapshot: Optional[str] = None) -> None:
        self._snapshot = snapshot
        self.saves = 0

    def load(self) -> Optional[str]:
        return self._snapshot

    def save(self, snapshot: str) -> None:
        self._snapshot = snapshot
        self.saves += 1

    def clear(self) -> None:
        self._snapshot = None


class JsonFileStore(SnapshotStore):
    """Stores the snapshot as a JSON file, replaced atomically on each save."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def load(self) -> Optional[str]:
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def save(self, snapshot: str) -> None:
        tmp_name: Optional[str] = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=self.path.name, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(snapshot)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            if tmp_name is not None:
                self._discard_temp(tmp_name)
            raise StoreError(f"Could not save snapshot to {self.path}") from exc
        logger.debug("Saved snapshot to %s", self.path)

    @staticmethod
    def _discard_temp(tmp_name: str) -> None:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            return
        except OSError:
            logger.warning("Could not remove temporary snapshot %s", tmp_name)

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            raise StoreError(f"Could not remove snapshot {self.path}") from exc
