"""
Module 05 - Pass State Store

Key-value persistence of PassRecord by serial number.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Optional, Protocol, TYPE_CHECKING, runtime_checkable

from pydantic import ValidationError

from core.schemas.errors import StateStoreError
from core.schemas.pass_record import PassRecord

if TYPE_CHECKING:
    from core.config.runtime import StoreConfig


logger = logging.getLogger(__name__)


@runtime_checkable
class StateStore(Protocol):
    """Get/put of pass records; ``get`` returns None for unknown keys."""

    def get(self, key: str) -> Optional[PassRecord]:
        ...

    def put(self, key: str, record: PassRecord) -> None:
        ...


class InMemoryStateStore:
    """Dict-backed store. Records are copied in and out."""

    def __init__(self) -> None:
        self._records: dict[str, dict] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[PassRecord]:
        with self._lock:
            data = self._records.get(key)
        return PassRecord.from_wire(data) if data is not None else None

    def put(self, key: str, record: PassRecord) -> None:
        with self._lock:
            self._records[key] = record.to_wire()

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: str) -> bool:
        return key in self._records


class JsonFileStateStore:
    """
    All records in one JSON document ``{serial: record}``.

    Writes go to a temp file in the same directory and replace the
    document atomically.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def _load(self) -> dict[str, dict]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise StateStoreError(
                f"Cannot read state file {self.path}: {e}",
                details={"path": str(self.path)},
            ) from e
        if not isinstance(data, dict):
            raise StateStoreError(
                f"State file {self.path} is not a JSON object",
                details={"path": str(self.path)},
            )
        return data

    def _save(self, data: dict[str, dict]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StateStoreError(
                f"Cannot write state file {self.path}: {e}",
                details={"path": str(self.path)},
            ) from e

    def get(self, key: str) -> Optional[PassRecord]:
        with self._lock:
            data = self._load().get(key)
        if data is None:
            return None
        try:
            return PassRecord.from_wire(data)
        except ValidationError as e:
            raise StateStoreError(f"Corrupt record: {e}", key=key) from e

    def put(self, key: str, record: PassRecord) -> None:
        with self._lock:
            data = self._load()
            data[key] = record.to_wire()
            self._save(data)
        logger.debug(f"Stored pass record {key}")


def create_state_store(config: "StoreConfig") -> StateStore:
    """Build the store named by ``config.backend``."""
    if config.backend == "memory":
        return InMemoryStateStore()
    if config.backend == "json":
        return JsonFileStateStore(config.path)
    raise ValueError(f"Unknown state store backend: {config.backend}")


__all__ = [
    "StateStore",
    "InMemoryStateStore",
    "JsonFileStateStore",
    "create_state_store",
]
