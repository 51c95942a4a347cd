"""Context persistence between turns.

Stores hold whole context documents keyed by session id. There is no
partial-field protocol: a turn loads the document, works on it and writes
it back. Mutual exclusion per session is the caller's concern.
"""

from __future__ import annotations

import copy
import threading
import time
from typing import Any, Dict, Optional, Protocol


class MemoryStore(Protocol):
    def get(self, key: str) -> Optional[Dict[str, Any]]:
        ...

    def put(self, key: str, value: Dict[str, Any], retention: Optional[int] = None) -> None:
        ...

    def delete(self, key: str) -> bool:
        ...


class InMemoryStore:
    """Process-local store with an optional per-entry retention in seconds."""

    def __init__(self, retention: Optional[int] = None) -> None:
        self.retention = retention
        self._lock = threading.Lock()
        # key -> {"value": dict, "expires_at": float | None}
        self._items: Dict[str, Dict[str, Any]] = {}

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        now = time.time()
        with self._lock:
            item = self._items.get(key)
            if item is None:
                return None
            expires_at = item["expires_at"]
            if expires_at is not None and expires_at <= now:
                del self._items[key]
                return None
            return copy.deepcopy(item["value"])

    def put(self, key: str, value: Dict[str, Any], retention: Optional[int] = None) -> None:
        retention = retention if retention is not None else self.retention
        expires_at = time.time() + retention if retention else None
        with self._lock:
            self._items[key] = {"value": copy.deepcopy(value), "expires_at": expires_at}

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._items.pop(key, None) is not None
