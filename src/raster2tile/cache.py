"""Bounded id-to-path registry for opened datasets."""

from __future__ import annotations

import threading
from collections import OrderedDict

DEFAULT_CACHE_CAPACITY = 10


class DatasetCache:
    """Least-recently-used map of opaque dataset ids to source paths.

    Only paths are stored; callers open their own handle per operation.
    """

    def __init__(self, capacity: int = DEFAULT_CACHE_CAPACITY) -> None:
        self.capacity = capacity if capacity > 0 else DEFAULT_CACHE_CAPACITY
        self._entries: OrderedDict[str, str] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, dataset_id: str) -> str | None:
        """Return the path for an id and mark it as recently used."""
        with self._lock:
            path = self._entries.get(dataset_id)
            if path is not None:
                self._entries.move_to_end(dataset_id)
            return path

    def put(self, dataset_id: str, path: str) -> None:
        """Register a path, evicting the least recently used entries past capacity."""
        with self._lock:
            self._entries[dataset_id] = path
            self._entries.move_to_end(dataset_id)
            while len(self._entries) > self.capacity:
                self._entries.popitem(last=False)

    def remove(self, dataset_id: str) -> None:
        with self._lock:
            self._entries.pop(dataset_id, None)

    def ids(self) -> list[str]:
        """Return ids from least to most recently used."""
        with self._lock:
            return list(self._entries)

    def __contains__(self, dataset_id: object) -> bool:
        with self._lock:
            return dataset_id in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
