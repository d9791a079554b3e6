import threading
from collections import deque
from typing import Callable

from loguru import logger


class ImageCache:
    """Bounded byte cache that evicts the oldest inserted entry first.

    Built once at startup and handed to whoever serves media. ``loader`` is
    called on a miss; if it raises, the error propagates and nothing is cached.
    Safe to call from worker threads.
    """

    def __init__(self, loader: Callable[[str], bytes], capacity: int = 50) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._loader = loader
        self._capacity = capacity
        self._entries: dict[str, bytes] = {}
        self._order: deque[str] = deque()
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def get(self, key: str) -> bytes:
        with self._lock:
            cached = self._entries.get(key)
        if cached is not None:
            return cached

        data = self._loader(key)
        with self._lock:
            if key in self._entries:
                return self._entries[key]
            while len(self._order) >= self._capacity:
                evicted = self._order.popleft()
                del self._entries[evicted]
                logger.debug("Image cache evicted key={}", evicted)
            self._entries[key] = data
            self._order.append(key)
        return data

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._order.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
