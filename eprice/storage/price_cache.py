"""
Time-bounded cache of raw price series.

Entries live for CACHE_TTL after being written and expire lazily on read.
"""

import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from eprice.logging_config import get_logger
from eprice.models.price import PricePoint, SeriesCacheEntry
from eprice.storage.file_store import AtomicFileStore
from eprice.utils.time_utils import utc_now

logger = get_logger(__name__)

CACHE_TTL = timedelta(minutes=60)


class PriceCache(ABC):
    """Keyed store of price series."""

    @abstractmethod
    def get(self, key: str) -> Optional[List[PricePoint]]:
        ...

    @abstractmethod
    def put(self, key: str, data: List[PricePoint]) -> None:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...


class InMemoryPriceCache(PriceCache):
    """Process-local TTL cache. Also the base of the file-backed variant."""

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self._clock = clock
        self._entries: Dict[str, SeriesCacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[List[PricePoint]]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() < entry.expiry:
                return list(entry.data)
            del self._entries[key]
        logger.debug("Price cache entry expired", key=key)
        return None

    def put(self, key: str, data: List[PricePoint]) -> None:
        entry = SeriesCacheEntry(data=list(data), expiry=self._clock() + CACHE_TTL)
        with self._lock:
            self._entries[key] = entry
        self._after_put()

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
        logger.info("In-memory price cache cleared")

    def snapshot(self) -> Dict[str, SeriesCacheEntry]:
        """Copy of the current entries, safe to hand to another thread."""
        with self._lock:
            return dict(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _after_put(self) -> None:
        pass


class FileBackedPriceCache(InMemoryPriceCache):
    """TTL cache whose whole map is mirrored to a JSON file after every put."""

    def __init__(self, store: AtomicFileStore, clock: Callable[[], datetime] = utc_now):
        super().__init__(clock=clock)
        self.store = store
        self._load()

    def clear(self) -> None:
        super().clear()
        self.store.clear_async()

    def _after_put(self) -> None:
        self.store.persist_async(self.snapshot())

    def _load(self) -> None:
        persisted = self.store.load()
        if not persisted:
            return

        now = self._clock()
        valid = {key: entry for key, entry in persisted.items() if entry.expiry > now}
        with self._lock:
            self._entries.update(valid)

        logger.info(
            "Loaded price cache entries",
            path=str(self.store.path),
            valid=len(valid),
            dropped=len(persisted) - len(valid),
        )
