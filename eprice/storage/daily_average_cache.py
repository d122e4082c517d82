"""
Permanent cache of per-day average prices.

A historical day's average never changes, so entries have no expiry.
"""

import threading
from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Dict, Optional

from eprice.logging_config import get_logger
from eprice.models.price import DailyAverageSnapshot
from eprice.storage.file_store import AtomicFileStore

logger = get_logger(__name__)


class DailyAverageCache(ABC):
    """Country/date keyed store of daily average prices."""

    @abstractmethod
    def get(self, country_code: str, day: date) -> Optional[Decimal]:
        ...

    @abstractmethod
    def put(self, country_code: str, day: date, average_price: Decimal) -> None:
        ...

    @abstractmethod
    def get_range(self, country_code: str, start_date: date, end_date: date) -> Dict[date, Decimal]:
        """Averages already cached between start_date and end_date inclusive."""
        ...

    @abstractmethod
    def clear(self) -> None:
        ...


class InMemoryDailyAverageCache(DailyAverageCache):
    """Process-local daily average cache keyed COUNTRY -> 'YYYY-MM-DD'."""

    def __init__(self):
        self._data: Dict[str, Dict[str, Decimal]] = {}
        self._lock = threading.Lock()

    def get(self, country_code: str, day: date) -> Optional[Decimal]:
        with self._lock:
            return self._data.get(country_code.upper(), {}).get(day.isoformat())

    def put(self, country_code: str, day: date, average_price: Decimal) -> None:
        with self._lock:
            self._data.setdefault(country_code.upper(), {})[day.isoformat()] = average_price
        self._after_put()

    def get_range(self, country_code: str, start_date: date, end_date: date) -> Dict[date, Decimal]:
        with self._lock:
            country = dict(self._data.get(country_code.upper(), {}))

        result = {}
        for key, value in country.items():
            try:
                day = date.fromisoformat(key)
            except ValueError:
                logger.warning("Skipping malformed date key", country_code=country_code, key=key)
                continue
            if start_date <= day <= end_date:
                result[day] = value
        return result

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
        logger.info("In-memory daily average cache cleared")

    def snapshot(self) -> DailyAverageSnapshot:
        with self._lock:
            return DailyAverageSnapshot(
                data={country: dict(days) for country, days in self._data.items()}
            )

    def _after_put(self) -> None:
        pass


class FileBackedDailyAverageCache(InMemoryDailyAverageCache):
    """
    Daily average cache mirrored to a JSON file.

    Every put rewrites the entire file with a full snapshot.
    """

    def __init__(self, store: AtomicFileStore):
        super().__init__()
        self.store = store
        self._load()

    def clear(self) -> None:
        super().clear()
        self.store.clear_async()

    def _after_put(self) -> None:
        # TODO batch the writes issued by one rolling average fill into a single persist
        self.store.persist_async(self.snapshot())

    def _load(self) -> None:
        persisted = self.store.load()
        if persisted is None:
            return

        with self._lock:
            for country, days in persisted.data.items():
                self._data[country.upper()] = dict(days)

        logger.info(
            "Loaded daily average entries",
            path=str(self.store.path),
            count=sum(len(days) for days in persisted.data.values()),
        )
