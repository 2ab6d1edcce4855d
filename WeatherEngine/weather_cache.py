"""Per-city weather cache with a freshness window."""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from weather_data import WeatherRecord

DEFAULT_FRESHNESS_WINDOW_MS = 5 * 60 * 1000  # 5 minutes


@dataclass(frozen=True)
class CacheEntry:
    city: str
    record: WeatherRecord
    fetched_at_millis: int


class WeatherCache:
    """
    Cache holding at most one entry per city.

    Lookups are keyed on the exact city string a request was made with.
    There is deliberately no "latest entry" fallback: asking for Paris never
    returns London's data.
    """

    def __init__(self, freshness_window_ms: int = DEFAULT_FRESHNESS_WINDOW_MS):
        self.freshness_window_ms = freshness_window_ms
        self._entries: Dict[str, CacheEntry] = {}

    def get(self, city: str) -> Optional[CacheEntry]:
        return self._entries.get(city)

    def put(self, city: str, record: WeatherRecord, fetched_at_millis: int) -> CacheEntry:
        """Store a record for a city, replacing any previous entry wholesale."""
        entry = CacheEntry(city=city, record=record, fetched_at_millis=fetched_at_millis)
        self._entries[city] = entry
        logging.debug(f"Cached weather for {city!r} at {fetched_at_millis}")
        return entry

    @staticmethod
    def is_fresh(entry: CacheEntry, now: int, window_ms: int) -> bool:
        return now - entry.fetched_at_millis < window_ms

    def lookup_fresh(self, city: str, now: int) -> Optional[CacheEntry]:
        """Return the entry for a city only if it is still inside the freshness window."""
        entry = self.get(city)
        if entry is None:
            return None
        age = now - entry.fetched_at_millis
        if self.is_fresh(entry, now, self.freshness_window_ms):
            logging.debug(f"Cache hit for {city!r} (age: {age}ms, window: {self.freshness_window_ms}ms)")
            return entry
        logging.info(f"Cache expired for {city!r} (age: {age}ms >= window: {self.freshness_window_ms}ms)")
        return None

    def invalidate(self, city: str) -> None:
        self._entries.pop(city, None)

    def clear(self) -> None:
        self._entries.clear()

    def cities(self) -> List[str]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, city: str) -> bool:
        return city in self._entries
