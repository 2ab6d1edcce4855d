"""Weather engine with per-city caching, request coalescing and unit preference."""
import asyncio
import dataclasses
import logging
import threading
from typing import Dict, List, Optional

from temperature import TemperatureUnit
from time_source import TimeSource, SystemTimeSource
from weather_cache import CacheEntry, WeatherCache, DEFAULT_FRESHNESS_WINDOW_MS
from weather_data import WeatherRecord
from weather_display import (
    format_feels_like,
    format_humidity,
    format_last_updated,
    format_pressure,
    format_temperature_reading,
    format_wind_speed,
)
from weather_provider import WeatherGatewayBase, FetchError, MalformedPayload
from weather_state import EngineState, ObserverRegistry, Phase, StateCallback, Subscription

DEFAULT_CITY = "London"
MIN_CITY_NAME_LENGTH = 2
MAX_CITY_NAME_LENGTH = 50
CITY_PUNCTUATION = " -'"


class InvalidCityName(ValueError):
    """Raised when a city name fails validation; never reaches cache or network."""
    pass


def validate_city_name(city) -> str:
    """
    Validate a city name and return it stripped of surrounding whitespace.

    A valid name is 2-50 characters of letters, spaces, hyphens and
    apostrophes, with at least one letter.

    Raises:
        InvalidCityName: If the name is not acceptable
    """
    if not isinstance(city, str):
        raise InvalidCityName(f"Invalid city name: expected a string, got {type(city).__name__}")
    name = city.strip()
    if not name:
        raise InvalidCityName("Invalid city name: please enter a city name")
    if len(name) < MIN_CITY_NAME_LENGTH:
        raise InvalidCityName(f"Invalid city name: {name!r} is too short")
    if len(name) > MAX_CITY_NAME_LENGTH:
        raise InvalidCityName(f"Invalid city name: longer than {MAX_CITY_NAME_LENGTH} characters")
    if not all(ch.isalpha() or ch in CITY_PUNCTUATION for ch in name) or not any(ch.isalpha() for ch in name):
        raise InvalidCityName(f"Invalid city name: {name!r} may only contain letters, spaces, hyphens and apostrophes")
    return name


@dataclasses.dataclass
class _Flight:
    city: str
    generation: int
    task: asyncio.Task


class WeatherStateMachine:
    """
    Engine owning the observable weather state for one application.

    Fetches weather through an injected gateway, serves per-city cache hits
    inside the freshness window, coalesces duplicate requests for a city that
    is already loading, and drops responses for a city that is no longer
    current. Commands never raise; outcomes are observed through snapshot()
    and subscribe().
    """

    def __init__(
        self,
        gateway: WeatherGatewayBase,
        time_source: Optional[TimeSource] = None,
        default_city: str = DEFAULT_CITY,
        freshness_window_ms: int = DEFAULT_FRESHNESS_WINDOW_MS,
        default_unit: TemperatureUnit = TemperatureUnit.CELSIUS
    ):
        """
        Initialize the engine.

        Args:
            gateway: Asynchronous weather gateway
            time_source: Clock used for cache freshness (defaults to system time)
            default_city: City reported before anything is requested
            freshness_window_ms: How long a cached record is served without refetching
            default_unit: Unit preference at start and after clear()
        """
        self._gateway = gateway
        self._time_source = time_source or SystemTimeSource()
        self._default_unit = default_unit
        self._cache = WeatherCache(freshness_window_ms)

        self._lock = threading.RLock()
        self._observers = ObserverRegistry()
        self._state = EngineState(current_city=default_city, unit_preference=default_unit)
        self._version = 0
        self._in_flight: Dict[str, _Flight] = {}
        # bumped by clear(); responses dispatched under an older generation are dropped
        self._generation = 0

        self._publish_lock = threading.Lock()
        self._delivering = False
        self._pending = False
        self._delivered_version = 0

    @property
    def freshness_window_ms(self) -> int:
        return self._cache.freshness_window_ms

    def cached_cities(self) -> List[str]:
        with self._lock:
            return sorted(self._cache.cities())

    def cache_entry(self, city: str) -> Optional[CacheEntry]:
        """The cached entry for a city, fresh or not; entries are immutable."""
        with self._lock:
            return self._cache.get(city)

    # Observer port -------------------------------------------------------

    def snapshot(self) -> EngineState:
        with self._lock:
            return self._state

    def subscribe(self, callback: StateCallback) -> Subscription:
        return self._observers.add(callback)

    # Commands ------------------------------------------------------------

    async def request_weather(self, city: str) -> None:
        """
        Show weather for a city, from cache when fresh, otherwise from the gateway.

        Invalid names only set last_error; nothing else changes.
        """
        try:
            city = validate_city_name(city)
        except InvalidCityName as e:
            logging.warning(f"Rejected weather request: {e}")
            with self._lock:
                changed = self._transition(last_error=str(e))
            self._publish(changed)
            return

        with self._lock:
            now = self._time_source.now()
            entry = self._cache.lookup_fresh(city, now)
            if entry is not None:
                logging.debug(f"Serving cached weather for {city!r}")
                changed = self._transition(
                    current_city=city,
                    current_record=entry.record,
                    is_loading=False,
                    last_error=None,
                    last_updated_millis=entry.fetched_at_millis,
                    phase=Phase.LOADED,
                )
                flight = None
            else:
                flight = self._in_flight.get(city)
                if flight is not None:
                    logging.info(f"Request for {city!r} joined the fetch already in flight")
                else:
                    flight = self._dispatch(city)
                record = self._state.current_record if city == self._state.current_city else None
                changed = self._transition(
                    current_city=city,
                    current_record=record,
                    is_loading=True,
                    last_error=None,
                    phase=Phase.LOADING,
                )
        self._publish(changed)

        if flight is not None:
            await asyncio.shield(flight.task)

    async def refresh(self) -> None:
        """Drop the current city's cache entry and request it again."""
        with self._lock:
            city = self._state.current_city
            self._cache.invalidate(city)
        logging.info(f"Refreshing weather for {city!r}")
        await self.request_weather(city)

    def toggle_unit(self) -> TemperatureUnit:
        with self._lock:
            changed = self._transition(unit_preference=self._state.unit_preference.toggled())
            unit = self._state.unit_preference
        logging.info(f"Switched to {unit.name.title()}")
        self._publish(changed)
        return unit

    def set_unit(self, unit: TemperatureUnit) -> None:
        with self._lock:
            changed = self._transition(unit_preference=unit)
        self._publish(changed)

    def clear(self) -> None:
        """Return to idle: forget the record, every cached city, errors and the unit choice."""
        with self._lock:
            self._generation += 1
            self._in_flight.clear()
            self._cache.clear()
            changed = self._transition(
                current_record=None,
                is_loading=False,
                last_error=None,
                unit_preference=self._default_unit,
                last_updated_millis=None,
                phase=Phase.IDLE,
            )
        logging.info("Cleared all weather data")
        self._publish(changed)

    # Display queries -----------------------------------------------------

    def get_temperature_string(self) -> str:
        state = self.snapshot()
        return format_temperature_reading(state.current_record, state.unit_preference)

    def get_feels_like_string(self) -> str:
        state = self.snapshot()
        return format_feels_like(state.current_record, state.unit_preference)

    def get_humidity_string(self) -> str:
        return format_humidity(self.snapshot().current_record)

    def get_wind_speed_string(self) -> str:
        return format_wind_speed(self.snapshot().current_record)

    def get_pressure_string(self) -> str:
        return format_pressure(self.snapshot().current_record)

    def get_last_updated_string(self) -> str:
        return format_last_updated(self.snapshot().last_updated_millis)

    # Internals -----------------------------------------------------------

    def _dispatch(self, city: str) -> _Flight:
        task = asyncio.ensure_future(self._run_fetch(city, self._generation))
        flight = _Flight(city=city, generation=self._generation, task=task)
        self._in_flight[city] = flight
        logging.info(f"Fetching weather for {city!r}")
        return flight

    async def _run_fetch(self, city: str, generation: int) -> None:
        try:
            try:
                payload = await self._gateway.fetch(city)
            except FetchError as e:
                logging.warning(f"Weather fetch for {city!r} failed: {e}")
                self._apply_failure(city, generation, f"Network error: {e}")
                return
            except Exception as e:
                logging.exception(f"Unexpected failure fetching weather for {city!r}")
                self._apply_failure(city, generation, f"Unexpected failure: {e}")
                return

            try:
                record = WeatherRecord.from_payload(city, payload)
            except (ValueError, TypeError, AttributeError) as e:
                logging.error(f"Could not build weather record for {city!r}: {e}")
                self._apply_failure(city, generation, f"Network error: {MalformedPayload(str(e))}")
                return

            self._apply_success(city, generation, record)
        finally:
            with self._lock:
                flight = self._in_flight.get(city)
                if flight is not None and flight.task is asyncio.current_task():
                    del self._in_flight[city]

    def _apply_success(self, city: str, generation: int, record: WeatherRecord) -> None:
        with self._lock:
            if generation != self._generation:
                logging.info(f"Discarding response for {city!r}: engine was cleared")
                return
            now = self._time_source.now()
            self._cache.put(city, record, now)
            if city != self._state.current_city:
                logging.info(
                    f"Discarding stale response for {city!r}; "
                    f"current city is {self._state.current_city!r}"
                )
                return
            changed = self._transition(
                current_record=record,
                is_loading=False,
                last_error=None,
                last_updated_millis=now,
                phase=Phase.LOADED,
            )
        logging.info(f"Weather data updated for {city!r}: {record.temperature_kelvin}K, {record.description}")
        self._publish(changed)

    def _apply_failure(self, city: str, generation: int, message: str) -> None:
        with self._lock:
            if generation != self._generation or city != self._state.current_city:
                logging.info(f"Discarding stale failure for {city!r}: {message}")
                return
            # the last good record stays visible next to the error
            changed = self._transition(is_loading=False, last_error=message, phase=Phase.FAILED)
        logging.error(f"ERROR: {message}")
        self._publish(changed)

    def _transition(self, **changes) -> bool:
        """Replace the snapshot; returns False if nothing changed. Caller holds the lock."""
        new_state = dataclasses.replace(self._state, **changes)
        if new_state == self._state:
            return False
        self._state = new_state
        self._version += 1
        return True

    def _publish(self, changed: bool) -> None:
        """
        Deliver the newest committed state to observers.

        Only one thread delivers at a time. A publisher arriving while another
        is delivering marks the state pending and returns; the delivering
        thread then sends the latest snapshot. Observers therefore never see
        an older state after a newer one, and the last state they see is the
        engine's current one.
        """
        if not changed:
            return
        with self._publish_lock:
            if self._delivering:
                self._pending = True
                return
            self._delivering = True
        while True:
            with self._lock:
                state, version = self._state, self._version
            if version > self._delivered_version:
                self._delivered_version = version
                self._observers.notify(state)
            with self._publish_lock:
                if not self._pending:
                    self._delivering = False
                    return
                self._pending = False
