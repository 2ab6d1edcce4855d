"""Observable engine state - immutable snapshots plus change subscriptions."""
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

from temperature import TemperatureUnit
from weather_data import WeatherRecord


class Phase(Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


@dataclass(frozen=True)
class EngineState:
    """
    Read-only snapshot of the engine's state.

    Observers only ever see these copies; the engine replaces its snapshot
    wholesale on every transition.
    """
    current_city: str
    current_record: Optional[WeatherRecord] = None
    is_loading: bool = False
    last_error: Optional[str] = None
    unit_preference: TemperatureUnit = TemperatureUnit.CELSIUS
    last_updated_millis: Optional[int] = None
    phase: Phase = Phase.IDLE


StateCallback = Callable[[EngineState], None]


class Subscription:
    """Token returned by subscribe(); call unsubscribe() to stop notifications."""

    def __init__(self, registry: "ObserverRegistry", token: int):
        self._registry = registry
        self.token = token

    def unsubscribe(self) -> None:
        self._registry.remove(self.token)

    @property
    def active(self) -> bool:
        return self._registry.has(self.token)


class ObserverRegistry:
    """Holds state callbacks and fans snapshots out to them."""

    def __init__(self):
        self._lock = threading.Lock()
        self._callbacks: Dict[int, StateCallback] = {}
        self._next_token = 0

    def add(self, callback: StateCallback) -> Subscription:
        with self._lock:
            self._next_token += 1
            token = self._next_token
            self._callbacks[token] = callback
        return Subscription(self, token)

    def remove(self, token: int) -> None:
        with self._lock:
            self._callbacks.pop(token, None)

    def has(self, token: int) -> bool:
        with self._lock:
            return token in self._callbacks

    def notify(self, state: EngineState) -> None:
        with self._lock:
            callbacks: List[StateCallback] = list(self._callbacks.values())
        for callback in callbacks:
            try:
                callback(state)
            except Exception:
                logging.exception("State observer raised; continuing with remaining observers")

    def __len__(self) -> int:
        with self._lock:
            return len(self._callbacks)
