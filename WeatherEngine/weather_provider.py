"""Weather gateway abstraction - allows swapping different weather APIs."""
from abc import ABC, abstractmethod
from weather_data import RawWeatherPayload


class WeatherGatewayBase(ABC):
    """Abstract base class for asynchronous weather gateways."""

    @abstractmethod
    async def fetch(self, city: str) -> RawWeatherPayload:
        """
        Fetch current weather for a city.

        Resolves exactly once per call; no partial results.

        Args:
            city: City name exactly as requested

        Returns:
            RawWeatherPayload: Decoded weather, temperatures in Kelvin

        Raises:
            FetchError: One of FetchTimeout, Unreachable, HttpStatusError,
                MalformedPayload
        """
        pass


class WeatherProviderError(Exception):
    """Exception raised when a weather provider fails."""
    pass


class FetchError(WeatherProviderError):
    """A fetch that failed in a known way."""
    pass


class FetchTimeout(FetchError):
    def __init__(self, message: str = "Request timed out"):
        super().__init__(message)


class Unreachable(FetchError):
    def __init__(self, message: str = "Service unreachable"):
        super().__init__(message)


class HttpStatusError(FetchError):
    def __init__(self, status_code: int, message: str = ""):
        self.status_code = status_code
        text = f"HTTP {status_code}"
        if message:
            text += f": {message}"
        super().__init__(text)


class MalformedPayload(FetchError):
    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Malformed payload: {detail}")
