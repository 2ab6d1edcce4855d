"""OpenWeather Current Weather API gateway implementation."""
import asyncio
import logging
import requests
from typing import Optional
from weather_provider import (
    WeatherGatewayBase,
    FetchTimeout,
    Unreachable,
    HttpStatusError,
    MalformedPayload,
)
from weather_data import RawWeatherPayload


class OpenWeatherGateway(WeatherGatewayBase):
    """
    Weather gateway using the OpenWeather Current Weather API, queried by city name.

    Uses the free Current Weather API: https://openweathermap.org/current
    Requests "standard" units so temperatures arrive in Kelvin. The HTTP call
    is blocking, so it runs on the loop's default executor.
    """

    BASE_URL = "https://api.openweathermap.org/data/2.5/weather"

    def __init__(
        self,
        api_key: str,
        lang: str = "en",
        timeout: int = 10,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize OpenWeather gateway.

        Args:
            api_key: OpenWeather API key
            lang: Language code for descriptions (e.g., "en", "de")
            timeout: HTTP request timeout in seconds
            session: Optional requests session (defaults to module-level requests.get)
        """
        self.api_key = api_key
        self.lang = lang
        self.timeout = timeout
        self.session = session

    def build_weather_url(self, city: str) -> str:
        """Request URL for a city, with the API key redacted (for logs and diagnostics)."""
        prepared = requests.Request(
            "GET", self.BASE_URL, params=self._params(city, api_key="***")
        ).prepare()
        return prepared.url

    async def fetch(self, city: str) -> RawWeatherPayload:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.fetch_sync, city)

    def fetch_sync(self, city: str) -> RawWeatherPayload:
        """
        Fetch current weather for a city, blocking.

        Raises:
            FetchTimeout: The request timed out
            Unreachable: Any other transport failure
            HttpStatusError: Non-2xx response
            MalformedPayload: Response body could not be mapped
        """
        get = self.session.get if self.session is not None else requests.get
        try:
            logging.info(f"Making OpenWeather API request for {city!r}: {self.BASE_URL}")
            response = get(self.BASE_URL, params=self._params(city), timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            logging.error(f"OpenWeather request timed out: {e}")
            raise FetchTimeout(f"Request timed out after {self.timeout}s") from e
        except requests.exceptions.RequestException as e:
            logging.error(f"Network error during API request: {e}")
            raise Unreachable(f"Network error: {e}") from e

        logging.info(f"API response status: {response.status_code}")
        if not response.ok:
            logging.error(f"API request failed with status {response.status_code}")
            self._handle_error_response(response)

        try:
            data = response.json()
        except ValueError as e:
            logging.error(f"Response body is not JSON: {response.text[:200]}")
            raise MalformedPayload("response body is not JSON") from e

        logging.debug(f"API response (truncated): {str(data)[:500]}...")
        return self._parse(data)

    def _params(self, city: str, api_key: Optional[str] = None) -> dict:
        return {
            "q": city,
            "appid": api_key if api_key is not None else self.api_key,
            "units": "standard",
            "lang": self.lang,
        }

    def _parse(self, data) -> RawWeatherPayload:
        if not isinstance(data, dict):
            raise MalformedPayload("response is not an object")

        weather_array = data.get("weather") or []
        if not weather_array:
            logging.error("Response missing 'weather' array")
            raise MalformedPayload("missing 'weather' array")
        if not isinstance(weather_array, list):
            raise MalformedPayload("'weather' is not an array")
        weather = weather_array[0]
        if not isinstance(weather, dict):
            logging.error(f"Unexpected 'weather' entry: {weather!r}")
            raise MalformedPayload("'weather' entry is not an object")

        main_data = data.get("main") or {}
        if not main_data:
            logging.error("Response missing 'main' block")
            raise MalformedPayload("missing 'main' block")
        if not isinstance(main_data, dict):
            raise MalformedPayload("'main' block is not an object")

        wind_data = data.get("wind") or {}
        if not isinstance(wind_data, dict):
            raise MalformedPayload("'wind' block is not an object")

        try:
            payload = RawWeatherPayload(
                temperature_kelvin=float(main_data["temp"]),
                feels_like_kelvin=float(main_data.get("feels_like", main_data["temp"])),
                humidity_percent=int(main_data.get("humidity", 0)),
                wind_speed_mps=float(wind_data.get("speed", 0.0)),
                pressure_hpa=int(main_data.get("pressure", 0)),
                description=weather.get("description", ""),
                icon=weather.get("icon", ""),
                provider_city=data.get("name"),
            )
        except (KeyError, ValueError, TypeError) as e:
            logging.error(f"Failed to parse API response: {e}", exc_info=True)
            raise MalformedPayload(f"failed to parse response: {e}") from e

        logging.info(f"Parsed weather for {payload.provider_city}: {payload.temperature_kelvin}K, {payload.description}")
        return payload

    def _handle_error_response(self, response: requests.Response) -> None:
        """Parse and raise error from OpenWeather error response."""
        try:
            error_data = response.json()
        except ValueError:
            # Not JSON, use HTTP status
            logging.error(f"Non-JSON error response: HTTP {response.status_code}, body: {response.text[:500]}")
            raise HttpStatusError(response.status_code, response.text[:200])

        logging.error(f"OpenWeather API error response: {error_data}")
        message = error_data.get("message", "Unknown error") if isinstance(error_data, dict) else "Unknown error"
        raise HttpStatusError(response.status_code, message)
