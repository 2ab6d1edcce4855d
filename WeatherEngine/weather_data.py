"""Weather domain model - pure data structures independent of any API."""
from dataclasses import dataclass
from typing import Optional


def title_case_description(description: str) -> str:
    """Capitalize the first letter of each space-separated word ("light rain" -> "Light Rain")."""
    return " ".join(word[:1].upper() + word[1:] for word in description.split(" "))


@dataclass(frozen=True)
class RawWeatherPayload:
    """What a gateway decodes from the wire; temperatures in Kelvin."""
    temperature_kelvin: float
    feels_like_kelvin: float
    humidity_percent: int
    wind_speed_mps: float
    pressure_hpa: int
    description: str  # e.g., "broken clouds", as sent by the provider
    icon: str  # provider icon code, e.g. "04d"
    provider_city: Optional[str] = None  # name the provider resolved the query to


@dataclass(frozen=True)
class WeatherRecord:
    """
    One city's resolved weather snapshot.

    Built once per successful fetch and never mutated; a later fetch for the
    same city produces a new record.
    """
    city: str  # exact request key, case preserved
    temperature_kelvin: float
    feels_like_kelvin: float
    description: str  # title case
    humidity_percent: int
    wind_speed_mps: float
    pressure_hpa: int
    icon: str

    def __post_init__(self):
        if not 0 <= self.humidity_percent <= 100:
            raise ValueError(f"humidity out of range: {self.humidity_percent}")
        if self.wind_speed_mps < 0:
            raise ValueError(f"negative wind speed: {self.wind_speed_mps}")
        if self.pressure_hpa < 0:
            raise ValueError(f"negative pressure: {self.pressure_hpa}")

    @classmethod
    def from_payload(cls, city: str, payload: RawWeatherPayload) -> "WeatherRecord":
        """
        Build a record for the requested city from a gateway payload.

        Args:
            city: The city string the request was made with (the cache key)
            payload: Decoded provider response

        Raises:
            ValueError: If the payload carries out-of-range values
        """
        return cls(
            city=city,
            temperature_kelvin=float(payload.temperature_kelvin),
            feels_like_kelvin=float(payload.feels_like_kelvin),
            description=title_case_description(payload.description),
            humidity_percent=int(payload.humidity_percent),
            wind_speed_mps=float(payload.wind_speed_mps),
            pressure_hpa=int(payload.pressure_hpa),
            icon=payload.icon,
        )
