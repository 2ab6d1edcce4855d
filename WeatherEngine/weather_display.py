"""Display strings and advice derived from weather records - pure functions for testability."""
import math
import time
from typing import List, Optional

from temperature import TemperatureUnit, format_temperature, kelvin_to_celsius
from weather_data import WeatherRecord

NOT_AVAILABLE = "N/A"

# Advice thresholds
HIGH_HUMIDITY_PERCENT = 80
VERY_WINDY_MPS = 15


def format_temperature_reading(record: Optional[WeatherRecord], unit: TemperatureUnit) -> str:
    if record is None:
        return NOT_AVAILABLE
    return format_temperature(record.temperature_kelvin, unit)


def format_feels_like(record: Optional[WeatherRecord], unit: TemperatureUnit) -> str:
    if record is None:
        return NOT_AVAILABLE
    return f"Feels like {format_temperature(record.feels_like_kelvin, unit)}"


def format_humidity(record: Optional[WeatherRecord]) -> str:
    return f"{record.humidity_percent if record else 0}%"


def format_wind_speed(record: Optional[WeatherRecord]) -> str:
    if record is None:
        return NOT_AVAILABLE
    return f"{record.wind_speed_mps} m/s"


def format_pressure(record: Optional[WeatherRecord]) -> str:
    return f"{record.pressure_hpa if record else 0} hPa"


def format_last_updated(millis: Optional[int]) -> str:
    """Local wall-clock time of the last update, e.g. "Last updated: 14:05"; empty before any update."""
    if millis is None:
        return ""
    return "Last updated: " + time.strftime("%H:%M", time.localtime(millis / 1000))


def weather_advice(record: WeatherRecord) -> str:
    """
    Build a short piece of advice for the conditions in a record.

    One temperature band sentence always, then optional humidity, wind and
    precipitation hints.

    Args:
        record: Weather record to describe

    Returns:
        Advice sentences joined by spaces
    """
    temp_c = kelvin_to_celsius(record.temperature_kelvin)
    advice: List[str] = []

    if temp_c > 35:
        advice.append("⚠️ Extremely hot! Stay indoors with AC.")
    elif temp_c > 30:
        advice.append("🌡️ Very hot. Drink lots of water.")
    elif temp_c > 25:
        advice.append("☀️ Perfect weather for activities!")
    elif temp_c > 15:
        advice.append("🌤️ Pleasant. Light jacket for evening.")
    elif temp_c > 5:
        advice.append("🧥 Cool weather. Dress warmly.")
    elif temp_c > -5:
        advice.append("❄️ Cold! Multiple layers needed.")
    else:
        advice.append("🥶 Extreme cold! Limit outdoor exposure.")

    if record.humidity_percent > HIGH_HUMIDITY_PERCENT:
        advice.append("💧 High humidity makes it feel hotter.")

    if record.wind_speed_mps > VERY_WINDY_MPS:
        advice.append("💨 Very windy. Secure loose items.")

    description = record.description.lower()
    if "rain" in description:
        advice.append("☂️ Bring an umbrella!")
    elif "snow" in description:
        advice.append("⛄ Watch for slippery conditions.")
    elif "storm" in description:
        advice.append("⛈️ Stay indoors if possible.")
    elif "fog" in description or "mist" in description:
        advice.append("🌫️ Reduced visibility. Drive carefully.")

    return " ".join(advice)


def _heat_index(temp_c: float, humidity: float) -> float:
    # Rothfusz regression, Celsius coefficients
    t, h = temp_c, humidity
    return (
        -8.784695 + 1.61139411 * t + 2.33854884 * h
        - 0.14611605 * t * h - 0.012308094 * t * t
        - 0.016424828 * h * h + 0.002211732 * t * t * h
        + 0.00072546 * t * h * h - 0.000003582 * t * t * h * h
    )


def _wind_chill(temp_c: float, wind_mps: float) -> float:
    # wind speed in km/h for the formula
    v = math.pow(wind_mps * 3.6, 0.16)
    return 13.12 + 0.6215 * temp_c - 11.37 * v + 0.3965 * temp_c * v


def comfort_index(temperature_kelvin: float, humidity_percent: int, wind_speed_mps: float) -> str:
    """
    Classify how the conditions feel.

    Uses the heat index when it is hot (> 27°C) and humid (> 40%), otherwise
    wind chill when it is cool (<= 10°C) and windy (>= 4.8 m/s), otherwise
    the air temperature.
    """
    temp_c = kelvin_to_celsius(temperature_kelvin)

    heat_index = temp_c if temp_c < 27 else _heat_index(temp_c, humidity_percent)
    if temp_c > 10 or wind_speed_mps < 4.8:
        wind_chill = temp_c
    else:
        wind_chill = _wind_chill(temp_c, wind_speed_mps)

    felt = heat_index if temp_c > 27 and humidity_percent > 40 else wind_chill

    if felt > 40:
        return "Dangerous"
    elif felt > 32:
        return "Very Uncomfortable"
    elif felt > 27:
        return "Uncomfortable"
    elif felt > 21:
        return "Comfortable"
    elif felt > 15:
        return "Cool"
    elif felt > 5:
        return "Cold"
    elif felt > -5:
        return "Very Cold"
    return "Extreme Cold"
