"""Tests for display strings, advice and comfort index."""
import time
import pytest
from temperature import TemperatureUnit, celsius_to_kelvin
from weather_data import WeatherRecord
from weather_display import (
    comfort_index,
    format_feels_like,
    format_last_updated,
    format_temperature_reading,
    weather_advice,
)


def make_record(temp_c=20.0, humidity=50, wind=2.0, description="Clear Sky"):
    return WeatherRecord(
        city="London",
        temperature_kelvin=celsius_to_kelvin(temp_c),
        feels_like_kelvin=celsius_to_kelvin(temp_c - 2),
        description=description,
        humidity_percent=humidity,
        wind_speed_mps=wind,
        pressure_hpa=1013,
        icon="01d",
    )


def test_temperature_reading():
    """Test readings in both units, and without a record."""
    record = make_record(temp_c=25.5)
    assert format_temperature_reading(record, TemperatureUnit.CELSIUS) == "25°C"
    assert format_temperature_reading(record, TemperatureUnit.FAHRENHEIT) == "77°F"
    assert format_temperature_reading(None, TemperatureUnit.CELSIUS) == "N/A"


def test_feels_like():
    """Test the feels-like line."""
    assert format_feels_like(make_record(temp_c=25.5), TemperatureUnit.CELSIUS) == "Feels like 23°C"


def test_last_updated():
    """Test last-updated uses local HH:MM."""
    millis = 1_700_000_000_000
    expected = time.strftime("%H:%M", time.localtime(millis / 1000))
    assert format_last_updated(millis) == f"Last updated: {expected}"
    assert format_last_updated(None) == ""


@pytest.mark.parametrize("temp_c,expected", [
    (36, "Extremely hot"),
    (31, "Very hot"),
    (26, "Perfect weather"),
    (16, "Pleasant"),
    (6, "Cool weather"),
    (-4, "Cold!"),
    (-10, "Extreme cold"),
])
def test_advice_temperature_bands(temp_c, expected):
    """Test each temperature band."""
    assert expected in weather_advice(make_record(temp_c=temp_c))


def test_advice_extras():
    """Test humidity, wind and precipitation hints stack."""
    advice = weather_advice(make_record(temp_c=20, humidity=90, wind=20.0, description="Light Rain"))
    assert "High humidity" in advice
    assert "Very windy" in advice
    assert "umbrella" in advice


def test_advice_no_extras():
    """Test calm dry weather only gets the temperature sentence."""
    advice = weather_advice(make_record(temp_c=20))
    assert advice == "🌤️ Pleasant. Light jacket for evening."


@pytest.mark.parametrize("description,expected", [
    ("Light Snow", "slippery"),
    ("Thunderstorm", "Stay indoors"),
    ("Mist", "Reduced visibility"),
    ("Fog", "Reduced visibility"),
])
def test_advice_conditions(description, expected):
    """Test description keywords."""
    assert expected in weather_advice(make_record(description=description))


def test_comfort_index_bands():
    """Test plain temperatures map to the expected bands."""
    assert comfort_index(celsius_to_kelvin(22), 30, 1.0) == "Comfortable"
    assert comfort_index(celsius_to_kelvin(18), 30, 1.0) == "Cool"
    assert comfort_index(celsius_to_kelvin(8), 30, 1.0) == "Cold"
    assert comfort_index(celsius_to_kelvin(0), 30, 1.0) == "Very Cold"
    assert comfort_index(celsius_to_kelvin(-20), 30, 1.0) == "Extreme Cold"


def test_comfort_index_heat_index():
    """Test hot humid air feels worse than the thermometer says."""
    assert comfort_index(celsius_to_kelvin(30), 20, 1.0) == "Uncomfortable"
    assert comfort_index(celsius_to_kelvin(30), 80, 1.0) == "Very Uncomfortable"
    assert comfort_index(celsius_to_kelvin(35), 90, 1.0) == "Dangerous"


def test_comfort_index_wind_chill():
    """Test wind makes cool air feel colder."""
    assert comfort_index(celsius_to_kelvin(6), 50, 1.0) == "Cold"
    assert comfort_index(celsius_to_kelvin(6), 50, 10.0) == "Very Cold"
