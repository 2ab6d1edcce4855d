"""Temperature conversion - everything is stored in Kelvin, converted on display."""
import math
from enum import Enum


KELVIN_OFFSET = 273.15


class TemperatureUnit(Enum):
    """Display unit preference."""
    CELSIUS = "C"
    FAHRENHEIT = "F"

    def toggled(self) -> "TemperatureUnit":
        if self is TemperatureUnit.CELSIUS:
            return TemperatureUnit.FAHRENHEIT
        return TemperatureUnit.CELSIUS


def kelvin_to_celsius(kelvin: float) -> float:
    return kelvin - KELVIN_OFFSET


def kelvin_to_fahrenheit(kelvin: float) -> float:
    return (kelvin - KELVIN_OFFSET) * 9 / 5 + 32


def celsius_to_kelvin(celsius: float) -> float:
    return celsius + KELVIN_OFFSET


def fahrenheit_to_kelvin(fahrenheit: float) -> float:
    return (fahrenheit - 32) * 5 / 9 + KELVIN_OFFSET


def convert(kelvin: float, unit: TemperatureUnit) -> float:
    """
    Convert a Kelvin reading to the given display unit.

    NaN and infinite inputs are passed through unguarded.
    """
    if unit is TemperatureUnit.CELSIUS:
        return kelvin_to_celsius(kelvin)
    return kelvin_to_fahrenheit(kelvin)


def unit_symbol(unit: TemperatureUnit) -> str:
    return f"°{unit.value}"


def format_temperature(kelvin: float, unit: TemperatureUnit) -> str:
    """
    Format a Kelvin reading as a whole number with its unit symbol.

    The value is truncated toward zero, not rounded: 290 K is "16°C".
    """
    value = convert(kelvin, unit)
    if math.isfinite(value):
        return f"{int(value)}{unit_symbol(unit)}"
    # int() refuses nan/inf; render them as-is
    return f"{value}{unit_symbol(unit)}"
