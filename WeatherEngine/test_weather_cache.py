"""Tests for the per-city weather cache."""
import pytest
from weather_cache import WeatherCache, CacheEntry
from weather_data import WeatherRecord


def make_record(city, temp=290.0):
    return WeatherRecord(
        city=city,
        temperature_kelvin=temp,
        feels_like_kelvin=temp,
        description="Clear Sky",
        humidity_percent=50,
        wind_speed_mps=1.0,
        pressure_hpa=1013,
        icon="01d",
    )


@pytest.fixture
def cache():
    return WeatherCache(freshness_window_ms=1_000)


def test_get_missing_city(cache):
    """Test an empty cache returns nothing."""
    assert cache.get("London") is None
    assert cache.lookup_fresh("London", 0) is None


def test_lookup_is_city_qualified(cache):
    """Test entries are never returned for a different city."""
    cache.put("London", make_record("London"), 0)
    cache.put("Paris", make_record("Paris", 300.0), 10)

    assert cache.get("London").record.city == "London"
    assert cache.lookup_fresh("London", 20).record.temperature_kelvin == 290.0
    assert cache.get("Tokyo") is None
    assert cache.get("london") is None


def test_put_replaces_entry(cache):
    """Test a second put for the same city replaces the first wholesale."""
    cache.put("London", make_record("London", 280.0), 0)
    cache.put("London", make_record("London", 285.0), 500)

    entry = cache.get("London")
    assert entry == CacheEntry("London", make_record("London", 285.0), 500)
    assert len(cache) == 1


def test_freshness_window(cache):
    """Test an entry is fresh strictly inside the window."""
    entry = cache.put("London", make_record("London"), 1_000)

    assert WeatherCache.is_fresh(entry, 1_999, 1_000) is True
    assert WeatherCache.is_fresh(entry, 2_000, 1_000) is False
    assert cache.lookup_fresh("London", 1_999) is entry
    assert cache.lookup_fresh("London", 2_000) is None
    # expiry does not evict
    assert "London" in cache


def test_invalidate_and_clear(cache):
    """Test per-city invalidation and clearing every entry."""
    cache.put("London", make_record("London"), 0)
    cache.put("Paris", make_record("Paris"), 0)

    cache.invalidate("London")
    cache.invalidate("Nowhere")
    assert "London" not in cache
    assert "Paris" in cache

    cache.clear()
    assert len(cache) == 0
