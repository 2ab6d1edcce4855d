"""Console weather monitor driving the weather engine against OpenWeather."""
import argparse
import asyncio
import logging
import os
import signal
import sys
from typing import Tuple

from dotenv import load_dotenv

from openweather_provider import OpenWeatherGateway
from temperature import TemperatureUnit
from time_source import SystemTimeSource
from weather_display import weather_advice
from weather_service import WeatherStateMachine, DEFAULT_CITY
from weather_state import EngineState, Phase

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
DEFAULT_LOG_FILE = os.path.join(BASE_DIR, "weather-engine.log")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser("Console weather monitor")
    parser.add_argument("--log-file", default=DEFAULT_LOG_FILE)
    parser.add_argument("--city", default=None, help="City to watch (defaults to WEATHER_CITY or London)")
    parser.add_argument("--units", choices=["celsius", "fahrenheit"], default="celsius")
    parser.add_argument("--refresh", type=float, default=60.0, help="Seconds between requests")
    parser.add_argument("--iterations", type=int, default=0, help="Number of requests (0 = run until stopped)")
    parser.add_argument("--cache-ttl", type=int, default=300, help="Cache freshness window in seconds")
    parser.add_argument("--timeout", type=int, default=10, help="HTTP timeout in seconds")
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args(argv)


def setup_logging(log_file: str, verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(log_file)
        ]
    )


def load_config(city_arg) -> Tuple[str, str, str]:
    load_dotenv()
    api_key = os.getenv("WEATHER_API_KEY")
    city = city_arg or os.getenv("WEATHER_CITY", DEFAULT_CITY)
    lang = os.getenv("WEATHER_LANG", "en")

    if not api_key:
        raise SystemExit("Missing WEATHER_API_KEY in environment")

    logging.info("Configuration loaded: city=%s lang=%s", city, lang)
    return api_key, city, lang


def build_engine(api_key: str, city: str, lang: str, args: argparse.Namespace) -> WeatherStateMachine:
    gateway = OpenWeatherGateway(api_key=api_key, lang=lang, timeout=args.timeout)
    engine = WeatherStateMachine(
        gateway=gateway,
        time_source=SystemTimeSource(),
        default_city=city,
        freshness_window_ms=args.cache_ttl * 1000,
        default_unit=TemperatureUnit[args.units.upper()],
    )
    logging.info("Weather engine ready (cache ttl=%ss)", args.cache_ttl)
    return engine


def format_state_lines(engine: WeatherStateMachine, state: EngineState) -> Tuple[str, str, str]:
    record = state.current_record
    condition = record.description if record else "No data"
    headline = f"{state.current_city}: {engine.get_temperature_string()} {condition}"
    details = (
        f"{engine.get_feels_like_string()}  Hum {engine.get_humidity_string()}  "
        f"Wind {engine.get_wind_speed_string()}  {engine.get_pressure_string()}"
    )
    status = engine.get_last_updated_string()
    if state.last_error:
        status = f"{status}  [{state.last_error}]".strip()
    return headline, details, status


def make_printer(engine: WeatherStateMachine):
    def on_state(state: EngineState) -> None:
        if state.phase is Phase.LOADING:
            logging.info("Loading weather for %s...", state.current_city)
            return
        for line in format_state_lines(engine, state):
            if line:
                print(line)
        if state.current_record is not None and state.phase is Phase.LOADED:
            print(weather_advice(state.current_record))
    return on_state


async def weather_loop(engine: WeatherStateMachine, city: str, args: argparse.Namespace) -> None:
    frame = 0
    while args.iterations <= 0 or frame < args.iterations:
        frame += 1
        logging.info("Frame %s: requesting weather for %s", frame, city)
        await engine.request_weather(city)
        if args.iterations <= 0 or frame < args.iterations:
            await asyncio.sleep(max(args.refresh, 1.0))


async def run_monitor(engine: WeatherStateMachine, city: str, args: argparse.Namespace) -> None:
    """
    Poll until done or until SIGTERM arrives.

    Ctrl-C is left to asyncio.run, which cancels this task and re-raises
    KeyboardInterrupt in main().
    """
    loop = asyncio.get_running_loop()
    task = asyncio.current_task()
    terminated = asyncio.Event()

    def on_sigterm() -> None:
        logging.info("Received SIGTERM, shutting down")
        terminated.set()
        task.cancel()

    try:
        loop.add_signal_handler(signal.SIGTERM, on_sigterm)
    except NotImplementedError:
        logging.warning("SIGTERM handling not supported by this event loop")
    try:
        await weather_loop(engine, city, args)
    except asyncio.CancelledError:
        if not terminated.is_set():
            raise
    finally:
        try:
            loop.remove_signal_handler(signal.SIGTERM)
        except NotImplementedError:
            pass


def main(argv=None) -> None:
    args = parse_args(argv)
    setup_logging(args.log_file, args.verbose)
    api_key, city, lang = load_config(args.city)

    engine = build_engine(api_key, city, lang, args)
    subscription = engine.subscribe(make_printer(engine))

    try:
        asyncio.run(run_monitor(engine, city, args))
    except KeyboardInterrupt:
        logging.info("Stopping monitor")
    finally:
        subscription.unsubscribe()
        engine.clear()
        logging.info("Engine cleared")


if __name__ == "__main__":
    main()
