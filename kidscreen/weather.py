"""
Weather cards: precipitation chart, temperature change, and the
WeatherInfo the header is built from.

All three share a single Open-Meteo forecast call through a LazyFetcher.
"""
import random
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

import requests

from kidscreen.cards import Card, CardType, Chart, ChartOptions, HoursOptions
from kidscreen.config import Config
from kidscreen.fake import biased_smooth_values
from kidscreen.fetcher import FetchError, LazyFetcher

logger = logging.getLogger(__name__)

FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
FETCH_TIMEOUT_SECONDS = 15

# WMO weather codes to the icon names used by the template.
CONDITION_ICONS: Dict[int, str] = {
    0: "sunny",      # clear sky
    1: "sunny",      # mainly clear
    2: "cloudy",     # partly cloudy
    3: "overcast",
    45: "foggy",
    48: "foggy",     # depositing rime fog
    51: "rainy",     # drizzle
    53: "rainy",
    55: "rainy",
    56: "rainy",     # freezing drizzle
    57: "rainy",
    61: "rainy",     # rain
    63: "rainy",
    65: "rainy",
    66: "rainy",     # freezing rain
    67: "rainy",
    71: "snowy",     # snow fall
    73: "snowy",
    75: "snowy",
    77: "snowy",     # snow grains
    80: "rainy",     # rain showers
    81: "rainy",
    82: "rainy",
    85: "snowy",     # snow showers
    86: "snowy",
    95: "stormy",    # thunderstorm
    96: "stormy",
    99: "stormy",
}


@dataclass(frozen=True)
class LatLng:
    lat: float
    lng: float


@dataclass(frozen=True)
class WeatherOptions:
    location: LatLng
    min_diff_threshold: int
    relevant_hours: HoursOptions
    chart: ChartOptions


def weather_options(config: Config) -> WeatherOptions:
    weather = config.weather
    return WeatherOptions(
        location=LatLng(weather.location.lat, weather.location.lng),
        min_diff_threshold=weather.min_diff_threshold,
        relevant_hours=weather.precipitations.hours.to_hours_options(),
        chart=weather.precipitations.chart.to_chart_options(),
    )


@dataclass
class TemperatureRange:
    max: int
    min: int


@dataclass
class WeatherData:
    condition: int
    today: TemperatureRange
    yesterday: TemperatureRange
    hourly_precipitation: List[int]


@dataclass
class WeatherInfo:
    """Today's condition icon and temperatures, filled in by `load()`."""
    condition: str = ""
    max_temperature: int = 0
    min_temperature: int = 0
    loader: Optional[Callable[["WeatherInfo"], None]] = field(default=None, repr=False, compare=False)

    def load(self) -> None:
        if self.loader is not None:
            self.loader(self)


def new_weather_cards_and_info(options: WeatherOptions) -> Tuple[List[Card], WeatherInfo]:
    """Weather cards and WeatherInfo backed by the Open-Meteo forecast."""
    fetcher = LazyFetcher(lambda: fetch_weather_data(options.location))
    return make_weather_cards_and_info(options, fetcher.get)


def new_fake_weather_cards_and_info(options: WeatherOptions) -> Tuple[List[Card], WeatherInfo]:
    """Weather cards and WeatherInfo with random data."""
    fetcher = LazyFetcher(fake_weather_data)
    return make_weather_cards_and_info(options, fetcher.get)


def fake_weather_data() -> WeatherData:
    max_today = random.randint(-20, 29)
    min_today = max_today - random.randint(0, 14)
    max_yesterday = max_today + 15 - random.randint(0, 29)
    min_yesterday = max_yesterday - random.randint(0, 14)
    return WeatherData(
        condition=random.choice(list(CONDITION_ICONS)),
        today=TemperatureRange(max=max_today, min=min_today),
        yesterday=TemperatureRange(max=max_yesterday, min=min_yesterday),
        hourly_precipitation=biased_smooth_values(24, 10, 100),
    )


def temperature_change_text(diff: int, threshold: int) -> str:
    """French sentence describing today's max against yesterday's, or '' if too small."""
    if diff > threshold:
        return f"{diff}°C plus chaud qu'hier."
    if diff < -threshold:
        return f"{-diff}°C plus froid qu'hier."
    return ""


def make_weather_cards_and_info(options: WeatherOptions,
                                get_weather: Callable[[], WeatherData]) -> Tuple[List[Card], WeatherInfo]:
    def load_precipitations(card: Card) -> None:
        card.chart = Chart()
        data = get_weather()
        card.chart = Chart(
            data=data.hourly_precipitation,
            hours=options.relevant_hours,
            options=options.chart,
        )

    def load_temperature(card: Card) -> None:
        card.body = ""
        data = get_weather()
        diff = data.today.max - data.yesterday.max
        card.body = temperature_change_text(diff, options.min_diff_threshold)

    def load_info(info: WeatherInfo) -> None:
        data = get_weather()
        info.condition = CONDITION_ICONS.get(data.condition, "")
        info.max_temperature = data.today.max
        info.min_temperature = data.today.min

    cards = [
        Card(title="Précipitations", type=CardType.CHART, priority=60, loader=load_precipitations),
        Card(title="Température", type=CardType.TEXT, priority=60, loader=load_temperature),
    ]
    return cards, WeatherInfo(loader=load_info)


def fetch_weather_data(location: LatLng) -> WeatherData:
    """Fetches yesterday's and today's forecast for one location."""
    params = {
        'latitude': location.lat,
        'longitude': location.lng,
        'timezone': 'auto',
        'daily': 'weathercode,temperature_2m_min,temperature_2m_max',
        'hourly': 'precipitation_probability',
        'past_days': 1,
        'forecast_days': 1,
    }
    logger.info(f"   -> Fetching weather for ({location.lat}, {location.lng})...")
    r = requests.get(FORECAST_URL, params=params, timeout=FETCH_TIMEOUT_SECONDS)
    r.raise_for_status()
    return parse_weather_response(r.json())


def parse_weather_response(data: Dict[str, Any]) -> WeatherData:
    """Turns an Open-Meteo response (past_days=1, forecast_days=1) into WeatherData."""
    try:
        daily = data['daily']
        hourly = data['hourly']
        codes = daily['weathercode']
        max_temps = daily['temperature_2m_max']
        min_temps = daily['temperature_2m_min']
        # Index 0 is yesterday, index 1 is today.
        result = WeatherData(
            condition=int(codes[1]),
            yesterday=TemperatureRange(max=round(max_temps[0]), min=round(min_temps[0])),
            today=TemperatureRange(max=round(max_temps[1]), min=round(min_temps[1])),
            hourly_precipitation=[int(p or 0) for p in hourly['precipitation_probability'][24:48]],
        )
    except (KeyError, IndexError, TypeError, ValueError) as e:
        raise FetchError(f"Unexpected weather response: {e}") from e
    if not result.hourly_precipitation:
        raise FetchError("Weather response has no hourly precipitation for today")
    return result
