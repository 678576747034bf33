"""Air quality card: hourly US AQI from the Open-Meteo air-quality API."""
import logging
from dataclasses import dataclass
from typing import Callable, List

import requests

from kidscreen.cards import Card, CardType, Chart, ChartOptions, HoursOptions
from kidscreen.config import Config
from kidscreen.fake import biased_smooth_values
from kidscreen.fetcher import FetchError, LazyFetcher
from kidscreen.weather import LatLng

logger = logging.getLogger(__name__)

AIR_QUALITY_URL = "https://air-quality-api.open-meteo.com/v1/air-quality"
FETCH_TIMEOUT_SECONDS = 10


@dataclass(frozen=True)
class AirQualityOptions:
    location: LatLng
    relevant_hours: HoursOptions
    chart: ChartOptions


def air_quality_options(config: Config) -> AirQualityOptions:
    weather = config.weather
    return AirQualityOptions(
        location=LatLng(weather.location.lat, weather.location.lng),
        relevant_hours=weather.airquality.hours.to_hours_options(),
        chart=weather.airquality.chart.to_chart_options(),
    )


def new_air_quality_card(options: AirQualityOptions) -> Card:
    fetcher = LazyFetcher(lambda: fetch_air_quality_data(options.location))
    return make_air_quality_card(options, fetcher.get)


def new_fake_air_quality_card(options: AirQualityOptions) -> Card:
    fetcher = LazyFetcher(lambda: biased_smooth_values(24, 0, 250))
    return make_air_quality_card(options, fetcher.get)


def make_air_quality_card(options: AirQualityOptions, get_aqi: Callable[[], List[int]]) -> Card:
    def load(card: Card) -> None:
        card.chart = Chart()
        card.chart = Chart(data=get_aqi(), hours=options.relevant_hours, options=options.chart)

    return Card(title="Qualité de l'air", type=CardType.CHART, priority=75, loader=load)


def fetch_air_quality_data(location: LatLng) -> List[int]:
    """Fetches today's hourly US AQI values."""
    params = {
        'latitude': f"{location.lat:f}",
        'longitude': f"{location.lng:f}",
        'hourly': 'us_aqi',
        'forecast_days': 1,
        'timezone': 'auto',
    }
    logger.info(f"   -> Fetching air quality for ({location.lat}, {location.lng})...")
    r = requests.get(AIR_QUALITY_URL, params=params, timeout=FETCH_TIMEOUT_SECONDS)
    if r.status_code != 200:
        raise FetchError(f"failed to get air quality data: {r.text}")
    try:
        values = r.json()['hourly']['us_aqi']
        return [int(v or 0) for v in values]
    except (ValueError, KeyError, TypeError) as e:
        logger.debug(f"Air quality response: {r.text}")
        raise FetchError(f"Unexpected air quality response: {e}") from e
