"""
Configuration loading.

The screen is configured from a YAML file (by default
~/.config/kidscreen/config.yaml). Values missing from the file fall back to
the defaults below. A `.env` file, when present, can supply secrets such as
OPENAI_API_KEY so they stay out of the YAML.
"""
import os
import re
import logging
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, IO, List, Optional, Union

import pytz
import yaml

from kidscreen.cards import ChartOptions, HoursOptions

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised for configuration that cannot be used; fatal at startup."""


# ==============================================================================
# ENVIRONMENT LOADING
# ==============================================================================
def load_env_file(env_file: Path = Path(".env")) -> bool:
    """Load environment variables from a .env file, if it exists."""
    if not env_file.exists():
        return False
    with open(env_file, 'r', encoding='utf-8') as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith('#') and '=' in line:
                key, value = line.split('=', 1)
                os.environ.setdefault(key.strip(), value.strip().strip('"\''))
    logger.debug(f"Loaded environment from {env_file}")
    return True


def default_config_path() -> Path:
    """Config path from KIDSCREEN_CONFIG, else ~/.config/kidscreen/config.yaml."""
    override = os.getenv("KIDSCREEN_CONFIG")
    if override:
        return Path(os.path.expanduser(override))
    return Path.home() / ".config" / "kidscreen" / "config.yaml"


# ==============================================================================
# CONFIGURATION MODEL
# ==============================================================================
_DURATION_RE = re.compile(r'^(?:(\d+)h)?(?:(\d+)m)?$')


def parse_duration(value: Union[str, int, float, timedelta]) -> timedelta:
    """Parses '7h', '7h30m', '45m' or a bare number of hours."""
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        raise ConfigError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return timedelta(hours=value)
    match = _DURATION_RE.match(str(value).strip())
    if not match or not any(match.groups()):
        raise ConfigError(f"Invalid duration: {value!r}")
    hours, minutes = match.groups()
    return timedelta(hours=int(hours or 0), minutes=int(minutes or 0))


@dataclass
class TimeRange:
    start: timedelta  # Inclusive
    end: timedelta    # Inclusive

    def to_hours_options(self) -> HoursOptions:
        return HoursOptions(
            start=int(self.start.total_seconds() // 3600),
            end=int(self.end.total_seconds() // 3600),
        )


@dataclass
class ChartConfig:
    top: int   # Default top value of the chart if no data exceeds it.
    step: int  # Step to raise the top value by when some data exceeds it.
    min: int   # Minimum value for the chart to display.
    high: int  # Value of maximum shade on the chart.

    def to_chart_options(self) -> ChartOptions:
        return ChartOptions(top=self.top, step=self.step, min=self.min, high=self.high)


@dataclass
class SeriesConfig:
    hours: TimeRange
    chart: ChartConfig


@dataclass
class Location:
    lat: float = 0.0
    lng: float = 0.0


@dataclass
class WeatherConfig:
    location: Location = field(default_factory=Location)
    min_diff_threshold: int = 3
    precipitations: SeriesConfig = field(default_factory=lambda: SeriesConfig(
        hours=TimeRange(timedelta(hours=7), timedelta(hours=20)),
        chart=ChartConfig(top=100, step=5, min=50, high=75),
    ))
    airquality: SeriesConfig = field(default_factory=lambda: SeriesConfig(
        hours=TimeRange(timedelta(hours=7), timedelta(hours=20)),
        chart=ChartConfig(top=100, step=25, min=45, high=100),
    ))


@dataclass
class CalendarConfig:
    url: str
    attendees_regexp: str = ""
    attendees_case_sensitive: bool = False


@dataclass
class PictureConfig:
    page_url: str = ""
    image_selector: str = ""
    label_selector: str = ""


@dataclass
class GeneratedCardConfig:
    title: str
    prompt: str
    priority: int = 0


@dataclass
class GeneratedConfig:
    open_ai_api_key: str = ""
    cards: List[GeneratedCardConfig] = field(default_factory=list)


@dataclass
class RenderConfig:
    width: int = 1280
    height: int = 720


@dataclass
class Config:
    calendars: List[CalendarConfig] = field(default_factory=list)
    weather: WeatherConfig = field(default_factory=WeatherConfig)
    picture: PictureConfig = field(default_factory=PictureConfig)
    generated: GeneratedConfig = field(default_factory=GeneratedConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    timezone: Optional[str] = None  # None means the machine's local timezone.

    @property
    def tz(self) -> str:
        """Timezone name usable by arrow."""
        return self.timezone or 'local'


# ==============================================================================
# PARSING
# ==============================================================================
def _section(raw: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = raw.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{key}' must be a mapping, got {type(value).__name__}")
    return value


def _series(raw: Dict[str, Any], default: SeriesConfig) -> SeriesConfig:
    hours = _section(raw, 'relevant_time')
    chart = _section(raw, 'chart')
    return SeriesConfig(
        hours=TimeRange(
            start=parse_duration(hours.get('start', default.hours.start)),
            end=parse_duration(hours.get('end', default.hours.end)),
        ),
        chart=ChartConfig(
            top=int(chart.get('top', default.chart.top)),
            step=int(chart.get('step', default.chart.step)),
            min=int(chart.get('min', default.chart.min)),
            high=int(chart.get('high', default.chart.high)),
        ),
    )


def parse_config(raw: Optional[Dict[str, Any]]) -> Config:
    """Builds a Config from already-decoded YAML, filling in defaults."""
    raw = raw or {}
    if not isinstance(raw, dict):
        raise ConfigError("Config file must contain a mapping at the top level")
    config = Config()

    try:
        for cal in raw.get('calendars') or []:
            if not isinstance(cal, dict) or not cal.get('url'):
                raise ConfigError(f"Calendar entry needs a 'url': {cal!r}")
            case_sensitive = cal.get('attendees_case_sensitive', False)
            if not isinstance(case_sensitive, bool):
                raise ConfigError(f"attendees_case_sensitive must be true or false, got {case_sensitive!r}")
            config.calendars.append(CalendarConfig(
                url=str(cal['url']),
                attendees_regexp=str(cal.get('attendees_regexp') or ''),
                attendees_case_sensitive=case_sensitive,
            ))

        weather = _section(raw, 'weather')
        location = _section(weather, 'location')
        config.weather = WeatherConfig(
            location=Location(lat=float(location.get('lat', 0.0)), lng=float(location.get('lng', 0.0))),
            min_diff_threshold=int(weather.get('min_diff_threshold', config.weather.min_diff_threshold)),
            precipitations=_series(_section(weather, 'precipitations'), config.weather.precipitations),
            airquality=_series(_section(weather, 'airquality'), config.weather.airquality),
        )

        picture = _section(raw, 'picture')
        config.picture = PictureConfig(
            page_url=str(picture.get('page_url') or ''),
            image_selector=str(picture.get('image_selector') or ''),
            label_selector=str(picture.get('label_selector') or ''),
        )

        generated = _section(raw, 'generated')
        for card in generated.get('cards') or []:
            if not isinstance(card, dict):
                raise ConfigError(f"Generated card entry must be a mapping: {card!r}")
        config.generated = GeneratedConfig(
            open_ai_api_key=str(generated.get('open_ai_api_key') or ''),
            cards=[
                GeneratedCardConfig(
                    title=str(card.get('title', '')),
                    prompt=str(card['prompt']),
                    priority=int(card.get('priority', 0)),
                )
                for card in generated.get('cards') or []
            ],
        )

        render = _section(raw, 'render')
        config.render = RenderConfig(
            width=int(render.get('width', config.render.width)),
            height=int(render.get('height', config.render.height)),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigError(f"Malformed configuration: {e}") from e

    config.timezone = raw.get('timezone') or None
    validate(config)
    return config


def validate(config: Config) -> None:
    """Checks values that parse fine but cannot be used."""
    if config.timezone:
        try:
            pytz.timezone(config.timezone)
        except pytz.UnknownTimeZoneError:
            raise ConfigError(f"Unknown timezone: {config.timezone}")

    for name in ('precipitations', 'airquality'):
        hours = getattr(config.weather, name).hours.to_hours_options()
        if not (0 <= hours.start <= 23 and 0 <= hours.end <= 23):
            raise ConfigError(f"weather.{name}.relevant_time must be within one day")
        if hours.start > hours.end:
            raise ConfigError(f"weather.{name}.relevant_time starts after it ends")

    if config.picture.page_url and not config.picture.image_selector:
        raise ConfigError("picture.image_selector is required when picture.page_url is set")

    if config.render.width <= 0 or config.render.height <= 0:
        raise ConfigError("render.width and render.height must be positive")


def read_config(stream: IO) -> Config:
    """Reads a YAML config, applies defaults and environment overrides."""
    try:
        raw = yaml.safe_load(stream)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML: {e}") from e
    config = parse_config(raw)

    if not config.generated.open_ai_api_key:
        config.generated.open_ai_api_key = os.getenv("OPENAI_API_KEY", "")

    if not config.calendars:
        logger.warning("⚠️ No calendar feeds configured. Dashboard will have no events.")
    if (config.weather.location.lat, config.weather.location.lng) == (0.0, 0.0):
        logger.warning("⚠️ Using default coordinates (0,0). Weather data may be incorrect.")
    return config
