import io
import os
from datetime import timedelta

import pytest

from kidscreen.cards import ChartOptions, HoursOptions
from kidscreen.config import ConfigError, load_env_file, parse_config, parse_duration, read_config

EXAMPLE = """
timezone: America/Montreal
calendars:
  - url: https://cal.example.com/family.ics
    attendees_regexp: estelle
weather:
  location: {lat: 45.5, lng: -73.6}
  precipitations:
    relevant_time: {start: 6h30m, end: 21h}
    chart: {top: 100, step: 10, min: 40, high: 80}
picture:
  page_url: https://animals.example.com/
  image_selector: figure img
  label_selector: figcaption
generated:
  cards:
    - {title: Blague, prompt: Une blague, priority: 20}
"""


def test_defaults():
    config = parse_config({})
    assert config.calendars == []
    assert config.weather.precipitations.hours.to_hours_options() == HoursOptions(7, 20)
    assert config.weather.precipitations.chart.to_chart_options() == ChartOptions(100, 5, 50, 75)
    assert config.weather.airquality.chart.to_chart_options() == ChartOptions(100, 25, 45, 100)
    assert config.tz == 'local'
    assert (config.render.width, config.render.height) == (1280, 720)


def test_read_config_merges_with_defaults(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-from-env")
    config = read_config(io.StringIO(EXAMPLE))

    assert config.tz == "America/Montreal"
    assert config.calendars[0].attendees_regexp == "estelle"
    assert config.weather.precipitations.hours.to_hours_options() == HoursOptions(6, 21)
    assert config.weather.precipitations.chart.to_chart_options() == ChartOptions(100, 10, 40, 80)
    # Untouched sections keep their defaults.
    assert config.weather.airquality.chart.to_chart_options() == ChartOptions(100, 25, 45, 100)
    assert config.generated.open_ai_api_key == "sk-from-env"
    assert config.generated.cards[0].priority == 20


@pytest.mark.parametrize("value, expected", [
    ("7h", timedelta(hours=7)),
    ("7h30m", timedelta(hours=7, minutes=30)),
    ("45m", timedelta(minutes=45)),
    (20, timedelta(hours=20)),
])
def test_parse_duration(value, expected):
    assert parse_duration(value) == expected


@pytest.mark.parametrize("value", ["", "seven", "7x", True])
def test_parse_duration_rejects_garbage(value):
    with pytest.raises(ConfigError):
        parse_duration(value)


@pytest.mark.parametrize("raw", [
    {"timezone": "Mars/Olympus_Mons"},
    {"weather": {"precipitations": {"relevant_time": {"start": "21h", "end": "7h"}}}},
    {"weather": {"airquality": {"relevant_time": {"end": "30h"}}}},
    {"picture": {"page_url": "https://example.com"}},
    {"calendars": [{"attendees_regexp": "x"}]},
    {"weather": "sunny"},
    {"generated": {"cards": [{"title": "no prompt"}]}},
    {"generated": {"cards": ["just a string"]}},
    {"calendars": [{"url": "u", "attendees_case_sensitive": "false"}]},
])
def test_invalid_configs(raw):
    with pytest.raises(ConfigError):
        parse_config(raw)


def test_invalid_yaml():
    with pytest.raises(ConfigError):
        read_config(io.StringIO("weather: [unclosed"))


def test_load_env_file(tmp_path, monkeypatch):
    monkeypatch.delenv("KIDSCREEN_TEST_KEY", raising=False)
    env = tmp_path / ".env"
    env.write_text('# comment\nKIDSCREEN_TEST_KEY="abc"\n', encoding="utf-8")

    assert load_env_file(env)
    assert os.environ["KIDSCREEN_TEST_KEY"] == "abc"
    assert not load_env_file(tmp_path / "missing.env")
