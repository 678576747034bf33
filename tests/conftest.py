import json

import pytest

from kidscreen.config import parse_config


class FakeResponse:
    """Just enough of requests.Response for the data sources."""

    def __init__(self, body="", status_code=200):
        if isinstance(body, (dict, list)):
            body = json.dumps(body)
        self.text = body
        self.status_code = status_code

    def json(self):
        return json.loads(self.text)

    def raise_for_status(self):
        if self.status_code >= 400:
            import requests
            raise requests.HTTPError(f"{self.status_code} Error")


def weather_payload(precipitation_today=None):
    precipitation_today = precipitation_today or [0] * 7 + [10, 20, 60, 80, 40] + [0] * 12
    return {
        "daily": {
            "weathercode": [3, 61],
            "temperature_2m_max": [12.4, 18.6],
            "temperature_2m_min": [4.1, 7.2],
        },
        "hourly": {
            "precipitation_probability": [5] * 24 + precipitation_today,
        },
    }


def air_quality_payload(values=None):
    values = values or [20] * 8 + [50, 70, 90] + [30] * 13
    return {"hourly": {"us_aqi": values}}


PICTURE_PAGE = """
<html><body>
  <div class="gallery">
    <figure><img src="/img/fox.jpg"><figcaption>Le renard</figcaption></figure>
  </div>
</body></html>
"""


@pytest.fixture
def config():
    return parse_config({
        "timezone": "America/Montreal",
        "weather": {"location": {"lat": 45.5, "lng": -73.6}, "min_diff_threshold": 3},
        "picture": {
            "page_url": "https://animals.example.com/gallery",
            "image_selector": "figure img",
            "label_selector": "figcaption",
        },
    })


@pytest.fixture
def fake_http(monkeypatch):
    """Routes requests.get to canned payloads by URL prefix; returns the call log."""
    routes = {
        "https://api.open-meteo.com": lambda: FakeResponse(weather_payload()),
        "https://air-quality-api.open-meteo.com": lambda: FakeResponse(air_quality_payload()),
        "https://animals.example.com": lambda: FakeResponse(PICTURE_PAGE),
    }
    calls = []

    def fake_get(url, params=None, timeout=None, **kwargs):
        calls.append(url)
        for prefix, respond in routes.items():
            if url.startswith(prefix):
                return respond()
        return FakeResponse("not found", status_code=404)

    monkeypatch.setattr("requests.get", fake_get)
    return calls
