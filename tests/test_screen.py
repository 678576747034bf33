from pathlib import Path

import pytest

from kidscreen import __main__ as cli
from kidscreen.cards import CardState
from kidscreen.fetcher import FetchError
from kidscreen.render import create_dev_app, render_html
from kidscreen.screen import build_screen, load_screen


def test_screen_end_to_end(config, fake_http):
    data = load_screen(config)

    assert data.error is None
    assert [c.title for c in data.cards] == ["Qualité de l'air", "Précipitations", "Température", "Le renard"]
    assert data.cards[2].body == "7°C plus chaud qu'hier."
    assert data.cards[3].body == '<img src="https://animals.example.com/img/fox.jpg">'
    assert data.header.condition == "rainy"
    assert (data.header.max_temperature, data.header.min_temperature) == (19, 7)

    # The header and both weather cards share a single forecast request.
    assert sum(url.startswith("https://api.open-meteo.com") for url in fake_http) == 1


def test_failed_source_keeps_the_others(config, fake_http, monkeypatch):
    def broken(options):
        raise FetchError("failed to load picture page: network is down")

    monkeypatch.setattr("kidscreen.picture.fetch_picture", broken)
    data = load_screen(config)

    assert data.error is not None
    assert "failed to load card" in str(data.error)
    assert "Le renard" not in [c.title for c in data.cards]
    assert len(data.cards) == 3


def test_render_html_contains_every_card(config, fake_http):
    html = render_html(load_screen(config), width=800, height=480)

    for title in ["Qualité de l'air", "Précipitations", "Température", "Le renard"]:
        assert title in html
    assert "🌧️" in html
    assert "width: 800px" in html


def test_fake_screen_needs_no_network(config, monkeypatch):
    def no_network(*args, **kwargs):
        raise AssertionError("fake mode must not touch the network")

    monkeypatch.setattr("requests.get", no_network)
    monkeypatch.setattr("requests.post", no_network)

    header, cards = build_screen(config, fake=True)
    data = load_screen(config, fake=True)

    assert all(c.state == CardState.UNPOPULATED for c in cards)
    assert header.title == ""
    assert data.header.title
    titles = [c.title for c in data.cards]
    assert "Disco!" in titles
    assert "Blague du jour" in titles
    priorities = [c.priority for c in data.cards]
    assert priorities == sorted(priorities, reverse=True)


def test_dev_app_rebuilds_on_each_request(config, fake_http):
    app = create_dev_app(lambda: load_screen(config), 640, 400)
    client = app.test_client()

    first = client.get("/")
    second = client.get("/")

    assert first.status_code == 200
    assert "Précipitations" in first.get_data(as_text=True)
    assert second.status_code == 200
    assert sum(url.startswith("https://api.open-meteo.com") for url in fake_http) == 2


def test_main_missing_config_fails(tmp_path):
    assert cli.main(["--config", str(tmp_path / "missing.yaml")]) == 1


@pytest.mark.parametrize("contents", [
    "calendars:\n  - url: https://cal.example.com/a.ics\n    attendees_regexp: '(unclosed'\n",
    "timezone: Nowhere/Land\n",
    "generated:\n  cards:\n    - just a string\n",
    "calendars:\n  - url: https://cal.example.com/a.ics\n    attendees_case_sensitive: 'no'\n",
])
def test_main_bad_config_fails(tmp_path, contents):
    path = tmp_path / "config.yaml"
    path.write_text(contents, encoding="utf-8")
    assert cli.main(["--config", str(path)]) == 1


def test_main_passes_options_to_run(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text("weather:\n  location: {lat: 45.5, lng: -73.6}\n", encoding="utf-8")
    seen = {}

    def fake_run(config, dev, fake, img, addr):
        seen.update(dev=dev, fake=fake, img=img, addr=addr, lat=config.weather.location.lat)

    monkeypatch.setattr(cli, "run", fake_run)
    code = cli.main(["--config", str(path), "--fake", "--img", str(tmp_path / "out.png")])

    assert code == 0
    assert seen == {"dev": False, "fake": True, "img": tmp_path / "out.png", "addr": ":9999", "lat": 45.5}
    assert isinstance(seen["img"], Path)
