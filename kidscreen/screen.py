"""
Composing the screen from the configuration and producing the image.

`build_screen` creates a fresh header and set of cards (with fresh
fetchers) for one render cycle; nothing is shared between cycles.
"""
import logging
from pathlib import Path
from typing import List, Tuple

from kidscreen.airquality import air_quality_options, new_air_quality_card, new_fake_air_quality_card
from kidscreen.agenda import calendar_options, new_calendar_cards, new_fake_calendar_cards
from kidscreen.cards import Card, CardType
from kidscreen.config import Config
from kidscreen.generated import generated_options, new_fake_generated_cards, new_generated_cards
from kidscreen.header import Header, new_fake_header, new_header
from kidscreen.picture import new_fake_picture_card, new_picture_card, picture_options
from kidscreen.pipeline import RenderData, assemble
from kidscreen.render import render_html, render_png, serve_dev
from kidscreen.weather import new_fake_weather_cards_and_info, new_weather_cards_and_info, weather_options

logger = logging.getLogger(__name__)


def filler_cards() -> List[Card]:
    """A few low-priority cards to fill the screen in dev."""
    return [
        Card(title="Disco!", type=CardType.TEXT, body="J'ai mal au coeur", priority=1),
        Card(title="J'appelle docteur", type=CardType.TEXT, body="Il est venu", priority=1),
        Card(title="Il est parti", type=CardType.TEXT, body="En Australie", priority=1),
    ]


def build_screen(config: Config, fake: bool = False) -> Tuple[Header, List[Card]]:
    """Creates the header and cards for one render cycle, unloaded."""
    cards: List[Card] = []

    if fake:
        cards.append(new_fake_air_quality_card(air_quality_options(config)))
        cards.extend(new_fake_calendar_cards(config.tz))
        cards.extend(new_fake_generated_cards())
        weather_cards, weather = new_fake_weather_cards_and_info(weather_options(config))
        cards.extend(weather_cards)
        cards.append(new_fake_picture_card())
        cards.extend(filler_cards())
        return new_fake_header(weather, config.tz), cards

    cards.append(new_air_quality_card(air_quality_options(config)))
    calendars = calendar_options(config)
    if calendars:
        cards.extend(new_calendar_cards(calendars, config.tz))
    options = generated_options(config)
    if options.cards:
        cards.extend(new_generated_cards(options))
    weather_cards, weather = new_weather_cards_and_info(weather_options(config))
    cards.extend(weather_cards)
    cards.append(new_picture_card(picture_options(config)))
    return new_header(weather, config.tz), cards


def load_screen(config: Config, fake: bool = False) -> RenderData:
    logger.info("📡 Fetching all data sources concurrently...")
    header, cards = build_screen(config, fake)
    return assemble(header, cards)


def run(config: Config, dev: bool = False, fake: bool = False,
        img: Path = Path("screen.png"), addr: str = ":9999") -> None:
    """Renders the screen to a PNG file, or serves it over HTTP in dev mode."""
    width, height = config.render.width, config.render.height

    if dev:
        serve_dev(lambda: load_screen(config, fake), addr, width, height)
        return

    data = load_screen(config, fake)
    logger.info("⚙️ Rendering dashboard...")
    html = render_html(data, width, height)
    png = render_png(html, width, height)
    Path(img).write_bytes(png)
    logger.info(f"✅ Saved {len(png)} bytes to {img}")
