"""Picture card: a random labelled image scraped from a web page."""
import random
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup

from kidscreen.cards import Card, CardType
from kidscreen.config import Config
from kidscreen.fetcher import FetchError, LazyFetcher

logger = logging.getLogger(__name__)

FETCH_TIMEOUT_SECONDS = 15


@dataclass(frozen=True)
class PictureOptions:
    page_url: str        # The page to scrape for pictures.
    image_selector: str  # CSS selector for the image elements.
    label_selector: str  # CSS selector for the label, searched around each image.


def picture_options(config: Config) -> PictureOptions:
    return PictureOptions(
        page_url=config.picture.page_url,
        image_selector=config.picture.image_selector,
        label_selector=config.picture.label_selector,
    )


@dataclass(frozen=True)
class Picture:
    label: str
    url: str


def new_picture_card(options: PictureOptions) -> Card:
    """A card showing a random picture and its label from the configured page."""
    if not options.page_url:
        return Card()
    fetcher = LazyFetcher(lambda: fetch_picture(options))
    return make_picture_card(fetcher.get)


def new_fake_picture_card() -> Card:
    fetcher = LazyFetcher(fake_picture)
    return make_picture_card(fetcher.get)


def fake_picture() -> Picture:
    color = random.choice(["#f4a261", "#2a9d8f", "#e76f51", "#8ab17d"])
    svg = (
        "data:image/svg+xml;utf8,"
        "<svg xmlns='http://www.w3.org/2000/svg' width='200' height='150'>"
        f"<rect width='200' height='150' fill='{color.replace('#', '%23')}'/></svg>"
    )
    return Picture(label=random.choice(["Le renard", "La loutre", "Le hibou"]), url=svg)


def make_picture_card(get_picture: Callable[[], Picture]) -> Card:
    def load(card: Card) -> None:
        picture = get_picture()
        card.title = picture.label
        card.body = f'<img src="{picture.url}">'

    return Card(type=CardType.TEXT, priority=35, loader=load)


def _find_label(image, options: PictureOptions) -> Optional[str]:
    """Text of the nearest label around the image, looking outward from its parent."""
    for ancestor in image.parents:
        # Past this point the label could belong to another image.
        if len(ancestor.select(options.image_selector)) > 1:
            break
        label = ancestor.select_one(options.label_selector)
        if label is not None:
            return label.get_text(strip=True)
    return None


def extract_pictures(html: str, options: PictureOptions) -> Dict[str, str]:
    """Maps each label found on the page to its image source."""
    soup = BeautifulSoup(html, "html.parser")
    labels: Dict[str, str] = {}
    for image in soup.select(options.image_selector):
        src = image.get("src")
        if not src:
            continue
        label = _find_label(image, options) if options.label_selector else None
        if not label:
            continue
        labels[label] = src
    return labels


def fetch_picture(options: PictureOptions) -> Picture:
    """Scrapes the page and picks one labelled picture uniformly at random."""
    try:
        r = requests.get(options.page_url, timeout=FETCH_TIMEOUT_SECONDS)
        r.raise_for_status()
    except requests.RequestException as e:
        raise FetchError(f"failed to load picture page: {e}") from e

    labels = extract_pictures(r.text, options)
    if not labels:
        raise FetchError("failed to pick a picture")
    label = random.choice(list(labels))
    return Picture(label=label, url=urljoin(options.page_url, labels[label]))
