"""Generated cards: short text blurbs written by an OpenAI chat model."""
import random
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import arrow
import requests

from kidscreen.cards import Card, CardType
from kidscreen.config import Config
from kidscreen.fetcher import FetchError, LazyFetcher

logger = logging.getLogger(__name__)

CHAT_COMPLETIONS_URL = "https://api.openai.com/v1/chat/completions"
MODEL = "gpt-4o"
FETCH_TIMEOUT_SECONDS = 60


@dataclass(frozen=True)
class GeneratedCardOptions:
    title: str
    prompt: str
    priority: int


@dataclass(frozen=True)
class GeneratedOptions:
    openai_api_key: str
    cards: List[GeneratedCardOptions] = field(default_factory=list)


def generated_options(config: Config) -> GeneratedOptions:
    return GeneratedOptions(
        openai_api_key=config.generated.open_ai_api_key,
        cards=[GeneratedCardOptions(c.title, c.prompt, c.priority) for c in config.generated.cards],
    )


def _openai_headers(api_key: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}


def fetch_completion(api_key: str, prompt: str, now: Optional[arrow.Arrow] = None) -> str:
    """Asks the chat model to answer the prompt, telling it today's date."""
    now = now or arrow.now()
    payload = {
        "model": MODEL,
        "messages": [
            {"role": "system", "content": f"The current date is {now.format('MMMM D, YYYY')}"},
            {"role": "user", "content": prompt},
        ],
    }
    r = requests.post(CHAT_COMPLETIONS_URL, headers=_openai_headers(api_key), json=payload,
                      timeout=FETCH_TIMEOUT_SECONDS)
    r.raise_for_status()
    data = r.json()
    try:
        return data["choices"][0]["message"]["content"].strip()
    except (KeyError, IndexError, TypeError, AttributeError) as e:
        raise FetchError(f"Unexpected chat response shape: {e}") from e


def new_generated_cards(options: GeneratedOptions) -> List[Card]:
    """One text card per configured prompt, each with its own completion call."""
    if options.cards and not options.openai_api_key:
        logger.warning("⚠️ Generated cards configured without an OpenAI API key.")

    cards = []
    for card_options in options.cards:
        fetcher = LazyFetcher(lambda prompt=card_options.prompt: fetch_completion(options.openai_api_key, prompt))

        def load(card: Card, get_body=fetcher.get) -> None:
            card.body = ""
            card.body = get_body()

        cards.append(Card(title=card_options.title, type=CardType.TEXT, priority=card_options.priority, loader=load))
    return cards


FAKE_BLURBS = [
    "En 1900, le premier zeppelin a effectué son vol inaugural. C'était le début de l'ère des dirigeables.",
    "En 1969, l'homme a marché sur la Lune pour la première fois. Un petit pas pour l'homme, un grand pas pour l'humanité.",
    "En 1789, la Révolution française a commencé avec la prise de la Bastille. Liberté, égalité, fraternité!",
    "En 1492, Christophe Colomb a découvert l'Amérique. Un nouveau monde s'est ouvert.",
    "En 1879, Thomas Edison a inventé l'ampoule électrique. La nuit n'a plus jamais été la même.",
]


def new_fake_generated_cards() -> List[Card]:
    """Cards with canned content."""
    def load_history(card: Card) -> None:
        card.body = random.choice(FAKE_BLURBS)

    return [
        Card(title="Dans l'histoire", type=CardType.TEXT, priority=60, loader=load_history),
        Card(
            title="Blague du jour",
            type=CardType.TEXT,
            priority=50,
            body="Pet et Répète sont dans un bateau. Pet tombe à l'eau, qui est-ce qui reste?",
        ),
    ]
