"""
Loading the screen's content.

The header and every card are loaded in parallel, since most of them
involve a network call. A failing card never stops the others: its error
is collected, logged, and the card is judged on whatever it managed to
fill in (usually nothing, so it is dropped). The surviving cards are
ordered by priority, highest first, keeping factory order for ties, so
the output does not depend on which thread finished first.
"""
import logging
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import List, Optional

from kidscreen.cards import Card, CardState
from kidscreen.header import Header

logger = logging.getLogger(__name__)


class AssembleError(Exception):
    """Every failure collected while loading the header and cards."""

    def __init__(self, errors: List[Exception]):
        self.errors = list(errors)
        super().__init__("; ".join(str(e) for e in self.errors))


class LoadError(Exception):
    """A header or card loader failed."""

    def __init__(self, what: str, cause: Exception):
        self.what = what
        self.cause = cause
        super().__init__(f"failed to load {what}: {cause}")


@dataclass
class RenderData:
    header: Header
    cards: List[Card] = field(default_factory=list)
    error: Optional[AssembleError] = None


def _load_header(header: Header) -> None:
    try:
        header.load()
    except Exception as e:
        raise LoadError("header", e) from e


def _load_card(card: Card) -> None:
    card.state = CardState.POPULATING
    try:
        card.load()
    except Exception as e:
        card.state = CardState.FAILED
        raise LoadError(f"card ({card.title})", e) from e
    card.state = CardState.VALID if card.valid() else CardState.INVALID


def assemble(header: Header, cards: List[Card]) -> RenderData:
    """Loads the header and cards concurrently, keeps valid cards, sorts by priority."""
    with ThreadPoolExecutor(max_workers=len(cards) + 1) as executor:
        futures = [executor.submit(_load_header, header)]
        futures.extend(executor.submit(_load_card, card) for card in cards)
        wait(futures)

    errors = [f.exception() for f in futures if f.exception() is not None]
    error = AssembleError(errors) if errors else None
    if error:
        logger.warning(f"⚠️ Failed to load some cards: {error}")

    valid = [card for card in cards if card.valid()]
    dropped = len(cards) - len(valid)
    if dropped:
        logger.info(f"   -> Dropped {dropped} card(s) with nothing to show")

    # Higher priority first; sorted() is stable so ties keep factory order.
    valid = sorted(valid, key=lambda card: card.priority, reverse=True)
    logger.info(f"✅ Assembled {len(valid)} card(s)")
    return RenderData(header=header, cards=valid, error=error)
