import random

from kidscreen.airquality import air_quality_options, new_fake_air_quality_card
from kidscreen.config import parse_config
from kidscreen.fake import biased_smooth_values
from kidscreen.generated import new_fake_generated_cards
from kidscreen.picture import new_fake_picture_card


def test_values_stay_within_bounds():
    random.seed(7)
    for lo, hi in [(10, 100), (0, 250), (5, 5)]:
        values = biased_smooth_values(24, lo, hi)
        assert len(values) == 24
        assert all(lo <= v <= hi for v in values)


def test_values_lean_towards_the_low_end():
    random.seed(11)
    values = biased_smooth_values(2000, 0, 100)
    assert sum(values) / len(values) < 50


def test_no_values():
    assert biased_smooth_values(0, 0, 10) == []


def load_fake_cards(seed):
    random.seed(seed)
    config = parse_config({})
    cards = [new_fake_air_quality_card(air_quality_options(config)), new_fake_picture_card()]
    cards.extend(new_fake_generated_cards())
    for card in cards:
        card.load()
    return cards


def test_fake_cards_pass_validity_with_default_options():
    runs = [load_fake_cards(seed) for seed in range(40)]

    air_quality_valid = sum(cards[0].valid() for cards in runs)
    assert air_quality_valid >= 30
    # Picture and generated fakes always have content.
    assert all(card.valid() for cards in runs for card in cards[1:])
