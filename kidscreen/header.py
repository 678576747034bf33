"""The header: today's date in French plus the day's weather summary."""
import re
import random
from dataclasses import dataclass, field
from typing import Callable, Optional

import arrow

from kidscreen.weather import WeatherInfo

# To translate the date into French.
FRENCH_NAMES = {
    # Days of the week.
    "Sunday": "Dimanche",
    "Monday": "Lundi",
    "Tuesday": "Mardi",
    "Wednesday": "Mercredi",
    "Thursday": "Jeudi",
    "Friday": "Vendredi",
    "Saturday": "Samedi",

    # Months.
    "January": "janvier",
    "February": "février",
    "March": "mars",
    "April": "avril",
    "May": "mai",
    "June": "juin",
    "July": "juillet",
    "August": "août",
    "September": "septembre",
    "October": "octobre",
    "November": "novembre",
    "December": "décembre",
}

_FRENCH_RE = re.compile(r'\b(' + '|'.join(FRENCH_NAMES) + r')\b')


def french_date(when: arrow.Arrow) -> str:
    """Formats a date like 'Samedi 18 octobre'."""
    english = when.format('dddd D MMMM', locale='en_us')
    return _FRENCH_RE.sub(lambda m: FRENCH_NAMES[m.group(1)], english)


@dataclass
class Header:
    title: str = ""
    condition: str = ""
    max_temperature: int = 0
    min_temperature: int = 0
    loader: Optional[Callable[["Header"], None]] = field(default=None, repr=False, compare=False)

    def load(self) -> None:
        if self.loader is not None:
            self.loader(self)


def new_header(weather: WeatherInfo, tz: str = 'local') -> Header:
    return make_header(weather, lambda: arrow.now(tz))


def new_fake_header(weather: WeatherInfo, tz: str = 'local') -> Header:
    """A header dated at a random day within the next year."""
    return make_header(weather, lambda: arrow.now(tz).shift(days=random.randint(0, 363)))


def make_header(weather: WeatherInfo, get_time: Callable[[], arrow.Arrow]) -> Header:
    def load(header: Header) -> None:
        now = get_time()
        weather.load()

        header.title = french_date(now)
        header.condition = weather.condition
        header.max_temperature = weather.max_temperature
        header.min_temperature = weather.min_temperature

    return Header(loader=load)
