"""
Calendar cards: today's and tomorrow's events from ICS feeds.

Events from every configured feed are merged, optionally filtered on their
attendees, then split into "today" and "tomorrow" relative to local
midnight. All-day events are shown without a time and sort first.
"""
import re
import random
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, Iterable, List, Optional, Pattern, Tuple, Union

import arrow
import icalendar
import recurring_ical_events
import requests

from kidscreen.cards import Card, CardType
from kidscreen.config import Config, ConfigError
from kidscreen.fetcher import FetchError, LazyFetcher

logger = logging.getLogger(__name__)

FETCH_TIMEOUT_SECONDS = 15


@dataclass(frozen=True)
class Attendee:
    name: str
    address: str


@dataclass
class CalendarEvent:
    """An event as read from a feed; `start` is a date for all-day events."""
    summary: str
    start: Union[date, datetime]
    attendees: List[Attendee] = field(default_factory=list)

    @property
    def all_day(self) -> bool:
        return isinstance(self.start, date) and not isinstance(self.start, datetime)


@dataclass(frozen=True)
class CalendarOptions:
    """A feed URL and its attendee filter; `attendees` is None to disable filtering."""
    url: str
    attendees: Optional[Pattern] = None

    def matches_filter(self, event: CalendarEvent) -> bool:
        """True if any attendee's name or address matches, or if no filter is set."""
        if self.attendees is None:
            return True
        for attendee in event.attendees:
            if self.attendees.search(attendee.name) or self.attendees.search(attendee.address):
                return True
        return False


def calendar_options(config: Config) -> List[CalendarOptions]:
    """Compiles each calendar's attendee filter; a bad pattern is a ConfigError."""
    calendars = []
    for cal in config.calendars:
        pattern = None
        if cal.attendees_regexp:
            flags = 0 if cal.attendees_case_sensitive else re.IGNORECASE
            try:
                pattern = re.compile(cal.attendees_regexp, flags)
            except re.error as e:
                raise ConfigError(f"failed to compile regex {cal.attendees_regexp!r}: {e}") from e
        calendars.append(CalendarOptions(url=cal.url, attendees=pattern))
    return calendars


@dataclass
class Event:
    """An event ready for display; `time` is None for all-day events."""
    summary: str
    time: Optional[arrow.Arrow] = None

    def __str__(self) -> str:
        if self.time is None:
            return self.summary
        return self.time.format('HH[h]mm ') + self.summary


@dataclass
class Agenda:
    today: List[Event] = field(default_factory=list)
    tomorrow: List[Event] = field(default_factory=list)


def day_bounds(now: arrow.Arrow) -> Tuple[arrow.Arrow, arrow.Arrow]:
    """Local midnight today and tomorrow."""
    today = now.floor('day')
    return today, today.shift(days=1)


def to_local(start: Union[date, datetime], tz) -> arrow.Arrow:
    """Converts an event start to local time; dates become local midnight."""
    if not isinstance(start, datetime):
        return arrow.Arrow(start.year, start.month, start.day, tzinfo=tz)
    # Floating times are taken as local.
    return arrow.Arrow.fromdatetime(start, tzinfo=start.tzinfo or tz).to(tz)


def _event_start_key(event: Event) -> float:
    return event.time.timestamp() if event.time is not None else 0


def build_agenda(feeds: Iterable[Tuple[CalendarOptions, List[CalendarEvent]]], now: arrow.Arrow) -> Agenda:
    """Filters, buckets and sorts the events of every feed."""
    agenda = Agenda()
    today, tomorrow = day_bounds(now)
    day_after = tomorrow.shift(days=1)

    for options, events in feeds:
        for e in events:
            start = to_local(e.start, now.tzinfo)
            # Ignore all-day events from the previous day.
            if start < today or start >= day_after:
                continue

            logger.debug(f"Event: {e.summary} Start: {start}")
            if not options.matches_filter(e):
                logger.debug("  (skipping, doesn't match filter)")
                continue

            # Don't include a time for all-day events.
            time = None
            if not e.all_day and (start.hour > 0 or start.minute > 0):
                time = start

            bucket = agenda.today if start < tomorrow else agenda.tomorrow
            bucket.append(Event(summary=e.summary, time=time))

    agenda.today.sort(key=_event_start_key)
    agenda.tomorrow.sort(key=_event_start_key)
    logger.debug(f"Today: {[str(e) for e in agenda.today]}")
    logger.debug(f"Tomorrow: {[str(e) for e in agenda.tomorrow]}")
    return agenda


def _attendees(component) -> List[Attendee]:
    raw = component.get('ATTENDEE')
    if raw is None:
        return []
    if not isinstance(raw, list):
        raw = [raw]
    attendees = []
    for a in raw:
        address = str(a)
        if address.lower().startswith('mailto:'):
            address = address[len('mailto:'):]
        name = str(getattr(a, 'params', {}).get('CN', '') or '')
        attendees.append(Attendee(name=name, address=address))
    return attendees


def parse_ics(ical_data: str, start: arrow.Arrow, end: arrow.Arrow) -> List[CalendarEvent]:
    """Parses an ICS document, expanding recurrences between start and end."""
    try:
        cal = icalendar.Calendar.from_ical(ical_data)
    except ValueError as e:
        raise FetchError(f"failed to parse calendar: {e}") from e

    events = []
    for component in recurring_ical_events.of(cal).between(start.datetime, end.datetime):
        dtstart = component.get('DTSTART')
        if dtstart is None:
            continue
        events.append(CalendarEvent(
            summary=str(component.get('SUMMARY', '') or ''),
            start=dtstart.dt,
            attendees=_attendees(component),
        ))
    return events


def fetch_calendars(options: List[CalendarOptions], tz: str) -> Agenda:
    """Downloads every feed and builds today's and tomorrow's agenda."""
    now = arrow.now(tz)
    today, tomorrow = day_bounds(now)
    # To catch all-day events, let the window start one second before today.
    start = today.shift(seconds=-1)
    end = tomorrow.shift(days=1)

    feeds = []
    for idx, c in enumerate(options):
        r = requests.get(c.url, timeout=FETCH_TIMEOUT_SECONDS)
        r.raise_for_status()
        events = parse_ics(r.text, start, end)
        logger.info(f"   -> Downloaded calendar feed #{idx+1} with {len(events)} events in range")
        feeds.append((c, events))
    return build_agenda(feeds, now)


def new_calendar_cards(options: List[CalendarOptions], tz: str = 'local') -> List[Card]:
    fetcher = LazyFetcher(lambda: fetch_calendars(options, tz))
    return make_calendar_cards(fetcher.get)


def new_fake_calendar_cards(tz: str = 'local') -> List[Card]:
    fetcher = LazyFetcher(lambda: fake_agenda(arrow.now(tz)))
    return make_calendar_cards(fetcher.get)


def fake_agenda(now: arrow.Arrow) -> Agenda:
    """A random handful of canned events spread over today and tomorrow."""
    midnight = now.floor('day')
    agenda = Agenda()
    for event in [
        Event("Estelle: Arts plastiques"),
        Event("Julie: Musique"),
        Event("Parc avec les amis", midnight.shift(hours=10, minutes=30)),
        Event("Dîner au restaurant", midnight.shift(hours=12)),
        Event("Souper chez mamie", midnight.shift(hours=18)),
        Event("Film en famille", midnight.shift(hours=19)),
    ]:
        x = random.random()
        if x > 0.75:
            agenda.today.append(event)
        elif x > 0.5:
            agenda.tomorrow.append(event)
    return agenda


def make_calendar_cards(get_agenda: Callable[[], Agenda]) -> List[Card]:
    def load_today(card: Card) -> None:
        agenda = get_agenda()
        card.body = ""
        card.items = []
        if not agenda.today:
            return
        card.type = CardType.LIST
        card.items = [str(e) for e in agenda.today]

    def load_tomorrow(card: Card) -> None:
        agenda = get_agenda()
        card.items = [str(e) for e in agenda.tomorrow]

    return [
        Card(title="Aujourd'hui", priority=100, loader=load_today),
        Card(title="Demain", type=CardType.LIST, priority=50, loader=load_tomorrow),
    ]
