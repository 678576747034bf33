"""Cards and charts: the display units of the screen."""
import enum
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional


class CardType(enum.Enum):
    UNKNOWN = 0
    TEXT = 1   # Title, body and footer.
    LIST = 2   # Title, items and footer.
    CHART = 3  # Title, chart and footer.


class CardState(enum.Enum):
    UNPOPULATED = "unpopulated"
    POPULATING = "populating"
    VALID = "valid"
    INVALID = "invalid"
    FAILED = "failed"


@dataclass(frozen=True)
class HoursOptions:
    start: int  # Inclusive
    end: int    # Inclusive


@dataclass(frozen=True)
class ChartOptions:
    top: int   # Default ceiling when no data exceeds it.
    step: int  # Increment applied to the ceiling when data exceeds it.
    min: int   # Values at or below this are not drawn as high.
    high: int  # Value of maximum shade.


@dataclass
class Chart:
    """A 24-hour bar chart; data[hour] is the value for that hour."""
    data: List[int] = field(default_factory=list)
    hours: HoursOptions = HoursOptions(0, 23)
    options: ChartOptions = ChartOptions(100, 10, 0, 100)

    def max_value(self) -> int:
        """Largest value in the data. Raises ValueError when there is none."""
        return max(self.data)

    def valid(self) -> bool:
        if not self.data:
            return False
        for hour, value in enumerate(self.data):
            if hour < self.hours.start or hour > self.hours.end:
                continue
            if value > self.options.min:
                return True
        return False

    def ceiling(self) -> int:
        """Top of the chart: the configured top, stepped up to fit the data."""
        peak = self.max_value()
        top = self.options.top
        if self.options.step <= 0:
            return max(top, peak)
        while top < peak:
            top += self.options.step
        return top

    def shade(self, value: int) -> float:
        if value <= self.options.min:
            return 0.0
        if value >= self.options.high or self.options.high <= self.options.min:
            return 1.0
        return (value - self.options.min) / (self.options.high - self.options.min)

    def bars(self) -> List[Dict[str, Any]]:
        """Per-hour drawing values for the template."""
        top = self.ceiling() or 1
        return [
            {
                'hour': hour,
                'value': value,
                'height': round(100 * max(value, 0) / top, 1),
                'shade': round(self.shade(value), 2),
                'relevant': self.hours.start <= hour <= self.hours.end,
            }
            for hour, value in enumerate(self.data)
        ]


@dataclass
class Card:
    """
    A single information card on the screen.

    `loader`, when set, fills the dynamic fields and raises on failure. The
    pipeline calls it once per render cycle through `load()`.
    """
    title: str = ""
    footer: str = ""
    type: CardType = CardType.UNKNOWN
    body: str = ""
    items: List[str] = field(default_factory=list)
    chart: Chart = field(default_factory=Chart)
    priority: int = 0
    loader: Optional[Callable[["Card"], None]] = field(default=None, repr=False, compare=False)
    state: CardState = field(default=CardState.UNPOPULATED, compare=False)

    def load(self) -> None:
        if self.loader is not None:
            self.loader(self)

    def valid(self) -> bool:
        """Whether the card has content worth displaying."""
        if self.type == CardType.TEXT:
            return len(self.body) > 0
        if self.type == CardType.LIST:
            return len(self.items) > 0
        if self.type == CardType.CHART:
            return self.chart.valid()
        return False
