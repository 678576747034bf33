"""
Once-only data fetching shared between cards.

Several cards can be derived from a single network call (the weather
forecast feeds both the precipitation chart and the temperature card).
A LazyFetcher wraps that call so it runs at most once per render cycle,
whichever card asks first, and every other card gets the same outcome.
"""
import threading
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class LazyFetcher(Generic[T]):
    """Runs `fetch` on the first `get()` and caches its value or exception.

    Every caller gets the very same exception object, so its `__traceback__`
    reflects whichever caller raised it last, and each card's LoadError
    chains that shared object as its cause.
    """

    def __init__(self, fetch: Callable[[], T]):
        self._fetch = fetch
        self._lock = threading.Lock()
        self._done = False
        self._value: Optional[T] = None
        self._error: Optional[BaseException] = None

    def get(self) -> T:
        """Returns the cached value, or re-raises the cached exception."""
        if not self._done:
            with self._lock:
                if not self._done:
                    try:
                        self._value = self._fetch()
                    except Exception as e:
                        self._error = e
                    self._done = True
        if self._error is not None:
            raise self._error
        return self._value

    @property
    def done(self) -> bool:
        return self._done


class FetchError(Exception):
    """A data source answered, but not with something usable."""
