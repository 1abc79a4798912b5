"""Single-value TTL cache with single-flight refresh."""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from discovery.errors import InventoryQueryError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    """The cached value and when it was last successfully refreshed."""

    value: T
    last_refreshed_at: float | None
    ttl_seconds: float

    def is_fresh(self, now: float) -> bool:
        if self.last_refreshed_at is None:
            return False
        return now - self.last_refreshed_at < self.ttl_seconds


class _InFlightRefresh(Generic[T]):
    """Outcome of one refresh call, shared by every caller waiting on it."""

    def __init__(self) -> None:
        self.done = threading.Event()
        self.value: T | None = None
        self.error: BaseException | None = None


class RefreshCache(Generic[T]):
    """Caches the result of ``refresh_fn`` for ``ttl_seconds``.

    At most one refresh runs at a time. Callers that arrive while it runs wait
    for it and get the same outcome. When the refresh raises one of
    ``recoverable_errors`` the failure is logged and the previous value is
    returned; the refresh timestamp is left alone so the next call tries again.
    Any other exception propagates to every waiting caller.

    A ttl of 0 refreshes on every call.

    Example:
        cache = RefreshCache(fetch_addresses, ttl_seconds=10, initial=[])
        addresses = cache.get_or_refresh()
    """

    def __init__(
        self,
        refresh_fn: Callable[[], T],
        ttl_seconds: float,
        initial: T,
        *,
        recoverable_errors: tuple[type[BaseException], ...] = (InventoryQueryError,),
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must be >= 0")
        self._refresh_fn = refresh_fn
        self._recoverable_errors = recoverable_errors
        self._clock = clock
        self._lock = threading.Lock()
        self._entry: CacheEntry[T] = CacheEntry(value=initial, last_refreshed_at=None, ttl_seconds=ttl_seconds)
        self._in_flight: _InFlightRefresh[T] | None = None

    @property
    def entry(self) -> CacheEntry[T]:
        return self._entry

    def get_or_refresh(self) -> T:
        with self._lock:
            if self._entry.is_fresh(self._clock()):
                return self._entry.value
            if self._in_flight is not None:
                attempt = self._in_flight
                leader = False
            else:
                attempt = _InFlightRefresh()
                self._in_flight = attempt
                leader = True

        if not leader:
            attempt.done.wait()
            if attempt.error is not None:
                raise attempt.error
            return attempt.value  # type: ignore[return-value]

        try:
            value = self._refresh_fn()
        except self._recoverable_errors as e:
            logger.warning("Refresh failed, keeping previous value: %s", e)
            with self._lock:
                attempt.value = self._entry.value
                self._in_flight = None
            attempt.done.set()
            return attempt.value  # type: ignore[return-value]
        except BaseException as e:
            with self._lock:
                attempt.error = e
                self._in_flight = None
            attempt.done.set()
            raise

        with self._lock:
            self._entry.value = value
            self._entry.last_refreshed_at = self._clock()
            attempt.value = value
            self._in_flight = None
        attempt.done.set()
        return value
