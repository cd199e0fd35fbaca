"""Response caching for tool invocations.

Entries live in a bounded LRU store shared by all requests. A lookup returns
a fresh entry directly, serves a stale entry while recomputing it in the
background (when the policy allows stale reads), and otherwise calls the tool.
Concurrent misses for the same key share one computation.
"""

from __future__ import annotations

import asyncio
import logging
import re
import threading
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, replace
from typing import Any

from cachetools import LRUCache
from pydantic import BaseModel

from mcpkit.definitions.base import invoke

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 1000

_DURATION_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([a-z]*)\s*$", re.IGNORECASE)

# Unit aliases -> seconds
_DURATION_UNITS = {
    "ms": 0.001,
    "msec": 0.001,
    "msecs": 0.001,
    "millisecond": 0.001,
    "milliseconds": 0.001,
    "": 1,
    "s": 1,
    "sec": 1,
    "secs": 1,
    "second": 1,
    "seconds": 1,
    "m": 60,
    "min": 60,
    "mins": 60,
    "minute": 60,
    "minutes": 60,
    "h": 3600,
    "hr": 3600,
    "hrs": 3600,
    "hour": 3600,
    "hours": 3600,
    "d": 86400,
    "day": 86400,
    "days": 86400,
    "w": 604800,
    "week": 604800,
    "weeks": 604800,
}


def parse_duration(value: str | int | float) -> float:
    """Parse a duration into seconds.

    Accepts numbers (seconds) and strings such as ``"90"``, ``"30m"``,
    ``"1h"``, ``"2 days"`` or ``"500ms"``.

    Raises:
        ValueError: If the value is negative or the unit is unknown.
    """
    if isinstance(value, bool):
        raise TypeError("Duration must be a number or string, not bool")
    if isinstance(value, int | float):
        seconds = float(value)
    else:
        match = _DURATION_PATTERN.match(value)
        if not match:
            raise ValueError(f"Invalid duration: {value!r}")
        amount, unit = match.groups()
        factor = _DURATION_UNITS.get(unit.lower())
        if factor is None:
            raise ValueError(f"Unknown duration unit {unit!r} in {value!r}")
        seconds = float(amount) * factor

    if seconds < 0:
        raise ValueError(f"Duration must not be negative: {value!r}")
    return seconds


def _sanitize_key_part(value: Any) -> str:
    part = str(value).replace("/", "-").replace("\\", "-")
    return part[1:] if part.startswith("-") else part


def default_cache_key(arguments: Any) -> str:
    """Join argument values in order, e.g. ``{"a": "x/y", "b": 2}`` -> ``x-y:2``."""
    if arguments is None:
        return ""
    if isinstance(arguments, BaseModel):
        values = list(arguments.model_dump().values())
    elif isinstance(arguments, Mapping):
        values = list(arguments.values())
    else:
        values = [arguments]
    return ":".join(_sanitize_key_part(value) for value in values)


@dataclass(frozen=True, slots=True)
class CachePolicy:
    """How long a tool result may be reused.

    Attributes:
        max_age: Seconds (or a duration string) an entry stays fresh.
        stale_max_age: Seconds after expiry during which the stale value is
            still served while a refresh runs. None disables stale reads.
        get_key: Builds the cache key from the tool arguments.
        name: Key prefix; defaults to ``mcp-tool:<tool name>``.
    """

    max_age: float | str
    stale_max_age: float | str | None = None
    get_key: Callable[[Any], str] | None = None
    name: str | None = None


def create_cache_policy(
    option: str | int | float | CachePolicy,
    name: str,
    default_get_key: Callable[[Any], str] | None = None,
) -> CachePolicy:
    """Normalize a tool's ``cache`` option into a CachePolicy.

    Args:
        option: Duration string, seconds, or a CachePolicy.
        name: Default key prefix.
        default_get_key: Key function used when the policy has none.

    Returns:
        CachePolicy with durations in seconds and name/get_key filled in.

    Raises:
        TypeError: If ``option`` has an unsupported type.
        ValueError: If a duration is invalid or ``max_age`` is zero.
    """
    if isinstance(option, CachePolicy):
        policy = option
    elif isinstance(option, str | int | float) and not isinstance(option, bool):
        policy = CachePolicy(max_age=option)
    else:
        raise TypeError(
            f"cache must be a duration or CachePolicy, got {type(option).__name__}"
        )

    max_age = parse_duration(policy.max_age)
    if max_age <= 0:
        raise ValueError("cache max_age must be greater than zero")
    stale = policy.stale_max_age
    return replace(
        policy,
        max_age=max_age,
        stale_max_age=parse_duration(stale) if stale is not None else None,
        get_key=policy.get_key or default_get_key,
        name=policy.name or name,
    )


@dataclass(slots=True)
class CacheEntry:
    """A stored result and the policy window it was stored under."""

    key: str
    value: Any
    computed_at: float
    max_age: float
    stale_max_age: float | None = None

    def is_fresh(self, now: float) -> bool:
        return now - self.computed_at < self.max_age

    def is_servable_stale(self, now: float) -> bool:
        if self.stale_max_age is None:
            return False
        return now - self.computed_at < self.max_age + self.stale_max_age


@dataclass
class CacheStats:
    """Cache statistics."""

    hits: int
    misses: int
    size: int
    maxsize: int


def _is_cacheable(value: Any) -> bool:
    if value is None:
        return False
    return not (isinstance(value, dict) and value.get("isError"))


class CacheStore:
    """Thread-safe bounded store of cache entries.

    Entries and hit/miss counters are guarded by a lock; writes are
    last-write-wins. In-flight computations are tracked per key so that
    concurrent misses on one event loop await a single call instead of each
    invoking the tool.
    """

    def __init__(
        self,
        maxsize: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: LRUCache = LRUCache(maxsize=maxsize)
        self._lock = threading.Lock()
        self._clock = clock
        self._inflight: dict[str, asyncio.Task[Any]] = {}
        self._refreshing: set[str] = set()
        self._background: set[asyncio.Task[Any]] = set()
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> CacheEntry | None:
        with self._lock:
            return self._entries.get(key)

    def set(self, key: str, value: Any, policy: CachePolicy) -> CacheEntry:
        entry = CacheEntry(
            key=key,
            value=value,
            computed_at=self._clock(),
            max_age=float(policy.max_age),
            stale_max_age=(
                float(policy.stale_max_age)
                if policy.stale_max_age is not None
                else None
            ),
        )
        with self._lock:
            self._entries[key] = entry
        return entry

    def invalidate(self, key: str | None = None) -> None:
        """Drop one entry, or everything when ``key`` is None."""
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                size=len(self._entries),
                maxsize=int(self._entries.maxsize),
            )

    async def fetch(
        self,
        key: str,
        policy: CachePolicy,
        compute: Callable[[], Awaitable[Any]],
    ) -> Any:
        """Return the cached value for ``key`` or compute and store it."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            fresh = entry is not None and entry.is_fresh(now)
            stale = not fresh and entry is not None and entry.is_servable_stale(now)
            if fresh or stale:
                self._hits += 1
            else:
                self._misses += 1

        if fresh:
            logger.debug(f"Cache hit: {key}")
            return entry.value  # type: ignore[union-attr]

        if stale:
            logger.debug(f"Serving stale cache entry while refreshing: {key}")
            self._schedule_refresh(key, policy, compute)
            return entry.value  # type: ignore[union-attr]

        return await self._compute_once(key, policy, compute)

    async def _compute_once(
        self,
        key: str,
        policy: CachePolicy,
        compute: Callable[[], Awaitable[Any]],
    ) -> Any:
        # The computation runs in its own task; cancelling one caller only
        # detaches that caller
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._compute_and_store(key, policy, compute))
            self._inflight[key] = task
            task.add_done_callback(lambda done: self._finish(key, done))
        return await asyncio.shield(task)

    async def _compute_and_store(
        self,
        key: str,
        policy: CachePolicy,
        compute: Callable[[], Awaitable[Any]],
    ) -> Any:
        value = await compute()
        if _is_cacheable(value):
            self.set(key, value, policy)
        return value

    def _finish(self, key: str, task: asyncio.Task[Any]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if not task.cancelled():
            # Callers re-raise it; mark retrieved when every caller went away
            task.exception()

    def _schedule_refresh(
        self,
        key: str,
        policy: CachePolicy,
        compute: Callable[[], Awaitable[Any]],
    ) -> None:
        if key in self._refreshing:
            return
        self._refreshing.add(key)
        task = asyncio.create_task(self._refresh(key, policy, compute))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _refresh(
        self,
        key: str,
        policy: CachePolicy,
        compute: Callable[[], Awaitable[Any]],
    ) -> None:
        try:
            await self._compute_once(key, policy, compute)
        except Exception:
            logger.warning(f"Background cache refresh failed: {key}", exc_info=True)
        finally:
            self._refreshing.discard(key)

    async def drain(self) -> None:
        """Wait for background refreshes and detached computations.

        Used on shutdown and in tests.
        """
        while self._background or self._inflight:
            pending = [*self._background, *self._inflight.values()]
            await asyncio.gather(*pending, return_exceptions=True)


def wrap_with_cache(
    fn: Callable[..., Any],
    policy: CachePolicy,
    store: CacheStore,
) -> Callable[..., Awaitable[Any]]:
    """Wrap a tool handler so results are served from ``store``.

    The first positional argument (the tool arguments) feeds the key
    function. If the key function raises, the call bypasses the cache.
    """
    prefix = policy.name or getattr(fn, "__name__", "anonymous")

    async def cached(*args: Any) -> Any:
        arguments = args[0] if args else None
        try:
            suffix = policy.get_key(arguments) if policy.get_key else ""
        except Exception:
            logger.warning(
                f"Cache key function failed for {prefix}, calling directly",
                exc_info=True,
            )
            return await invoke(fn, *args)

        return await store.fetch(
            f"{prefix}:{suffix}", policy, lambda: invoke(fn, *args)
        )

    cached.__name__ = getattr(fn, "__name__", "cached")
    cached.__wrapped__ = fn  # type: ignore[attr-defined]
    return cached
