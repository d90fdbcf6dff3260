from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)

DASHBOARD_NAMESPACE = "dashboard"
RESPONSE_NAMESPACE = "cache"

_MISSING = object()


def _check_segment(label: str, value: str) -> str:
    if not value or ":" in value:
        raise ValueError(f"invalid_cache_key_{label}: {value!r}")
    return value


@dataclass(frozen=True)
class CacheKey:
    """Structured ``{namespace}:{team_id}:{suffix}`` key.

    Team prefixes always end with the delimiter, so team ``12`` never
    matches the entries of team ``123``.
    """

    namespace: str
    team_id: int | str
    suffix: str = ""

    def __post_init__(self) -> None:
        _check_segment("namespace", self.namespace)
        _check_segment("team_id", str(self.team_id))

    def render(self) -> str:
        return f"{self.team_prefix(self.namespace, self.team_id)}{self.suffix}"

    def __str__(self) -> str:
        return self.render()

    @staticmethod
    def team_prefix(namespace: str, team_id: int | str) -> str:
        return f"{_check_segment('namespace', namespace)}:{_check_segment('team_id', str(team_id))}:"


def dashboard_key(team_id: int, season_id: int) -> CacheKey:
    return CacheKey(DASHBOARD_NAMESPACE, team_id, str(season_id))


def response_key(team_id: int, path: str, query_string: str = "") -> CacheKey:
    return CacheKey(RESPONSE_NAMESPACE, team_id, f"{path}{query_string}")


@dataclass(frozen=True)
class CacheStats:
    hits: int
    misses: int
    keys: int


class CacheStore:
    """In-process key/value store with per-entry TTL.

    Values are kept by reference; callers must not mutate what ``get``
    returns. ``get`` enforces expiry on its own, ``sweep`` only reclaims
    memory and runs from ``set`` at most once per ``check_period`` seconds.
    A TTL of 0 keeps the entry until it is deleted.
    """

    def __init__(
        self,
        default_ttl: float = 300,
        check_period: float = 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if default_ttl < 0:
            raise ValueError("default_ttl must be >= 0")
        self.default_ttl = default_ttl
        self.check_period = check_period
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, Tuple[Any, Optional[float]]] = {}
        self._hits = 0
        self._misses = 0
        self._last_sweep = clock()

    def _expired(self, expires_at: Optional[float], now: float) -> bool:
        return expires_at is not None and expires_at <= now

    def get(self, key: str | CacheKey, default: Any = None) -> Any:
        key = str(key)
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key, _MISSING)
            if entry is _MISSING:
                self._misses += 1
                return default
            value, expires_at = entry
            if self._expired(expires_at, now):
                del self._entries[key]
                self._misses += 1
                return default
            self._hits += 1
            return value

    def set(self, key: str | CacheKey, value: Any, ttl: Optional[float] = None) -> bool:
        if ttl is None:
            ttl = self.default_ttl
        if ttl < 0:
            raise ValueError("ttl must be >= 0")
        now = self._clock()
        expires_at = now + ttl if ttl > 0 else None
        with self._lock:
            self._entries[str(key)] = (value, expires_at)
            due = self.check_period > 0 and now - self._last_sweep >= self.check_period
        if due:
            self.sweep()
        return True

    def delete(self, keys: str | CacheKey | Iterable[str | CacheKey]) -> int:
        if isinstance(keys, (str, CacheKey)):
            keys = [keys]
        removed = 0
        with self._lock:
            for key in keys:
                if self._entries.pop(str(key), _MISSING) is not _MISSING:
                    removed += 1
        return removed

    def delete_prefix(self, prefix: str) -> int:
        if not prefix:
            return 0
        with self._lock:
            doomed = [key for key in self._entries if key.startswith(prefix)]
            for key in doomed:
                del self._entries[key]
        return len(doomed)

    def sweep(self) -> int:
        now = self._clock()
        with self._lock:
            doomed = [
                key
                for key, (_, expires_at) in self._entries.items()
                if self._expired(expires_at, now)
            ]
            for key in doomed:
                del self._entries[key]
            self._last_sweep = now
        if doomed:
            logger.debug("cache_sweep removed=%s", len(doomed))
        return len(doomed)

    def flush(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def keys(self) -> List[str]:
        now = self._clock()
        with self._lock:
            return [
                key
                for key, (_, expires_at) in self._entries.items()
                if not self._expired(expires_at, now)
            ]

    def stats(self) -> CacheStats:
        return CacheStats(hits=self._hits, misses=self._misses, keys=len(self.keys()))

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, (str, CacheKey)):
            return False
        return str(key) in self.keys()

    def __len__(self) -> int:
        return len(self.keys())
