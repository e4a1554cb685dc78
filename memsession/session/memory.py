"""In-memory session provider.

Sessions live in one ``OrderedDict`` keyed by identifier and ordered by
recency of access (least recent first). Every access moves the entry to the
end, so a sweep can pop from the front and stop at the first session that is
still fresh.

Not shared across processes and lost on restart.
"""

from __future__ import annotations

import logging
import threading
import time
import weakref
from collections import OrderedDict
from typing import Any, Callable, Hashable

from .. import events

logger = logging.getLogger(__name__)


class MemorySession:
    """Handle to one in-memory session.

    Holds the session's data and a weak reference to the owning provider,
    which it calls to refresh recency on every access. Reading ``data``
    directly does not refresh recency.
    """

    __slots__ = ("_session_id", "_data", "_provider")

    def __init__(self, session_id: str, provider: MemoryProvider) -> None:
        self._session_id = session_id
        self._data: dict[Hashable, Any] = {}
        self._provider = weakref.ref(provider)

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def data(self) -> dict[Hashable, Any]:
        """The live data mapping, shared with the provider."""
        return self._data

    @property
    def last_accessed(self) -> float | None:
        provider = self._provider()
        if provider is None:
            return None
        return provider.last_accessed(self._session_id)

    def get(self, key: Hashable, default: Any = None) -> Any:
        self._touch()
        return self._data.get(key, default)

    def set(self, key: Hashable, value: Any) -> None:
        self._data[key] = value
        self._touch()

    def delete(self, key: Hashable) -> None:
        self._data.pop(key, None)
        self._touch()

    def to_dict(self) -> dict[Hashable, Any]:
        """Shallow copy of the session data. Counts as an access."""
        self._touch()
        return dict(self._data)

    def _touch(self) -> None:
        provider = self._provider()
        if provider is not None:
            provider.refresh(self._session_id)

    def __repr__(self) -> str:
        return f"<MemorySession {events.fingerprint(self._session_id)} keys={len(self._data)}>"




class _Entry:
    __slots__ = ("session", "last_accessed")

    def __init__(self, session: MemorySession, last_accessed: float) -> None:
        self.session = session
        self.last_accessed = last_accessed


class MemoryProvider:
    """Session provider keeping all sessions in process memory.

    Args:
        clock: Monotonic time source in seconds.
        max_entries: Optional bound on live sessions. Creating a session past
            the bound evicts the least recently used ones.
    """

    name = "memory"

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.monotonic,
        max_entries: int | None = None,
    ) -> None:
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._clock = clock
        self._max_entries = max_entries
        self._lock = threading.Lock()
        self._entries: OrderedDict[str, _Entry] = OrderedDict()

    def init(self, session_id: str) -> MemorySession:
        with self._lock:
            return self._init_locked(session_id)

    def read(self, session_id: str) -> MemorySession:
        with self._lock:
            entry = self._entries.get(session_id)
            if entry is not None:
                return entry.session
            return self._init_locked(session_id)

    def destroy(self, session_id: str) -> None:
        with self._lock:
            self._entries.pop(session_id, None)

    def gc(self, max_lifetime: float) -> int:
        removed = 0
        with self._lock:
            now = self._clock()
            for entry in self._entries.values():
                if now - entry.last_accessed <= max_lifetime:
                    break
                removed += 1
            for _ in range(removed):
                self._entries.popitem(last=False)
        if removed:
            logger.debug("Swept %d idle session(s)", removed)
        return removed

    def refresh(self, session_id: str) -> bool:
        """Mark a session as just accessed. False if it is no longer live."""
        with self._lock:
            entry = self._entries.get(session_id)
            if entry is None:
                return False
            entry.last_accessed = self._clock()
            self._entries.move_to_end(session_id)
            return True

    def last_accessed(self, session_id: str) -> float | None:
        with self._lock:
            entry = self._entries.get(session_id)
            return None if entry is None else entry.last_accessed

    def session_ids(self) -> list[str]:
        """Live identifiers, most recently used first."""
        with self._lock:
            return list(reversed(self._entries))

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._entries

    def _init_locked(self, session_id: str) -> MemorySession:
        existing = self._entries.get(session_id)
        if existing is not None:
            # Keep the live session rather than replacing it.
            logger.warning(
                "init() called for live session %s; returning existing session",
                events.fingerprint(session_id),
            )
            return existing.session

        session = MemorySession(session_id, self)
        self._entries[session_id] = _Entry(session, self._clock())

        if self._max_entries is not None:
            while len(self._entries) > self._max_entries:
                victim_id, _ = self._entries.popitem(last=False)
                events.session_event(
                    events.Activity.EVICTED,
                    session_id=victim_id,
                    provider=self.name,
                    severity_id=events.Severity.LOW,
                    message="Session evicted: provider at capacity",
                )
        return session
