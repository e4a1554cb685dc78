"""Session provider contract and the name-keyed provider registry."""

from __future__ import annotations

import logging
from typing import Any, Hashable, Protocol, runtime_checkable

from ..errors import ProviderNotFoundError, ProviderRegistrationError
from .memory import MemoryProvider

logger = logging.getLogger(__name__)


@runtime_checkable
class Session(Protocol):
    """Key/value bag for one session identifier.

    Every access refreshes the session's recency in its provider.
    """

    @property
    def session_id(self) -> str:
        ...

    def get(self, key: Hashable, default: Any = None) -> Any:
        ...

    def set(self, key: Hashable, value: Any) -> None:
        ...

    def delete(self, key: Hashable) -> None:
        ...

    def to_dict(self) -> dict[Hashable, Any]:
        ...


@runtime_checkable
class SessionProvider(Protocol):
    """Protocol every session storage backend implements."""

    def init(self, session_id: str) -> Session:
        """Create an empty session for ``session_id``."""
        ...

    def read(self, session_id: str) -> Session:
        """Return the session for ``session_id``, creating it if absent."""
        ...

    def destroy(self, session_id: str) -> None:
        """Remove a session. Unknown identifiers are ignored."""
        ...

    def gc(self, max_lifetime: float) -> int:
        """Remove sessions idle for longer than ``max_lifetime`` seconds.

        Returns the number of sessions removed.
        """
        ...

    def __len__(self) -> int:
        """Number of live sessions."""
        ...


class ProviderRegistry:
    """Maps provider names to provider instances.

    Populated once during application startup and then handed to
    :func:`memsession.session.manager.new_manager`.
    """

    def __init__(self) -> None:
        self._providers: dict[str, SessionProvider] = {}

    def register(self, name: str, provider: SessionProvider) -> None:
        if provider is None:
            raise ProviderRegistrationError(f"session provider {name!r} is None")
        if not isinstance(provider, SessionProvider):
            raise ProviderRegistrationError(
                f"{type(provider).__name__} does not implement the session provider protocol"
            )
        if name in self._providers:
            raise ProviderRegistrationError(f"session provider {name!r} registered twice")
        self._providers[name] = provider
        logger.debug("Registered session provider %r (%s)", name, type(provider).__name__)

    def get(self, name: str) -> SessionProvider:
        try:
            return self._providers[name]
        except KeyError:
            raise ProviderNotFoundError(name, list(self._providers)) from None

    def names(self) -> list[str]:
        return sorted(self._providers)

    def __contains__(self, name: object) -> bool:
        return name in self._providers

    def __len__(self) -> int:
        return len(self._providers)


def default_registry(**memory_options: Any) -> ProviderRegistry:
    """Return a new registry with the in-memory provider under ``"memory"``."""
    registry = ProviderRegistry()
    registry.register("memory", MemoryProvider(**memory_options))
    return registry
