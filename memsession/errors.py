"""Exceptions raised by the session layer."""

from __future__ import annotations


class SessionError(Exception):
    """Base class for all memsession errors."""


class ConfigurationError(SessionError):
    """Session configuration is inconsistent."""


class ProviderRegistrationError(ConfigurationError):
    """A provider was registered twice or registered as ``None``.

    Raised during startup. The registry is left untouched, but the
    application should not continue: fix the wiring instead of catching this.
    """


class ProviderNotFoundError(ConfigurationError, LookupError):
    """No provider is registered under the requested name."""

    def __init__(self, name: str, available: list[str] | None = None) -> None:
        self.name = name
        self.available = sorted(available or [])
        known = ", ".join(self.available) or "none"
        super().__init__(f"session provider {name!r} is not registered (known: {known})")


class IdentifierGenerationError(SessionError):
    """The random source failed while generating a session identifier."""
