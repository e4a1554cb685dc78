"""Server-side cookie sessions with pluggable storage providers."""

from .errors import (
    ConfigurationError,
    IdentifierGenerationError,
    ProviderNotFoundError,
    ProviderRegistrationError,
    SessionError,
)
from .session import (
    CookieInstruction,
    MemoryProvider,
    MemorySession,
    ProviderRegistry,
    Session,
    SessionManager,
    SessionMiddleware,
    SessionProvider,
    default_registry,
    new_manager,
)

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "CookieInstruction",
    "IdentifierGenerationError",
    "MemoryProvider",
    "MemorySession",
    "ProviderNotFoundError",
    "ProviderRegistrationError",
    "ProviderRegistry",
    "Session",
    "SessionError",
    "SessionManager",
    "SessionMiddleware",
    "SessionProvider",
    "default_registry",
    "new_manager",
]
