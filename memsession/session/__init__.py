from .cookie import CookieInstruction
from .manager import SessionManager, new_manager
from .memory import MemoryProvider, MemorySession
from .middleware import SessionMiddleware
from .provider import ProviderRegistry, Session, SessionProvider, default_registry

__all__ = [
    "CookieInstruction",
    "MemoryProvider",
    "MemorySession",
    "ProviderRegistry",
    "Session",
    "SessionManager",
    "SessionMiddleware",
    "SessionProvider",
    "default_registry",
    "new_manager",
]
