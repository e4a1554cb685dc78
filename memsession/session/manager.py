"""Session manager: issues identifiers and drives a session provider.

The manager never touches provider internals. It resolves the incoming cookie
value to a session, decides which cookie the response should carry, and runs
garbage collection when asked. Scheduling that collection is the caller's job
(see :mod:`memsession.session.sweeper`).
"""

from __future__ import annotations

import base64
import logging
import re
import secrets
import threading
from datetime import datetime, timezone
from typing import Callable
from urllib.parse import quote, unquote

from .. import events
from ..errors import IdentifierGenerationError
from .cookie import CookieInstruction
from .provider import ProviderRegistry, Session, SessionProvider

logger = logging.getLogger(__name__)

ID_BYTES = 64

# URL-safe base64 alphabet plus padding; anything else is a corrupt cookie.
_VALID_ID = re.compile(r"[A-Za-z0-9_\-]+={0,2}")
_MAX_ID_LENGTH = 256


def _token_bytes() -> bytes:
    return secrets.token_bytes(ID_BYTES)


class SessionManager:
    """Per-application session lifecycle.

    Args:
        provider: Storage backend implementing the provider protocol.
        cookie_name: Name of the cookie carrying the session identifier.
        max_lifetime: Idle lifetime in seconds; also the cookie Max-Age.
        provider_name: Name used in logs and events.
        https_only: Mark issued cookies ``Secure``.
        same_site: ``SameSite`` attribute for issued cookies, or None.
        random_bytes: Source of identifier entropy.
    """

    def __init__(
        self,
        provider: SessionProvider,
        cookie_name: str,
        max_lifetime: int,
        *,
        provider_name: str = "",
        https_only: bool = False,
        same_site: str | None = "lax",
        random_bytes: Callable[[], bytes] = _token_bytes,
    ) -> None:
        if not cookie_name:
            raise ValueError("cookie_name must not be empty")
        if max_lifetime <= 0:
            raise ValueError("max_lifetime must be positive")
        self.provider = provider
        self.cookie_name = cookie_name
        self.max_lifetime = max_lifetime
        self.provider_name = provider_name or type(provider).__name__
        self.https_only = https_only
        self.same_site = same_site
        self._random_bytes = random_bytes
        self._lock = threading.Lock()

    def generate_id(self) -> str:
        """Return a fresh URL-safe identifier.

        Raises:
            IdentifierGenerationError: the random source failed or returned
                nothing. An empty identifier is never issued.
        """
        try:
            raw = self._random_bytes()
        except (OSError, NotImplementedError) as e:
            raise IdentifierGenerationError(f"random source failed: {e}") from e
        if not raw:
            raise IdentifierGenerationError("random source returned no bytes")
        return base64.urlsafe_b64encode(raw).decode("ascii")

    def start(self, cookie_value: str | None) -> tuple[Session, CookieInstruction | None]:
        """Resolve the request's session, issuing a new one if needed.

        Returns the session and, for a newly issued session, the cookie the
        response must set. Resuming an existing identifier sets no cookie.
        """
        with self._lock:
            session_id = self._parse(cookie_value)
            if session_id is None:
                session_id = self.generate_id()
                session = self.provider.init(session_id)
                events.session_event(
                    events.Activity.CREATED,
                    session_id=session_id,
                    provider=self.provider_name,
                    message="Session issued",
                )
                return session, self._issue_cookie(session_id)

            session = self.provider.read(session_id)
            events.session_event(
                events.Activity.RESUMED,
                session_id=session_id,
                provider=self.provider_name,
                message="Session resumed",
            )
            return session, None

    def destroy(self, cookie_value: str | None) -> CookieInstruction | None:
        """End the session named by ``cookie_value``.

        Returns the deletion cookie, or None when there was no cookie.
        """
        if not cookie_value:
            return None
        with self._lock:
            session_id = unquote(cookie_value)
            self.provider.destroy(session_id)
            events.session_event(
                events.Activity.DESTROYED,
                session_id=session_id,
                provider=self.provider_name,
                message="Session destroyed",
            )
            return CookieInstruction(
                name=self.cookie_name,
                value="",
                max_age=-1,
                expires=datetime.now(timezone.utc),
                secure=self.https_only,
                same_site=self.same_site,
            )

    def gc(self) -> int:
        """Sweep sessions idle for longer than ``max_lifetime``."""
        with self._lock:
            removed = self.provider.gc(self.max_lifetime)
            remaining = len(self.provider)
        events.sweep_event(removed=removed, remaining=remaining, max_lifetime=self.max_lifetime)
        return removed

    def _parse(self, cookie_value: str | None) -> str | None:
        if not cookie_value:
            return None
        session_id = unquote(cookie_value)
        if len(session_id) > _MAX_ID_LENGTH or not _VALID_ID.fullmatch(session_id):
            logger.info("Ignoring malformed session cookie %r", self.cookie_name)
            return None
        return session_id

    def _issue_cookie(self, session_id: str) -> CookieInstruction:
        return CookieInstruction(
            name=self.cookie_name,
            value=quote(session_id, safe=""),
            max_age=int(self.max_lifetime),
            secure=self.https_only,
            same_site=self.same_site,
        )


def new_manager(
    registry: ProviderRegistry,
    provider_name: str,
    cookie_name: str,
    max_lifetime: int,
    **options,
) -> SessionManager:
    """Build a manager for a registered provider.

    Raises:
        ProviderNotFoundError: ``provider_name`` is not registered.
    """
    provider = registry.get(provider_name)
    return SessionManager(
        provider,
        cookie_name,
        max_lifetime,
        provider_name=provider_name,
        **options,
    )
