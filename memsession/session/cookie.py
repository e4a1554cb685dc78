"""Cookie instructions returned by the session manager.

The manager decides which cookie to emit; the transport layer (see
:mod:`memsession.session.middleware`) writes it.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from email.utils import format_datetime

# Rendered for deletions so clients that ignore Max-Age still drop the cookie.
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class CookieInstruction:
    """One ``Set-Cookie`` the transport should write.

    A negative ``max_age`` means "delete now".
    """

    name: str
    value: str
    max_age: int
    path: str = "/"
    http_only: bool = True
    secure: bool = False
    same_site: str | None = None
    expires: datetime | None = None

    @property
    def is_deletion(self) -> bool:
        return self.max_age < 0

    def with_value(self, value: str) -> CookieInstruction:
        return replace(self, value=value)

    def to_header(self) -> str:
        parts = [f"{self.name}={self.value}"]
        if self.is_deletion:
            parts.append("Max-Age=0")
            parts.append(f"Expires={format_datetime(self.expires or _EPOCH, usegmt=True)}")
        else:
            parts.append(f"Max-Age={self.max_age}")
            if self.expires is not None:
                parts.append(f"Expires={format_datetime(self.expires, usegmt=True)}")
        parts.append(f"Path={self.path}")
        if self.http_only:
            parts.append("HttpOnly")
        if self.same_site:
            parts.append(f"SameSite={self.same_site}")
        if self.secure:
            parts.append("Secure")
        return "; ".join(parts)
