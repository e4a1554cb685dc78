"""ASGI middleware binding a SessionManager to HTTP requests.

Reads the session cookie, resolves it through the manager, and exposes the
session handle as ``request.state.session``. On response start it writes the
cookie instruction the manager produced (new session or deletion).

With a ``secret`` the cookie value is additionally signed with itsdangerous;
a bad or expired signature is treated like a missing cookie.
"""

from __future__ import annotations

from urllib.parse import quote

from itsdangerous import BadSignature, URLSafeTimedSerializer
from starlette.datastructures import MutableHeaders
from starlette.requests import HTTPConnection
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from .cookie import CookieInstruction
from .manager import SessionManager


class SessionMiddleware:
    """ASGI middleware for server-side sessions.

    Handlers end the session by setting ``request.state.session_destroyed``
    (see :func:`memsession.dependencies.destroy_session`).
    """

    def __init__(
        self,
        app: ASGIApp,
        manager: SessionManager,
        secret: str | None = None,
    ) -> None:
        self.app = app
        self.manager = manager
        self.signer = URLSafeTimedSerializer(secret, salt="memsession") if secret else None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        # Websocket and lifespan scopes never carry a Set-Cookie back, so no session.
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        conn = HTTPConnection(scope)
        session, instruction = self.manager.start(self._load_cookie(conn))

        scope["state"] = scope.get("state", {})
        scope["state"]["session"] = session
        scope["state"]["session_id"] = session.session_id
        scope["state"]["session_destroyed"] = False

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                outgoing = instruction
                if scope["state"].get("session_destroyed", False):
                    outgoing = self.manager.destroy(quote(session.session_id, safe=""))
                if outgoing is not None:
                    headers.append("set-cookie", self._render(outgoing))

            await send(message)

        await self.app(scope, receive, send_wrapper)

    def _load_cookie(self, conn: HTTPConnection) -> str | None:
        raw = conn.cookies.get(self.manager.cookie_name)
        if not raw:
            return None
        if self.signer is None:
            return raw
        try:
            return self.signer.loads(raw, max_age=self.manager.max_lifetime)
        except BadSignature:
            return None

    def _render(self, instruction: CookieInstruction) -> str:
        if self.signer is not None and not instruction.is_deletion:
            instruction = instruction.with_value(self.signer.dumps(instruction.value))
        return instruction.to_header()
