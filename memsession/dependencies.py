"""FastAPI dependency injection: session access."""

from __future__ import annotations

from fastapi import Request

from .session import Session, SessionManager


def get_session(request: Request) -> Session:
    """Get the session handle from request state."""
    return request.state.session


def get_manager(request: Request) -> SessionManager:
    return request.app.state.session_manager


def destroy_session(request: Request) -> None:
    """Mark the session for destruction when the response starts."""
    request.state.session_destroyed = True
