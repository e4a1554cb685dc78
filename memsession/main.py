"""FastAPI application serving server-side cookie sessions.

Wires a provider registry, a SessionManager, the session middleware and the
background sweeper into one app.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .config import get_settings
from .routes import health, logout, session_ep
from .session import ProviderRegistry, SessionMiddleware, default_registry, new_manager
from .session.sweeper import start_sweeper, stop_sweeper

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: run the idle-session sweeper for the app's lifetime."""
    s = get_settings()
    task = None
    if s.session_gc_interval > 0:
        task = start_sweeper(app.state.session_manager, s.session_gc_interval)
    else:
        logger.warning("Session sweeper disabled; idle sessions are never collected")
    try:
        yield
    finally:
        if task is not None:
            await stop_sweeper(task)


def create_app(
    *,
    registry: ProviderRegistry | None = None,
    start_sweeper: bool = True,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        registry: Provider registry (default: memory provider as "memory").
        start_sweeper: Run periodic garbage collection in the lifespan.

    Raises:
        ProviderNotFoundError: the configured provider is not registered.
    """
    s = get_settings()
    if registry is None:
        registry = default_registry(max_entries=s.session_max_entries)

    manager = new_manager(
        registry,
        s.session_provider,
        s.session_cookie_name,
        s.session_max_lifetime,
        https_only=s.session_https_only,
        same_site=s.session_same_site,
    )
    logger.info(
        "Sessions: provider=%s cookie=%s max_lifetime=%ss",
        s.session_provider,
        s.session_cookie_name,
        s.session_max_lifetime,
    )

    app = FastAPI(title="memsession", lifespan=lifespan if start_sweeper else None)
    app.state.session_manager = manager

    app.add_middleware(
        SessionMiddleware,
        manager=manager,
        secret=s.session_secret or None,
    )

    app.include_router(session_ep.router)
    app.include_router(logout.router)
    app.include_router(health.router)

    return app
