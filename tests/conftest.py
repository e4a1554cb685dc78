"""Shared fixtures for the memsession test suite."""

from __future__ import annotations

from typing import Callable

import pytest
from fastapi.testclient import TestClient

from memsession.config import Settings, override_settings
from memsession.main import create_app
from memsession.session import MemoryProvider, ProviderRegistry, SessionManager, new_manager


# ── Time ──────────────────────────────────────────────────────────────────


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ── Provider & Manager ────────────────────────────────────────────────────


@pytest.fixture
def provider(clock) -> MemoryProvider:
    return MemoryProvider(clock=clock)


@pytest.fixture
def registry(provider) -> ProviderRegistry:
    r = ProviderRegistry()
    r.register("memory", provider)
    return r


@pytest.fixture
def manager(registry) -> SessionManager:
    return new_manager(registry, "memory", "sid", 60)


@pytest.fixture
def check_structure() -> Callable[[MemoryProvider], None]:
    """Assert every entry is keyed by its own session and ordered by recency."""

    def _check(p: MemoryProvider) -> None:
        entries = list(p._entries.items())
        assert len(entries) == len(p)
        for session_id, entry in entries:
            assert entry.session.session_id == session_id
        # Oldest first; order never goes back in time.
        stamps = [entry.last_accessed for _, entry in entries]
        assert stamps == sorted(stamps)
        assert p.session_ids() == [session_id for session_id, _ in reversed(entries)]

    return _check


# ── Test Settings ─────────────────────────────────────────────────────────


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        session_provider="memory",
        session_cookie_name="sid",
        session_max_lifetime=60,
        session_gc_interval=0,
        session_secret="",
    )


# ── App & Client ──────────────────────────────────────────────────────────


@pytest.fixture
def app(test_settings, registry):
    override_settings(test_settings)
    return create_app(registry=registry, start_sweeper=False)


@pytest.fixture
def client(app) -> TestClient:
    """TestClient with cookie persistence."""
    return TestClient(app, cookies={})
