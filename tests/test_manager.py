"""Tests for SessionManager: issuance, resumption, destruction and GC."""

import base64
import json
import logging
import re
import threading
from unittest.mock import MagicMock
from urllib.parse import quote, unquote

import pytest

from memsession.errors import IdentifierGenerationError
from memsession.session import SessionManager

URLSAFE = re.compile(r"^[A-Za-z0-9_\-]+={0,2}$")


# ── start ─────────────────────────────────────────────────────────────────


@pytest.mark.parametrize("cookie_value", [None, ""])
def test_start_without_cookie_issues_session(manager, provider, cookie_value):
    session, instruction = manager.start(cookie_value)

    assert instruction is not None
    assert instruction.name == "sid"
    assert instruction.value
    assert unquote(instruction.value) == session.session_id
    assert instruction.max_age == 60
    assert instruction.path == "/"
    assert instruction.http_only is True
    assert not instruction.is_deletion
    assert session.session_id in provider


def test_issued_identifier_is_64_random_bytes(manager):
    session, _ = manager.start(None)
    assert URLSAFE.match(session.session_id)
    assert len(base64.urlsafe_b64decode(session.session_id)) == 64


def test_issued_identifiers_are_unique(manager):
    ids = {manager.start(None)[0].session_id for _ in range(100)}
    assert len(ids) == 100


def test_cookie_value_is_url_escaped(manager):
    _, instruction = manager.start(None)
    assert "=" not in instruction.value
    assert instruction.value.endswith("%3D%3D")


def test_start_with_existing_cookie_resumes_without_cookie(manager):
    session, instruction = manager.start(None)
    session.set("k", "v")

    resumed, again = manager.start(instruction.value)

    assert again is None
    assert resumed is session
    assert resumed.get("k") == "v"


def test_start_accepts_unescaped_identifier(manager):
    session, _ = manager.start(None)
    resumed, instruction = manager.start(session.session_id)
    assert resumed is session
    assert instruction is None


def test_destroyed_identifier_comes_back_empty(manager, provider):
    session, instruction = manager.start(None)
    session.set("k", "v")
    manager.destroy(instruction.value)

    fresh, again = manager.start(instruction.value)

    assert again is None
    assert fresh is not session
    assert fresh.get("k") is None
    assert fresh.session_id == session.session_id


@pytest.mark.parametrize(
    "cookie_value",
    ["bad value!", "<script>", "a.b.c", "x" * 300, "abc\n", "%00"],
)
def test_malformed_cookie_issues_new_session(manager, provider, cookie_value):
    session, instruction = manager.start(cookie_value)
    assert instruction is not None
    assert session.session_id != unquote(cookie_value)
    assert len(provider) == 1


def test_generation_failure_aborts_issuance(provider):
    def broken() -> bytes:
        raise OSError("entropy pool exhausted")

    manager = SessionManager(provider, "sid", 60, random_bytes=broken)

    with pytest.raises(IdentifierGenerationError, match="entropy"):
        manager.start(None)
    assert len(provider) == 0


def test_empty_random_bytes_is_an_error(provider):
    manager = SessionManager(provider, "sid", 60, random_bytes=lambda: b"")
    with pytest.raises(IdentifierGenerationError):
        manager.generate_id()


def test_issue_cookie_carries_transport_options(provider):
    manager = SessionManager(provider, "sid", 60, https_only=True, same_site="strict")
    _, instruction = manager.start(None)
    assert instruction.secure is True
    assert instruction.same_site == "strict"


def test_concurrent_starts_issue_distinct_sessions(manager, provider):
    results = []
    lock = threading.Lock()

    def worker():
        session, _ = manager.start(None)
        with lock:
            results.append(session.session_id)

    threads = [threading.Thread(target=worker) for _ in range(32)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(set(results)) == 32
    assert len(provider) == 32


# ── destroy ───────────────────────────────────────────────────────────────


@pytest.mark.parametrize("cookie_value", [None, ""])
def test_destroy_without_cookie_is_noop(manager, provider, cookie_value):
    manager.start(None)
    assert manager.destroy(cookie_value) is None
    assert len(provider) == 1


def test_destroy_removes_session_and_clears_cookie(manager, provider):
    session, issued = manager.start(None)

    instruction = manager.destroy(issued.value)

    assert session.session_id not in provider
    assert instruction.name == "sid"
    assert instruction.value == ""
    assert instruction.max_age == -1
    assert instruction.is_deletion
    assert instruction.expires is not None
    assert "Max-Age=0" in instruction.to_header()


def test_destroy_unknown_identifier_still_clears_cookie(manager):
    instruction = manager.destroy(quote("never-issued"))
    assert instruction is not None and instruction.is_deletion


# ── gc ────────────────────────────────────────────────────────────────────


def test_gc_uses_configured_lifetime(manager, provider, clock):
    stale, _ = manager.start(None)
    clock.advance(61)
    fresh, _ = manager.start(None)

    assert manager.gc() == 1
    assert stale.session_id not in provider
    assert fresh.session_id in provider


def test_gc_at_exact_lifetime_keeps_session(manager, provider, clock):
    manager.start(None)
    clock.advance(60)
    assert manager.gc() == 0
    assert len(provider) == 1


def test_gc_delegates_to_any_provider(caplog):
    provider = MagicMock()
    provider.gc.return_value = 3
    provider.__len__.return_value = 4
    manager = SessionManager(provider, "sid", 90)

    with caplog.at_level(logging.INFO, logger="memsession.events"):
        assert manager.gc() == 3
    provider.gc.assert_called_once_with(90)

    event = [json.loads(r.getMessage()) for r in caplog.records if r.name == "memsession.events"][-1]
    assert event["sweep"] == {"removed": 3, "remaining": 4, "max_lifetime": 90}


def test_gc_reports_sessions_left_after_sweep(manager, clock, caplog):
    manager.start(None)
    clock.advance(61)
    manager.start(None)
    manager.start(None)

    with caplog.at_level(logging.INFO, logger="memsession.events"):
        manager.gc()

    event = [json.loads(r.getMessage()) for r in caplog.records if r.name == "memsession.events"][-1]
    assert event["sweep"]["removed"] == 1
    assert event["sweep"]["remaining"] == 2


# ── events ────────────────────────────────────────────────────────────────


def test_lifecycle_events_never_contain_identifier(manager, caplog):
    with caplog.at_level(logging.INFO, logger="memsession.events"):
        session, instruction = manager.start(None)
        manager.start(instruction.value)
        manager.destroy(instruction.value)
        manager.gc()

    records = [json.loads(r.getMessage()) for r in caplog.records if r.name == "memsession.events"]
    assert [r["activity"] for r in records] == ["created", "resumed", "destroyed", "swept"]
    assert session.session_id not in caplog.text
    assert records[0]["provider"] == "memory"
