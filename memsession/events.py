"""Structured session lifecycle events.

Each event is logged to the ``memsession.events`` logger as one line of JSON.
Consumers attach their own handlers (JSON formatter, log shipper, structlog,
etc.). Session identifiers are bearer secrets, so events carry a short
fingerprint instead of the identifier itself.

Usage::

    from memsession import events
    events.session_event(events.Activity.CREATED, session_id=sid, provider="memory")
"""

from __future__ import annotations

import hashlib
import json
import logging
import time
from typing import Any

logger = logging.getLogger("memsession.events")


# ── Constants ─────────────────────────────────────────────────────────────


class Activity:
    CREATED = "created"
    RESUMED = "resumed"
    DESTROYED = "destroyed"
    SWEPT = "swept"
    EVICTED = "evicted"


class Severity:
    INFORMATIONAL = 1
    LOW = 2
    MEDIUM = 3


_SEVERITY_NAMES = {
    Severity.INFORMATIONAL: "Informational",
    Severity.LOW: "Low",
    Severity.MEDIUM: "Medium",
}

_PRODUCT = {
    "name": "memsession",
    "version": "0.1.0",
}


# ── Core emit ──────────────────────────────────────────────────────────────


def emit(event: dict[str, Any]) -> None:
    """Log an event as JSON. Unserializable events are dropped with a warning."""
    try:
        line = json.dumps(event, default=str, sort_keys=True)
    except (TypeError, ValueError) as e:
        logger.warning("Dropped unserializable session event: %s", e)
        return
    logger.info(line)


def fingerprint(session_id: str) -> str:
    """Short, non-reversible tag for correlating events about one session."""
    return hashlib.sha256(session_id.encode()).hexdigest()[:12]


# ── Event builders ─────────────────────────────────────────────────────────


def session_event(
    activity: str,
    *,
    session_id: str | None = None,
    provider: str | None = None,
    severity_id: int = Severity.INFORMATIONAL,
    message: str = "",
    extra: dict[str, Any] | None = None,
) -> None:
    """Emit a lifecycle event for a single session."""
    event: dict[str, Any] = {
        "activity": activity,
        "severity_id": severity_id,
        "severity": _SEVERITY_NAMES.get(severity_id, "Unknown"),
        "time": int(time.time() * 1000),
        "metadata": {"product": _PRODUCT, **(extra or {})},
        "message": message,
    }
    if session_id:
        event["session"] = {"fingerprint": fingerprint(session_id)}
    if provider:
        event["provider"] = provider
    emit(event)


def sweep_event(*, removed: int, remaining: int, max_lifetime: float) -> None:
    """Emit a summary event for one garbage-collection pass."""
    emit(
        {
            "activity": Activity.SWEPT,
            "severity_id": Severity.INFORMATIONAL,
            "severity": _SEVERITY_NAMES[Severity.INFORMATIONAL],
            "time": int(time.time() * 1000),
            "metadata": {"product": _PRODUCT},
            "sweep": {
                "removed": removed,
                "remaining": remaining,
                "max_lifetime": max_lifetime,
            },
            "message": f"Swept {removed} idle session(s)",
        }
    )
