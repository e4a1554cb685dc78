"""Recurring garbage collection for a session manager."""

from __future__ import annotations

import asyncio
import logging

from .manager import SessionManager

logger = logging.getLogger(__name__)


async def run_periodic_gc(manager: SessionManager, interval: float) -> None:
    """Call ``manager.gc()`` every ``interval`` seconds until cancelled.

    Each pass runs in a worker thread so waiting on the manager lock never
    blocks the event loop. A failing pass is logged and the loop keeps going;
    the next pass retries.
    """
    if interval <= 0:
        raise ValueError("interval must be positive")
    logger.info("Session sweeper started (every %.1fs, max idle %ss)", interval, manager.max_lifetime)
    try:
        while True:
            await asyncio.sleep(interval)
            try:
                removed = await asyncio.to_thread(manager.gc)
            except Exception:
                logger.exception("Session sweep failed")
                continue
            if removed:
                logger.info("Session sweeper removed %d idle session(s)", removed)
    finally:
        logger.info("Session sweeper stopped")


def start_sweeper(manager: SessionManager, interval: float) -> asyncio.Task:
    """Schedule :func:`run_periodic_gc` on the running event loop."""
    return asyncio.create_task(run_periodic_gc(manager, interval), name="memsession-sweeper")


async def stop_sweeper(task: asyncio.Task) -> None:
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
