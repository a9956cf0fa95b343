# src/canvas_a11y/core/loop_runner.py
from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Awaitable, Optional

logger = logging.getLogger(__name__)

_MAIN_LOOP: Optional[asyncio.AbstractEventLoop] = None
_THREAD: Optional[threading.Thread] = None


def ensure_background_loop() -> None:
    """
    Ensures a persistent asyncio event loop is running on a background thread.
    Host calls made during a scan all run on this one loop.
    """
    global _MAIN_LOOP, _THREAD
    if _MAIN_LOOP is not None:
        return

    loop = asyncio.new_event_loop()

    def _run_loop(loop_: asyncio.AbstractEventLoop) -> None:
        asyncio.set_event_loop(loop_)
        loop_.run_forever()

    t = threading.Thread(target=_run_loop, args=(loop,), name="canvas-a11y-loop", daemon=True)
    t.start()

    _MAIN_LOOP = loop
    _THREAD = t
    logger.debug("Background event loop started.")


def shutdown_background_loop(timeout: float = 5.0) -> None:
    """Stops the background loop and joins its thread. Safe to call when no loop runs."""
    global _MAIN_LOOP, _THREAD
    if _MAIN_LOOP is None:
        return

    _MAIN_LOOP.call_soon_threadsafe(_MAIN_LOOP.stop)
    if _THREAD is not None:
        _THREAD.join(timeout)
    _MAIN_LOOP.close()

    _MAIN_LOOP = None
    _THREAD = None
    logger.debug("Background event loop stopped.")


def run_on_main_loop(coro: Awaitable[Any], timeout: float | None = None) -> Any:
    """
    Executes a coroutine on the persistent background loop and waits for the result.
    Falls back to asyncio.run() if no background loop exists (tests, one-off calls).

    Args:
        coro: The coroutine to execute.
        timeout (float | None): Optional timeout in seconds to wait for the result.

    Returns:
        Any: The result of the coroutine.
    """
    if _MAIN_LOOP is not None:
        fut = asyncio.run_coroutine_threadsafe(coro, _MAIN_LOOP)
        return fut.result(timeout)

    return asyncio.run(coro)
