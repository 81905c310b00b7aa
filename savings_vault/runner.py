"""
Background Event Loop

DESIGN DECISION: The ledger's per-account asyncio locks belong to one event
loop. Callers that are not themselves async (Streamlit script threads, one
per session) must not spin up a fresh loop per action. They submit
coroutines to this single long-lived loop instead, which runs on its own
daemon thread.
"""

import asyncio
import threading
from typing import Any, Coroutine, Optional

import structlog


logger = structlog.get_logger("savings_vault.runner")


class BackgroundLoop:
    """
    One event loop on a daemon thread, shared by every caller.

    Usage:
        loop = BackgroundLoop()
        balance = loop.run(ledger.deposit("alice", 10))
    """

    def __init__(self, name: str = "savings-vault-loop"):
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._loop.run_forever,
            name=name,
            daemon=True,
        )
        self._thread.start()
        logger.info("background_loop_started", thread=name)

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    @property
    def running(self) -> bool:
        return self._thread.is_alive() and not self._loop.is_closed()

    def run(self, coro: Coroutine, timeout: Optional[float] = None) -> Any:
        """
        Run coro on the shared loop and wait for its result.

        Exceptions raised by coro propagate to the caller unchanged.
        """
        if not self.running:
            coro.close()
            raise RuntimeError("Background loop is not running")
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        return future.result(timeout)

    def close(self) -> None:
        """Stop the loop and wait for its thread to finish."""
        if self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join()
        self._loop.close()
        logger.info("background_loop_stopped")
