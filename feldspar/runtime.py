"""Background event loop for running coroutines from synchronous code.

Scripts run on the REPL thread and know nothing about asyncio, while the LLM
client is asynchronous. ``BackgroundLoop`` keeps a single event loop alive on
a daemon thread for the lifetime of the process; each bridging call submits
a coroutine to it and blocks until the result (or exception) comes back.

Example:
    >>> loop = BackgroundLoop()
    >>> async def answer():
    ...     return 42
    >>> loop.run(answer())
    42
    >>> loop.close()
"""

import asyncio
import concurrent.futures
import threading
from collections.abc import Coroutine
from typing import Any, TypeVar

from feldspar.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

# How often a blocked caller checks that the loop thread is still alive
LIVENESS_POLL_SECONDS = 0.5


class BackgroundLoop:
    """A long-lived asyncio event loop running on its own thread."""

    def __init__(self, name: str = "feldspar-runtime"):
        self._loop = asyncio.new_event_loop()
        self._ready = threading.Event()
        self._closed = False
        self._lock = threading.Lock()
        self._thread = threading.Thread(target=self._serve, name=name, daemon=True)
        self._thread.start()
        self._ready.wait()
        logger.debug(f"Background loop started on thread {name!r}")

    def _serve(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.call_soon(self._ready.set)
        try:
            self._loop.run_forever()
        finally:
            self._loop.run_until_complete(self._loop.shutdown_asyncgens())

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def thread(self) -> threading.Thread:
        return self._thread

    def run(self, coro: Coroutine[Any, Any, T]) -> T:
        """Run a coroutine on the background loop and block until it finishes.

        Args:
            coro: The coroutine to run

        Returns:
            Whatever the coroutine returns

        Raises:
            RuntimeError: If the loop is closed, its thread has exited, or if
                called from the loop's own thread
            Exception: Anything the coroutine raises is re-raised here
        """
        if self._closed:
            coro.close()
            raise RuntimeError("Background loop is closed")
        if threading.current_thread() is self._thread:
            coro.close()
            raise RuntimeError("Cannot block on the background loop from its own thread")
        if not self._thread.is_alive():
            coro.close()
            raise RuntimeError("Background loop thread is not running")

        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        try:
            while True:
                try:
                    return future.result(timeout=LIVENESS_POLL_SECONDS)
                except concurrent.futures.TimeoutError:
                    if future.done():
                        return future.result()
                    if not self._thread.is_alive():
                        raise RuntimeError("Background loop thread exited before the call finished") from None
        except BaseException:
            # Interrupted or abandoned: don't leave the coroutine running
            future.cancel()
            raise

    def close(self) -> None:
        """Stop the loop and wait for its thread to exit. Safe to call twice."""
        with self._lock:
            if self._closed:
                return
            self._closed = True

        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join()
        self._loop.close()
        logger.debug(f"Background loop on thread {self._thread.name!r} stopped")

    def __enter__(self) -> "BackgroundLoop":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
