"""
Runs the profile core's asyncio loop on a background thread.

Tk owns the main thread, so the GUI hands coroutines to the loop with
submit() and gets results back through widget.after(0, ...), the same
worker-thread + after() hand-off the panels use for any background work.
"""

from __future__ import annotations

import asyncio
import threading
from concurrent.futures import Future
from typing import Any, Callable, Coroutine

from Utils.app_log import app_log


class AsyncBridge:
    def __init__(self, widget) -> None:
        self._widget = widget
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run, name="profile-loop", daemon=True)

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    def start(self) -> None:
        self._thread.start()

    def _run(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    def to_main(self, fn: Callable, *args) -> None:
        """Run fn(*args) on the Tk main thread."""
        self._widget.after(0, lambda: fn(*args))

    def call_soon(self, fn: Callable, *args) -> None:
        """Run a plain callable on the loop thread."""
        self._loop.call_soon_threadsafe(fn, *args)

    def submit(
        self,
        coro: Coroutine[Any, Any, Any],
        on_done: Callable[[Any], None] | None = None,
        on_error: Callable[[BaseException], None] | None = None,
    ) -> Future:
        """Schedule coro on the loop; on_done/on_error run on the main thread."""
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)

        def _finished(fut: Future) -> None:
            if fut.cancelled():
                return
            exc = fut.exception()
            if exc is not None:
                if on_error is not None:
                    self.to_main(on_error, exc)
                else:
                    app_log(f"Background task failed: {exc}")
            elif on_done is not None:
                self.to_main(on_done, fut.result())

        future.add_done_callback(_finished)
        return future

    def stop(self, timeout: float = 2.0) -> None:
        if not self._thread.is_alive():
            return
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout)
