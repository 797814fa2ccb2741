"""
app_log.py
Application log shared by the GUI and the profile core.

Core code calls app_log(msg) from whichever thread it runs on (normally the
asyncio loop thread). Once the window calls set_app_log(log_fn, after_fn),
messages reach log_fn on the Tk main thread: directly when already there,
otherwise through a queue polled with after().

Every message also goes into a bounded history, so lines logged before the
window exists (startup cleanup, tests) are replayed when it attaches.
"""

from __future__ import annotations

import queue
import threading
from collections import deque
from typing import Callable

_HISTORY_LIMIT = 500
_POLL_MS = 50

_pending: queue.Queue[str] = queue.Queue()
_history: deque[str] = deque(maxlen=_HISTORY_LIMIT)
_lock = threading.Lock()

# (log_fn, after_fn, main thread ident) while a window is attached
_sink: tuple[Callable[[str], None], Callable, int] | None = None


def _poll() -> None:
    sink = _sink
    if sink is None:
        return
    log_fn, after_fn, _ = sink
    while True:
        try:
            message = _pending.get_nowait()
        except queue.Empty:
            break
        try:
            log_fn(message)
        except Exception:
            # widget already destroyed
            pass
    after_fn(_POLL_MS, _poll)


def set_app_log(log_fn: Callable[[str], None], after_fn: Callable) -> None:
    """Attach the log panel. Must be called on the Tk main thread."""
    global _sink
    _sink = (log_fn, after_fn, threading.get_ident())
    for message in recent_messages():
        _pending.put_nowait(message)
    after_fn(0, _poll)


def clear_app_log() -> None:
    """Detach the log panel; later messages only go to the history."""
    global _sink
    _sink = None


def recent_messages() -> list[str]:
    with _lock:
        return list(_history)


def app_log(message: str) -> None:
    """Log *message*. Safe to call from any thread."""
    with _lock:
        _history.append(message)
    sink = _sink
    if sink is None:
        return
    log_fn, _, main_ident = sink
    if threading.get_ident() != main_ident:
        _pending.put_nowait(message)
        return
    try:
        log_fn(message)
    except Exception:
        pass
