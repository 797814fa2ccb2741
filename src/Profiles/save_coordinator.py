"""
save_coordinator.py
Coalesces checkbox edits into single debounced writes.

    IDLE --edit--> PENDING --timer--> WRITING --write done + unlock delay--> IDLE
                     ^  |                |
                     +--+ edit re-arms   +--edit--> PENDING (fires after the write)

Every edit replaces the pending snapshot and restarts the timer, so a burst
of toggles becomes one write of the final checked set. The target profile is
captured when the timer is armed; switching profiles afterwards does not
redirect or cancel that write.

While anything is pending or being written, and for a short delay after the
last write (storage change notifications arrive late), render_suppressed is
True. Renders requested in that time are dropped by the caller, not queued.

A failed write is logged and not retried; the next full reload re-derives
state from the store.
"""

from __future__ import annotations

import asyncio
from enum import Enum

from Profiles.models import KEY_PROFILES, KEY_PROFILES_ORDER
from Utils.app_log import app_log
from Utils.store import JsonStore

DEFAULT_DEBOUNCE = 0.12
DEFAULT_UNLOCK_DELAY = 0.1


class SaveState(Enum):
    IDLE = "idle"
    PENDING = "pending"
    WRITING = "writing"


class SaveCoordinator:
    def __init__(self, store: JsonStore, membership,
                 debounce: float = DEFAULT_DEBOUNCE,
                 unlock_delay: float = DEFAULT_UNLOCK_DELAY) -> None:
        self._store = store
        self._membership = membership
        self._debounce = debounce
        self._unlock_delay = unlock_delay

        self._state = SaveState.IDLE
        self._timer: asyncio.TimerHandle | None = None
        self._unlock: asyncio.TimerHandle | None = None
        self._write_task: asyncio.Task | None = None
        self._snapshot: list[str] | None = None
        self._target: str | None = None
        self._idle: asyncio.Event | None = None  # created on the loop thread

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> SaveState:
        return self._state

    @property
    def render_suppressed(self) -> bool:
        return self._state is not SaveState.IDLE

    @property
    def pending_profile(self) -> str | None:
        """Profile the armed timer will write to, if any."""
        return self._target if self._timer is not None else None

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def record_edit(self, checked_ids: list[str], profile_name: str) -> None:
        """Called on every checkbox change with the full checked set."""
        self._arm(checked_ids, profile_name)

    def force_flush(self, checked_ids: list[str], profile_name: str) -> None:
        """Called by bulk actions (toggle all / reverse all).

        Goes through the same timer so bulk and single edits never race.
        """
        self._arm(checked_ids, profile_name)

    async def wait_idle(self) -> None:
        """Wait until nothing is pending, written, or waiting to unlock."""
        while self._state is not SaveState.IDLE:
            await self._idle_event().wait()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _idle_event(self) -> asyncio.Event:
        if self._idle is None:
            self._idle = asyncio.Event()
            if self._state is SaveState.IDLE:
                self._idle.set()
        return self._idle

    def _set_state(self, state: SaveState) -> None:
        self._state = state
        event = self._idle_event()
        if state is SaveState.IDLE:
            event.set()
        else:
            event.clear()

    def _arm(self, checked_ids: list[str], profile_name: str) -> None:
        loop = asyncio.get_running_loop()
        self._snapshot = list(checked_ids)
        self._target = profile_name
        if self._timer is not None:
            self._timer.cancel()
        if self._unlock is not None:
            self._unlock.cancel()
            self._unlock = None
        self._timer = loop.call_later(self._debounce, self._fire)
        self._set_state(SaveState.PENDING)

    def _fire(self) -> None:
        self._timer = None
        snapshot, target = self._snapshot or [], self._target
        self._snapshot = None
        self._set_state(SaveState.WRITING)
        previous = self._write_task
        self._write_task = asyncio.get_running_loop().create_task(
            self._write(previous, snapshot, target)
        )

    async def _write(self, previous: asyncio.Task | None,
                     checked_ids: list[str], profile_name: str) -> None:
        if previous is not None and not previous.done():
            await asyncio.wait({previous})
        try:
            await self._persist(checked_ids, profile_name)
        except Exception as e:
            app_log(f'Could not save profile "{profile_name}": {e}')
        finally:
            if self._write_task is asyncio.current_task():
                self._write_task = None
                if self._timer is None:
                    self._schedule_unlock()

    async def _persist(self, checked_ids: list[str], profile_name: str) -> None:
        st = await self._store.get([KEY_PROFILES_ORDER, KEY_PROFILES])
        profiles = st.get(KEY_PROFILES)
        if isinstance(profiles, dict) and profile_name not in profiles:
            # renamed or deleted since the edit; never recreate its order entry
            app_log(f'Profile "{profile_name}" no longer exists, order not updated')
        else:
            await self._append_to_order(st.get(KEY_PROFILES_ORDER) or {}, profile_name, checked_ids)

        result = await self._membership.save_mod_ids(checked_ids, profile_name)
        if result is not None and result.ok:
            app_log(f'Saved {len(checked_ids)} mods to profile "{profile_name}"')
        else:
            message = getattr(result, "message", None) or "no response"
            app_log(f'Saving profile "{profile_name}" failed: {message}')

    async def _append_to_order(self, profiles_order: dict, profile_name: str,
                               checked_ids: list[str]) -> None:
        order = profiles_order.setdefault(profile_name, [])
        present = set(order)
        changed = False
        for mod_id in checked_ids:
            if mod_id not in present:
                order.append(mod_id)
                present.add(mod_id)
                changed = True
        if changed:
            await self._store.set({KEY_PROFILES_ORDER: profiles_order})

    def _schedule_unlock(self) -> None:
        loop = asyncio.get_running_loop()
        self._unlock = loop.call_later(self._unlock_delay, self._release)

    def _release(self) -> None:
        self._unlock = None
        if self._timer is None and self._write_task is None:
            self._set_state(SaveState.IDLE)
