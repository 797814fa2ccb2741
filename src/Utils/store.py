"""
store.py
Asynchronous key-value store backed by a single JSON file.

Mirrors a browser extension's local storage area:
  await store.get("profiles")            -> {"profiles": {...}}   (missing keys omitted)
  await store.get(["profiles", "x"])     -> only the keys that exist
  await store.get()                      -> everything
  await store.set({"profiles": {...}})   -> all keys applied at once, last write wins

Values are deep-copied on the way in and out, so callers can mutate what
they read without touching stored state.

Listeners registered with add_listener() are called on the event loop after
every set() that actually changed a value, with {key: StoreChange(old, new)}.
"""

from __future__ import annotations

import asyncio
import copy
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterable

from Utils.app_log import app_log

_MISSING = object()


@dataclass(frozen=True)
class StoreChange:
    old_value: Any = None
    new_value: Any = None


ChangeListener = Callable[[dict[str, StoreChange]], None]


class JsonStore:
    """JSON-file key-value store. path=None keeps everything in memory."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path
        self._data: dict[str, Any] | None = None
        self._listeners: list[ChangeListener] = []

    # ------------------------------------------------------------------
    # Disk
    # ------------------------------------------------------------------

    def _load(self) -> dict[str, Any]:
        if self._data is not None:
            return self._data
        self._data = {}
        if self._path is None or not self._path.is_file():
            return self._data
        try:
            with self._path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            app_log(f"Store: could not read {self._path.name} ({e}), starting empty")
            return self._data
        if isinstance(data, dict):
            self._data = data
        else:
            app_log(f"Store: {self._path.name} is not a JSON object, starting empty")
        return self._data

    def _write(self) -> None:
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(".tmp")
        with tmp.open("w", encoding="utf-8") as f:
            json.dump(self._data, f, indent=2)
        tmp.replace(self._path)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get(self, keys: str | Iterable[str] | None = None) -> dict[str, Any]:
        data = self._load()
        if keys is None:
            result = copy.deepcopy(data)
        else:
            if isinstance(keys, str):
                keys = [keys]
            result = {k: copy.deepcopy(data[k]) for k in keys if k in data}
        await asyncio.sleep(0)
        return result

    async def set(self, items: dict[str, Any]) -> None:
        data = self._load()
        changes: dict[str, StoreChange] = {}
        for key, value in items.items():
            old = data.get(key, _MISSING)
            if old is not _MISSING and old == value:
                continue
            changes[key] = StoreChange(
                None if old is _MISSING else copy.deepcopy(old),
                copy.deepcopy(value),
            )
            data[key] = copy.deepcopy(value)
        if changes:
            self._write()
            self._notify(changes)
        await asyncio.sleep(0)

    # ------------------------------------------------------------------
    # Change notifications
    # ------------------------------------------------------------------

    def add_listener(self, listener: ChangeListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: ChangeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, changes: dict[str, StoreChange]) -> None:
        if not self._listeners:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        for listener in list(self._listeners):
            loop.call_soon(listener, changes)
