"""
inventory.py
Inventory source: which mods are actually installed in the browser right now.

Scans a Chromium-style Extensions folder:

  <extensions_dir>/<extension id>/<version>/manifest.json

For each extension the highest version folder wins. A manifest name written
as "__MSG_appName__" is resolved from _locales/<default_locale>/messages.json.
An extension counts as a mod when its update_url is the GX mods update URL or
its manifest carries a "mod" section.

Every scan also keeps three store keys up to date (one write, only when
something changed):
  detectedModList      the latest list of detected mods
  knownDetectedIds     every id seen so far (pruned by Profiles.cleanup)
  recentlyUninstalled  name labels for mods that vanished since the last scan
"""

from __future__ import annotations

import asyncio
import json
import re
from dataclasses import dataclass, field
from pathlib import Path

from Profiles.models import (
    Item,
    KEY_ACTIVE_PROFILE,
    KEY_DETECTED,
    KEY_KNOWN_IDS,
    KEY_PROFILES,
    KEY_RECENTLY_UNINSTALLED,
)
from Utils.app_log import app_log
from Utils.app_settings import GX_MODS_UPDATE_URL
from Utils.store import JsonStore

_MSG_RE = re.compile(r"^__MSG_(\w+)__$")


@dataclass
class InventorySnapshot:
    """Response of an inventory request.

    detected may be None for sources that only report raw extensions; use
    Profiles.models.detected_from_snapshot to read it.

    available is False when the source could not be read at all (extensions
    folder missing or not configured). An empty detected list then says
    nothing about what is installed.
    """
    detected: list[Item] | None = None
    extensions: list[dict] = field(default_factory=list)
    profiles: dict[str, list[str]] | None = None
    active_profile: str | None = None
    available: bool = True


def _parse_version(s: str) -> tuple[int, ...]:
    """Convert a version folder name like '1.2.0_0' to a tuple of ints for comparison."""
    out = []
    for part in re.split(r"[._]", s.strip()):
        out.append(int(part) if part.isdigit() else 0)
    return tuple(out) if out else (0,)


def _read_json(path: Path) -> dict | None:
    try:
        # utf-8-sig: Chromium tolerates a BOM in manifests
        data = json.loads(path.read_text(encoding="utf-8-sig"))
    except (OSError, ValueError):
        return None
    return data if isinstance(data, dict) else None


def _localized(value: str, version_dir: Path, manifest: dict) -> str:
    m = _MSG_RE.match(value or "")
    if not m:
        return value or ""
    locale = manifest.get("default_locale") or "en"
    messages = _read_json(version_dir / "_locales" / locale / "messages.json") or {}
    wanted = m.group(1).lower()
    for key, entry in messages.items():
        if key.lower() == wanted and isinstance(entry, dict):
            return str(entry.get("message") or value)
    return value


def scan_extensions_dir(extensions_dir: Path | None) -> list[dict]:
    """Return [{id, name, update_url, is_mod}] for every readable extension."""
    results: list[dict] = []
    if extensions_dir is None or not extensions_dir.is_dir():
        return results

    for ext_dir in sorted(extensions_dir.iterdir()):
        if not ext_dir.is_dir():
            continue
        versions = [p for p in ext_dir.iterdir() if (p / "manifest.json").is_file()]
        if not versions:
            continue
        version_dir = max(versions, key=lambda p: _parse_version(p.name))
        manifest = _read_json(version_dir / "manifest.json")
        if manifest is None:
            continue
        results.append({
            "id": ext_dir.name,
            "name": _localized(str(manifest.get("name") or ""), version_dir, manifest),
            "update_url": manifest.get("update_url") or "",
            "is_mod": "mod" in manifest,
        })
    return results


class ExtensionInventory:
    """Inventory source backed by the browser's Extensions folder."""

    def __init__(self, store: JsonStore, extensions_dir: Path | None,
                 update_url: str = GX_MODS_UPDATE_URL) -> None:
        self._store = store
        self._extensions_dir = extensions_dir
        self._update_url = update_url
        self._warned_missing = False

    @property
    def extensions_dir(self) -> Path | None:
        return self._extensions_dir

    def _is_mod(self, ext: dict) -> bool:
        return ext["is_mod"] or ext["update_url"] == self._update_url

    async def get_extensions(self) -> InventorySnapshot:
        available = self._extensions_dir is not None and self._extensions_dir.is_dir()
        if available:
            extensions = await asyncio.to_thread(scan_extensions_dir, self._extensions_dir)
            detected = [Item(id=e["id"], name=e["name"]) for e in extensions if self._is_mod(e)]
            await self._record(detected)
        else:
            if not self._warned_missing:
                app_log(f"Inventory: extensions folder not found ({self._extensions_dir})")
                self._warned_missing = True
            # bookkeeping keys are left alone; nothing is known to be gone
            extensions, detected = [], []

        st = await self._store.get([KEY_PROFILES, KEY_ACTIVE_PROFILE])
        return InventorySnapshot(
            detected=detected,
            extensions=extensions,
            profiles=st.get(KEY_PROFILES),
            active_profile=st.get(KEY_ACTIVE_PROFILE),
            available=available,
        )

    async def _record(self, detected: list[Item]) -> None:
        st = await self._store.get([KEY_DETECTED, KEY_KNOWN_IDS, KEY_RECENTLY_UNINSTALLED])
        previous = st.get(KEY_DETECTED) or []
        known = st.get(KEY_KNOWN_IDS) or []
        recently = st.get(KEY_RECENTLY_UNINSTALLED) or {}

        current_ids = {m.id for m in detected}
        updates: dict = {}

        detected_list = [m.to_dict() for m in detected]
        if detected_list != previous:
            updates[KEY_DETECTED] = detected_list

        known_set = set(known)
        new_known = known + [m.id for m in detected if m.id not in known_set]
        if new_known != known:
            updates[KEY_KNOWN_IDS] = new_known

        new_recent = {k: v for k, v in recently.items() if k not in current_ids}
        for entry in previous:
            mod_id = entry.get("id")
            if mod_id and mod_id not in current_ids and entry.get("name"):
                new_recent[mod_id] = {"name": entry["name"]}
        if new_recent != recently:
            updates[KEY_RECENTLY_UNINSTALLED] = new_recent
            gone = [k for k in new_recent if k not in recently]
            if gone:
                app_log(f"Inventory: {len(gone)} mod(s) no longer detected")

        if updates:
            await self._store.set(updates)
