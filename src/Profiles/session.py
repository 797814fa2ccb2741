"""
session.py
ProfileSession: the one object behind the mod list window.

Owns the notion of the current profile (set on load, updated on switch,
create, rename and delete) and wires the pieces together:

  inventory + store  --order.py-->  DisplayList  --> on_render listener
  checkbox edits     --SaveCoordinator-->  store + membership
  import file        --merge.py-->  store  --> reload + render
  startup            --cleanup.py-->  store

Everything here runs on a single asyncio loop. Listeners are called on that
loop; the GUI is responsible for hopping back to its own thread.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Callable

from Profiles import merge
from Profiles.cleanup import cleanup_undetected_mods
from Profiles.errors import CollaboratorFailure, ValidationError
from Profiles.models import (
    DEFAULT_PROFILE,
    KEY_ACTIVE_PROFILE,
    KEY_CURRENT_MOD,
    KEY_PROFILES,
    KEY_PROFILES_ORDER,
    KEY_RANDOMIZE_ALL,
    KEY_RANDOMIZE_TIME,
    KEY_RECENTLY_UNINSTALLED,
    KEY_TIME_UNIT,
    TOGGLE_KEYS,
    DisplayList,
    DisplayRow,
    ImportResult,
    Item,
    ProfileListing,
    detected_from_snapshot,
    find_profile_name,
)
from Profiles.order import ensure_profiles_order, reconcile_display_order, resolve_name
from Profiles.save_coordinator import SaveCoordinator
from Utils.app_log import app_log
from Utils.app_settings import GX_MODS_UPDATE_URL
from Utils.store import JsonStore, StoreChange
from Utils.time_units import UNITS, from_minutes_format, parse_randomize_time


# Keys whose changes can alter the rendered list
_RENDER_KEYS = frozenset({
    KEY_PROFILES,
    KEY_ACTIVE_PROFILE,
    KEY_PROFILES_ORDER,
    KEY_RECENTLY_UNINSTALLED,
    KEY_RANDOMIZE_ALL,
})


def _require(result, action: str) -> None:
    if result is None or not result.ok:
        raise CollaboratorFailure(action, getattr(result, "message", None))


class ProfileSession:
    def __init__(self, store: JsonStore, inventory, membership,
                 saver: SaveCoordinator,
                 update_url: str = GX_MODS_UPDATE_URL) -> None:
        self._store = store
        self._inventory = inventory
        self._membership = membership
        self._saver = saver
        self._update_url = update_url

        self.current_profile: str | None = None
        self._rendered_profile: str | None = None

        self._on_render: Callable[[DisplayList], None] | None = None
        self._on_profiles: Callable[[ProfileListing], None] | None = None
        self._on_current_mod: Callable[[str], None] | None = None

        self._refresh_task: asyncio.Task | None = None
        self._refresh_again = False
        self._reload_profiles = False

    def set_listeners(self, on_render=None, on_profiles=None, on_current_mod=None) -> None:
        self._on_render = on_render
        self._on_profiles = on_profiles
        self._on_current_mod = on_current_mod

    @property
    def render_suppressed(self) -> bool:
        return self._saver.render_suppressed

    # ------------------------------------------------------------------
    # Startup / shutdown
    # ------------------------------------------------------------------

    async def initialize(self) -> DisplayList | None:
        """Populate the window: defaults, cleanup, profiles, first render."""
        st = await self._store.get(KEY_RANDOMIZE_ALL)
        if KEY_RANDOMIZE_ALL not in st:
            await self._store.set({KEY_RANDOMIZE_ALL: False})

        snapshot = await self._inventory.get_extensions()
        if snapshot.available:
            detected = await self._detected(snapshot)
            await cleanup_undetected_mods(self._store, (m.id for m in detected))
        else:
            app_log("Installed mods could not be read, skipping cleanup")

        await self.load_profiles()
        display = await self.render()
        self._store.add_listener(self._on_store_changed)
        app_log("Mod list ready")
        return display

    async def close(self) -> None:
        """Stop reacting to store changes and let any pending save finish."""
        self._store.remove_listener(self._on_store_changed)
        await self._saver.wait_idle()
        if self._refresh_task is not None and not self._refresh_task.done():
            await asyncio.wait({self._refresh_task})

    # ------------------------------------------------------------------
    # Loading and rendering
    # ------------------------------------------------------------------

    async def _detected(self, snapshot=None) -> list[Item]:
        snapshot = snapshot or await self._inventory.get_extensions()
        return detected_from_snapshot(snapshot.detected, snapshot.extensions, self._update_url)

    async def load_profiles(self) -> ProfileListing:
        profiles, active = await self._membership.load_profiles()
        if self.current_profile is None or self.current_profile not in profiles:
            self.current_profile = active
        await ensure_profiles_order(self._store, profiles)
        listing = ProfileListing(names=list(profiles), current=self.current_profile)
        if self._on_profiles is not None:
            self._on_profiles(listing)
        return listing

    async def render(self, force_profile: str | None = None) -> DisplayList | None:
        """Build the mod list for the current (or forced) profile.

        Returns None, without notifying, while a save is pending or in flight.
        """
        if self._saver.render_suppressed:
            return None

        snapshot = await self._inventory.get_extensions()
        detected = await self._detected(snapshot)
        profiles = snapshot.profiles
        if not isinstance(profiles, dict):
            profiles, _ = await self._membership.load_profiles()

        st = await self._store.get([KEY_RANDOMIZE_ALL, KEY_RECENTLY_UNINSTALLED])
        randomize_all = st.get(KEY_RANDOMIZE_ALL)
        randomize_all = True if randomize_all is None else bool(randomize_all)
        recently = st.get(KEY_RECENTLY_UNINSTALLED) or {}

        target = (force_profile or self.current_profile or snapshot.active_profile
                  or next(iter(profiles), DEFAULT_PROFILE))
        members = profiles.get(target)
        members = set(members) if isinstance(members, list) else set()

        order = await reconcile_display_order(
            self._store, target, profiles, detected, recently,
        )
        # An edit may have started while we were waiting on the store
        if self._saver.render_suppressed:
            return None

        names = {m.id: m.name for m in detected}
        rows = [
            DisplayRow(
                id=mod_id,
                name=resolve_name(mod_id, names, recently),
                checked=randomize_all or mod_id in members,
                enabled=not randomize_all,
            )
            for mod_id in order
        ]
        self._rendered_profile = target
        display = DisplayList(profile=target, rows=rows, randomize_all=randomize_all)
        if self._on_render is not None:
            self._on_render(display)
        return display

    # ------------------------------------------------------------------
    # Profile management
    # ------------------------------------------------------------------

    async def switch_profile(self, name: str) -> DisplayList | None:
        if self._saver.render_suppressed:
            app_log("Profile switch ignored while saving")
            return None
        _require(await self._membership.set_active_profile(name), "setActiveProfile")
        self.current_profile = name
        app_log(f"Profile switched to {name}")
        return await self.render(name)

    async def _existing_names(self) -> list[str]:
        profiles, _ = await self._membership.load_profiles()
        return list(profiles)

    async def create_profile(self, name: str) -> None:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Profile name cannot be empty.")
        if find_profile_name(await self._existing_names(), name) is not None:
            raise ValidationError("A profile with this name already exists.")

        _require(await self._membership.create_profile(name), "createProfile")
        _require(await self._membership.set_active_profile(name), "setActiveProfile")
        self.current_profile = name
        await self.load_profiles()
        await self.render()

    async def rename_profile(self, old_name: str, new_name: str) -> bool:
        """Rename *old_name*. Returns False when the name did not change."""
        new_name = (new_name or "").strip()
        if not new_name:
            raise ValidationError("Profile name cannot be empty.")
        if new_name == old_name:
            return False
        await self._saver.wait_idle()
        clash = find_profile_name(await self._existing_names(), new_name)
        if clash is not None and clash != old_name:
            raise ValidationError("A profile with this name already exists.")

        _require(await self._membership.rename_profile(old_name, new_name), "renameProfile")

        st = await self._store.get(KEY_PROFILES_ORDER)
        profiles_order = st.get(KEY_PROFILES_ORDER) or {}
        if old_name in profiles_order:
            profiles_order[new_name] = profiles_order.pop(old_name)
            await self._store.set({KEY_PROFILES_ORDER: profiles_order})

        if self.current_profile == old_name:
            self.current_profile = new_name
        if self._rendered_profile == old_name:
            self._rendered_profile = new_name
        app_log(f"Renamed profile {old_name} -> {new_name}")
        await self.load_profiles()
        await self.render()
        return True

    async def delete_profile(self, name: str) -> None:
        await self._saver.wait_idle()
        _require(await self._membership.delete_profile(name), "deleteProfile")

        st = await self._store.get(KEY_PROFILES_ORDER)
        profiles_order = st.get(KEY_PROFILES_ORDER) or {}
        if name in profiles_order:
            del profiles_order[name]
            await self._store.set({KEY_PROFILES_ORDER: profiles_order})

        if self.current_profile == name:
            self.current_profile = None
        if self._rendered_profile == name:
            self._rendered_profile = None
        await self.load_profiles()
        await self.render()

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def _save_target(self) -> str:
        return self._rendered_profile or self.current_profile or DEFAULT_PROFILE

    def record_edit(self, checked_ids: list[str]) -> None:
        self._saver.record_edit(checked_ids, self._save_target())

    def force_flush(self, checked_ids: list[str]) -> None:
        self._saver.force_flush(checked_ids, self._save_target())

    # ------------------------------------------------------------------
    # Import / export
    # ------------------------------------------------------------------

    async def import_profiles(self, text: str) -> ImportResult:
        detected = await self._detected()
        result = await merge.import_profiles(self._store, text, detected)
        if result.imported:
            await self.load_profiles()
            await self.render()
        return result

    async def export_profiles(self) -> dict:
        st = await self._store.get(KEY_PROFILES)
        profiles = st.get(KEY_PROFILES) or {}
        if not profiles:
            raise ValidationError("No profiles to export.")
        detected = await self._detected()
        return merge.build_export_document(profiles, detected)

    async def write_export(self, path: Path) -> int:
        """Write the export document to *path*; returns the profile count."""
        document = await self.export_profiles()
        text = json.dumps(document, indent=2)
        await asyncio.to_thread(path.write_text, text, encoding="utf-8")
        count = len(document["profiles"])
        app_log(f"Exported {count} profile(s) to {path.name}")
        return count

    # ------------------------------------------------------------------
    # Options
    # ------------------------------------------------------------------

    async def load_options(self) -> dict:
        """Toggle states plus the randomize interval formatted for display."""
        st = await self._store.get(list(TOGGLE_KEYS) + [KEY_RANDOMIZE_TIME, KEY_TIME_UNIT])
        options = {key: bool(st.get(key, False)) for key in TOGGLE_KEYS}
        unit = st.get(KEY_TIME_UNIT) or "minutes"
        minutes = st.get(KEY_RANDOMIZE_TIME)
        options[KEY_TIME_UNIT] = unit
        options[KEY_RANDOMIZE_TIME] = "" if not minutes else from_minutes_format(minutes, unit)
        return options

    async def set_toggle(self, key: str, value: bool) -> None:
        if key not in TOGGLE_KEYS:
            raise ValueError(f"Unknown toggle: {key}")
        await self._store.set({key: bool(value)})
        app_log(f"Toggle changed: {key} = {bool(value)}")
        if key == KEY_RANDOMIZE_ALL:
            await self.render()

    async def set_randomize_time(self, raw: str, unit: str) -> float | None:
        """Validate and store the interval. Returns the stored minutes."""
        minutes = parse_randomize_time(raw, unit)
        if minutes is None:
            return None
        await self._store.set({KEY_RANDOMIZE_TIME: minutes, KEY_TIME_UNIT: unit})
        return minutes

    async def set_time_unit(self, unit: str) -> str | None:
        """Store the unit; returns the interval re-expressed in it, if one is set."""
        if unit not in UNITS:
            raise ValidationError(f"Unknown time unit: {unit}")
        await self._store.set({KEY_TIME_UNIT: unit})
        st = await self._store.get(KEY_RANDOMIZE_TIME)
        minutes = st.get(KEY_RANDOMIZE_TIME)
        if minutes and minutes > 0:
            return from_minutes_format(minutes, unit)
        return None

    async def current_mod(self) -> str:
        st = await self._store.get(KEY_CURRENT_MOD)
        return st.get(KEY_CURRENT_MOD) or "None"

    # ------------------------------------------------------------------
    # Store notifications
    # ------------------------------------------------------------------

    def _on_store_changed(self, changes: dict[str, StoreChange]) -> None:
        if KEY_CURRENT_MOD in changes and self._on_current_mod is not None:
            self._on_current_mod(changes[KEY_CURRENT_MOD].new_value or "None")

        if KEY_ACTIVE_PROFILE in changes:
            self._reload_profiles = True
        profiles_change = changes.get(KEY_PROFILES)
        if profiles_change is not None:
            old, new = profiles_change.old_value, profiles_change.new_value
            if not isinstance(old, dict) or not isinstance(new, dict) or list(old) != list(new):
                self._reload_profiles = True

        if not _RENDER_KEYS.intersection(changes):
            return
        if self._refresh_task is not None and not self._refresh_task.done():
            self._refresh_again = True
            return
        self._refresh_task = asyncio.get_running_loop().create_task(self._refresh())

    async def _refresh(self) -> None:
        """Re-run loading/rendering until no further change notifications arrived."""
        self._refresh_again = True
        while self._refresh_again:
            self._refresh_again = False
            try:
                if self._reload_profiles:
                    self._reload_profiles = False
                    await self.load_profiles()
                await self.render()
            except Exception as e:
                app_log(f"Refresh after storage change failed: {e}")
