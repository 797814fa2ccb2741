"""
membership.py
Owner of profile membership storage (the "profiles" and "activeProfile" keys).

The rest of the core reaches these operations only through their results:
each returns a CollaboratorResult and never raises for a rejected request,
so callers decide how a failure is surfaced. Any object with the same async
methods can stand in (a background service, a test double).
"""

from __future__ import annotations

from dataclasses import dataclass

from Profiles.models import (
    DEFAULT_PROFILE,
    KEY_ACTIVE_PROFILE,
    KEY_PROFILES,
    find_profile_name,
)
from Utils.app_log import app_log
from Utils.store import JsonStore

SUCCESS = "success"
ERROR = "error"


@dataclass(frozen=True)
class CollaboratorResult:
    status: str
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == SUCCESS


def _ok() -> CollaboratorResult:
    return CollaboratorResult(SUCCESS)


def _fail(message: str) -> CollaboratorResult:
    return CollaboratorResult(ERROR, message)


class MembershipService:
    """Profile membership operations over the key-value store."""

    def __init__(self, store: JsonStore) -> None:
        self._store = store

    async def load_profiles(self) -> tuple[dict[str, list[str]], str]:
        """Return (profiles, active), repairing storage if either is unusable."""
        st = await self._store.get([KEY_PROFILES, KEY_ACTIVE_PROFILE])
        profiles = st.get(KEY_PROFILES)
        active = st.get(KEY_ACTIVE_PROFILE)
        updates: dict = {}
        if not isinstance(profiles, dict) or not profiles:
            profiles = {DEFAULT_PROFILE: []}
            updates[KEY_PROFILES] = profiles
        if active not in profiles:
            active = next(iter(profiles))
            updates[KEY_ACTIVE_PROFILE] = active
        if updates:
            await self._store.set(updates)
        return profiles, active

    async def save_mod_ids(self, mod_ids: list[str], profile_name: str) -> CollaboratorResult:
        profiles, _ = await self.load_profiles()
        if profile_name not in profiles:
            return _fail(f'Profile "{profile_name}" not found')
        profiles[profile_name] = list(dict.fromkeys(mod_ids))
        await self._store.set({KEY_PROFILES: profiles})
        return _ok()

    async def create_profile(self, name: str) -> CollaboratorResult:
        name = (name or "").strip()
        if not name:
            return _fail("Profile name cannot be empty.")
        profiles, _ = await self.load_profiles()
        if find_profile_name(profiles, name) is not None:
            return _fail("A profile with this name already exists.")
        profiles[name] = []
        await self._store.set({KEY_PROFILES: profiles})
        app_log(f'Created profile "{name}"')
        return _ok()

    async def rename_profile(self, old_name: str, new_name: str) -> CollaboratorResult:
        new_name = (new_name or "").strip()
        profiles, active = await self.load_profiles()
        if old_name not in profiles:
            return _fail(f'Profile "{old_name}" not found')
        if not new_name:
            return _fail("Profile name cannot be empty.")
        clash = find_profile_name(profiles, new_name)
        if clash is not None and clash != old_name:
            return _fail("A profile with this name already exists.")
        # Rebuild so the renamed profile keeps its position
        renamed = {
            (new_name if k == old_name else k): v for k, v in profiles.items()
        }
        updates: dict = {KEY_PROFILES: renamed}
        if active == old_name:
            updates[KEY_ACTIVE_PROFILE] = new_name
        await self._store.set(updates)
        return _ok()

    async def delete_profile(self, name: str) -> CollaboratorResult:
        profiles, active = await self.load_profiles()
        if name not in profiles:
            return _fail(f'Profile "{name}" not found')
        if len(profiles) == 1:
            return _fail("Cannot delete the last profile.")
        del profiles[name]
        updates: dict = {KEY_PROFILES: profiles}
        if active == name:
            updates[KEY_ACTIVE_PROFILE] = next(iter(profiles))
        await self._store.set(updates)
        app_log(f'Deleted profile "{name}"')
        return _ok()

    async def set_active_profile(self, name: str) -> CollaboratorResult:
        profiles, active = await self.load_profiles()
        if name not in profiles:
            return _fail(f'Profile "{name}" not found')
        if active != name:
            await self._store.set({KEY_ACTIVE_PROFILE: name})
        return _ok()
