import asyncio

import pytest

from Profiles.membership import CollaboratorResult, MembershipService
from Profiles.models import KEY_ACTIVE_PROFILE, KEY_PROFILES, Item
from Utils.inventory import InventorySnapshot
from Utils.store import JsonStore


class CountingStore(JsonStore):
    """JsonStore that remembers every set() call."""

    def __init__(self, path=None):
        super().__init__(path)
        self.writes: list[dict] = []

    async def set(self, items):
        self.writes.append(dict(items))
        await super().set(items)

    def writes_of(self, key):
        return [w for w in self.writes if key in w]


class StaticInventory:
    """Inventory source with a fixed (mutable) list of detected mods."""

    def __init__(self, store, detected=()):
        self._store = store
        self.detected = [d if isinstance(d, Item) else Item(*d) for d in detected]
        self.calls = 0
        self.available = True

    async def get_extensions(self):
        self.calls += 1
        st = await self._store.get([KEY_PROFILES, KEY_ACTIVE_PROFILE])
        return InventorySnapshot(
            detected=list(self.detected),
            profiles=st.get(KEY_PROFILES),
            active_profile=st.get(KEY_ACTIVE_PROFILE),
            available=self.available,
        )


class RecordingMembership(MembershipService):
    """Real membership service that records saves and can be told to fail."""

    def __init__(self, store):
        super().__init__(store)
        self.saves: list[tuple[list[str], str]] = []
        self.fail: set[str] = set()
        self.save_delay = 0.0

    async def save_mod_ids(self, mod_ids, profile_name):
        self.saves.append((list(mod_ids), profile_name))
        if self.save_delay:
            await asyncio.sleep(self.save_delay)
        if "save" in self.fail:
            return CollaboratorResult("error", "background unavailable")
        return await super().save_mod_ids(mod_ids, profile_name)

    async def rename_profile(self, old_name, new_name):
        if "rename" in self.fail:
            return CollaboratorResult("error", "rename rejected")
        return await super().rename_profile(old_name, new_name)

    async def delete_profile(self, name):
        if "delete" in self.fail:
            return CollaboratorResult("error", "delete rejected")
        return await super().delete_profile(name)


@pytest.fixture
def store(tmp_path):
    return CountingStore(tmp_path / "storage.json")


@pytest.fixture
def run():
    return asyncio.run
