from Profiles.membership import MembershipService
from Profiles.models import KEY_ACTIVE_PROFILE, KEY_PROFILES


def test_load_repairs_empty_store(store, run):
    async def scenario():
        membership = MembershipService(store)
        result = await membership.load_profiles()
        return result, await store.get()

    (profiles, active), st = run(scenario())
    assert profiles == {"Default": []}
    assert active == "Default"
    assert st == {KEY_PROFILES: {"Default": []}, KEY_ACTIVE_PROFILE: "Default"}


def test_rename_keeps_position_and_moves_active(store, run):
    async def scenario():
        await store.set({KEY_PROFILES: {"A": [], "B": ["x"], "C": []},
                         KEY_ACTIVE_PROFILE: "B"})
        result = await MembershipService(store).rename_profile("B", "Bee")
        return result, await store.get()

    result, st = run(scenario())
    assert result.ok
    assert list(st[KEY_PROFILES]) == ["A", "Bee", "C"]
    assert st[KEY_PROFILES]["Bee"] == ["x"]
    assert st[KEY_ACTIVE_PROFILE] == "Bee"


def test_rename_rejects_case_insensitive_clash(store, run):
    async def scenario():
        await store.set({KEY_PROFILES: {"A": [], "B": []}, KEY_ACTIVE_PROFILE: "A"})
        return await MembershipService(store).rename_profile("A", "b")

    result = run(scenario())
    assert not result.ok


def test_delete_last_profile_is_rejected(store, run):
    async def scenario():
        membership = MembershipService(store)
        await membership.load_profiles()
        return await membership.delete_profile("Default")

    assert not run(scenario()).ok


def test_delete_active_moves_active_to_first_remaining(store, run):
    async def scenario():
        await store.set({KEY_PROFILES: {"A": [], "B": []}, KEY_ACTIVE_PROFILE: "B"})
        result = await MembershipService(store).delete_profile("B")
        return result, await store.get()

    result, st = run(scenario())
    assert result.ok
    assert st[KEY_PROFILES] == {"A": []}
    assert st[KEY_ACTIVE_PROFILE] == "A"


def test_save_mod_ids_to_unknown_profile_fails(store, run):
    async def scenario():
        membership = MembershipService(store)
        missing = await membership.save_mod_ids(["a"], "Nope")
        saved = await membership.save_mod_ids(["a", "b", "a"], "Default")
        return missing, saved, await store.get(KEY_PROFILES)

    missing, saved, st = run(scenario())
    assert not missing.ok
    assert saved.ok
    assert st[KEY_PROFILES] == {"Default": ["a", "b"]}
