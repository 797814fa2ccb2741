import asyncio

from conftest import RecordingMembership
from Profiles.models import KEY_PROFILES, KEY_PROFILES_ORDER
from Profiles.save_coordinator import SaveCoordinator, SaveState

DEBOUNCE = 0.05
UNLOCK = 0.06


def _coordinator(store, membership):
    return SaveCoordinator(store, membership, debounce=DEBOUNCE, unlock_delay=UNLOCK)


def test_burst_of_toggles_becomes_one_write(store, run):
    membership = RecordingMembership(store)
    saver = _coordinator(store, membership)

    async def scenario():
        await store.set({KEY_PROFILES: {"Default": []}})
        snapshots = [["a"], ["a", "b"], ["b"], ["b", "c"], ["b", "c", "d"]]
        for checked in snapshots:
            saver.record_edit(checked, "Default")
            await asyncio.sleep(0.01)
        await saver.wait_idle()
        return await store.get([KEY_PROFILES, KEY_PROFILES_ORDER])

    st = run(scenario())
    assert membership.saves == [(["b", "c", "d"], "Default")]
    assert st[KEY_PROFILES]["Default"] == ["b", "c", "d"]
    assert st[KEY_PROFILES_ORDER]["Default"] == ["b", "c", "d"]


def test_order_grows_but_never_shrinks(store, run):
    membership = RecordingMembership(store)
    saver = _coordinator(store, membership)

    async def scenario():
        await store.set({
            KEY_PROFILES: {"P": ["x"]},
            KEY_PROFILES_ORDER: {"P": ["x", "y"]},
        })
        saver.record_edit(["z", "y"], "P")
        await saver.wait_idle()
        saver.force_flush([], "P")
        await saver.wait_idle()
        return await store.get([KEY_PROFILES, KEY_PROFILES_ORDER])

    st = run(scenario())
    assert st[KEY_PROFILES_ORDER]["P"] == ["x", "y", "z"]
    assert st[KEY_PROFILES]["P"] == []
    for name, members in st[KEY_PROFILES].items():
        order = st[KEY_PROFILES_ORDER][name]
        assert set(members) <= set(order)
        assert len(order) == len(set(order))


def test_render_suppressed_from_arm_until_unlock_delay(store, run):
    membership = RecordingMembership(store)
    saver = _coordinator(store, membership)

    async def scenario():
        await store.set({KEY_PROFILES: {"Default": []}})
        states = [saver.render_suppressed]
        saver.record_edit(["a"], "Default")
        states.append((saver.state, saver.render_suppressed))
        await asyncio.sleep(DEBOUNCE + 0.015)
        # written by now, but still inside the unlock delay
        states.append(saver.render_suppressed)
        await saver.wait_idle()
        states.append((saver.state, saver.render_suppressed))
        return states

    states = run(scenario())
    assert states[0] is False
    assert states[1] == (SaveState.PENDING, True)
    assert states[2] is True
    assert states[3] == (SaveState.IDLE, False)


def test_target_profile_is_captured_when_armed(store, run):
    membership = RecordingMembership(store)
    saver = _coordinator(store, membership)

    async def scenario():
        await store.set({KEY_PROFILES: {"A": [], "B": []}})
        saver.record_edit(["m1"], "A")
        assert saver.pending_profile == "A"
        await saver.wait_idle()
        return await store.get(KEY_PROFILES)

    st = run(scenario())
    assert membership.saves == [(["m1"], "A")]
    assert st[KEY_PROFILES] == {"A": ["m1"], "B": []}


def test_failed_save_releases_lock_without_retry(store, run):
    membership = RecordingMembership(store)
    membership.fail.add("save")
    saver = _coordinator(store, membership)

    async def scenario():
        await store.set({KEY_PROFILES: {"Default": ["old"]}})
        saver.record_edit(["new"], "Default")
        await asyncio.wait_for(saver.wait_idle(), timeout=1)
        await asyncio.sleep(DEBOUNCE * 2)
        return await store.get(KEY_PROFILES)

    st = run(scenario())
    assert len(membership.saves) == 1
    assert saver.state is SaveState.IDLE
    assert st[KEY_PROFILES]["Default"] == ["old"]


def test_collaborator_exception_is_fail_open(store, run):
    class Exploding(RecordingMembership):
        async def save_mod_ids(self, mod_ids, profile_name):
            raise OSError("disk full")

    saver = _coordinator(store, Exploding(store))

    async def scenario():
        saver.record_edit(["a"], "Default")
        await asyncio.wait_for(saver.wait_idle(), timeout=1)

    run(scenario())
    assert saver.state is SaveState.IDLE


def test_edit_during_write_is_written_after_it(store, run):
    membership = RecordingMembership(store)
    membership.save_delay = 0.08
    saver = _coordinator(store, membership)

    async def scenario():
        await store.set({KEY_PROFILES: {"Default": []}})
        saver.record_edit(["first"], "Default")
        await asyncio.sleep(DEBOUNCE + 0.02)
        assert saver.state is SaveState.WRITING
        saver.record_edit(["first", "second"], "Default")
        assert saver.render_suppressed
        await saver.wait_idle()
        return await store.get(KEY_PROFILES)

    st = run(scenario())
    assert membership.saves == [(["first"], "Default"), (["first", "second"], "Default")]
    assert st[KEY_PROFILES]["Default"] == ["first", "second"]


def test_write_for_vanished_profile_does_not_recreate_order_entry(store, run):
    membership = RecordingMembership(store)
    saver = _coordinator(store, membership)

    async def scenario():
        await store.set({
            KEY_PROFILES: {"Renamed": []},
            KEY_PROFILES_ORDER: {"Renamed": []},
        })
        saver.record_edit(["m1"], "Old")
        await saver.wait_idle()
        return await store.get([KEY_PROFILES, KEY_PROFILES_ORDER])

    st = run(scenario())
    assert membership.saves == [(["m1"], "Old")]
    assert st[KEY_PROFILES_ORDER] == {"Renamed": []}
    assert st[KEY_PROFILES] == {"Renamed": []}
