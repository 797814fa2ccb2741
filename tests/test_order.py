from Profiles.models import KEY_PROFILES_ORDER, UNKNOWN_MOD_NAME, Item
from Profiles.order import (
    ensure_profiles_order,
    merge_working_order,
    name_sort_key,
    reconcile_display_order,
    resolve_name,
    sort_display_order,
)


DETECTED = [Item("c", "Mod 10"), Item("a", "mod 2"), Item("b", "Alpha")]


def test_resolve_name_precedence():
    names = {"a": "Detected"}
    recent = {"a": {"name": "Old"}, "b": {"name": "Gone Mod"}}
    assert resolve_name("a", names, recent) == "Detected"
    assert resolve_name("b", names, recent) == "Gone Mod"
    assert resolve_name("z", names, recent) == UNKNOWN_MOD_NAME
    assert resolve_name("z", names, None) == UNKNOWN_MOD_NAME


def test_name_sort_key_is_numeric_and_case_insensitive():
    names = ["Mod 10", "mod 2", "MOD 1", "alpha", "Beta", "Éclair", "echo"]
    ordered = sorted(names, key=name_sort_key)
    assert ordered == ["alpha", "Beta", "echo", "Éclair", "MOD 1", "mod 2", "Mod 10"]


def test_merge_working_order_appends_members_then_detected():
    working = merge_working_order(["x", "a"], ["a", "y", "x"], ["b", "y", "c"])
    assert working == ["x", "a", "y", "b", "c"]


def test_sort_display_order_keeps_ties_in_working_order():
    # both unknown: same label, must keep relative order
    ordered = sort_display_order(["u2", "a", "u1"], {"a": "Zed"})
    assert ordered == ["u2", "u1", "a"]


def test_reconcile_backfills_missing_order_entry(store, run):
    async def scenario():
        profiles = {"Default": ["b", "a"]}
        order = await reconcile_display_order(store, "Default", profiles, DETECTED)
        st = await store.get(KEY_PROFILES_ORDER)
        return order, st[KEY_PROFILES_ORDER]

    order, stored = run(scenario())
    assert order == ["b", "a", "c"]
    assert stored == {"Default": ["b", "a"]}
    assert len(store.writes_of(KEY_PROFILES_ORDER)) == 1


def test_reconcile_does_not_write_when_entry_exists(store, run):
    async def scenario():
        await store.set({KEY_PROFILES_ORDER: {"Default": ["a"]}})
        store.writes.clear()
        # member "b" and detected "c" are merged for display only
        order = await reconcile_display_order(store, "Default", {"Default": ["a", "b"]}, DETECTED)
        st = await store.get(KEY_PROFILES_ORDER)
        return order, st[KEY_PROFILES_ORDER]

    order, stored = run(scenario())
    assert set(order) == {"a", "b", "c"}
    assert stored == {"Default": ["a"]}
    assert store.writes == []


def test_reconcile_with_empty_inventory_uses_fallback_labels(store, run):
    async def scenario():
        await store.set({KEY_PROFILES_ORDER: {"P": ["gone1", "gone2"]}})
        return await reconcile_display_order(
            store, "P", {"P": ["gone2", "gone3"]}, [],
            {"gone3": {"name": "Aardvark"}},
        )

    order = run(scenario())
    # gone3 has a remembered name; the others share the unknown label and keep order
    assert order == ["gone3", "gone1", "gone2"]


def test_reconcile_empty_profile_shows_detected_only(store, run):
    order = run(reconcile_display_order(store, "Empty", {"Empty": []}, DETECTED))
    assert order == ["b", "a", "c"]


def test_ensure_profiles_order_backfills_and_appends(store, run):
    async def scenario():
        await store.set({KEY_PROFILES_ORDER: {"A": ["1"]}})
        store.writes.clear()
        profiles = {"A": ["1", "2"], "B": ["3"], "C": []}
        first = await ensure_profiles_order(store, profiles)
        writes_after_first = len(store.writes)
        second = await ensure_profiles_order(store, profiles)
        return first, second, writes_after_first, len(store.writes)

    first, second, w1, w2 = run(scenario())
    assert first == {"A": ["1", "2"], "B": ["3"], "C": []}
    assert second == first
    assert w1 == 1
    assert w2 == 1
