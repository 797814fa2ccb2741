import json
from datetime import date, datetime, timezone

import pytest

from Profiles.errors import FormatError
from Profiles.merge import (
    build_export_document,
    export_filename,
    import_profiles,
    merge_profiles,
    parse_import_document,
)
from Profiles.models import KEY_PROFILES, KEY_PROFILES_ORDER, Item


DETECTED = [Item("id1", "Alpha"), Item("id2", "Neon Drift"), Item("id3", "Beta")]


def _doc(profiles):
    return json.dumps({"version": 1, "exportDate": "2025-02-25T14:30:22.000Z",
                       "profiles": profiles})


def test_import_new_profile_resolves_by_id_and_name():
    profiles = {"Default": ["id1"]}
    order = {"Default": ["id1"]}
    incoming = {"Racing": [{"id": "idX", "name": "neon drift"}, {"id": "id3", "name": "whatever"}]}

    result = merge_profiles(incoming, profiles, order, DETECTED)

    assert result.imported == ["Racing"]
    assert profiles["Racing"] == ["id2", "id3"]
    assert order["Racing"] == ["id2", "id3"]
    assert profiles["Default"] == ["id1"]
    assert result.missing_mods == {}


def test_import_reports_missing_mods():
    profiles, order = {}, {}
    incoming = {"Chill": [{"id": "gone", "name": "Old Mod"}, {"id": "gone2"}, "id1"]}

    result = merge_profiles(incoming, profiles, order, DETECTED)

    assert profiles["Chill"] == ["id1"]
    assert result.missing_mods == {"Chill": ["Old Mod", "Unknown (gone2)"]}


def test_existing_profile_is_skipped_case_insensitively():
    profiles = {"Racing": ["id1"]}
    order = {"Racing": ["id1"]}

    result = merge_profiles({"racing": [{"id": "id2"}]}, profiles, order, DETECTED)

    assert result.imported == []
    assert result.skipped == ["racing"]
    assert profiles == {"Racing": ["id1"]}
    assert order == {"Racing": ["id1"]}


def test_empty_or_null_mod_list_imports_empty_profile():
    profiles, order = {}, {}
    result = merge_profiles({"Empty": [], "Null": None}, profiles, order, DETECTED)
    assert result.imported == ["Empty", "Null"]
    assert profiles == {"Empty": [], "Null": []}
    assert order == {"Empty": [], "Null": []}


def test_duplicate_matches_are_collapsed():
    profiles, order = {}, {}
    merge_profiles({"P": [{"id": "id1"}, {"id": "x", "name": "ALPHA"}]}, profiles, order, DETECTED)
    assert profiles["P"] == ["id1"]


@pytest.mark.parametrize("text", [
    "not json",
    "[]",
    json.dumps({"version": 1}),
    json.dumps({"profiles": []}),
    json.dumps({"profiles": {"P": "id1"}}),
])
def test_parse_rejects_malformed_documents(text):
    with pytest.raises(FormatError):
        parse_import_document(text)


def test_import_writes_once_and_second_import_is_a_no_op(store, run):
    text = _doc({"Racing": [{"id": "id2", "name": "Neon Drift"}], "Default": []})

    async def scenario():
        await store.set({KEY_PROFILES: {"Default": ["id1"]},
                         KEY_PROFILES_ORDER: {"Default": ["id1"]}})
        store.writes.clear()
        first = await import_profiles(store, text, DETECTED)
        writes_after_first = len(store.writes)
        second = await import_profiles(store, text, DETECTED)
        st = await store.get([KEY_PROFILES, KEY_PROFILES_ORDER])
        return first, second, writes_after_first, len(store.writes), st

    first, second, w1, w2, st = run(scenario())
    assert first.imported == ["Racing"]
    assert first.skipped == ["Default"]
    assert second.imported == []
    assert sorted(second.skipped) == ["Default", "Racing"]
    assert w1 == 1
    assert w2 == 1
    assert set(store.writes[0]) == {KEY_PROFILES, KEY_PROFILES_ORDER}
    assert st[KEY_PROFILES] == {"Default": ["id1"], "Racing": ["id2"]}
    assert st[KEY_PROFILES_ORDER] == {"Default": ["id1"], "Racing": ["id2"]}


def test_import_format_error_leaves_store_untouched(store, run):
    async def scenario():
        with pytest.raises(FormatError):
            await import_profiles(store, "{broken", DETECTED)

    run(scenario())
    assert store.writes == []


def test_export_document_shape():
    now = datetime(2025, 2, 25, 14, 30, 22, tzinfo=timezone.utc)
    doc = build_export_document({"Racing": ["id2", "gone"], "Empty": []}, DETECTED, now=now)
    assert doc == {
        "version": 1,
        "exportDate": "2025-02-25T14:30:22.000Z",
        "profiles": {
            "Racing": [{"id": "id2", "name": "Neon Drift"},
                       {"id": "gone", "name": "Unknown (gone)"}],
            "Empty": [],
        },
    }


def test_export_filename():
    assert export_filename(date(2025, 2, 25)) == "mod-randomizer-profiles-2025-02-25.json"
