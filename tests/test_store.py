import asyncio
import json

from Utils.store import JsonStore


def test_get_set_roundtrip_persists_to_disk(tmp_path, run):
    path = tmp_path / "storage.json"

    async def scenario():
        store = JsonStore(path)
        await store.set({"profiles": {"Default": ["a"]}, "activeProfile": "Default"})
        return await store.get(["profiles", "missing"])

    assert run(scenario()) == {"profiles": {"Default": ["a"]}}
    assert json.loads(path.read_text(encoding="utf-8"))["activeProfile"] == "Default"

    reopened = JsonStore(path)
    assert run(reopened.get("activeProfile")) == {"activeProfile": "Default"}


def test_values_are_copied(run):
    async def scenario():
        store = JsonStore()
        value = {"Default": ["a"]}
        await store.set({"profiles": value})
        value["Default"].append("b")
        got = await store.get("profiles")
        got["profiles"]["Default"].append("c")
        return await store.get("profiles")

    assert run(scenario()) == {"profiles": {"Default": ["a"]}}


def test_listeners_get_only_real_changes(run):
    seen = []

    async def scenario():
        store = JsonStore()
        store.add_listener(seen.append)
        await store.set({"a": 1, "b": 2})
        await store.set({"a": 1})
        await store.set({"a": 3})
        store.remove_listener(seen.append)
        await store.set({"b": 4})
        await asyncio.sleep(0)

    run(scenario())
    assert [sorted(c) for c in seen] == [["a", "b"], ["a"]]
    assert seen[1]["a"].old_value == 1
    assert seen[1]["a"].new_value == 3
    assert seen[0]["b"].old_value is None


def test_corrupt_file_starts_empty(tmp_path, run):
    path = tmp_path / "storage.json"
    path.write_text("{not json", encoding="utf-8")
    assert run(JsonStore(path).get()) == {}
