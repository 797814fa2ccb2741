"""
order.py
Stable per-profile display order.

profilesOrder[p] is the ordered superset of every id ever assigned to p.
Ids are only appended here; they leave through cleanup.py or when the profile
is renamed or deleted. The list shown to the user is built from it in three
passes and then sorted by display name:

  1. profilesOrder[p] as stored (backfilled from the membership if missing)
  2. enabled ids not yet in it (state that predates ordering)
  3. detected ids not yet in it (new mods show up even when unassigned)

Only a missing profilesOrder entry causes a write; passes 1-3 are a read-only
merge so rendering does not write on every refresh.
"""

from __future__ import annotations

import locale
import re
import unicodedata
from typing import Iterable, Mapping

from Profiles.models import KEY_PROFILES_ORDER, UNKNOWN_MOD_NAME, Item
from Utils.app_log import app_log
from Utils.store import JsonStore

_DIGITS_RE = re.compile(r"(\d+)")


def resolve_name(
    mod_id: str,
    detected_names: Mapping[str, str],
    recently_uninstalled: Mapping[str, dict] | None = None,
) -> str:
    """Display name for *mod_id*.

    Precedence: detected name, then the recently-uninstalled label, then
    UNKNOWN_MOD_NAME.
    """
    name = detected_names.get(mod_id)
    if name:
        return name
    entry = (recently_uninstalled or {}).get(mod_id)
    if isinstance(entry, dict) and entry.get("name"):
        return entry["name"]
    return UNKNOWN_MOD_NAME


def _fold(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return stripped.casefold()


def name_sort_key(name: str) -> tuple:
    """Case/accent-insensitive, numeric-aware sort key ("Mod 2" < "Mod 10").

    re.split with a capture group alternates text and digit runs, so every
    key has text at even positions and ints at odd ones and keys always
    compare element by element.
    """
    parts = _DIGITS_RE.split(_fold(name))
    key = []
    for i, part in enumerate(parts):
        key.append(int(part) if i % 2 else locale.strxfrm(part))
    return tuple(key)


def merge_working_order(
    order: Iterable[str],
    members: Iterable[str],
    detected_ids: Iterable[str],
) -> list[str]:
    """Historical order, then missing enabled ids, then missing detected ids."""
    working: list[str] = []
    seen: set[str] = set()
    for source in (order, members, detected_ids):
        for mod_id in source:
            if mod_id not in seen:
                seen.add(mod_id)
                working.append(mod_id)
    return working


def sort_display_order(
    ids: list[str],
    detected_names: Mapping[str, str],
    recently_uninstalled: Mapping[str, dict] | None = None,
) -> list[str]:
    """Stable sort by resolved name; equal names keep their working-order position."""
    return sorted(
        ids,
        key=lambda i: name_sort_key(resolve_name(i, detected_names, recently_uninstalled)),
    )


async def ensure_profiles_order(
    store: JsonStore, profiles: Mapping[str, list[str]],
) -> dict[str, list[str]]:
    """Backfill profilesOrder for every profile and append any enabled id it lacks.

    One write, and only when something changed.
    """
    st = await store.get(KEY_PROFILES_ORDER)
    profiles_order = st.get(KEY_PROFILES_ORDER) or {}
    changed = False
    for name, members in profiles.items():
        members = members if isinstance(members, list) else []
        existing = profiles_order.get(name)
        if existing is None:
            profiles_order[name] = list(dict.fromkeys(members))
            changed = True
            continue
        present = set(existing)
        for mod_id in members:
            if mod_id not in present:
                existing.append(mod_id)
                present.add(mod_id)
                changed = True
    if changed:
        await store.set({KEY_PROFILES_ORDER: profiles_order})
        app_log("Initialized/updated profile order")
    return profiles_order


async def reconcile_display_order(
    store: JsonStore,
    target: str,
    profiles: Mapping[str, list[str]],
    detected: list[Item],
    recently_uninstalled: Mapping[str, dict] | None = None,
) -> list[str]:
    """Final display order for *target*.

    Persists profilesOrder only when the target has no entry yet.
    """
    members = profiles.get(target)
    members = members if isinstance(members, list) else []

    st = await store.get(KEY_PROFILES_ORDER)
    profiles_order = st.get(KEY_PROFILES_ORDER) or {}
    if target not in profiles_order:
        profiles_order[target] = list(dict.fromkeys(members))
        await store.set({KEY_PROFILES_ORDER: profiles_order})

    detected_names = {m.id: m.name for m in detected}
    working = merge_working_order(
        profiles_order[target], members, (m.id for m in detected),
    )
    return sort_display_order(working, detected_names, recently_uninstalled)
