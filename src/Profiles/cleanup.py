"""
cleanup.py
Drop ids of mods that are no longer installed from stored profile data.

Runs once each time the mod list is populated. Writes only when a list
actually shrank, so a clean run produces no storage change notification.
"""

from __future__ import annotations

from typing import Iterable

from Profiles.models import KEY_KNOWN_IDS, KEY_PROFILES, KEY_PROFILES_ORDER
from Utils.app_log import app_log
from Utils.store import JsonStore


def _prune_lists(mapping: dict, keep: set[str]) -> int:
    """Filter every list in *mapping* to ids in *keep*; return how many were removed."""
    removed = 0
    for name, ids in mapping.items():
        if not isinstance(ids, list):
            continue
        kept = [i for i in ids if i in keep]
        removed += len(ids) - len(kept)
        mapping[name] = kept
    return removed


async def cleanup_undetected_mods(store: JsonStore, detected_ids: Iterable[str]) -> bool:
    """Prune profilesOrder, profiles and knownDetectedIds to *detected_ids*.

    Returns True when something was written.
    """
    keep = set(detected_ids)
    st = await store.get([KEY_PROFILES_ORDER, KEY_PROFILES, KEY_KNOWN_IDS])
    profiles_order = st.get(KEY_PROFILES_ORDER) or {}
    profiles = st.get(KEY_PROFILES) or {}
    known = st.get(KEY_KNOWN_IDS) or []

    removed = _prune_lists(profiles_order, keep) + _prune_lists(profiles, keep)
    known_kept = [i for i in known if i in keep]
    removed += len(known) - len(known_kept)

    if not removed:
        return False

    pruned = {
        KEY_PROFILES_ORDER: profiles_order,
        KEY_PROFILES: profiles,
        KEY_KNOWN_IDS: known_kept,
    }
    await store.set({k: v for k, v in pruned.items() if k in st})
    app_log(f"Cleaned up {removed} undetected mod id(s) from storage")
    return True
