"""
merge.py
Import and export of profile files.

File format (both directions):

  {
    "version": 1,
    "exportDate": "2025-02-25T14:30:22.000Z",
    "profiles": {
      "Racing": [{"id": "abcdef...", "name": "Neon Drift"}, ...]
    }
  }

Import is strictly additive. A profile whose name already exists (compared
case-insensitively) is skipped whole, never merged or overwritten, so
importing the same file twice changes nothing the second time. Each item is
matched to an installed mod by id, then by name (case-insensitive); items
that match neither are reported as missing and left out.
"""

from __future__ import annotations

import json
from datetime import date, datetime, timezone
from typing import Any, Mapping

from Profiles.errors import FormatError
from Profiles.models import (
    KEY_PROFILES,
    KEY_PROFILES_ORDER,
    ImportResult,
    Item,
    find_profile_name,
)
from Utils.app_log import app_log
from Utils.store import JsonStore

EXPORT_VERSION = 1


def _unknown_label(mod_id: Any) -> str:
    return f"Unknown ({mod_id})"


def parse_import_document(text: str) -> dict[str, list | None]:
    """Return the document's profiles mapping or raise FormatError."""
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise FormatError(f"Not a valid JSON file: {e}") from e
    if not isinstance(data, dict):
        raise FormatError("Invalid profile file format")
    profiles = data.get("profiles")
    if not isinstance(profiles, dict):
        raise FormatError("Invalid profile file format")
    for name, mods in profiles.items():
        if mods is not None and not isinstance(mods, list):
            raise FormatError(f'Invalid mod list for profile "{name}"')
    return profiles


def _resolve_items(
    mods: list,
    detected_ids: set[str],
    name_to_id: Mapping[str, str],
) -> tuple[list[str], list[str]]:
    """Return (resolved ids, labels of items that could not be matched)."""
    valid: list[str] = []
    missing: list[str] = []
    for mod in mods:
        if isinstance(mod, dict):
            mod_id, mod_name = mod.get("id"), mod.get("name")
        else:
            mod_id, mod_name = mod, None

        if isinstance(mod_id, str) and mod_id in detected_ids:
            valid.append(mod_id)
        elif isinstance(mod_name, str) and mod_name:
            matched = name_to_id.get(mod_name.casefold())
            if matched:
                valid.append(matched)
            else:
                missing.append(mod_name)
        else:
            missing.append(_unknown_label(mod_id))
    return list(dict.fromkeys(valid)), missing


def merge_profiles(
    incoming: Mapping[str, list | None],
    profiles: dict[str, list[str]],
    profiles_order: dict[str, list[str]],
    detected: list[Item],
) -> ImportResult:
    """Add every incoming profile that does not exist yet.

    *profiles* and *profiles_order* are updated in place; existing entries
    are never touched.
    """
    detected_ids = {m.id for m in detected}
    name_to_id = {m.name.casefold(): m.id for m in detected if m.name}
    result = ImportResult()

    for profile_name, mods in incoming.items():
        if find_profile_name(profiles, profile_name) is not None:
            result.skipped.append(profile_name)
            continue

        valid, missing = _resolve_items(mods or [], detected_ids, name_to_id)
        profiles[profile_name] = valid
        profiles_order[profile_name] = list(valid)
        result.imported.append(profile_name)
        if missing:
            result.missing_mods[profile_name] = missing
    return result


async def import_profiles(store: JsonStore, text: str, detected: list[Item]) -> ImportResult:
    """Parse *text* and merge it into stored profiles in a single write."""
    incoming = parse_import_document(text)

    st = await store.get([KEY_PROFILES, KEY_PROFILES_ORDER])
    profiles = st.get(KEY_PROFILES) or {}
    profiles_order = st.get(KEY_PROFILES_ORDER) or {}

    result = merge_profiles(incoming, profiles, profiles_order, detected)
    if result.imported:
        await store.set({KEY_PROFILES: profiles, KEY_PROFILES_ORDER: profiles_order})
        app_log(f"Imported {len(result.imported)} profile(s)")
    if result.skipped:
        app_log(f"Import skipped existing profile(s): {', '.join(result.skipped)}")
    return result


def build_export_document(
    profiles: Mapping[str, list[str]],
    detected: list[Item],
    now: datetime | None = None,
) -> dict:
    names = {m.id: m.name for m in detected}
    now = now or datetime.now(timezone.utc)
    return {
        "version": EXPORT_VERSION,
        "exportDate": now.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        "profiles": {
            profile_name: [
                {"id": mod_id, "name": names.get(mod_id) or _unknown_label(mod_id)}
                for mod_id in (mod_ids or [])
            ]
            for profile_name, mod_ids in profiles.items()
        },
    }


def export_filename(today: date | None = None) -> str:
    today = today or date.today()
    return f"mod-randomizer-profiles-{today.isoformat()}.json"
