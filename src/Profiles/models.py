"""
models.py
Shared types and store keys for the profile core.

Store layout (one JSON document, see Utils/store.py):
  profiles             {name: [id, ...]}        enabled ids per profile
  profilesOrder        {name: [id, ...]}        ordered superset per profile
  activeProfile        name
  recentlyUninstalled  {id: {"name": str}}      fallback labels for vanished mods
  knownDetectedIds     [id, ...]                ids the inventory has seen
  detectedModList      [{"id", "name"}, ...]    last inventory snapshot
"""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_PROFILE = "Default"
UNKNOWN_MOD_NAME = "Unknown Mod (not detected)"

KEY_PROFILES = "profiles"
KEY_PROFILES_ORDER = "profilesOrder"
KEY_ACTIVE_PROFILE = "activeProfile"
KEY_RECENTLY_UNINSTALLED = "recentlyUninstalled"
KEY_KNOWN_IDS = "knownDetectedIds"
KEY_DETECTED = "detectedModList"
KEY_CURRENT_MOD = "currentMod"
KEY_RANDOMIZE_ALL = "autoModIdentificationChecked"
KEY_RANDOMIZE_TIME = "randomizeTime"
KEY_TIME_UNIT = "timeUnit"

# Popup toggles persisted as plain booleans
TOGGLE_KEYS = (
    KEY_RANDOMIZE_ALL,
    "uninstallAndReinstallChecked",
    "openModsTabChecked",
    "showNotificationsChecked",
    "toggleRandomizeOnStartupChecked",
    "toggleRandomizeOnSetTimeChecked",
)


@dataclass(frozen=True)
class Item:
    """A detected mod. Identity is the id; the name is display-only."""
    id: str
    name: str

    @classmethod
    def from_dict(cls, data: dict) -> Item:
        return cls(id=str(data["id"]), name=str(data.get("name") or ""))

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}


@dataclass
class ImportResult:
    """Outcome of merging an import document into existing profiles."""
    imported: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    missing_mods: dict[str, list[str]] = field(default_factory=dict)

    def summary_lines(self) -> list[str]:
        """Plain-text summary for the import results dialog."""
        lines: list[str] = []
        if self.imported:
            lines.append("Imported profiles:")
            for name in self.imported:
                missing = self.missing_mods.get(name)
                suffix = f" ({len(missing)} mod(s) missing)" if missing else ""
                lines.append(f"  ✓ {name}{suffix}")
        if self.missing_mods:
            lines.append("Missing mods (not found on your system, excluded):")
            for name, labels in self.missing_mods.items():
                lines.append(f"  {name}:")
                lines.extend(f"    - {label}" for label in labels)
        if self.skipped:
            lines.append("Skipped (a profile with this name already exists):")
            lines.extend(f"  ⊘ {name}" for name in self.skipped)
        if not self.imported and not self.skipped:
            lines.append("No profiles were imported.")
        elif self.imported:
            lines.append(f"Successfully imported {len(self.imported)} profile(s)!")
        return lines


@dataclass(frozen=True)
class DisplayRow:
    id: str
    name: str
    checked: bool
    enabled: bool = True


@dataclass
class DisplayList:
    """What the mod list should show for one profile."""
    profile: str
    rows: list[DisplayRow] = field(default_factory=list)
    randomize_all: bool = False

    @property
    def checked_ids(self) -> list[str]:
        return [r.id for r in self.rows if r.checked]


@dataclass
class ProfileListing:
    names: list[str]
    current: str


def names_equal(a: str, b: str) -> bool:
    """Profile names compare case-insensitively."""
    return a.casefold() == b.casefold()


def find_profile_name(names, wanted: str) -> str | None:
    """Return the existing name matching *wanted* case-insensitively, or None."""
    for name in names:
        if names_equal(name, wanted):
            return name
    return None


def detected_from_snapshot(detected, extensions, update_url: str) -> list[Item]:
    """Detected mods from an inventory response.

    Prefers the explicit detected list; otherwise derives it from the raw
    extension list by update URL.
    """
    if detected is not None:
        return [d if isinstance(d, Item) else Item.from_dict(d) for d in detected]
    return [
        Item(id=str(e["id"]), name=str(e.get("name") or ""))
        for e in (extensions or [])
        if e.get("update_url") == update_url or e.get("updateUrl") == update_url
    ]
