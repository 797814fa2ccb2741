"""
app_settings.py
Load/save application settings to ~/.config/ModRandomizer/settings.json.

These are app-level knobs (save debounce timing, where the browser keeps its
extensions), not profile data; profile data lives in the store (see store.py).
"""

from __future__ import annotations

import json
from pathlib import Path

from Utils.app_log import app_log
from Utils.config_paths import get_default_extensions_dir, get_settings_path

GX_MODS_UPDATE_URL = "https://api.gx.me/store/mods/update"

DEFAULTS = {
    "debounce_ms": 120,
    "unlock_delay_ms": 100,
    "extensions_dir": "",
    "mod_update_url": GX_MODS_UPDATE_URL,
}


def load_settings(path: Path | None = None) -> dict:
    """Return settings merged over DEFAULTS. Unknown keys are dropped."""
    path = path or get_settings_path()
    if not path.is_file():
        return dict(DEFAULTS)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        app_log(f"Settings: could not read {path.name} ({e}), using defaults")
        return dict(DEFAULTS)
    out = dict(DEFAULTS)
    if isinstance(data, dict):
        for k, v in data.items():
            if k in out:
                out[k] = v
    return out


def save_settings(settings: dict, path: Path | None = None) -> None:
    path = path or get_settings_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    to_save = {k: settings.get(k, DEFAULTS[k]) for k in DEFAULTS}
    path.write_text(json.dumps(to_save, indent=2), encoding="utf-8")


def resolve_extensions_dir(settings: dict) -> Path | None:
    """The configured extensions folder, else the discovered Opera GX one."""
    configured = (settings.get("extensions_dir") or "").strip()
    if configured:
        return Path(configured).expanduser()
    return get_default_extensions_dir()


def timing_seconds(settings: dict) -> tuple[float, float]:
    """Return (debounce, unlock_delay) in seconds, falling back on bad values."""
    out = []
    for key in ("debounce_ms", "unlock_delay_ms"):
        try:
            ms = float(settings.get(key, DEFAULTS[key]))
        except (TypeError, ValueError):
            ms = DEFAULTS[key]
        out.append(max(ms, 0) / 1000.0)
    return out[0], out[1]
