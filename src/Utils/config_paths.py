"""
config_paths.py
Central helpers for resolving user-writable config directories and the
browser extensions folder that the inventory is scanned from.

Follows the XDG Base Directory Specification:
  Config lives in $XDG_CONFIG_HOME/ModRandomizer  (default: ~/.config/ModRandomizer)
"""

import os
import sys
from pathlib import Path

APP_NAME = "ModRandomizer"

# Opera GX keeps installed extensions (mods included) in <profile>/Extensions
_OPERA_GX_DIRS = {
    "win32": ["Opera Software/Opera GX Stable"],
    "darwin": ["com.operasoftware.OperaGX"],
}


def get_config_dir() -> Path:
    """Return the app config directory, creating it if it doesn't exist.

    Respects $XDG_CONFIG_HOME; falls back to ~/.config/ModRandomizer.
    """
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    config_dir = base / APP_NAME
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_store_path() -> Path:
    """Return the path of the key-value store file.

    Result: ~/.config/ModRandomizer/storage.json
    """
    return get_config_dir() / "storage.json"


def get_settings_path() -> Path:
    """Result: ~/.config/ModRandomizer/settings.json"""
    return get_config_dir() / "settings.json"


def get_log_path() -> Path:
    """Result: ~/.config/ModRandomizer/mod_randomizer.log"""
    return get_config_dir() / "mod_randomizer.log"


def get_default_extensions_dir() -> Path | None:
    """Return the Opera GX Extensions folder for this platform, or None.

    $MOD_RANDOMIZER_EXTENSIONS_DIR wins over discovery when set.
    """
    env = os.environ.get("MOD_RANDOMIZER_EXTENSIONS_DIR")
    if env:
        return Path(env)

    if sys.platform == "win32":
        roots = [Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))]
    elif sys.platform == "darwin":
        roots = [Path.home() / "Library" / "Application Support"]
    else:
        # Opera GX has no native Linux build; look inside a Wine prefix
        wine = os.environ.get("WINEPREFIX", str(Path.home() / ".wine"))
        roots = [Path(wine) / "drive_c" / "users" / os.environ.get("USER", "user")
                 / "AppData" / "Roaming"]

    key = "darwin" if sys.platform == "darwin" else "win32"
    for root in roots:
        for sub in _OPERA_GX_DIRS[key]:
            candidate = root / sub / "Extensions"
            if candidate.is_dir():
                return candidate
    return None
