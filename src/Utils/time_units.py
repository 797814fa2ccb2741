"""
time_units.py
Conversions for the "randomize every N <unit>" interval.

The interval is stored in minutes; the entry box shows it in the unit the
user picked, trimmed to a readable number of decimals.
"""

from __future__ import annotations

import math

from Profiles.errors import ValidationError

UNITS = ("minutes", "hours", "days")

_MINUTES_PER = {"minutes": 1, "hours": 60, "days": 24 * 60}

# Smallest sub-minute interval the background timer accepts
_QUARTER_MINUTE = 0.25


def to_minutes(value: float | str, unit: str) -> float:
    try:
        v = float(value)
    except (TypeError, ValueError):
        return math.nan
    return v * _MINUTES_PER.get(unit, 1)


def _trim_zeros(s: str) -> str:
    if "." in s:
        s = s.rstrip("0").rstrip(".")
    return s


def from_minutes_format(minutes: float | None, unit: str) -> str:
    """Format stored minutes for display in *unit* ('' for nothing stored)."""
    if minutes is None:
        return ""
    try:
        m = float(minutes)
    except (TypeError, ValueError):
        return ""
    if math.isnan(m):
        return ""
    v = m / _MINUTES_PER.get(unit, 1)
    # >= 1: at most 2 decimals; below 1: up to 4 so 15s in hours stays visible
    return _trim_zeros(f"{v:.2f}" if abs(v) >= 1 else f"{v:.4f}")


def parse_randomize_time(raw: str, unit: str) -> float | None:
    """Validate user input and return minutes.

    Returns None for an empty entry (nothing to submit yet) and 0 for an
    explicit zero (disables timed randomization).
    """
    raw = (raw or "").strip()
    if not raw:
        return None
    if unit not in UNITS:
        raise ValidationError(f"Unknown time unit: {unit}")
    try:
        parsed = float(raw)
    except ValueError:
        raise ValidationError("Invalid time value") from None
    if math.isnan(parsed) or math.isinf(parsed) or parsed < 0:
        raise ValidationError("Invalid time value")
    if parsed == 0:
        return 0
    if unit == "minutes" and parsed < 1 and parsed != _QUARTER_MINUTE:
        raise ValidationError("Randomize time must be at least 1 minute.")
    if unit in ("hours", "days") and parsed < 1:
        raise ValidationError(f"Randomize time must be at least 1 {unit}.")
    return to_minutes(parsed, unit)
