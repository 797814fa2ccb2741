"""
Exceptions raised by the profile core. Each one is scoped to the user action
that triggered it; the GUI shows the message and carries on.
"""

from __future__ import annotations


class ProfileError(Exception):
    """Base class for profile errors shown to the user."""


class ValidationError(ProfileError):
    """Bad user input (blank or duplicate name, invalid number). Nothing was changed."""


class CollaboratorFailure(ProfileError):
    """A membership operation reported something other than success."""

    def __init__(self, action: str, message: str | None = None):
        self.action = action
        self.message = message or f"{action} failed"
        super().__init__(self.message)


class FormatError(ProfileError):
    """Import document could not be understood. Nothing was imported."""
