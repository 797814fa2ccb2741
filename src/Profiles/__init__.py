"""
Profile core package.

Keeps each profile's mod selection and display order consistent with the
mods actually installed: order reconciliation, debounced saving, import and
export, and cleanup of ids that are no longer installed.
"""

from .errors import ProfileError, ValidationError, CollaboratorFailure, FormatError
from .models import Item, ImportResult, DisplayList, DisplayRow, ProfileListing
from .membership import MembershipService, CollaboratorResult
from .save_coordinator import SaveCoordinator, SaveState

__all__ = ["ProfileError", "ValidationError", "CollaboratorFailure", "FormatError",
           "Item", "ImportResult", "DisplayList", "DisplayRow", "ProfileListing",
           "MembershipService", "CollaboratorResult", "SaveCoordinator", "SaveState"]
