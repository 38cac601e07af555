"""Shared error codes and user-facing messages."""

from __future__ import annotations

INJECTION_FAILED = "INJECTION_FAILED"
MACRO_NOT_FOUND = "MACRO_NOT_FOUND"
SESSION_BUILD_FAILED = "SESSION_BUILD_FAILED"
PROFILE_NOT_FOUND = "PROFILE_NOT_FOUND"
DISPATCH_FAILED = "DISPATCH_FAILED"
DEPENDENCY_MISSING = "DEPENDENCY_MISSING"

# Win32 style codes returned by InputInjector.last_error().
UNKNOWN_ERROR_CODE = -1
ERROR_NOT_SUPPORTED = 50

ERROR_MESSAGES = {
    INJECTION_FAILED: "An input event was rejected by the system.",
    MACRO_NOT_FOUND: "No macro with that name in the active profile.",
    SESSION_BUILD_FAILED: "Could not start voice recognition for the profile.",
    PROFILE_NOT_FOUND: "Unknown profile.",
    DISPATCH_FAILED: "A recognized command could not be handled.",
    DEPENDENCY_MISSING: "A required package is not installed.",
}


class ProfileError(ValueError):
    """Raised when a declarative profile definition is invalid."""
