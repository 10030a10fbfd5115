"""Exception hierarchy for Tiergate.

Caller-visible: UnknownFeatureError, CatalogError, ContextMisuseError.
Internal only: RoleResolutionError, SignOutError. The session context
logs and absorbs these, resolving to a signed-out or least-privilege state.
"""

from __future__ import annotations


class TiergateError(Exception):
    """Base class for all Tiergate errors."""


class UnknownFeatureError(TiergateError, KeyError):
    """Raised when a feature key is not registered in the catalog."""

    def __init__(self, feature: str) -> None:
        self.feature = feature
        super().__init__(feature)

    def __str__(self) -> str:
        return f"Unknown feature: {self.feature}"


class CatalogError(TiergateError):
    """Raised when a feature catalog cannot be built or loaded."""


class RoleResolutionError(TiergateError):
    """A background role lookup failed."""

    def __init__(self, user_id: str, reason: str) -> None:
        self.user_id = user_id
        self.reason = reason
        super().__init__(f"Role lookup failed for user '{user_id}': {reason}")


class SignOutError(TiergateError):
    """The identity provider failed to invalidate a session remotely."""


class ContextMisuseError(TiergateError, RuntimeError):
    """Raised when the session context is read outside of its scope."""
