"""Core data models for Tiergate.

Defines the schemas for:
- Subscription tiers (what a user has paid for)
- Authorization roles (what a user may administer)
- Feature configs (catalog entries)
- Sessions delivered by the identity provider
- Session snapshots (what readers of the session context see)
- Gate results (evaluated access for a tier/feature pair)
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field

# --- Enums ---


class Tier(enum.StrEnum):
    """Subscription tier. Totally ordered by rank: free < pro < premium."""

    FREE = "free"
    PRO = "pro"
    PREMIUM = "premium"

    @property
    def rank(self) -> int:
        return _TIER_RANK[self]

    @classmethod
    def parse(cls, value: Tier | str) -> Tier:
        """Parse a tier name (case-insensitive). Raises ValueError if unknown."""
        if isinstance(value, Tier):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            allowed = ", ".join(t.value for t in cls)
            raise ValueError(f"Unknown tier '{value}' (expected one of: {allowed})") from None

    def _other_rank(self, other: Any) -> int | None:
        # Strings are parsed, so "pro" compares by rank like Tier.PRO.
        if isinstance(other, Tier):
            return other.rank
        if isinstance(other, str):
            return Tier.parse(other).rank
        return None

    def __lt__(self, other: Any) -> bool:
        rank = self._other_rank(other)
        if rank is None:
            return NotImplemented
        return self.rank < rank

    def __le__(self, other: Any) -> bool:
        rank = self._other_rank(other)
        if rank is None:
            return NotImplemented
        return self.rank <= rank

    def __gt__(self, other: Any) -> bool:
        rank = self._other_rank(other)
        if rank is None:
            return NotImplemented
        return self.rank > rank

    def __ge__(self, other: Any) -> bool:
        rank = self._other_rank(other)
        if rank is None:
            return NotImplemented
        return self.rank >= rank


_TIER_RANK: dict[Tier, int] = {
    Tier.FREE: 0,
    Tier.PRO: 1,
    Tier.PREMIUM: 2,
}


class Role(enum.StrEnum):
    USER = "user"
    MODERATOR = "moderator"
    ADMIN = "admin"


class SessionState(enum.StrEnum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


# --- Catalog ---


class FeatureConfig(BaseModel):
    """A single entry in the feature catalog."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., pattern=r"^[a-z][a-z0-9_]*$")
    name: str
    description: str = ""
    required_tier: Tier
    premium_add_on: bool = False


class FeatureGateResult(BaseModel):
    """Evaluated access for one (tier, feature) pair."""

    model_config = ConfigDict(frozen=True)

    feature: str
    tier: Tier
    can_access: bool
    requires_upgrade: bool
    required_tier: Tier
    config: FeatureConfig


# --- Session ---


class SessionUser(BaseModel):
    """The authenticated principal as reported by the identity provider."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    email: str | None = None


class Session(BaseModel):
    """A session delivered by the identity provider on a change event."""

    model_config = ConfigDict(frozen=True)

    user: SessionUser
    access_token: str | None = None
    expires_at: datetime | None = None


class SessionSnapshot(BaseModel):
    """Read-only view of the session context at one point in time.

    ``role_resolved`` is False while the role is still the provisional
    ``user`` issued on login and the background lookup has not settled.
    """

    model_config = ConfigDict(frozen=True)

    state: SessionState = SessionState.UNINITIALIZED
    user: SessionUser | None = None
    role: Role | None = None
    is_loading: bool = True
    role_resolved: bool = False

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_moderator(self) -> bool:
        # Admin implies moderator.
        return self.role in (Role.MODERATOR, Role.ADMIN)
