"""Tiergate: tiered feature access and session role gating."""

__version__ = "0.4.0"

from tiergate.catalog.loader import DEFAULT_FEATURES, FeatureCatalog, default_catalog, load_catalog
from tiergate.config import TiergateConfig, find_config, load_config
from tiergate.errors import (
    CatalogError,
    ContextMisuseError,
    RoleResolutionError,
    SignOutError,
    TiergateError,
    UnknownFeatureError,
)
from tiergate.gate.engine import FeatureGate
from tiergate.models import (
    FeatureConfig,
    FeatureGateResult,
    Role,
    Session,
    SessionSnapshot,
    SessionState,
    SessionUser,
    Tier,
)
from tiergate.session.context import (
    SessionContext,
    require_admin,
    require_moderator,
    session_scope,
    use_session,
)
from tiergate.session.providers import (
    IdentityProvider,
    InMemoryIdentityProvider,
    RoleLookup,
    SignOutScope,
    StaticRoleLookup,
)
from tiergate.tiers.store import TierStore

__all__ = [
    "CatalogError",
    "ContextMisuseError",
    "DEFAULT_FEATURES",
    "FeatureCatalog",
    "FeatureConfig",
    "FeatureGate",
    "FeatureGateResult",
    "IdentityProvider",
    "InMemoryIdentityProvider",
    "Role",
    "RoleLookup",
    "RoleResolutionError",
    "Session",
    "SessionContext",
    "SessionSnapshot",
    "SessionState",
    "SessionUser",
    "SignOutError",
    "SignOutScope",
    "StaticRoleLookup",
    "Tier",
    "TierStore",
    "TiergateConfig",
    "TiergateError",
    "UnknownFeatureError",
    "default_catalog",
    "find_config",
    "load_catalog",
    "load_config",
    "require_admin",
    "require_moderator",
    "session_scope",
    "use_session",
    "__version__",
]
