"""Session/role propagation for admin-authorization gating.

Components: SessionContext, IdentityProvider, RoleLookup, session_scope.
"""

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

__all__ = [
    "IdentityProvider",
    "InMemoryIdentityProvider",
    "RoleLookup",
    "SessionContext",
    "SignOutScope",
    "StaticRoleLookup",
    "require_admin",
    "require_moderator",
    "session_scope",
    "use_session",
]
