"""Collaborator interfaces for the session context.

The session context never talks to an auth backend directly. It consumes
two narrow interfaces:

- IdentityProvider: pushes session-change events and invalidates sessions.
- RoleLookup: resolves a user id to an authorization role.

Any object with the right methods satisfies these protocols. In-memory
implementations are provided for tests, demos and local development.
"""

from __future__ import annotations

import enum
import threading
from collections.abc import Callable, Mapping
from typing import Protocol, runtime_checkable

from tiergate.models import Role, Session

SessionCallback = Callable[[Session | None], None]
Unsubscribe = Callable[[], None]


class SignOutScope(enum.StrEnum):
    LOCAL = "local"
    GLOBAL = "global"
    OTHERS = "others"


@runtime_checkable
class IdentityProvider(Protocol):
    """Protocol for upstream identity providers."""

    def on_session_change(self, callback: SessionCallback) -> Unsubscribe:
        """Register *callback* for login/logout/refresh events.

        Providers may invoke the callback immediately with the current
        session. Returns a handle that removes the registration.
        """
        ...

    def sign_out(self, scope: SignOutScope) -> None:
        """Invalidate the current session. May raise on transport failure."""
        ...


@runtime_checkable
class RoleLookup(Protocol):
    """Protocol for resolving a user's authorization role.

    Returning ``None`` (or a value that is not a known role) means no
    profile was found. Raising means the lookup failed.
    """

    def fetch_role(self, user_id: str) -> Role | str | None:
        ...


class InMemoryIdentityProvider:
    """Identity provider driven by explicit ``emit()`` calls.

    Mirrors the initial-session behaviour of hosted auth clients: a new
    listener immediately receives the current session if *emit_initial*
    is set.
    """

    def __init__(
        self,
        initial: Session | None = None,
        *,
        emit_initial: bool = True,
        sign_out_error: Exception | None = None,
    ) -> None:
        self._lock = threading.Lock()
        self._session = initial
        self._emit_initial = emit_initial
        self._listeners: list[SessionCallback] = []
        self.sign_out_error = sign_out_error
        self.sign_out_calls: list[SignOutScope] = []

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def on_session_change(self, callback: SessionCallback) -> Unsubscribe:
        with self._lock:
            self._listeners.append(callback)
            current = self._session

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._listeners:
                    self._listeners.remove(callback)

        if self._emit_initial:
            callback(current)
        return unsubscribe

    def emit(self, session: Session | None) -> None:
        """Replace the current session and notify every listener."""
        with self._lock:
            self._session = session
            listeners = list(self._listeners)
        for listener in listeners:
            listener(session)

    def sign_out(self, scope: SignOutScope) -> None:
        self.sign_out_calls.append(scope)
        if self.sign_out_error is not None:
            raise self.sign_out_error
        self.emit(None)


class StaticRoleLookup:
    """Role lookup backed by a fixed user-id -> role mapping.

    Unknown users resolve to ``None`` (no profile). If *error* is set,
    every lookup raises it instead.
    """

    def __init__(
        self,
        roles: Mapping[str, Role | str] | None = None,
        *,
        error: Exception | None = None,
    ) -> None:
        self._roles = dict(roles or {})
        self.error = error
        self.calls: list[str] = []

    def fetch_role(self, user_id: str) -> Role | str | None:
        self.calls.append(user_id)
        if self.error is not None:
            raise self.error
        return self._roles.get(user_id)
