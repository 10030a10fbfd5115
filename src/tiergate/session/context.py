"""Session/Role context — tracks who is signed in and what they may administer.

A single identity-change subscription drives every mutation:

    uninitialized --start()--> loading
    loading | authenticated | anonymous --session(user)--> authenticated(role=user, provisional)
    authenticated(provisional) --lookup ok--> authenticated(role=resolved)
    authenticated(provisional) --lookup failed/empty/timeout--> authenticated(role=user)
    authenticated | anonymous --session(None) or sign_out()--> anonymous(role=None)

The identity transition is published before the role lookup is issued, so
readers see ``is_loading`` drop as soon as the user is known. Role lookups
run on an executor and are tagged with ``(user_id, generation)``; a result
whose tag no longer matches the current identity is discarded, so a slow
lookup for a previous user can never overwrite the current user's role.

Readers outside a ``session_scope()`` get a ContextMisuseError.
"""

from __future__ import annotations

import contextlib
import contextvars
import logging
import threading
from collections.abc import Callable, Iterator
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import TYPE_CHECKING

from tiergate.errors import ContextMisuseError, RoleResolutionError, SignOutError
from tiergate.models import Role, Session, SessionSnapshot, SessionState, SessionUser
from tiergate.session.providers import (
    IdentityProvider,
    RoleLookup,
    SignOutScope,
    Unsubscribe,
)

if TYPE_CHECKING:
    from tiergate.config import TiergateConfig

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[SessionSnapshot], None]

# Least privilege. Applied whenever a role cannot be resolved.
_ROLE_ON_FAILURE = Role.USER

# A hung lookup must not hold up the lookup for the next identity.
_LOOKUP_WORKERS = 4


def _coerce_role(raw: Role | str | None) -> Role | None:
    if isinstance(raw, Role):
        return raw
    if isinstance(raw, str):
        try:
            return Role(raw.strip().lower())
        except ValueError:
            return None
    return None


class SessionContext:
    """Single-writer state holder for the active session.

    Thread-safe: all state lives behind one lock. Listeners are invoked
    outside that lock, serialized, and always receive the latest snapshot.
    """

    def __init__(
        self,
        identity_provider: IdentityProvider,
        role_lookup: RoleLookup,
        *,
        executor: Executor | None = None,
        role_lookup_timeout: float | None = None,
        sign_out_scope: SignOutScope | str = SignOutScope.LOCAL,
    ) -> None:
        if role_lookup_timeout is not None and role_lookup_timeout <= 0:
            raise ValueError("role_lookup_timeout must be positive")

        self._identity = identity_provider
        self._role_lookup = role_lookup
        self._executor = executor
        self._owns_executor = executor is None
        self._role_lookup_timeout = role_lookup_timeout
        self._sign_out_scope = SignOutScope(sign_out_scope)

        self._lock = threading.Lock()
        self._role_settled = threading.Condition(self._lock)
        self._publish_lock = threading.RLock()

        self._state = SessionState.UNINITIALIZED
        self._user: SessionUser | None = None
        self._role: Role | None = None
        self._role_resolved = False
        self._generation = 0
        self._pending: tuple[str, int] | None = None
        self._timer: threading.Timer | None = None

        self._unsubscribe: Unsubscribe | None = None
        self._started = False
        self._closed = False
        self._listeners: list[SnapshotListener] = []
        self._last_published: SessionSnapshot | None = None

    @classmethod
    def from_config(
        cls,
        config: TiergateConfig,
        identity_provider: IdentityProvider,
        role_lookup: RoleLookup,
        *,
        executor: Executor | None = None,
    ) -> SessionContext:
        """Build a context using the timeout and sign-out scope from *config*."""
        return cls(
            identity_provider,
            role_lookup,
            executor=executor,
            role_lookup_timeout=config.role_lookup_timeout,
            sign_out_scope=config.sign_out_scope,
        )

    # --- Lifecycle ---

    def start(self) -> None:
        """Subscribe to the identity provider. Idempotent."""
        with self._lock:
            if self._started or self._closed:
                return
            self._started = True
            self._state = SessionState.LOADING
        self._publish()

        unsubscribe = self._identity.on_session_change(self._on_session_change)
        with self._lock:
            self._unsubscribe = unsubscribe

    def close(self) -> None:
        """Unsubscribe from the identity provider and stop pending work."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            unsubscribe = self._unsubscribe
            self._unsubscribe = None
            self._cancel_timer_locked()
            self._pending = None
            self._role_settled.notify_all()

        if unsubscribe is not None:
            unsubscribe()
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)

    def __enter__(self) -> SessionContext:
        self.start()
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # --- Readers ---

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            return self._snapshot_locked()

    @property
    def state(self) -> SessionState:
        return self.snapshot().state

    @property
    def user(self) -> SessionUser | None:
        return self.snapshot().user

    @property
    def role(self) -> Role | None:
        return self.snapshot().role

    @property
    def is_loading(self) -> bool:
        return self.snapshot().is_loading

    @property
    def is_admin(self) -> bool:
        return self.snapshot().is_admin

    @property
    def is_moderator(self) -> bool:
        return self.snapshot().is_moderator

    def subscribe(self, listener: SnapshotListener) -> Unsubscribe:
        """Register *listener* for state changes. Returns an unsubscribe handle."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def wait_for_role(self, timeout: float | None = None) -> bool:
        """Block until no role lookup is pending. Returns False on timeout."""
        with self._role_settled:
            return self._role_settled.wait_for(lambda: self._pending is None, timeout)

    # --- Writers ---

    def sign_out(self) -> None:
        """Clear the local session, then ask the provider to invalidate it.

        Local sign-out is final: a remote failure is logged and absorbed,
        and never restores the previous user.
        """
        with self._lock:
            self._to_anonymous_locked()
        logger.info("Session signed out locally")
        self._publish()

        try:
            self._remote_sign_out()
        except SignOutError as e:
            logger.warning("%s; local session remains signed out", e, exc_info=True)

    def _remote_sign_out(self) -> None:
        try:
            self._identity.sign_out(self._sign_out_scope)
        except Exception as e:
            msg = f"Remote sign-out failed (scope={self._sign_out_scope}): {e}"
            raise SignOutError(msg) from e

    def _on_session_change(self, session: Session | None) -> None:
        with self._lock:
            if self._closed:
                return
            if session is None:
                self._to_anonymous_locked()
                lookup = None
            else:
                lookup = self._to_authenticated_locked(session.user)

        if lookup is None:
            logger.info("Session changed: anonymous")
        else:
            logger.info("Session changed: authenticated as '%s'", lookup[0])
        self._publish()

        if lookup is not None:
            self._issue_lookup(*lookup)

    # --- Transitions (caller holds self._lock) ---

    def _to_authenticated_locked(self, user: SessionUser) -> tuple[str, int]:
        self._generation += 1
        self._cancel_timer_locked()
        self._state = SessionState.AUTHENTICATED
        self._user = user
        self._role = Role.USER
        self._role_resolved = False
        self._pending = (user.id, self._generation)
        return self._pending

    def _to_anonymous_locked(self) -> None:
        self._generation += 1
        self._cancel_timer_locked()
        self._state = SessionState.ANONYMOUS
        self._user = None
        self._role = None
        self._role_resolved = False
        self._pending = None
        self._role_settled.notify_all()

    def _settle_role_locked(self, role: Role) -> None:
        self._cancel_timer_locked()
        self._role = role
        self._role_resolved = True
        self._pending = None
        self._role_settled.notify_all()

    # --- Role resolution ---

    def _issue_lookup(self, user_id: str, generation: int) -> None:
        if self._role_lookup_timeout is not None:
            timer = threading.Timer(
                self._role_lookup_timeout,
                self._on_lookup_timeout,
                args=(user_id, generation),
            )
            timer.daemon = True
            with self._lock:
                if self._pending != (user_id, generation):
                    return
                self._timer = timer
            timer.start()

        try:
            self._get_executor().submit(self._run_lookup, user_id, generation)
        except RuntimeError as e:
            self._apply_lookup(user_id, generation, None, RoleResolutionError(user_id, str(e)))

    def _run_lookup(self, user_id: str, generation: int) -> None:
        try:
            raw = self._role_lookup.fetch_role(user_id)
        except Exception as e:
            reason = str(e) or type(e).__name__
            self._apply_lookup(user_id, generation, None, RoleResolutionError(user_id, reason))
            return

        role = _coerce_role(raw)
        error = None
        if role is None:
            error = RoleResolutionError(user_id, f"no usable role in profile (got {raw!r})")
        self._apply_lookup(user_id, generation, role, error)

    def _on_lookup_timeout(self, user_id: str, generation: int) -> None:
        error = RoleResolutionError(
            user_id, f"timed out after {self._role_lookup_timeout}s",
        )
        self._apply_lookup(user_id, generation, None, error)

    def _apply_lookup(
        self,
        user_id: str,
        generation: int,
        role: Role | None,
        error: RoleResolutionError | None,
    ) -> None:
        with self._lock:
            if self._pending != (user_id, generation):
                logger.debug(
                    "Discarding stale role lookup for user '%s' (generation %d)",
                    user_id, generation,
                )
                return
            if error is not None or role is None:
                self._settle_role_locked(_ROLE_ON_FAILURE)
            else:
                self._settle_role_locked(role)

        if error is not None:
            logger.warning("%s; defaulting to role '%s'", error, _ROLE_ON_FAILURE)
        else:
            logger.info("Resolved role '%s' for user '%s'", role, user_id)
        self._publish()

    def _get_executor(self) -> Executor:
        with self._lock:
            if self._closed:
                # Same outcome as submitting to a shut-down executor.
                raise RuntimeError("session context is closed")
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=_LOOKUP_WORKERS, thread_name_prefix="tiergate-role",
                )
            return self._executor

    def _cancel_timer_locked(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    # --- Publishing ---

    def _snapshot_locked(self) -> SessionSnapshot:
        return SessionSnapshot(
            state=self._state,
            user=self._user,
            role=self._role,
            is_loading=self._state in (SessionState.UNINITIALIZED, SessionState.LOADING),
            role_resolved=self._role_resolved,
        )

    def _publish(self) -> None:
        with self._publish_lock:
            with self._lock:
                snapshot = self._snapshot_locked()
                if snapshot == self._last_published:
                    return
                self._last_published = snapshot
                listeners = list(self._listeners)
            for listener in listeners:
                try:
                    listener(snapshot)
                except Exception:
                    logger.exception("Session listener %r failed", listener)


# --- Scoped access ---

_current: contextvars.ContextVar[SessionContext | None] = contextvars.ContextVar(
    "tiergate_session", default=None,
)


@contextlib.contextmanager
def session_scope(ctx: SessionContext) -> Iterator[SessionContext]:
    """Start *ctx*, bind it as the current session, and close it on exit."""
    ctx.start()
    token = _current.set(ctx)
    try:
        yield ctx
    finally:
        _current.reset(token)
        ctx.close()


def use_session() -> SessionContext:
    """Return the session bound by the enclosing ``session_scope()``."""
    ctx = _current.get()
    if ctx is None:
        raise ContextMisuseError("use_session() must be called within a session_scope()")
    return ctx


def require_admin() -> bool:
    return use_session().is_admin


def require_moderator() -> bool:
    return use_session().is_moderator
