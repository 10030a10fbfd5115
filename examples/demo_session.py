#!/usr/bin/env python3
"""Demo: tier gating and session role propagation side by side.

Shows the two independent axes: subscription tier decides which features
a user sees, while the session role decides whether they may administer.
A slow role lookup for one user is superseded by a second login, and its
late result is dropped.

Run from the project root (after ``pip install -e .``):
    python examples/demo_session.py
"""

from __future__ import annotations

import logging
import threading

from tiergate import (
    FeatureGate,
    InMemoryIdentityProvider,
    Session,
    SessionContext,
    SessionUser,
    TierStore,
    session_scope,
    use_session,
)

# ANSI colors
GREEN = "\033[92m"
YELLOW = "\033[93m"
CYAN = "\033[96m"
BOLD = "\033[1m"
RESET = "\033[0m"


class SlowProfiles:
    """Role lookup where the first user's profile query hangs."""

    def __init__(self) -> None:
        self.release_first = threading.Event()

    def fetch_role(self, user_id: str) -> str | None:
        if user_id == "ada":
            self.release_first.wait(timeout=5)
            return "admin"
        return {"grace": "moderator"}.get(user_id)


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="  %(name)s: %(message)s")

    gate = FeatureGate()
    store = TierStore()

    print(f"\n{BOLD}{CYAN}Tier gating{RESET}")
    for feature in ("basic_notes", "pdf_signing", "templates"):
        result = gate.evaluate(store.tier, feature)
        tag = f"{GREEN}ALLOW{RESET}" if result.can_access else f"{YELLOW}UPGRADE{RESET}"
        print(f"  {store.tier:<8} {feature:<14} {tag}")
    store.upgrade_to_pro()
    print(f"  after upgrade: pdf_signing -> {gate.can_access_feature(store.tier, 'pdf_signing')}")

    print(f"\n{BOLD}{CYAN}Session roles{RESET}")
    provider = InMemoryIdentityProvider()
    profiles = SlowProfiles()
    ctx = SessionContext(provider, profiles, role_lookup_timeout=2.0)

    with session_scope(ctx):
        session = use_session()
        provider.emit(Session(user=SessionUser(id="ada", email="ada@example.com")))
        print(f"  ada signed in: loading={session.is_loading} role={session.role}")

        provider.emit(Session(user=SessionUser(id="grace", email="grace@example.com")))
        session.wait_for_role(timeout=2)
        print(f"  grace signed in: role={session.role} admin={session.is_admin}")

        profiles.release_first.set()
        session.wait_for_role(timeout=2)
        print(f"  after ada's late lookup: role={session.role} (stale result dropped)")

        session.sign_out()
        print(f"  signed out: user={session.user} role={session.role}")


if __name__ == "__main__":
    main()
