"""Holder for the active session's subscription tier.

The tier is owned by whoever manages billing. This store keeps the
current value in memory, lets billing code change it, and pushes every
change to subscribers. The feature gate only ever reads it.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from tiergate.gate.engine import FeatureGate
from tiergate.models import Tier

logger = logging.getLogger(__name__)

TierListener = Callable[[Tier], None]


class TierStore:
    """Thread-safe, in-memory current tier with push notifications."""

    def __init__(self, initial: Tier | str = Tier.FREE) -> None:
        self._tier = Tier.parse(initial)
        self._lock = threading.Lock()
        self._listeners: list[TierListener] = []

    @property
    def tier(self) -> Tier:
        with self._lock:
            return self._tier

    def set_tier(self, tier: Tier | str) -> Tier:
        """Replace the current tier. Returns the previous one."""
        tier = Tier.parse(tier)
        with self._lock:
            previous = self._tier
            self._tier = tier
            listeners = list(self._listeners) if previous != tier else []

        if previous != tier:
            logger.info("Tier changed: %s -> %s", previous, tier)
        for listener in listeners:
            try:
                listener(tier)
            except Exception:
                logger.exception("Tier listener %r failed", listener)
        return previous

    def upgrade_to_pro(self) -> Tier:
        return self.set_tier(Tier.PRO)

    def upgrade_to_premium(self) -> Tier:
        return self.set_tier(Tier.PREMIUM)

    def downgrade_to_free(self) -> Tier:
        return self.set_tier(Tier.FREE)

    def subscribe(self, listener: TierListener) -> Callable[[], None]:
        """Register *listener* for tier changes. Returns an unsubscribe handle."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def can_access_feature(self, gate: FeatureGate, feature: str) -> bool:
        """Check *feature* against the current tier."""
        return gate.can_access_feature(self.tier, feature)
