"""Tests for the in-memory tier store."""

from __future__ import annotations

import pytest

from tiergate.gate.engine import FeatureGate
from tiergate.models import Tier
from tiergate.tiers.store import TierStore


class TestTierStore:
    def test_defaults_to_free(self):
        assert TierStore().tier == Tier.FREE

    def test_initial_from_string(self):
        assert TierStore("Pro").tier == Tier.PRO

    def test_invalid_initial(self):
        with pytest.raises(ValueError):
            TierStore("gold")

    def test_upgrade_and_downgrade(self):
        store = TierStore()
        assert store.upgrade_to_pro() == Tier.FREE
        assert store.tier == Tier.PRO
        assert store.upgrade_to_premium() == Tier.PRO
        assert store.tier == Tier.PREMIUM
        assert store.downgrade_to_free() == Tier.PREMIUM
        assert store.tier == Tier.FREE

    def test_listeners_notified_on_change_only(self):
        store = TierStore()
        seen: list[Tier] = []
        unsubscribe = store.subscribe(seen.append)

        store.upgrade_to_pro()
        store.set_tier("pro")
        store.upgrade_to_premium()
        assert seen == [Tier.PRO, Tier.PREMIUM]

        unsubscribe()
        store.downgrade_to_free()
        assert seen == [Tier.PRO, Tier.PREMIUM]

    def test_failing_listener_is_isolated(self):
        store = TierStore()
        seen: list[Tier] = []

        def broken(tier: Tier) -> None:
            raise RuntimeError("boom")

        store.subscribe(broken)
        store.subscribe(seen.append)
        store.upgrade_to_pro()
        assert seen == [Tier.PRO]
        assert store.tier == Tier.PRO


class TestStoreWithGate:
    def test_access_follows_store(self):
        gate = FeatureGate()
        store = TierStore()
        assert store.can_access_feature(gate, "pdf_signing") is False
        store.upgrade_to_pro()
        assert store.can_access_feature(gate, "pdf_signing") is True
        assert store.can_access_feature(gate, "templates") is False

    def test_gate_never_mutates_store(self):
        gate = FeatureGate()
        store = TierStore(Tier.PRO)
        for feature in gate.catalog:
            store.can_access_feature(gate, feature)
        assert store.tier == Tier.PRO
