"""Feature Gate — pure access decisions over a feature catalog.

Takes a subscription tier and a feature key and answers:
- can this tier use the feature?
- which tier does the feature require?
- does the caller need to upgrade, and to what?

Every decision reduces to one rank comparison:
``tier.rank >= required_tier.rank``. The gate holds only its catalog,
performs no I/O and never reads session state; the tier is always
supplied by the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from tiergate.catalog.loader import FeatureCatalog, default_catalog
from tiergate.models import FeatureConfig, FeatureGateResult, Tier

logger = logging.getLogger(__name__)


class FeatureGate:
    """Stateless evaluator of tier requirements.

    Safe to share across threads: the catalog is immutable and no state
    is held between calls.
    """

    def __init__(self, catalog: FeatureCatalog | None = None) -> None:
        self._catalog = catalog if catalog is not None else default_catalog()

    @property
    def catalog(self) -> FeatureCatalog:
        return self._catalog

    def get_feature_config(self, feature: str) -> FeatureConfig:
        """Return the catalog entry. Raises UnknownFeatureError if unknown."""
        return self._catalog.get(feature)

    def get_required_tier(self, feature: str) -> Tier:
        """Return the minimum tier needed for *feature*."""
        return self._catalog.get(feature).required_tier

    def can_access_feature(self, tier: Tier | str, feature: str) -> bool:
        """True if *tier* ranks at or above the feature's required tier.

        Raises:
            UnknownFeatureError: If *feature* is not in the catalog.
            ValueError: If *tier* is not a known tier name.
        """
        required = self.get_required_tier(feature)
        tier = Tier.parse(tier)
        allowed = tier.rank >= required.rank
        if not allowed:
            logger.debug(
                "Feature '%s' denied for tier '%s' (requires '%s')",
                feature, tier, required,
            )
        return allowed

    def requires_upgrade(self, tier: Tier | str, feature: str) -> bool:
        """Named negation of ``can_access_feature``."""
        return not self.can_access_feature(tier, feature)

    def get_pro_features(self) -> frozenset[str]:
        """All features whose required tier is exactly pro."""
        return self._catalog.by_tier(Tier.PRO)

    def get_premium_add_ons(self) -> frozenset[str]:
        """All features whose required tier is exactly premium."""
        return self._catalog.by_tier(Tier.PREMIUM)

    def features_for(self, tier: Tier | str) -> frozenset[str]:
        """Every feature accessible at *tier*."""
        tier = Tier.parse(tier)
        return frozenset(
            key for key, config in self._catalog.features.items()
            if tier.rank >= config.required_tier.rank
        )

    def upgrade_target(self, tier: Tier | str, feature: str) -> Tier | None:
        """The tier to upgrade to for *feature*, or None if already allowed."""
        if self.can_access_feature(tier, feature):
            return None
        return self.get_required_tier(feature)

    def evaluate(self, tier: Tier | str, feature: str) -> FeatureGateResult:
        """Evaluate a single feature into a full gate result."""
        config = self.get_feature_config(feature)
        tier = Tier.parse(tier)
        can_access = self.can_access_feature(tier, feature)
        return FeatureGateResult(
            feature=feature,
            tier=tier,
            can_access=can_access,
            requires_upgrade=not can_access,
            required_tier=config.required_tier,
            config=config,
        )

    def evaluate_many(
        self,
        tier: Tier | str,
        features: Iterable[str],
    ) -> dict[str, FeatureGateResult]:
        """Evaluate several features at once.

        Fails on the first unknown key; no partial result is returned.
        """
        tier = Tier.parse(tier)
        return {feature: self.evaluate(tier, feature) for feature in features}
