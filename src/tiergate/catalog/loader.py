"""Feature Catalog — the static registry of gated features.

The catalog maps feature keys to their display metadata and the minimum
tier required to use them. It is built once and never changes: the
underlying mapping is a read-only proxy, so a catalog can be shared by any
number of gates and threads without locking.

The built-in catalog mirrors the product's pricing page. Alternate
catalogs can be loaded from YAML for tests or other deployments.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml
from pydantic import ValidationError

from tiergate.errors import CatalogError, UnknownFeatureError
from tiergate.models import FeatureConfig, Tier


class FeatureCatalog:
    """Immutable registry of feature configs, keyed by feature key."""

    def __init__(self, features: Mapping[str, FeatureConfig] | None = None) -> None:
        entries: dict[str, FeatureConfig] = {}
        for key, config in (features or {}).items():
            if key in entries:
                raise CatalogError(f"Duplicate feature key '{key}'")
            if config.key != key:
                raise CatalogError(
                    f"Feature key mismatch: registered as '{key}' "
                    f"but config declares '{config.key}'"
                )
            entries[key] = config
        self._features: Mapping[str, FeatureConfig] = MappingProxyType(entries)

    @property
    def features(self) -> Mapping[str, FeatureConfig]:
        """Read-only view of all entries."""
        return self._features

    def __len__(self) -> int:
        return len(self._features)

    def __contains__(self, key: object) -> bool:
        return key in self._features

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._features))

    def keys(self) -> list[str]:
        """Return sorted list of registered feature keys."""
        return sorted(self._features)

    def get(self, key: str) -> FeatureConfig:
        """Look up a feature. Raises UnknownFeatureError if not registered."""
        config = self._features.get(key)
        if config is None:
            raise UnknownFeatureError(key)
        return config

    def by_tier(self, tier: Tier | str) -> frozenset[str]:
        """Return the keys whose required tier is exactly *tier*."""
        tier = Tier.parse(tier)
        return frozenset(k for k, c in self._features.items() if c.required_tier == tier)


def _feature(
    key: str,
    name: str,
    description: str,
    required_tier: Tier,
) -> tuple[str, FeatureConfig]:
    return key, FeatureConfig(
        key=key,
        name=name,
        description=description,
        required_tier=required_tier,
        premium_add_on=required_tier == Tier.PREMIUM,
    )


DEFAULT_FEATURES: Mapping[str, FeatureConfig] = MappingProxyType(dict([
    # Core (free)
    _feature("basic_notes", "Basic Notes", "Create and edit basic notes", Tier.FREE),
    _feature("basic_todos", "Basic Todos", "Create and manage simple tasks", Tier.FREE),
    _feature("basic_folders", "Basic Folders", "Organize notes in up to 1 folder", Tier.FREE),
    _feature("basic_tags", "Basic Tags", "Add up to 5 tags to notes", Tier.FREE),
    _feature("basic_search", "Basic Search", "Search notes by title", Tier.FREE),
    # Pro
    _feature(
        "unlimited_folders", "Unlimited Folders",
        "Create unlimited folders for notes", Tier.PRO,
    ),
    _feature("unlimited_tags", "Unlimited Tags", "Add unlimited tags to notes", Tier.PRO),
    _feature("pdf_signing", "PDF Signing", "Digitally sign PDF documents", Tier.PRO),
    _feature(
        "pdf_annotations", "PDF Annotations",
        "Highlight, underline, and annotate PDFs", Tier.PRO,
    ),
    _feature(
        "advanced_search", "Advanced Search",
        "Full-text search across all content", Tier.PRO,
    ),
    _feature("multi_device_sync", "Multi-Device Sync", "Sync across multiple devices", Tier.PRO),
    _feature("recurring_todos", "Recurring Tasks", "Create recurring todo items", Tier.PRO),
    _feature(
        "calendar_integration", "Calendar Integration",
        "Sync with Google, Outlook, and Apple Calendar", Tier.PRO,
    ),
    _feature(
        "full_text_search", "Full-Text Search",
        "Search across notes, todos, and PDF content", Tier.PRO,
    ),
    # Premium add-ons
    _feature("templates", "Note Templates", "Use pre-made note templates", Tier.PREMIUM),
    _feature("custom_themes", "Custom Themes", "Personalize app appearance", Tier.PREMIUM),
    _feature(
        "weekly_analytics", "Weekly Analytics",
        "View productivity insights and reports", Tier.PREMIUM,
    ),
    _feature("export_import", "Export/Import", "Migrate data to/from other apps", Tier.PREMIUM),
]))


def default_catalog() -> FeatureCatalog:
    """Build a catalog over the built-in feature table."""
    return FeatureCatalog(DEFAULT_FEATURES)


def _parse_entry(key: Any, raw: Any, path: Path) -> FeatureConfig:
    if not isinstance(raw, dict):
        raise CatalogError(f"Feature '{key}' must be a mapping in {path}")

    data = dict(raw)
    data.setdefault("key", key)
    if "required_tier" in data and isinstance(data["required_tier"], str):
        data["required_tier"] = data["required_tier"].strip().lower()
    if "premium_add_on" not in data and data.get("required_tier") == Tier.PREMIUM.value:
        data["premium_add_on"] = True

    try:
        return FeatureConfig(**data)
    except (ValidationError, TypeError) as e:
        raise CatalogError(f"Invalid feature '{key}' in {path}: {e}") from e


def load_catalog(path: str | Path) -> FeatureCatalog:
    """Load a feature catalog from a YAML file.

    The file must have a top-level ``features`` mapping::

        features:
          basic_notes:
            name: Basic Notes
            description: Create and edit basic notes
            required_tier: free

    Raises CatalogError if the file is missing, unparseable, or any
    entry is invalid.
    """
    path = Path(path)
    if not path.is_file():
        raise CatalogError(f"Catalog file not found: {path}")

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise CatalogError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(raw, dict) or "features" not in raw:
        raise CatalogError(f"Catalog file must have a 'features' key: {path}")

    raw_features = raw["features"]
    if not isinstance(raw_features, dict):
        raise CatalogError(f"'features' must be a mapping: {path}")

    features = {str(key): _parse_entry(key, entry, path) for key, entry in raw_features.items()}
    return FeatureCatalog(features)
