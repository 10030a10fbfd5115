"""tiergate CLI — inspect and check feature catalogs.

Commands:
    list-features   Show catalog entries, optionally those open to a tier
    check           Decide whether a tier can use a feature
    show            Show one feature's config
    validate        Validate a catalog file
"""

from __future__ import annotations

import json
import logging
import sys

import click

from tiergate import __version__
from tiergate.catalog.loader import FeatureCatalog, default_catalog, load_catalog
from tiergate.config import TiergateConfig, load_config
from tiergate.errors import CatalogError, UnknownFeatureError
from tiergate.gate.engine import FeatureGate
from tiergate.models import Tier

_TIER_COLORS = {Tier.FREE: "green", Tier.PRO: "yellow", Tier.PREMIUM: "magenta"}


def _resolve_cfg() -> TiergateConfig:
    """Load config from tiergate.yaml (auto-discover, never error)."""
    try:
        return load_config()
    except Exception:
        return TiergateConfig()


def _load_catalog_or_exit(catalog: str | None) -> FeatureCatalog:
    path = catalog or _resolve_cfg().catalog
    if path is None:
        return default_catalog()
    try:
        return load_catalog(path)
    except CatalogError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _tier_badge(tier: Tier) -> str:
    return click.style(f"[{tier}]", fg=_TIER_COLORS.get(tier, "white"))


# --- Root group ---


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Tiergate: tiered feature access and session role gating."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


# --- list-features command ---


@cli.command("list-features")
@click.option("--catalog", default=None, help="Path to catalog YAML file")
@click.option("--tier", default=None, help="Only features accessible at this tier")
@click.option("--json-output", is_flag=True, help="Output as JSON")
def list_features(catalog: str | None, tier: str | None, json_output: bool) -> None:
    """Show catalog entries."""
    gate = FeatureGate(_load_catalog_or_exit(catalog))

    keys = gate.catalog.keys()
    if tier is not None:
        try:
            allowed = gate.features_for(tier)
        except ValueError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(2)
        keys = [k for k in keys if k in allowed]

    configs = [gate.get_feature_config(k) for k in keys]
    configs.sort(key=lambda c: (c.required_tier.rank, c.key))

    if json_output:
        click.echo(json.dumps([c.model_dump(mode="json") for c in configs], indent=2))
        return

    if not configs:
        click.echo("No features found.")
        return
    for c in configs:
        click.echo(f"  {c.key:<24} {_tier_badge(c.required_tier)}  {c.name}")
    click.echo(f"\n{len(configs)} feature(s).")


# --- check command ---


@cli.command()
@click.argument("tier")
@click.argument("feature", required=False)
@click.option("--catalog", default=None, help="Path to catalog YAML file")
@click.option("--json-output", is_flag=True, help="Output as JSON")
def check(tier: str, feature: str | None, catalog: str | None, json_output: bool) -> None:
    """Decide whether TIER can use FEATURE.

    With a single argument, that argument is the feature and the tier
    comes from ``default_tier`` in tiergate.yaml.
    """
    if feature is None:
        feature, tier = tier, _resolve_cfg().default_tier
    gate = FeatureGate(_load_catalog_or_exit(catalog))

    try:
        result = gate.evaluate(tier, feature)
    except (UnknownFeatureError, ValueError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)

    if json_output:
        click.echo(json.dumps(result.model_dump(mode="json"), indent=2))
        return

    if result.can_access:
        click.echo(click.style("ALLOW", fg="green", bold=True) + f" — {result.config.name}")
    else:
        click.echo(
            click.style("UPGRADE", fg="yellow", bold=True)
            + f" — {result.config.name} requires {result.required_tier}"
        )
    click.echo(f"  feature:  {result.feature}")
    click.echo(f"  tier:     {result.tier}")
    click.echo(f"  required: {result.required_tier}")


# --- show command ---


@cli.command()
@click.argument("feature")
@click.option("--catalog", default=None, help="Path to catalog YAML file")
def show(feature: str, catalog: str | None) -> None:
    """Show one feature's config."""
    gate = FeatureGate(_load_catalog_or_exit(catalog))
    try:
        config = gate.get_feature_config(feature)
    except UnknownFeatureError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)

    click.echo(f"{config.name} {_tier_badge(config.required_tier)}")
    click.echo(f"  key:         {config.key}")
    click.echo(f"  description: {config.description}")
    if config.premium_add_on:
        click.echo("  premium add-on")


# --- validate command ---


@cli.command()
@click.option("--catalog", default=None, help="Path to catalog YAML file")
def validate(catalog: str | None) -> None:
    """Validate a catalog file."""
    path = catalog or _resolve_cfg().catalog
    if path is None:
        click.echo("No catalog file configured; built-in catalog is always valid.")
        return

    try:
        cat = load_catalog(path)
    except CatalogError as e:
        click.echo(click.style("FAIL", fg="red") + f"  catalog: {e}")
        sys.exit(1)

    counts = ", ".join(f"{len(cat.by_tier(t))} {t}" for t in Tier)
    click.echo(click.style("OK", fg="green") + f"  catalog: {len(cat)} feature(s) ({counts})")
