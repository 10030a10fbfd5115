"""Config file loading and auto-discovery for Tiergate.

Searches for ``tiergate.yaml`` in the current directory and parent
directories, parses it, and resolves the catalog path against the
config file's location.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

from tiergate.models import Tier
from tiergate.session.providers import SignOutScope

CONFIG_FILENAME = "tiergate.yaml"


@dataclass(frozen=True)
class TiergateConfig:
    """Parsed Tiergate project configuration."""

    config_path: Path | None = None
    catalog: str | None = None
    default_tier: Tier = Tier.FREE
    role_lookup_timeout: float | None = None
    sign_out_scope: SignOutScope = SignOutScope.LOCAL


def find_config(start: Path | None = None) -> Path | None:
    """Walk from *start* (default ``cwd()``) up to the filesystem root.

    Returns the first ``tiergate.yaml`` found, or ``None``.
    """
    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            return None
        current = parent


def load_config(
    path: str | Path | None = None,
    *,
    auto_discover: bool = True,
) -> TiergateConfig:
    """Load a Tiergate config file.

    Resolution order:

    1. Explicit *path* (error if it doesn't exist).
    2. Auto-discover by walking parent directories.
    3. Return an empty ``TiergateConfig`` (all defaults).
    """
    config_path: Path | None = None

    if path is not None:
        config_path = Path(path).resolve()
        if not config_path.is_file():
            msg = f"Config file not found: {config_path}"
            raise FileNotFoundError(msg)
    elif auto_discover:
        config_path = find_config()

    if config_path is None:
        return TiergateConfig()

    return _parse_config(config_path)


def _parse_config(config_path: Path) -> TiergateConfig:
    """Read and parse a YAML config file."""
    text = config_path.read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}

    if not isinstance(data, dict):
        msg = f"Expected a YAML mapping in {config_path}, got {type(data).__name__}"
        raise ValueError(msg)

    catalog = data.get("catalog")
    if catalog is not None:
        catalog = str((config_path.parent / catalog).resolve())

    timeout = data.get("role_lookup_timeout")
    if timeout is not None:
        timeout = float(timeout)
        if timeout <= 0:
            msg = f"role_lookup_timeout must be positive in {config_path}"
            raise ValueError(msg)

    return TiergateConfig(
        config_path=config_path,
        catalog=catalog,
        default_tier=Tier.parse(data.get("default_tier", Tier.FREE)),
        role_lookup_timeout=timeout,
        sign_out_scope=SignOutScope(data.get("sign_out_scope", SignOutScope.LOCAL)),
    )
