"""Tests for Tiergate config loader (tiergate.yaml)."""

from pathlib import Path

import pytest

from tiergate.config import TiergateConfig, find_config, load_config
from tiergate.models import Tier
from tiergate.session.providers import SignOutScope

# --- find_config ---


class TestFindConfig:
    def test_finds_in_start_dir(self, tmp_path: Path):
        cfg = tmp_path / "tiergate.yaml"
        cfg.write_text("catalog: ./catalog.yaml\n", encoding="utf-8")
        assert find_config(tmp_path) == cfg

    def test_finds_in_parent(self, tmp_path: Path):
        cfg = tmp_path / "tiergate.yaml"
        cfg.write_text("catalog: ./catalog.yaml\n", encoding="utf-8")
        child = tmp_path / "sub" / "deep"
        child.mkdir(parents=True)
        assert find_config(child) == cfg

    def test_returns_none_when_missing(self, tmp_path: Path):
        assert find_config(tmp_path) is None

    def test_ignores_directories_named_config(self, tmp_path: Path):
        (tmp_path / "tiergate.yaml").mkdir()
        assert find_config(tmp_path) is None


# --- load_config ---


class TestLoadConfig:
    def test_defaults_when_nothing_found(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        cfg = load_config()
        assert cfg == TiergateConfig()
        assert cfg.default_tier == Tier.FREE
        assert cfg.role_lookup_timeout is None
        assert cfg.sign_out_scope == SignOutScope.LOCAL

    def test_explicit_missing_path(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_full_config(self, tmp_path: Path):
        path = tmp_path / "tiergate.yaml"
        path.write_text(
            "catalog: conf/catalog.yaml\n"
            "default_tier: pro\n"
            "role_lookup_timeout: 2.5\n"
            "sign_out_scope: global\n",
            encoding="utf-8",
        )
        cfg = load_config(path)
        assert cfg.config_path == path.resolve()
        assert cfg.catalog == str((tmp_path / "conf" / "catalog.yaml").resolve())
        assert cfg.default_tier == Tier.PRO
        assert cfg.role_lookup_timeout == 2.5
        assert cfg.sign_out_scope == SignOutScope.GLOBAL

    def test_auto_discover(self, tmp_path: Path, monkeypatch):
        (tmp_path / "tiergate.yaml").write_text("default_tier: premium\n", encoding="utf-8")
        monkeypatch.chdir(tmp_path)
        assert load_config().default_tier == Tier.PREMIUM

    def test_auto_discover_disabled(self, tmp_path: Path, monkeypatch):
        (tmp_path / "tiergate.yaml").write_text("default_tier: premium\n", encoding="utf-8")
        monkeypatch.chdir(tmp_path)
        assert load_config(auto_discover=False).default_tier == Tier.FREE

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "tiergate.yaml"
        path.write_text("", encoding="utf-8")
        cfg = load_config(path)
        assert cfg.catalog is None
        assert cfg.config_path == path.resolve()

    def test_non_mapping_rejected(self, tmp_path: Path):
        path = tmp_path / "tiergate.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Expected a YAML mapping"):
            load_config(path)

    def test_bad_tier_rejected(self, tmp_path: Path):
        path = tmp_path / "tiergate.yaml"
        path.write_text("default_tier: gold\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Unknown tier"):
            load_config(path)

    def test_non_positive_timeout_rejected(self, tmp_path: Path):
        path = tmp_path / "tiergate.yaml"
        path.write_text("role_lookup_timeout: 0\n", encoding="utf-8")
        with pytest.raises(ValueError, match="positive"):
            load_config(path)
