"""
Tests for the config module.
"""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from appdelta.config import ExclusionTerms, WatchConfig, default_config_path
from appdelta.diff.exclusions import InvalidExclusionPattern
from appdelta.schema import DEFAULT_COLUMNS


def test_default_config_path() -> None:
    """default_config_path falls back to ~/.config/appdelta/config.yaml."""
    env = {"HOME": str(Path.home())}
    with patch.dict(os.environ, env, clear=True):
        result = default_config_path()
        assert result == Path.home() / ".config" / "appdelta" / "config.yaml"


def test_default_config_path_xdg() -> None:
    """default_config_path respects $XDG_CONFIG_HOME."""
    with patch.dict(os.environ, {"XDG_CONFIG_HOME": "/custom/config"}):
        result = default_config_path()
        assert result == Path("/custom/config/appdelta/config.yaml")


def test_missing_file_returns_defaults(tmp_path: Path) -> None:
    """Loading a non-existent file returns the default config."""
    cfg = WatchConfig.load(tmp_path / "nonexistent.yaml")
    assert cfg.exclude_installs is False
    assert cfg.exclude_uninstalls is False
    assert cfg.exclude_updates is True
    assert cfg.exclusions == ExclusionTerms()
    assert cfg.sort_by == "Change"
    assert cfg.columns == DEFAULT_COLUMNS


def test_empty_file_returns_defaults(tmp_path: Path) -> None:
    p = tmp_path / "config.yaml"
    p.write_text("")
    assert WatchConfig.from_file(p) == WatchConfig()


def test_full_config_parsing(tmp_path: Path) -> None:
    """A fully-populated config file is parsed correctly."""
    p = tmp_path / "config.yaml"
    p.write_text("""\
exclude_installs: true
exclude_uninstalls: false
exclude_updates: false
exclusions:
  global:
    - "Security Intelligence Update"
  publisher:
    - Acme
  installs: []
  uninstalls:
    - "Teams*"
  updates:
    - Chrome
    - Edge
sort_by: Application
columns: [Change, Application, Version]
""")
    cfg = WatchConfig.load(p)

    assert cfg.exclude_installs is True
    assert cfg.exclude_updates is False
    assert cfg.exclusions.global_terms == ["Security Intelligence Update"]
    assert cfg.exclusions.publisher == ["Acme"]
    assert cfg.exclusions.installs == []
    assert cfg.exclusions.uninstalls == ["Teams*"]
    assert cfg.exclusions.updates == ["Chrome", "Edge"]
    assert cfg.sort_by == "Application"
    assert cfg.columns == ["Change", "Application", "Version"]


def test_single_string_term(tmp_path: Path) -> None:
    p = tmp_path / "config.yaml"
    p.write_text("exclusions:\n  publisher: Acme\n")
    assert WatchConfig.load(p).exclusions.publisher == ["Acme"]


def test_invalid_exclusion_value_ignored(tmp_path: Path) -> None:
    p = tmp_path / "config.yaml"
    p.write_text("exclusions:\n  global: {a: 1}\n  updates: [Chrome]\n")
    cfg = WatchConfig.load(p)
    assert cfg.exclusions.global_terms == []
    assert cfg.exclusions.updates == ["Chrome"]


def test_invalid_yaml_returns_defaults(tmp_path: Path) -> None:
    p = tmp_path / "config.yaml"
    p.write_text("exclusions: [unclosed\n")
    assert WatchConfig.from_file(p) == WatchConfig()


def test_non_mapping_returns_defaults() -> None:
    assert WatchConfig.from_dict(["not", "a", "mapping"]) == WatchConfig()


def test_exclusion_rules() -> None:
    cfg = WatchConfig(exclusions=ExclusionTerms(publisher=["Acme"], updates=["Chrome"]))
    rules = cfg.exclusion_rules()
    assert rules.publisher_pattern.matches("Acme Corp")
    assert rules.updates_pattern.matches("Google Chrome")
    assert rules.global_pattern.is_empty


def test_invalid_exclusion_term_raises() -> None:
    cfg = WatchConfig(exclusions=ExclusionTerms(global_terms=["Foo[bar"]))
    with pytest.raises(InvalidExclusionPattern):
        cfg.exclusion_rules()


def test_unknown_sort_by_falls_back(tmp_path: Path, caplog) -> None:
    p = tmp_path / "config.yaml"
    p.write_text("sort_by: change\n")
    cfg = WatchConfig.load(p)
    assert cfg.sort_by == "Change"
    assert "sort_by" in caplog.text


def test_unknown_columns_fall_back(tmp_path: Path) -> None:
    p = tmp_path / "config.yaml"
    p.write_text("columns: [Change, Size]\n")
    assert WatchConfig.load(p).columns == DEFAULT_COLUMNS


def test_non_boolean_flags_use_defaults(tmp_path: Path) -> None:
    """Quoted strings are not booleans, even when they read like one."""
    p = tmp_path / "config.yaml"
    p.write_text('exclude_updates: "false"\nexclude_installs: "yes"\nexclude_uninstalls: true\n')
    cfg = WatchConfig.load(p)
    assert cfg.exclude_updates is True
    assert cfg.exclude_installs is False
    assert cfg.exclude_uninstalls is True
