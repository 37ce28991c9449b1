"""
Configuration file support for appdelta.

Loads settings from ``~/.config/appdelta/config.yaml`` (or
``$XDG_CONFIG_HOME/appdelta/config.yaml``) into typed dataclasses:

    exclude_installs: false
    exclude_uninstalls: false
    exclude_updates: true
    exclusions:
      global: ["Security Intelligence Update"]
      publisher: ["Acme"]
      installs: []
      uninstalls: []
      updates: ["Chrome"]
    sort_by: Change
    columns: [Change, Application, Publisher, OldVersion, Version, User, Installed]
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .diff.exclusions import ExclusionRules
from .schema import DEFAULT_COLUMNS, DEFAULT_SORT_KEY

logger = logging.getLogger(__name__)


def default_config_path() -> Path:
    """Return the default configuration file path.

    Uses ``$XDG_CONFIG_HOME/appdelta/config.yaml`` when set, otherwise
    falls back to ``~/.config/appdelta/config.yaml``.
    """
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "appdelta" / "config.yaml"
    return Path.home() / ".config" / "appdelta" / "config.yaml"


def _term_list(data: Dict[str, Any], key: str) -> List[str]:
    value = data.get(key)
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        logger.warning("Ignoring exclusions.%s: expected a list, got %r", key, value)
        return []
    return [str(v) for v in value if v is not None]


def _flag(data: Dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        logger.warning("Ignoring %s: expected true or false, got %r", key, value)
        return default
    return value


@dataclass
class ExclusionTerms:
    """Exclusion term lists from the configuration file."""

    global_terms: List[str] = field(default_factory=list)
    publisher: List[str] = field(default_factory=list)
    installs: List[str] = field(default_factory=list)
    uninstalls: List[str] = field(default_factory=list)
    updates: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "ExclusionTerms":
        if not isinstance(data, dict):
            if data is not None:
                logger.warning("Ignoring exclusions: expected a mapping, got %r", data)
            return cls()
        return cls(
            global_terms=_term_list(data, "global"),
            publisher=_term_list(data, "publisher"),
            installs=_term_list(data, "installs"),
            uninstalls=_term_list(data, "uninstalls"),
            updates=_term_list(data, "updates"),
        )


@dataclass
class WatchConfig:
    """Top-level configuration loaded from the YAML file."""

    exclude_installs: bool = False
    exclude_uninstalls: bool = False
    exclude_updates: bool = True
    exclusions: ExclusionTerms = field(default_factory=ExclusionTerms)
    sort_by: str = DEFAULT_SORT_KEY
    columns: List[str] = field(default_factory=lambda: list(DEFAULT_COLUMNS))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WatchConfig":
        """Construct a ``WatchConfig`` from a parsed YAML dictionary."""
        if not isinstance(data, dict):
            return cls()

        defaults = cls()
        columns = data.get("columns")
        if columns is not None and not isinstance(columns, list):
            logger.warning("Ignoring columns: expected a list, got %r", columns)
            columns = None
        if columns:
            columns = [str(c) for c in columns]
            unknown = [c for c in columns if c not in DEFAULT_COLUMNS]
            if unknown:
                logger.warning("Ignoring columns: unknown column(s) %s", ", ".join(unknown))
                columns = None

        sort_by = data.get("sort_by")
        if sort_by is not None and sort_by not in DEFAULT_COLUMNS:
            logger.warning("Ignoring sort_by: unknown column %r", sort_by)
            sort_by = None

        return cls(
            exclude_installs=_flag(data, "exclude_installs", defaults.exclude_installs),
            exclude_uninstalls=_flag(data, "exclude_uninstalls", defaults.exclude_uninstalls),
            exclude_updates=_flag(data, "exclude_updates", defaults.exclude_updates),
            exclusions=ExclusionTerms.from_dict(data.get("exclusions")),
            sort_by=sort_by or defaults.sort_by,
            columns=columns or defaults.columns,
        )

    @classmethod
    def from_file(cls, path: Path) -> "WatchConfig":
        """Read a YAML file and return a ``WatchConfig``.

        Returns a default config on any read or parse error.
        """
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f.read())
            if data is None:
                return cls()
            return cls.from_dict(data)
        except (IOError, yaml.YAMLError) as e:
            logger.error("Failed to load config from %s: %s", path, e)
            return cls()

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "WatchConfig":
        """Main entry point: load config from *config_path* or the default location.

        Returns a default config if the file does not exist.
        """
        path = config_path or default_config_path()
        if not path.exists():
            return cls()
        return cls.from_file(path)

    def exclusion_rules(self) -> ExclusionRules:
        """Compile the configured exclusion terms.

        Raises:
            InvalidExclusionPattern: If a configured term cannot be compiled
        """
        return ExclusionRules.from_terms(
            global_terms=self.exclusions.global_terms,
            publisher_terms=self.exclusions.publisher,
            install_terms=self.exclusions.installs,
            uninstall_terms=self.exclusions.uninstalls,
            update_terms=self.exclusions.updates,
        )
