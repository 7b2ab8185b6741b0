"""User display settings.

Settings are stored as a versioned YAML document::

    version: 1
    last_modified: 1718000000.0
    settings:
      show_ranks: {A: true, B: true, C: true, unknown: true}
      enabled_sites: {arxiv: true, dblp: true, ieee: true}
      badge_position: after-title
      debug_mode: false
      stats_expanded: false

Loading validates every field separately and falls back to the default for
anything missing or malformed. A document without a version, or written by a
newer version, yields the defaults.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

SETTINGS_VERSION = 1
BADGE_POSITIONS = ("after-title", "after-authors", "inline")


@dataclass
class RankDisplaySettings:
    """Which CCF ranks get a badge."""

    A: bool = True
    B: bool = True
    C: bool = True
    unknown: bool = True

    def shows(self, rank: str | None) -> bool:
        return bool(getattr(self, rank or "unknown", self.unknown))


@dataclass
class SiteEnableSettings:
    """Which sites are annotated."""

    arxiv: bool = True
    dblp: bool = True
    ieee: bool = True

    def is_enabled(self, site_id: str) -> bool:
        return bool(getattr(self, site_id, False))


def _merge_flags(cls: type, data: Any) -> Any:
    """Build a flag dataclass, keeping defaults for non-boolean values."""
    default = cls()
    if not isinstance(data, dict):
        return default
    updates = {f.name: data[f.name] for f in fields(cls) if isinstance(data.get(f.name), bool)}
    return replace(default, **updates)


@dataclass
class Settings:
    """Complete user settings.

    Attributes:
        show_ranks: Which ranks are displayed
        enabled_sites: Which sites are annotated
        badge_position: 'after-title', 'after-authors' or 'inline'
        debug_mode: Verbose logging
        stats_expanded: Whether the statistics panel starts expanded
    """

    show_ranks: RankDisplaySettings = field(default_factory=RankDisplaySettings)
    enabled_sites: SiteEnableSettings = field(default_factory=SiteEnableSettings)
    badge_position: str = "after-title"
    debug_mode: bool = False
    stats_expanded: bool = False

    @classmethod
    def from_dict(cls, data: Any) -> Settings:
        """Validate a stored settings document and merge it with defaults."""
        if not isinstance(data, dict):
            return cls()
        version = data.get("version")
        if not isinstance(version, int) or isinstance(version, bool) or version > SETTINGS_VERSION:
            return cls()
        stored = data.get("settings")
        if not isinstance(stored, dict):
            return cls()

        default = cls()
        position = stored.get("badge_position")
        return cls(
            show_ranks=_merge_flags(RankDisplaySettings, stored.get("show_ranks")),
            enabled_sites=_merge_flags(SiteEnableSettings, stored.get("enabled_sites")),
            badge_position=position if position in BADGE_POSITIONS else default.badge_position,
            debug_mode=stored["debug_mode"] if isinstance(stored.get("debug_mode"), bool) else default.debug_mode,
            stats_expanded=(
                stored["stats_expanded"] if isinstance(stored.get("stats_expanded"), bool) else default.stats_expanded
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        """Versioned document suitable for from_dict()."""
        return {
            "version": SETTINGS_VERSION,
            "last_modified": time.time(),
            "settings": {
                "show_ranks": {f.name: getattr(self.show_ranks, f.name) for f in fields(RankDisplaySettings)},
                "enabled_sites": {f.name: getattr(self.enabled_sites, f.name) for f in fields(SiteEnableSettings)},
                "badge_position": self.badge_position,
                "debug_mode": self.debug_mode,
                "stats_expanded": self.stats_expanded,
            },
        }


def load_settings(path: str | Path | None) -> Settings:
    """Load settings from a YAML file.

    A missing path or an unreadable file gives the default settings.
    """
    if path is None:
        return Settings()
    path = Path(path)
    if not path.exists():
        return Settings()
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Error loading settings from %s: %s", path, e)
        return Settings()
    return Settings.from_dict(data)


def save_settings(settings: Settings, path: str | Path) -> None:
    """Write settings to a YAML file."""
    path = Path(path)
    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(settings.to_dict(), f, default_flow_style=False, allow_unicode=True)
    logger.debug("Saved settings to %s", path)
