# promptkit/config/settings.py
"""
Render configuration shared by the renderer facade, the helpers and the CLI.
"""
from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timezone as dt_timezone
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional
import structlog

from promptkit.exceptions import ConfigError

log = structlog.get_logger(__name__)

TEMPLATE_EXTENSIONS = (".md", ".txt")
MERGED_BY_KEY = ("params", "helpers")

# keys accepted in toml config files, mapped to RenderOptions attributes.
CONFIG_KEY_TO_OPTION_ATTR_MAP: Dict[str, str] = {
    "dir": "directory",
    "directory": "directory",
    "base_url": "base_url",
    "timezone": "timezone",
    "unescape": "unescape",
    "params": "params",
}


def utc_now() -> datetime:
    return datetime.now(dt_timezone.utc)


@dataclass
class RenderOptions:
    # holds the merged configuration for a single render call.
    directory: Optional[Path] = None
    base_url: Optional[str] = None
    params: Dict[str, Any] = field(default_factory=dict)
    helpers: Dict[str, Any] = field(default_factory=dict)
    timezone: Optional[str] = None  # None means the system's local zone.
    unescape: bool = True
    clock: Callable[[], datetime] = utc_now
    formatter: Optional[Any] = None  # a DateTimeFormatter; built from `timezone` when unset.

    def __post_init__(self):
        if self.directory is not None and not isinstance(self.directory, Path):
            self.directory = Path(self.directory)
        if self.base_url:
            self.base_url = self.base_url.rstrip("/")

    def merged(self, overrides: Mapping[str, Any]) -> "RenderOptions":
        """
        Returns a copy with `overrides` applied. Top-level keys replace, while
        `params` and `helpers` are merged key by key. None values are ignored.
        """
        known = {f.name for f in fields(self)}
        unknown = sorted(k for k in overrides if k not in known)
        if unknown:
            raise ConfigError(f"unknown render option(s): {', '.join(unknown)}")

        changes: Dict[str, Any] = {
            k: v for k, v in overrides.items() if v is not None and k not in MERGED_BY_KEY
        }
        for key in MERGED_BY_KEY:
            changes[key] = {**getattr(self, key), **(overrides.get(key) or {})}
        return replace(self, **changes)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "RenderOptions":
        # builds options from toml-style keys, coercing string values.
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            attr = CONFIG_KEY_TO_OPTION_ATTR_MAP.get(key)
            if attr is None:
                log.debug("ignoring_unknown_config_key", key=key)
                continue
            if attr == "directory" and value is not None:
                value = Path(value).expanduser()
            elif attr == "params" and not isinstance(value, Mapping):
                raise ConfigError(f"'params' must be a table, got {type(value).__name__}")
            elif attr == "unescape" and not isinstance(value, bool):
                raise ConfigError(f"'unescape' must be a boolean, got {value!r}")
            kwargs[attr] = dict(value) if attr == "params" else value
        return cls(**kwargs)
