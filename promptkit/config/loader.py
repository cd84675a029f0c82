# promptkit/config/loader.py
"""
Handles loading and merging of render defaults from TOML files.
"""
import toml
from pathlib import Path
from typing import Dict, Any, Optional
import structlog

from promptkit.exceptions import ConfigError

log = structlog.get_logger(__name__)

PROJECT_CONFIG_FILENAMES = [".promptkit.toml", "promptkit.toml", "pyproject.toml"]
USER_CONFIG_DIR = Path.home() / ".config" / "promptkit"
USER_CONFIG_FILE = USER_CONFIG_DIR / "config.toml"


def _load_toml_file_data(file_path: Path) -> Dict[str, Any]:
    if not file_path.is_file(): return {}
    log.debug("loading_toml_config_file", path=str(file_path))
    try:
        data = toml.load(file_path)
    except (toml.TomlDecodeError, OSError) as e:
        raise ConfigError(f"Could not read config file {file_path}: {e}") from e
    return data.get("tool", {}).get("promptkit", {}) if file_path.name == "pyproject.toml" else data


def _merge_settings(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    # overlay wins per key; `params` and `profiles` tables merge one level down.
    merged = dict(base)
    for key, value in overlay.items():
        if key in ("params", "profiles") and isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


def load_and_merge_configs(project_dir: Optional[Path] = None) -> Dict[str, Any]:
    project_dir = project_dir or Path.cwd()
    merged_toml_data: Dict[str, Any] = {}
    if USER_CONFIG_FILE.is_file():
        log.info("loading_user_global_config", path=str(USER_CONFIG_FILE))
        merged_toml_data = _merge_settings(merged_toml_data, _load_toml_file_data(USER_CONFIG_FILE))

    for filename in PROJECT_CONFIG_FILENAMES:
        candidate = project_dir / filename
        if candidate.is_file():
            project_settings = _load_toml_file_data(candidate)
            if not project_settings:
                continue
            log.info("loading_project_local_config", path=str(candidate))
            merged_toml_data = _merge_settings(merged_toml_data, project_settings)
            break
    if not merged_toml_data: log.debug("no_configuration_files_loaded")
    return merged_toml_data


def select_profile(config_data: Dict[str, Any], profile_name: Optional[str]) -> Dict[str, Any]:
    """Returns the top-level settings with the named profile applied over them."""
    settings = {k: v for k, v in config_data.items() if k != "profiles"}
    if not profile_name:
        return settings
    profile = config_data.get("profiles", {}).get(profile_name)
    if profile is None:
        raise ConfigError(f"profile '{profile_name}' not found in config files")
    log.info("applying_profile_settings", profile=profile_name)
    profile = {k: v for k, v in profile.items() if k != "description"}
    return _merge_settings(settings, profile)
