# globfilter/config/loader.py
"""
Handles loading, merging, and saving of configurations from/to TOML files.

Sources, lowest precedence first: the user file
`~/.config/globfilter/config.toml`, then the first project file found in the
working directory (`.globfilter.toml`, `globfilter.toml`, or the
`[tool.globfilter]` table of `pyproject.toml`). Named profiles live under
`[profiles.<name>]`.
"""
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Optional
import structlog
import toml

from globfilter.exceptions import ConfigError

from .settings import FilterConfig, config_defaults

log = structlog.get_logger(__name__)

PROJECT_CONFIG_FILENAMES = [".globfilter.toml", "globfilter.toml", "pyproject.toml"]
USER_CONFIG_DIR = Path.home() / ".config" / "globfilter"
USER_CONFIG_FILE = USER_CONFIG_DIR / "config.toml"
DEFAULT_PROFILE = "DEFAULT"

# toml key -> FilterConfig attribute.
CONFIG_KEY_TO_FILTERCONFIG_ATTR_MAP: Dict[str, str] = {
    "include": "include_patterns",
    "exclude": "exclude_patterns",
    "include_from_files": "include_from_files",
    "exclude_from_files": "exclude_from_files",
    "respect_gitignore": "respect_gitignore",
    "null": "nul_separated",
    "strict": "strict",
}

_PATH_LIST_ATTRS = ("include_from_files", "exclude_from_files")


def _load_toml_file_data(file_path: Path) -> Dict[str, Any]:
    if not file_path.is_file():
        return {}
    log.debug("loading_toml_config_file", path=str(file_path))
    try:
        data = toml.load(file_path)
    except (toml.TomlDecodeError, OSError) as e:
        log.error("config_file_load_error", path=str(file_path), error=str(e))
        return {}
    if file_path.name == "pyproject.toml":
        return data.get("tool", {}).get("globfilter", {})
    return data


def load_and_merge_configs(start_dir: Optional[Path] = None) -> Dict[str, Any]:
    # user config first, then the project config from start_dir (default: cwd) on top.
    project_dir = start_dir if start_dir is not None else Path.cwd()
    merged: Dict[str, Any] = {}
    if USER_CONFIG_FILE.is_file():
        log.info("loading_user_global_config", path=str(USER_CONFIG_FILE))
        merged.update(_load_toml_file_data(USER_CONFIG_FILE))

    for filename in PROJECT_CONFIG_FILENAMES:
        candidate = project_dir / filename
        if not candidate.is_file():
            continue
        project_settings = _load_toml_file_data(candidate)
        if not project_settings:
            continue
        log.info("loading_project_local_config", path=str(candidate))
        # project profiles override user profiles by name.
        project_profiles = project_settings.pop("profiles", {})
        if isinstance(project_profiles, dict) and project_profiles:
            user_profiles = merged.get("profiles", {})
            if not isinstance(user_profiles, dict):
                user_profiles = {}
            merged["profiles"] = {**user_profiles, **project_profiles}
        merged.update(project_settings)
        break

    if not merged:
        log.debug("no_configuration_files_loaded")
    return merged


def _coerce(attr: str, value: Any) -> Any:
    if attr in _PATH_LIST_ATTRS:
        if not isinstance(value, list):
            raise ConfigError(f"'{attr}' must be a list of paths, got {value!r}")
        return [Path(v) for v in value]
    if attr in ("include_patterns", "exclude_patterns"):
        if isinstance(value, str):
            return [value]
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ConfigError(f"'{attr}' must be a list of strings, got {value!r}")
        return list(value)
    if not isinstance(value, bool):
        raise ConfigError(f"'{attr}' must be true or false, got {value!r}")
    return value


def config_options_from_toml(raw: Dict[str, Any], profile: Optional[str] = None) -> Dict[str, Any]:
    """
    Map raw TOML data onto FilterConfig attribute values.

    Top-level keys apply first, then the keys of the selected profile. Unknown
    keys are ignored; an unknown profile is logged and ignored.
    """
    options: Dict[str, Any] = {}
    for toml_key, attr in CONFIG_KEY_TO_FILTERCONFIG_ATTR_MAP.items():
        if toml_key in raw:
            options[attr] = _coerce(attr, raw[toml_key])

    if profile:
        profile_values = raw.get("profiles", {}).get(profile)
        if profile_values:
            log.info("applying_profile_settings", profile=profile)
            for toml_key, attr in CONFIG_KEY_TO_FILTERCONFIG_ATTR_MAP.items():
                if toml_key in profile_values:
                    options[attr] = _coerce(attr, profile_values[toml_key])
        else:
            log.warning("profile_not_found_in_config_files", profile_name=profile)
    return options


def save_config_to_profile(config_to_save: FilterConfig, profile_name: str, start_dir: Optional[Path] = None) -> bool:
    # writes non-default options of config_to_save into the project's .globfilter.toml.
    project_dir = start_dir if start_dir is not None else Path.cwd()
    target_toml_path = project_dir / ".globfilter.toml"
    if not target_toml_path.exists() and (project_dir / "globfilter.toml").exists():
        target_toml_path = project_dir / "globfilter.toml"
    log.info("attempting_to_save_profile", profile=profile_name, path=str(target_toml_path))

    defaults = config_defaults()
    config_dict = asdict(config_to_save)
    profile_data: Dict[str, Any] = {}
    for toml_key, attr in CONFIG_KEY_TO_FILTERCONFIG_ATTR_MAP.items():
        value = config_dict[attr]
        if value == defaults[attr]:
            continue
        if attr in _PATH_LIST_ATTRS:
            value = [str(p) for p in value]
        profile_data[toml_key] = value

    if not profile_data:
        log.info("no_options_to_save_for_profile", profile=profile_name)
        return False

    existing_data: Dict[str, Any] = {}
    if target_toml_path.exists():
        try:
            existing_data = toml.load(target_toml_path)
        except toml.TomlDecodeError as e:
            raise ConfigError(f"could not read existing TOML {target_toml_path} to save profile: {e}")

    if profile_name.upper() == DEFAULT_PROFILE:
        profiles_bak = existing_data.pop("profiles", None)
        existing_data.update(profile_data)
        if profiles_bak is not None:
            existing_data["profiles"] = profiles_bak
    else:
        existing_data.setdefault("profiles", {})[profile_name] = profile_data

    try:
        with target_toml_path.open("w", encoding="utf-8") as f:
            toml.dump(existing_data, f)
    except OSError as e:
        raise ConfigError(f"error writing profile '{profile_name}' to {target_toml_path}: {e}")
    log.info("profile_saved_successfully", profile=profile_name, path=str(target_toml_path))
    return True
