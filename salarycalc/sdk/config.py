"""Configuration management for Salary Calc.

Configuration is split into two files:

1. settings.json - Machine-specific settings
   - data_dir: where exports and other generated files go
   - export_dir: override for the PDF export directory
   - default_output_format: text or json for CLI output

2. rules.yaml - Payroll constants (optional)
   - tax_rate, social_security_rate, overtime_multiplier
   - standard_monthly_hours, attendance_utc_offset_hours, rounding_tolerance
   Missing keys keep their defaults; unknown keys are an error.

Config directory resolution:
1. SALARY_CALC_CONFIG_PATH environment variable (if set)
2. ~/.config/salary-calc/ (XDG_CONFIG_HOME fallback)

Data path:
1. settings.json "data_dir" key (if set)
2. XDG_DATA_HOME/salary-calc/ or ~/.local/share/salary-calc/
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from .schemas import PayrollRules

logger = logging.getLogger(__name__)

APP_NAME = "salary-calc"
SETTINGS_FILENAME = "settings.json"
RULES_FILENAME = "rules.yaml"

KNOWN_SETTINGS = ("data_dir", "export_dir", "default_output_format")
PATH_SETTINGS = ("data_dir", "export_dir")


class ConfigNotFoundError(Exception):
    """Raised when a required configuration file is missing."""
    pass


class RulesValidationError(Exception):
    """Raised when rules.yaml cannot be parsed or fails validation."""
    pass


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Resolution order:
    1. SALARY_CALC_CONFIG_PATH environment variable
    2. ~/.config/salary-calc/ (XDG_CONFIG_HOME)

    Returns:
        Path to the configuration directory
    """
    env_path = os.environ.get("SALARY_CALC_CONFIG_PATH")
    if env_path:
        return Path(env_path)

    xdg_config_home = os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
    return Path(xdg_config_home) / APP_NAME


def get_settings_path() -> Path:
    """Get the path to settings.json (may not exist yet)."""
    return get_config_dir() / SETTINGS_FILENAME


def load_settings() -> dict:
    """Load machine-specific settings from settings.json.

    Returns:
        Settings dictionary (empty dict if file doesn't exist)
    """
    settings_file = get_settings_path()

    if not settings_file.exists():
        return {}

    with open(settings_file, "r") as f:
        return json.load(f)


def save_settings(settings: dict) -> Path:
    """Save machine-specific settings to settings.json.

    Args:
        settings: Settings dictionary to save

    Returns:
        Path to the saved settings file
    """
    config_dir = get_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)

    settings_file = config_dir / SETTINGS_FILENAME

    with open(settings_file, "w") as f:
        json.dump(settings, f, indent=2)

    return settings_file


def get_setting(key: str, default: Any = None) -> Any:
    """Get a setting value from settings.json.

    Args:
        key: Setting key (e.g., "data_dir", "default_output_format")
        default: Default value if key not found

    Returns:
        Setting value or default
    """
    return load_settings().get(key, default)


def set_setting(key: str, value: Any) -> Path:
    """Set a setting value in settings.json.

    Returns:
        Path to the saved settings file
    """
    settings = load_settings()
    settings[key] = value
    return save_settings(settings)


def unset_setting(key: str) -> bool:
    """Remove a setting. Returns True if it was present."""
    settings = load_settings()
    if key not in settings:
        return False
    del settings[key]
    save_settings(settings)
    return True


def get_data_path() -> Path:
    """Get the data directory path.

    Returns:
        settings.json data_dir if set, else XDG_DATA_HOME/salary-calc/
        (created if doesn't exist)
    """
    data_dir = get_setting("data_dir")
    if data_dir:
        data_path = Path(str(data_dir)).expanduser()
    else:
        xdg_data_home = os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share")
        data_path = Path(xdg_data_home) / APP_NAME
    data_path.mkdir(parents=True, exist_ok=True)
    return data_path


def get_export_path() -> Path:
    """Directory for exported PDFs: export_dir setting, else <data>/exports."""
    export_dir = get_setting("export_dir")
    path = Path(str(export_dir)).expanduser() if export_dir else get_data_path() / "exports"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_rules_path() -> Path:
    return get_config_dir() / RULES_FILENAME


def load_rules(path: Optional[Path] = None, require_exists: bool = False) -> PayrollRules:
    """Load payroll constants from rules.yaml.

    Args:
        path: Explicit rules file (defaults to <config dir>/rules.yaml)
        require_exists: If True, raises ConfigNotFoundError when missing

    Returns:
        PayrollRules (defaults when the file is absent)

    Raises:
        ConfigNotFoundError: If require_exists=True and the file is missing
        RulesValidationError: If the file is not valid YAML or has bad values
    """
    rules_path = Path(path) if path else get_rules_path()

    if not rules_path.exists():
        if require_exists:
            raise ConfigNotFoundError(f"Rules file not found: {rules_path}")
        return PayrollRules()

    try:
        with open(rules_path, "r") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise RulesValidationError(f"Invalid YAML in {rules_path}: {e}") from e

    if not isinstance(data, dict):
        raise RulesValidationError(f"{rules_path}: expected a mapping of rule names to values")

    try:
        rules = PayrollRules(**data)
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise RulesValidationError(f"{rules_path}: {errors}") from e

    logger.debug(f"Loaded payroll rules from {rules_path}")
    return rules
