"""Shell configuration loader.

Loads shell configuration from YAML file with safe defaults.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

DEFAULT_USSD_SHORTCUTS: dict[str, str] = {
    "check balance": "*144#",
    "balance": "*144#",
    "my balance": "*144#",
    "airtime balance": "*144#",
    "check data": "*544#",
    "data balance": "*544*44#",
    "my number": "*135#",
    "check minutes": "*122#",
    "dial bank": "*247#",
    "bank ussd": "*247#",
    "equity": "*247#",
    "kcb": "*522#",
    "coop": "*667#",
    "family bank": "*642#",
    "stanchart": "*722#",
}


@dataclass
class ShellConfig:
    """Shell configuration loaded from YAML file."""

    history_limit: int = 1000
    command_timeout_ms: int = 30000
    ussd_timeout_seconds: float = 30.0
    ussd_history_limit: int = 50
    contact_search_limit: int = 10
    default_sim_slot: int = 0
    sim_count: int = 2
    max_sessions: int = 100
    confirm_action_kinds: list[str] = field(default_factory=lambda: ["delete_file"])
    ussd_shortcuts: dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_USSD_SHORTCUTS)
    )


_POSITIVE_INT_FIELDS = [
    "history_limit",
    "command_timeout_ms",
    "ussd_history_limit",
    "contact_search_limit",
    "sim_count",
    "max_sessions",
]


def _parse_shell_config(data: dict[str, Any]) -> ShellConfig:
    """Parse a configuration dictionary into a ShellConfig object.

    Args:
        data: Dictionary containing shell configuration.

    Returns:
        ShellConfig with parsed values, defaults for omitted fields.

    Raises:
        ValueError: If a field has the wrong type or range.
    """
    config = ShellConfig()

    for name in _POSITIVE_INT_FIELDS:
        if name in data:
            value = data[name]
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise ValueError(f"Field '{name}' must be a positive integer")
            setattr(config, name, value)

    if "ussd_timeout_seconds" in data:
        value = data["ussd_timeout_seconds"]
        if not isinstance(value, (int, float)) or value <= 0:
            raise ValueError("Field 'ussd_timeout_seconds' must be a positive number")
        config.ussd_timeout_seconds = float(value)

    if "default_sim_slot" in data:
        value = data["default_sim_slot"]
        if not isinstance(value, int) or value < 0:
            raise ValueError("Field 'default_sim_slot' must be a non-negative integer")
        config.default_sim_slot = value

    if "confirm_action_kinds" in data:
        kinds = data["confirm_action_kinds"]
        if not isinstance(kinds, list):
            raise ValueError("Field 'confirm_action_kinds' must be a list")
        config.confirm_action_kinds = [str(kind).lower() for kind in kinds]

    if "ussd_shortcuts" in data:
        shortcuts = data["ussd_shortcuts"]
        if not isinstance(shortcuts, dict):
            raise ValueError("Field 'ussd_shortcuts' must be a mapping")
        config.ussd_shortcuts = {
            str(phrase).lower(): str(code) for phrase, code in shortcuts.items()
        }

    return config


def get_config_path() -> Path:
    """Get the configuration file path from environment or default."""
    env_path = os.getenv("POCKETSHELL_CONFIG")
    if env_path:
        return Path(env_path)
    repo_root = Path(__file__).parent.parent.parent
    return repo_root / "config" / "shell.yaml"


def load_shell_config(config_path: str | None = None) -> ShellConfig:
    """Load shell configuration from YAML file.

    Args:
        config_path: Path to the YAML file. If None, uses POCKETSHELL_CONFIG
                    or config/shell.yaml.

    Returns:
        ShellConfig. If the file is missing or invalid, returns safe defaults.
    """
    path = Path(config_path) if config_path else get_config_path()

    if not path.exists():
        logger.info("Shell config not found at %s, using defaults", path)
        return ShellConfig()

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError("Top-level config must be a mapping")
        return _parse_shell_config(data)
    except (OSError, yaml.YAMLError, ValueError) as e:
        logger.warning("Invalid shell config at %s: %s. Using defaults.", path, e)
        return ShellConfig()
