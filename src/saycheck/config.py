# Copyright © 2025 Ed Nutting
# SPDX-License-Identifier: MIT
# See LICENSE file for details

"""
Configuration management for Saycheck.
Handles loading and saving settings from a YAML config file.
"""

import copy
from pathlib import Path
from typing import Any, TypedDict

import yaml

CONFIG_FILENAME: str = ".saycheck.yaml"


class AlignmentSettings(TypedDict):
    """Type definition for alignment configuration settings."""
    strategy: str  # "sequential", "lcs" or "edit_distance"
    debounce_ms: int


class RecognitionSettings(TypedDict):
    """Type definition for recognizer configuration settings."""
    interim_results: bool
    silence_timeout_ms: int
    restart_backoff_ms: int


class Config(TypedDict):
    """Type definition for the complete configuration."""
    # Server settings
    host: str
    port: int
    # Recognizer language, e.g. "en-US" (None = browser default)
    locale: str | None
    alignment: AlignmentSettings
    recognition: RecognitionSettings


# Default configuration values
DEFAULT_CONFIG: Config = {
    # Server settings
    "host": "127.0.0.1",
    "port": 8000,

    "locale": None,

    "alignment": {
        "strategy": "sequential",
        # Quiet period before interim results are aligned
        "debounce_ms": 100,
    },

    "recognition": {
        "interim_results": True,
        # Status hint after this long without speech (0 disables)
        "silence_timeout_ms": 8000,
        # Delay before restarting a recognizer that ended on its own
        "restart_backoff_ms": 250,
    },
}


def get_config_path() -> Path:
    """Get the path to the config file in the current working directory."""
    return Path.cwd() / CONFIG_FILENAME


def _deep_merge(base, override):
    """
    Deep merge two dictionaries, with override taking precedence.
    Returns a new dictionary without modifying the originals.
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(config_path: Path | None = None) -> Config:
    """
    Load configuration from file, merged with defaults.

    Args:
        config_path: Optional path to config file. If None, uses default location.

    Returns:
        Configuration dictionary with all values (defaults + overrides from file).
    """
    if config_path is None:
        config_path = get_config_path()

    # Start with defaults
    config: dict[str, Any] = copy.deepcopy(dict(DEFAULT_CONFIG))

    if config_path.exists():
        try:
            with open(config_path, encoding='utf-8') as f:
                file_config: dict[str, Any] | None = yaml.safe_load(f)
                if file_config:
                    config = _deep_merge(config, file_config)
        except (OSError, yaml.YAMLError) as e:
            print(f"Warning: Could not load config from {config_path}: {e}")

    return config  # type: ignore[return-value]


def save_config(config: Config, config_path: Path | None = None) -> bool:
    """
    Save configuration to file.

    Returns:
        True if save was successful, False otherwise.
    """
    if config_path is None:
        config_path = get_config_path()

    try:
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(dict(config), f, default_flow_style=False, sort_keys=False)
        return True
    except (OSError, yaml.YAMLError) as e:
        print(f"Error saving config to {config_path}: {e}")
        return False


def get_alignment_settings(config: Config) -> AlignmentSettings:
    """Extract alignment settings from config."""
    return config.get("alignment", DEFAULT_CONFIG["alignment"]).copy()  # type: ignore[return-value]


def get_recognition_settings(config: Config) -> RecognitionSettings:
    """Extract recognizer settings from config."""
    return config.get("recognition",
                      DEFAULT_CONFIG["recognition"]
                      ).copy()  # type: ignore[return-value]


def update_config_locale(config: Config, locale: str | None) -> Config:
    """
    Return a copy of the config with a new recognizer locale.

    Args:
        config: Current configuration.
        locale: BCP 47 language tag, or None for the browser default.
    """
    new_config: dict[str, Any] = _deep_merge({}, config)
    new_config["locale"] = locale
    return new_config  # type: ignore[return-value]
