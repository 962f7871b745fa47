"""
Configuration management for PhotoScope
"""

import copy
import yaml
import os
import re
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Dict, Any, Optional, Union
import logging

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"


def _expand_env_vars(obj: Union[Dict, Any]) -> Union[Dict, Any]:
    """
    Recursively expand environment variables in config values.
    Supports ${VAR_NAME} syntax.
    """
    if isinstance(obj, dict):
        return {key: _expand_env_vars(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(item) for item in obj]
    elif isinstance(obj, str):
        pattern = r'\$\{([^}]+)\}'
        def replace_var(match):
            var_name = match.group(1)
            return os.getenv(var_name, match.group(0))  # Keep original if unset
        return re.sub(pattern, replace_var, obj)
    else:
        return obj


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge override into a copy of base, recursing into nested sections"""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Load configuration from YAML file

    Values from the file are merged over the defaults, so partial files
    are fine.

    Args:
        config_path: Path to config file. If None, uses default config.yaml

    Returns:
        Configuration dictionary
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH
    config_path = Path(config_path)

    if not config_path.exists():
        logger.warning(f"Config file not found: {config_path}. Using defaults.")
        return get_default_config()

    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Failed to load config from {config_path}: {e}")
        return get_default_config()

    if not isinstance(config, dict):
        logger.error(f"Config file {config_path} does not contain a mapping. Using defaults.")
        return get_default_config()

    logger.info(f"Loaded configuration from {config_path}")
    return _deep_merge(get_default_config(), _expand_env_vars(config))


def get_default_config() -> Dict[str, Any]:
    """
    Get default configuration values

    Returns:
        Default configuration dictionary
    """
    return {
        'analysis': {
            'calibration_constant': 12.5,
            'middle_gray': 0.18,
            'clip_threshold': 0.02,
            'clip_bins': 6,
            'range_bin_threshold': 0.001,
            'underexposed_mean': 0.1,
            'overexposed_mean': 0.8,
            'shadow_detail_level': 0.1,
            'highlight_detail_level': 0.9,
            'hdr_stops_threshold': 10.0,
            'allow_empty_images': False,
            'workers': 1,
        },
        'render': {
            'width': 512,
            'height': 256,
            'margin': 10,
            'line_width': 2,
        },
        'logging': {
            'level': 'INFO',
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        },
    }


def save_config(config: Dict[str, Any], config_path: Union[str, Path]) -> bool:
    """
    Save configuration to YAML file

    Args:
        config: Configuration dictionary to save
        config_path: Path where to save the config

    Returns:
        True if successful, False otherwise
    """
    try:
        with open(config_path, 'w') as f:
            yaml.dump(config, f, default_flow_style=False, indent=2)
        logger.info(f"Saved configuration to {config_path}")
        return True
    except OSError as e:
        logger.error(f"Failed to save config to {config_path}: {e}")
        return False


def get_config_value(config: Dict[str, Any], key_path: str, default: Any = None) -> Any:
    """
    Get a nested configuration value using dot notation

    Args:
        config: Configuration dictionary
        key_path: Dot-separated key path (e.g., 'analysis.clip_threshold')
        default: Default value if key not found

    Returns:
        Configuration value or default
    """
    keys = key_path.split('.')
    value = config

    try:
        for key in keys:
            value = value[key]
        return value
    except (KeyError, TypeError):
        return default


@dataclass(frozen=True)
class AnalysisSettings:
    """Tunable thresholds of the analysis engine"""
    calibration_constant: float = 12.5
    middle_gray: float = 0.18
    clip_threshold: float = 0.02
    clip_bins: int = 6
    range_bin_threshold: float = 0.001
    underexposed_mean: float = 0.1
    overexposed_mean: float = 0.8
    shadow_detail_level: float = 0.1
    highlight_detail_level: float = 0.9
    hdr_stops_threshold: float = 10.0
    allow_empty_images: bool = False
    workers: int = 1

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]]) -> 'AnalysisSettings':
        """
        Build settings from the ``analysis`` section of a config dictionary

        Unknown keys are ignored; missing keys keep their defaults.
        """
        section = get_config_value(config or {}, 'analysis', {}) or {}
        known = {f.name for f in fields(cls)}
        unknown = set(section) - known
        if unknown:
            logger.warning(f"Ignoring unknown analysis settings: {sorted(unknown)}")
        return cls(**{key: value for key, value in section.items() if key in known})
