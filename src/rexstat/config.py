# -*- coding: ascii -*-
"""Configuration loading."""

import copy
import logging
import os
from typing import Any, Dict, Optional

import yaml

from .report import COLUMN_WIDTH, CROSS_WIDTH, LABEL_WIDTH

LOG = logging.getLogger(__name__)


class ConfigError(RuntimeError):
    """Configuration file missing, unreadable or not a YAML mapping."""


DEFAULT_CONFIG: Dict[str, Any] = {
    'task': 'rex',
    'id': 'run',
    'settings': {},
    'report': {
        'label_width': LABEL_WIDTH,
        'cross_width': CROSS_WIDTH,
        'column_width': COLUMN_WIDTH,
    },
    'io': {
        'snapshot_out': None,
        'pivot_out': None,
    },
}


def deep_merge(defaults: Dict[str, Any], user_config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep merge user configuration with defaults, preserving user values.

    Args:
        defaults: Default configuration dictionary
        user_config: User configuration dictionary

    Returns:
        Merged configuration with user values taking precedence
    """
    result = copy.deepcopy(defaults)

    def _merge_recursive(d, u):
        for k, v in u.items():
            if isinstance(v, dict) and isinstance(d.get(k), dict):
                _merge_recursive(d[k], v)
            else:
                d[k] = v

    _merge_recursive(result, user_config or {})
    return result


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from a YAML file merged over DEFAULT_CONFIG.

    Without a path the defaults are returned.

    Raises:
        ConfigError: If the file cannot be read or does not hold a mapping
    """
    if not config_path:
        return copy.deepcopy(DEFAULT_CONFIG)
    if not os.path.exists(config_path):
        raise ConfigError(f"Config file not found: {config_path}")
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            user_config = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Error loading config {config_path}: {e}") from e

    if user_config is None:
        user_config = {}
    if not isinstance(user_config, dict):
        raise ConfigError(f"Config {config_path} must contain a mapping, got {type(user_config).__name__}")
    LOG.debug("Loaded config from %s", config_path)
    return deep_merge(DEFAULT_CONFIG, user_config)


def report_widths(config: Dict[str, Any]) -> Dict[str, int]:
    """Return the render_report() width arguments from a config."""
    report_cfg = config.get('report') or {}
    return {
        'label_width': int(report_cfg.get('label_width', LABEL_WIDTH)),
        'cross_width': int(report_cfg.get('cross_width', CROSS_WIDTH)),
        'column_width': int(report_cfg.get('column_width', COLUMN_WIDTH)),
    }
