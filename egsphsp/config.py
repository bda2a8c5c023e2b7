"""
Configuration loading and logging setup.

Configuration is a YAML file merged over DEFAULT_CONFIG:

    io:
      buffer_size: 1048576
      strict_length: false
    sample:
      rate: 10
      seed: 0
    logging:
      level: INFO
      format: "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
"""

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from egsphsp.io.reader import BUFFER_CAPACITY

logger = logging.getLogger(__name__)


DEFAULT_CONFIG = {
    'io': {
        'buffer_size': BUFFER_CAPACITY,
        'strict_length': False,
    },
    'sample': {
        'rate': 10,
        'seed': 0,
    },
    'logging': {
        'level': 'INFO',
        'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    },
}


def _merge(defaults: Dict[str, Any], overrides: Dict[str, Any],
           section: str = '') -> Dict[str, Any]:
    merged = copy.deepcopy(defaults)
    for key, value in overrides.items():
        name = f"{section}.{key}" if section else key
        if key not in defaults:
            raise ValueError(f"Unknown configuration key '{name}'. "
                             f"Available: {list(defaults.keys())}")
        if isinstance(defaults[key], dict):
            if not isinstance(value, dict):
                raise ValueError(f"Configuration key '{name}' must be a "
                                 f"mapping")
            merged[key] = _merge(defaults[key], value, name)
        else:
            merged[key] = value
    return merged


def _is_int(value: Any) -> bool:
    # YAML true/false load as bool, which is an int subclass
    return isinstance(value, int) and not isinstance(value, bool)


def validate_config(config: Dict[str, Any]):
    """Raise ValueError for values the operations cannot use."""
    buffer_size = config['io']['buffer_size']
    if not _is_int(buffer_size) or buffer_size <= 0:
        raise ValueError(f"io.buffer_size must be a positive integer, "
                         f"got {buffer_size!r}")
    rate = config['sample']['rate']
    if not _is_int(rate) or rate < 1:
        raise ValueError(f"sample.rate must be an integer >= 1, got {rate!r}")
    if not _is_int(config['sample']['seed']):
        raise ValueError("sample.seed must be an integer")
    level = str(config['logging']['level']).upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"Unknown logging level '{level}'")


def load_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load a YAML configuration file.

    Parameters:
        path: YAML file, None for the defaults only

    Returns:
        Complete configuration dictionary
    """
    if path is None:
        config = copy.deepcopy(DEFAULT_CONFIG)
    else:
        with open(path, 'r') as f:
            try:
                overrides = yaml.safe_load(f) or {}
            except yaml.YAMLError as err:
                raise ValueError(f"Invalid configuration file {path}: "
                                 f"{err}") from err
        if not isinstance(overrides, dict):
            raise ValueError(f"Configuration file {path} must contain a "
                             f"mapping")
        config = _merge(DEFAULT_CONFIG, overrides)
        logger.debug(f"Loaded configuration from {path}")
    validate_config(config)
    return config


def setup_logging(config: Dict[str, Any], verbose: bool = False):
    """
    Configure the root logger from the `logging` section.

    Parameters:
        config: Configuration dictionary (see load_config)
        verbose: Force DEBUG level
    """
    log_config = config['logging']
    level = 'DEBUG' if verbose else str(log_config['level']).upper()

    root = logging.getLogger()
    root.setLevel(level)
    if root.hasHandlers():
        root.handlers.clear()

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(log_config['format']))
    root.addHandler(handler)
