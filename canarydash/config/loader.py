"""Configuration loading and parsing."""

import copy
import yaml
from pathlib import Path
from typing import Dict, Any, Optional


class ConfigError(Exception):
    """Configuration-related errors."""
    pass


DEFAULT_CONFIG: Dict[str, Any] = {
    'api': {
        'base_url': 'http://localhost:8080',
        'request_timeout': None,
        'clear_path': '/api/matches/clear',
    },
    'polling': {
        'interval_seconds': 5,
        'overlap': 'allow',
        'stale_after_cycles': 3,
        'performance_window_minutes': 60,
    },
    'dashboard': {
        'page_size': 20,
        'default_time_range': 30,
        'time_ranges': [5, 15, 30, 60, 360, 1440],
    },
    'lookup': {
        'base_url': 'https://crt.sh/',
    },
    'theme': {
        'state_file': '~/.config/canarydash/state.json',
    },
    'logging': {
        'level': 'INFO',
        'file': None,
        'console': True,
    },
}


def merge_config(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep-merge ``override`` onto a copy of ``base``.

    Nested dictionaries merge key by key; any other value replaces.
    """
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = merge_config(result[key], value)
        else:
            result[key] = value
    return result


LOCAL_CONFIG_NAME = "config.yaml"


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    # Empty file: every setting keeps its default
    data = {} if data is None else data
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must hold a YAML dictionary at the top level")
    return data


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Build the effective configuration.

    With no path, ``./config.yaml`` is used when present; otherwise the
    built-in defaults are returned unchanged. An explicit path must exist.

    Raises:
        ConfigError: missing explicit file, unreadable file or bad YAML
    """
    if config_path is not None:
        path = Path(config_path).expanduser()
        if not path.is_file():
            raise ConfigError(
                f"No config file at {path} (see config.yaml.example for the available settings)"
            )
    else:
        path = Path.cwd() / LOCAL_CONFIG_NAME
        if not path.is_file():
            return copy.deepcopy(DEFAULT_CONFIG)

    return merge_config(DEFAULT_CONFIG, _read_yaml(path))
