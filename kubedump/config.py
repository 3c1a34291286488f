"""
kube-dump - Configuration Management

Supports loading configuration from:
1. YAML config file (--config)
2. Environment variables (KUBEDUMP_*)
3. Command-line arguments (highest priority)

Config file example:
```yaml
output: "./resources"
max_workers: 4
context: ${KUBE_CONTEXT:-staging}  # env var substitution
kubectl: /usr/local/bin/kubectl
log_level: INFO
```
"""
import logging
import os
import re
import stat
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from kubedump.constants import (
    DEFAULT_LOG_LEVEL,
    DEFAULT_MAX_WORKERS,
    DEFAULT_OUTPUT_DIR,
    KUBECTL,
)

logger = logging.getLogger(__name__)


# Default config file locations (checked in order)
DEFAULT_CONFIG_PATHS = [
    './kube-dump.yaml',
    './kube-dump.yml',
    '~/.kube-dump/config.yaml',
    '~/.kube-dump/config.yml',
]

# Mapping from config keys to env vars
ENV_VAR_MAPPING = {
    'output': 'KUBEDUMP_OUTPUT',
    'max_workers': 'KUBEDUMP_MAX_WORKERS',
    'context': 'KUBEDUMP_CONTEXT',
    'kubectl': 'KUBEDUMP_KUBECTL',
    'log_level': 'KUBEDUMP_LOG_LEVEL',
    'log_file': 'KUBEDUMP_LOG_FILE',
}

DEFAULTS: Dict[str, Any] = {
    'output': DEFAULT_OUTPUT_DIR,
    'max_workers': DEFAULT_MAX_WORKERS,
    'context': None,
    'kubectl': KUBECTL,
    'log_level': DEFAULT_LOG_LEVEL,
    'log_file': None,
}


def _substitute_env_vars(value: Any) -> Any:
    """Substitute ${ENV_VAR} patterns in string values."""
    if isinstance(value, str):
        # Pattern: ${VAR_NAME} or ${VAR_NAME:-default}
        pattern = r'\$\{([^}:]+)(?::-([^}]*))?\}'

        def replace(match):
            var_name = match.group(1)
            default = match.group(2) or ''
            return os.environ.get(var_name, default)

        return re.sub(pattern, replace, value)
    elif isinstance(value, dict):
        return {k: _substitute_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_substitute_env_vars(item) for item in value]
    return value


def load_config_file(config_path: str) -> Dict[str, Any]:
    """Load configuration from a YAML file."""
    path = Path(config_path).expanduser()

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    file_mode = path.stat().st_mode
    if file_mode & (stat.S_IRWXG | stat.S_IRWXO):  # Group or world access
        logger.warning(f"Config file {config_path} has loose permissions. "
                       f"Consider: chmod 600 {config_path}")

    logger.info(f"Loading config from {path}")

    with open(path) as f:
        config = yaml.safe_load(f) or {}

    return _substitute_env_vars(config)


def find_default_config() -> Optional[str]:
    """Find a config file in default locations."""
    for path in DEFAULT_CONFIG_PATHS:
        expanded = Path(path).expanduser()
        if expanded.exists():
            return str(expanded)
    return None


def load_env_config() -> Dict[str, Any]:
    """Load configuration from environment variables."""
    config: Dict[str, Any] = {}

    for config_key, env_var in ENV_VAR_MAPPING.items():
        value = os.environ.get(env_var)
        if value is not None:
            config[config_key] = value

    return config


def merge_configs(*configs: Dict[str, Any]) -> Dict[str, Any]:
    """Merge multiple config dicts. Later configs override earlier ones."""
    result: Dict[str, Any] = {}

    for config in configs:
        for key, value in config.items():
            if value is not None:
                result[key] = value

    return result


def args_to_config(args) -> Dict[str, Any]:
    """Convert argparse args to config dict format."""
    config: Dict[str, Any] = {}

    for key in DEFAULTS:
        value = getattr(args, key, None)
        if value is not None:
            config[key] = value

    return config


def apply_defaults(config: Dict[str, Any]) -> Dict[str, Any]:
    """Fill unset keys with defaults and normalize value types."""
    merged = {**DEFAULTS, **merge_configs(config)}

    try:
        merged['max_workers'] = int(merged['max_workers'])
    except (TypeError, ValueError):
        raise ValueError(f"max_workers must be an integer, got {merged['max_workers']!r}") from None

    # An empty context (e.g. from ${VAR} with VAR unset) means the default context
    if not merged.get('context'):
        merged['context'] = None

    return merged


def config_to_args(config: Dict[str, Any], args) -> None:
    """Apply config values to argparse args object."""
    for key in DEFAULTS:
        if key in config:
            setattr(args, key, config[key])


def load_config(args) -> Dict[str, Any]:
    """
    Load configuration from all sources and merge them.

    Priority (highest to lowest):
    1. CLI arguments
    2. Config file (--config or default location)
    3. Environment variables
    4. Built-in defaults

    Returns merged config dict and applies it back onto args.
    """
    configs = []

    # 1. Environment variables (lowest priority)
    env_config = load_env_config()
    if env_config:
        logger.debug("Loaded config from environment variables")
        configs.append(env_config)

    # 2. Config file
    config_path = getattr(args, 'config', None)
    if config_path:
        configs.append(load_config_file(config_path))
    else:
        default_config = find_default_config()
        if default_config:
            logger.info(f"Found default config file: {default_config}")
            configs.append(load_config_file(default_config))

    # 3. CLI arguments (highest priority)
    configs.append(args_to_config(args))

    merged = apply_defaults(merge_configs(*configs))
    config_to_args(merged, args)

    return merged


def generate_sample_config() -> str:
    """Generate a sample config file content."""
    return '''# kube-dump configuration
#
# Environment variable substitution supported:
#   ${VAR_NAME}           - required env var
#   ${VAR_NAME:-default}  - env var with default value

# Directory receiving one <resource>.log per API resource plus log.txt
output: "./resources"

# Maximum number of kubectl get commands running at once
max_workers: 2

# kubectl context (leave unset to use the current context)
# context: ${KUBE_CONTEXT}

# kubectl binary
kubectl: kubectl

# Logging level: DEBUG, INFO, WARNING, ERROR
log_level: INFO

# Also write log messages to this file
# log_file: ./kube-dump.log
'''
