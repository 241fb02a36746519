"""
Policy document helpers.

Handles reading YAML policy files, downloading remote policy documents and
deep-merging partial sections over defaults.
"""

import logging
import re
from typing import Dict, Any, Optional
from pathlib import Path

import requests
import yaml


logger = logging.getLogger(__name__)

_CAMEL_BOUNDARY = re.compile(r'(?<!^)(?=[A-Z])')


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep merge override dict into base dict.

    Args:
        base: Base configuration
        override: Configuration to merge in (overrides base)

    Returns:
        Merged configuration
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def normalize_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Convert camelCase keys to snake_case, recursively.

    Lets camelCase policy documents ("maxFileSize",
    "timePosition") load unchanged.
    """
    result = {}
    for key, value in data.items():
        snake = _CAMEL_BOUNDARY.sub('_', str(key)).lower()
        result[snake] = normalize_keys(value) if isinstance(value, dict) else value
    return result


def load_yaml_config(config_path: Path) -> Dict[str, Any]:
    """
    Read a YAML policy document.

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If the document is not a mapping
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        config = yaml.safe_load(f) or {}

    if not isinstance(config, dict):
        raise ValueError(f"Config {config_path} must contain a mapping")
    return config


def download_remote_config(
    config_url: str,
    timeout: int = 10,
    logger_instance: Optional[logging.Logger] = None
) -> Optional[Dict[str, Any]]:
    """
    Download and parse remote configuration from URL.

    Args:
        config_url: URL to download config from
        timeout: Request timeout in seconds
        logger_instance: Optional logger to use

    Returns:
        Parsed config dict, or None if failed
    """
    log = logger_instance or logger

    if not config_url:
        return None

    try:
        log.info(f"Downloading remote policy: {config_url}")
        response = requests.get(config_url, timeout=timeout)
        response.raise_for_status()

        # Try to parse as JSON first, then YAML
        try:
            remote_config = response.json()
        except ValueError:
            remote_config = yaml.safe_load(response.text)

        if not isinstance(remote_config, dict):
            log.warning("Remote policy is not a mapping, ignoring")
            return None

        return remote_config

    except (requests.RequestException, yaml.YAMLError) as e:
        log.error(f"Failed to download remote policy: {e}")
        return None
