"""
Configuration loading for the Netmagis client.

The configuration is a YAML file:

    netmagis:
      url: https://netmagis.example.com/netmagis
      username: jdoe
      password: secret
      timeout: 60        # optional
    logging:             # optional
      level: INFO
      file: netmagis_client.log
"""

import logging
from typing import Dict, NamedTuple

import yaml

from ..core.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60


class NetmagisSettings(NamedTuple):
    url: str
    username: str
    password: str
    timeout: int = DEFAULT_TIMEOUT


def load_config(config_path: str) -> Dict:
    """Load configuration from YAML file."""
    try:
        with open(config_path, "r") as f:
            config = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigError(f"unable to load YAML file: {config_path} not found")
    except yaml.YAMLError as e:
        raise ConfigError(f"unable to parse YAML content: {e}")

    if not isinstance(config, dict):
        raise ConfigError(f"{config_path} does not contain a YAML mapping")

    logger.info(f"Configuration loaded from {config_path}")
    return config


def get_netmagis_settings(config: Dict) -> NetmagisSettings:
    """
    Extract connection settings from a loaded configuration.

    Raises:
        ConfigError: if url, username or password is missing or empty
    """
    section = config.get("netmagis") or {}
    if not isinstance(section, dict):
        raise ConfigError("'netmagis' section must be a mapping")

    for key in ("url", "username", "password"):
        if not section.get(key):
            raise ConfigError(f"{key} not defined")

    timeout = section.get("timeout", DEFAULT_TIMEOUT)
    try:
        timeout = int(timeout)
    except (TypeError, ValueError):
        raise ConfigError(f"invalid timeout: {timeout!r}")

    return NetmagisSettings(
        url=str(section["url"]).rstrip("/"),
        username=str(section["username"]),
        password=str(section["password"]),
        timeout=timeout,
    )
