"""
Runtime configuration for the harvester

Settings come from environment variables, optionally loaded from config.env.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from oai.client import DEFAULT_BASE_URL, HarvestError

CONFIG_FILE = 'config.env'


class ConfigurationError(HarvestError):
    """Raised when an environment setting has an invalid value"""
    pass


def _get_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value.strip() == '':
        return default
    try:
        result = float(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {value!r}")
    if result < 0:
        raise ConfigurationError(f"{name} must not be negative, got {value!r}")
    return result


def _get_optional_int(name: str, default: Optional[int]) -> Optional[int]:
    value = os.getenv(name)
    if value is None:
        return default
    if value.strip() == '':
        return None
    try:
        result = int(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    if result < 0:
        raise ConfigurationError(f"{name} must not be negative, got {value!r}")
    return result or None


@dataclass
class HarvestConfig:
    """Configuration for a harvest run"""
    base_url: str = DEFAULT_BASE_URL
    request_interval: float = 2.0
    request_timeout: float = 60.0
    max_pages: Optional[int] = 10000  # None = unbounded
    output_dir: str = '.'

    @classmethod
    def from_environment(cls, env_file: Optional[str] = CONFIG_FILE) -> 'HarvestConfig':
        """
        Build configuration from environment variables

        Args:
            env_file: dotenv file to load first (missing file is ignored)

        Raises:
            ConfigurationError: If a numeric setting is invalid
        """
        if env_file:
            load_dotenv(env_file)

        defaults = cls()
        return cls(
            base_url=os.getenv('OAI_BASE_URL') or defaults.base_url,
            request_interval=_get_float('OAI_REQUEST_INTERVAL', defaults.request_interval),
            request_timeout=_get_float('OAI_REQUEST_TIMEOUT', defaults.request_timeout),
            max_pages=_get_optional_int('OAI_MAX_PAGES', defaults.max_pages),
            output_dir=os.getenv('OAI_OUTPUT_DIR') or defaults.output_dir
        )
