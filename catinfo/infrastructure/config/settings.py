"""Provides functions for loading and accessing configuration settings.

Supports loading from .env files, environment variables, and a dedicated
configuration file (~/.catinfo/config.yaml). Keys are dotted paths such as
'cache.memory.max_entries'; the matching environment variable is the key
upper-cased with dots replaced by underscores (CACHE_MEMORY_MAX_ENTRIES).
"""

import logging
import os
from pathlib import Path
from typing import Any, Optional, Dict, Tuple

import yaml
from dotenv import load_dotenv

from catinfo.domain.models.common import BackoffPolicy

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".catinfo"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
DEFAULT_CACHE_DB_PATH = DEFAULT_CONFIG_DIR / "cache" / "images.sqlite3"
ENV_FILE_NAME = ".env"

# --- Global Configuration Store (Simple Approach) ---
_config: Dict[str, Any] = {}
_test_config: Dict[str, Any] = {}  # For testing purposes
_loaded = False

def _flatten(data: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
    """Turns nested YAML mappings into dotted keys ({'a': {'b': 1}} -> {'a.b': 1})."""
    flat: Dict[str, Any] = {}
    for key, value in data.items():
        full_key = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(_flatten(value, prefix=f"{full_key}."))
        else:
            flat[full_key] = value
    return flat

def load_configuration(config_file: Path = DEFAULT_CONFIG_FILE, env_file: Optional[Path] = None, force: bool = False) -> None:
    """Loads configuration from environment, .env file, and YAML file.

    Priority order (highest to lowest):
    1. Environment Variables
    2. .env file
    3. YAML configuration file
    4. Default values passed to get_config

    Args:
        config_file: Path to the YAML configuration file.
        env_file: Path to the .env file (searches upwards from cwd if None).
        force: Reload even if configuration was already loaded.
    """
    global _config, _loaded
    if _loaded and not force:
        logger.debug("Configuration already loaded.")
        return

    _config = {}

    # 1. Load from YAML file (Lowest priority)
    if config_file.exists():
        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                yaml_config = yaml.safe_load(f)
            if isinstance(yaml_config, dict):
                _config.update(_flatten(yaml_config))
                logger.info(f"Loaded configuration from YAML: {config_file}")
            elif yaml_config is not None:
                logger.warning(f"YAML config file {config_file} did not contain a dictionary.")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load or parse YAML config {config_file}: {e}")
    else:
        logger.debug(f"YAML config file not found: {config_file}")

    # 2. Load from .env file (Medium priority)
    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path:
        # override=False: ENV VARS take precedence
        if load_dotenv(dotenv_path=dotenv_path, override=False):
            logger.info(f"Loaded environment variables from: {dotenv_path}")
    else:
        logger.debug("No .env file found at or above current directory.")

    # 3. Environment Variables (Highest priority) are handled in get_config

    _loaded = True
    logger.debug("Configuration loading process completed.")

def _coerce(value: str) -> Any:
    """Converts common string forms from the environment to Python values."""
    if value.lower() == 'true':
        return True
    if value.lower() == 'false':
        return False
    try:
        if '.' in value:
            return float(value)
        return int(value)
    except (ValueError, TypeError):
        return value

def get_config(key: str, default: Any = None) -> Any:
    """
    Get a configuration value by key.

    Priority:
    1. Test configuration (if in testing mode)
    2. Environment variable
    3. YAML config
    4. Default value

    Args:
        key: The configuration key (dotted, e.g. 'api.base_url')
        default: Default value if the key is not found

    Returns:
        The configuration value
    """
    if key in _test_config:
        return _test_config[key]

    env_key = key.upper().replace('.', '_')
    if env_key in os.environ:
        return _coerce(os.environ[env_key])

    if key in _config:
        return _config[key]

    return default

def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    cwd = Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None

# --- Convenience Functions ---

def get_api_key() -> Optional[str]:
    """Catalog API key: CAT_API_KEY env var first, then api.key."""
    key = get_config('cat_api_key') or get_config('api.key')
    return str(key) if key else None

def get_api_base_url() -> str:
    return str(get_config('api.base_url', 'https://api.thecatapi.com/v1'))

def get_request_timeout() -> float:
    return float(get_config('api.timeout_seconds', 10.0))

def get_rate_limit() -> Tuple[int, float]:
    """(max requests, window seconds) for outgoing catalog calls."""
    return (
        int(get_config('api.rate_limit.requests', 10)),
        float(get_config('api.rate_limit.window_seconds', 1.0)),
    )

def get_retry_settings() -> BackoffPolicy:
    return BackoffPolicy(
        max_retries=int(get_config('api.retry.max_retries', 3)),
        initial_delay=float(get_config('api.retry.initial_backoff_seconds', 0.5)),
        factor=float(get_config('api.retry.backoff_factor', 2.0)),
    )

def get_cache_db_path() -> Path:
    return Path(get_config('cache.disk.path', DEFAULT_CACHE_DB_PATH)).expanduser()

def get_memory_limits() -> Tuple[int, int]:
    """(max entries, max cost in bytes) for the memory cache."""
    return (
        int(get_config('cache.memory.max_entries', 100)),
        int(get_config('cache.memory.max_cost_bytes', 50 * 1024 * 1024)),
    )

def get_sweep_settings() -> Tuple[float, float, Optional[float]]:
    """(interval seconds, max age seconds, initial delay seconds or None)."""
    initial_delay = get_config('cache.disk.sweep_initial_delay_seconds')
    return (
        float(get_config('cache.disk.sweep_interval_seconds', 24 * 60 * 60)),
        float(get_config('cache.disk.max_age_seconds', 30 * 24 * 60 * 60)),
        float(initial_delay) if initial_delay is not None else None,
    )

def set_config_for_testing(config_dict: Dict[str, Any]) -> None:
    """
    Set configuration values for testing purposes.
    These values will override any existing configuration.

    Args:
        config_dict: Dictionary of configuration values to set
    """
    _test_config.update(config_dict)
    logger.debug(f"Set testing configuration: {config_dict}")

def clear_test_config() -> None:
    """Clear all testing configuration values."""
    _test_config.clear()
    logger.debug("Cleared testing configuration")
