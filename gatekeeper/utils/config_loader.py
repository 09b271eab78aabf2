"""
Configuration Loader

Loads the Gatekeeper YAML configuration file, applies environment
overrides and validates it into a GatekeeperConfig.
"""

import yaml
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional
import os

from gatekeeper.exceptions import ConfigurationError


DEFAULT_CONFIG_FILE = '/etc/gatekeeper.conf.yml'
ENV_PREFIX = 'GATEKEEPER_'

REQUIRED_KEYS = [
    'device_hostname',
    'device_user',
    'device_password',
    'server_endpoint'
]


class ConfigLoader:
    """
    Load YAML configuration files.
    """

    @staticmethod
    def load(config_path: str) -> Dict[str, Any]:
        """
        Load a YAML configuration file.

        Args:
            config_path: Path to YAML file

        Returns:
            Configuration dictionary

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If the document is not a mapping
            yaml.YAMLError: If YAML is invalid
        """
        path = Path(config_path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(path, 'r') as f:
            config = yaml.safe_load(f)

        if config is None:
            config = {}

        if not isinstance(config, dict):
            raise ValueError(f"Configuration file {config_path} must contain a mapping")

        return config

    @staticmethod
    def load_with_env_override(
        config_path: str,
        env_prefix: str = ENV_PREFIX,
        required_keys: Optional[list] = None
    ) -> Dict[str, Any]:
        """
        Load config and override with environment variables.

        Environment variables matching env_prefix override config values.
        For example, GATEKEEPER_DEVICE_PASSWORD overrides config['device_password'].
        Required keys may be supplied through the environment alone.

        Args:
            config_path: Path to YAML file
            env_prefix: Prefix for environment variables
            required_keys: Keys that must be present after overrides

        Returns:
            Configuration dictionary with env overrides applied
        """
        config = ConfigLoader.load(config_path)

        for key, value in os.environ.items():
            if key.startswith(env_prefix):
                config_key = key[len(env_prefix):].lower()
                config[config_key] = value

        if required_keys:
            missing = [key for key in required_keys if key not in config]
            if missing:
                raise ValueError(f"Missing required configuration keys: {missing}")

        return config


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ('1', 'true', 'yes', 'on'):
            return True
        if lowered in ('0', 'false', 'no', 'off', ''):
            return False
    if isinstance(value, int):
        return bool(value)
    raise ValueError(f"not a boolean: {value!r}")


@dataclass
class GatekeeperConfig:
    """Validated runtime configuration"""
    device_hostname: str
    device_user: str
    device_password: str
    server_endpoint: str
    device_enable: str = ""
    device_port: int = 22
    device_timeout: float = 10
    command_timeout: float = 60
    max_attempts: int = 3
    lock_file: str = '/var/run/gatekeeper.lock'
    lock_timeout: float = 1.0
    lock_poll_interval: float = 0.5
    cache_file: Optional[str] = None
    publish_timeout: float = 30
    notify_enabled: bool = False
    notify_endpoint: Optional[str] = None
    notify_room_id: Optional[str] = None
    notify_verify_tls: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GatekeeperConfig':
        """
        Build a config from a raw mapping, coercing string values.

        Unknown keys are ignored so that one YAML file can be shared
        with other tools.

        Raises:
            ConfigurationError: If a value is missing or has the wrong type
        """
        missing = [key for key in REQUIRED_KEYS if not data.get(key)]
        if missing:
            raise ConfigurationError(f"Missing required configuration keys: {missing}")

        kwargs: Dict[str, Any] = {}
        for f in fields(cls):
            if f.name not in data:
                continue
            value = data[f.name]
            try:
                kwargs[f.name] = cls._coerce(f.name, value)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"Invalid value for {f.name}: {e}") from e

        config = cls(**kwargs)
        config.validate()
        return config

    @staticmethod
    def _coerce(name: str, value: Any) -> Any:
        if name in ('device_port', 'max_attempts'):
            return int(value)
        if name in ('device_timeout', 'command_timeout', 'lock_timeout',
                    'lock_poll_interval', 'publish_timeout'):
            return float(value)
        if name in ('notify_enabled', 'notify_verify_tls'):
            return _to_bool(value)
        if value is None:
            return None
        return str(value)

    def validate(self):
        """
        Check value ranges.

        Raises:
            ConfigurationError: On the first invalid value
        """
        if self.max_attempts < 1:
            raise ConfigurationError("max_attempts must be at least 1")

        for name in ('device_timeout', 'command_timeout', 'publish_timeout'):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive")

        if self.lock_timeout < 0 or self.lock_poll_interval <= 0:
            raise ConfigurationError("lock_timeout must be >= 0 and lock_poll_interval > 0")

        if self.notify_enabled and not self.notify_endpoint:
            raise ConfigurationError("notify_enabled requires notify_endpoint")


def load_config(config_path: str = DEFAULT_CONFIG_FILE) -> GatekeeperConfig:
    """
    Load, override and validate the Gatekeeper configuration.

    Args:
        config_path: Path to YAML file

    Returns:
        GatekeeperConfig

    Raises:
        ConfigurationError: If the file cannot be read or is invalid
    """
    try:
        raw = ConfigLoader.load_with_env_override(config_path, required_keys=REQUIRED_KEYS)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigurationError(str(e)) from e

    return GatekeeperConfig.from_dict(raw)
