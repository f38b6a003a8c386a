"""Client configuration loading and saving.

Settings live in a YAML file (default ``.studyshare/config.yaml``). A
missing or empty file means "all defaults".

Configuration file structure:
    page_size: 20
    request_timeout: 30
    transfer_timeout: 300
    chunk_size: 65536
    admin: false
"""

import os
from dataclasses import asdict, fields
from typing import Any, Dict

import yaml

from .errors import ConfigError, ConfigFilesystemError
from .models import ClientConfig


class ConfigLoader:
    """Handles configuration file loading, validation, and saving."""

    DEFAULT_CONFIG_DIR = '.studyshare'
    DEFAULT_CONFIG_FILE = 'config.yaml'

    POSITIVE_INT_FIELDS = {'page_size', 'chunk_size'}
    POSITIVE_NUMBER_FIELDS = {'request_timeout', 'transfer_timeout'}
    BOOL_FIELDS = {'admin'}

    @classmethod
    def default_path(cls) -> str:
        return os.path.join(cls.DEFAULT_CONFIG_DIR, cls.DEFAULT_CONFIG_FILE)

    @classmethod
    def load(cls, config_path: str) -> ClientConfig:
        """Load and validate configuration from a YAML file.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            ClientConfig with file values over defaults

        Raises:
            ConfigFilesystemError: If the file exists but cannot be read
            ConfigError: If the YAML is invalid or a value is out of range
        """
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            return ClientConfig()
        except PermissionError:
            raise ConfigFilesystemError(config_path, 'read', 'Permission denied')
        except OSError as e:
            raise ConfigFilesystemError(config_path, 'read', str(e))

        if not content.strip():
            return ClientConfig()

        try:
            config_dict = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML syntax: {str(e)}")

        if config_dict is None:
            return ClientConfig()

        if not isinstance(config_dict, dict):
            raise ConfigError(
                f"Config must be a YAML dictionary, got {type(config_dict).__name__}"
            )

        return cls._parse_config(config_dict)

    @classmethod
    def save(cls, config_path: str, config: ClientConfig) -> None:
        """Write configuration to a YAML file, creating its directory.

        Raises:
            ConfigFilesystemError: If the file cannot be written
        """
        yaml_str = yaml.safe_dump(
            asdict(config),
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False
        )

        config_dir = os.path.dirname(config_path)
        if config_dir:
            try:
                os.makedirs(config_dir, exist_ok=True)
            except OSError as e:
                raise ConfigFilesystemError(config_dir, 'create_directory', str(e))

        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                f.write(yaml_str)
        except PermissionError:
            raise ConfigFilesystemError(config_path, 'write', 'Permission denied')
        except OSError as e:
            raise ConfigFilesystemError(config_path, 'write', str(e))

    @classmethod
    def _parse_config(cls, config_dict: Dict[str, Any]) -> ClientConfig:
        known = {f.name for f in fields(ClientConfig)}
        unknown = sorted(set(config_dict) - known)
        if unknown:
            raise ConfigError(f"Unknown settings: {', '.join(unknown)}")

        values: Dict[str, Any] = {}
        for name, value in config_dict.items():
            if name in cls.BOOL_FIELDS:
                if not isinstance(value, bool):
                    raise ConfigError(f"must be true or false, got {value!r}", name)
            elif name in cls.POSITIVE_INT_FIELDS:
                # bool is an int subclass, reject it explicitly
                if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                    raise ConfigError(f"must be a positive integer, got {value!r}", name)
            elif name in cls.POSITIVE_NUMBER_FIELDS:
                if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                    raise ConfigError(f"must be a positive number, got {value!r}", name)
            values[name] = value

        return ClientConfig(**values)
