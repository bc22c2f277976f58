"""
Main configuration manager for markdown-ai.

This module provides the ConfigManager class that orchestrates configuration
loading, merging, environment overrides and validation.
"""

import logging
import os
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ...exceptions.config_exceptions import (
    ConfigurationError,
    ConfigurationFileNotFoundError,
    ConfigurationSchemaError,
    ConfigurationValidationError,
)
from .environment import EnvironmentHandler
from .file_operations import FileOperations
from .paths import ConfigPaths
from .schema_validation import SchemaValidator


logger = logging.getLogger(__name__)

_MISSING = object()


def deep_merge_dicts(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into a copy of base; override wins on conflicts."""
    result = deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = deep_merge_dicts(result[key], value)
        else:
            result[key] = deepcopy(value)
    return result


class ConfigManager:
    """
    Configuration manager for markdown-ai.

    Handles loading, validation, and merging of configuration from multiple sources:
    - Built-in defaults shipped with the package
    - An optional user configuration file
    - Environment variables (including a .env file)

    Example:
        >>> config = ConfigManager()
        >>> config.get("chunking.max_chunk_chars")
        15000
    """

    def __init__(
        self,
        config_file: Optional[Union[str, Path]] = None,
        project_root: Optional[Union[str, Path]] = None,
        load_env: bool = True,
        validate: bool = True,
    ) -> None:
        """
        Initialize the ConfigManager.

        Args:
            config_file: Explicit configuration file; must exist when given.
                Without it, markdown_ai.config.json in project_root is used if present.
            project_root: Directory relative paths resolve against (default: cwd)
            load_env: Whether to load environment variables from .env
            validate: Whether to validate the merged configuration against the schema
        """
        self.project_root = Path(project_root or os.getcwd()).resolve()
        self.paths = ConfigPaths()
        self.explicit_config_file = config_file is not None
        self.config_file = str(config_file) if config_file is not None else self.paths.DEFAULT_CONFIG_FILE
        self.validate = validate

        self._config: Dict[str, Any] = {}
        self._loaded = False

        self.logger = logger
        self.file_ops = FileOperations(self.project_root, self.paths.ENV_FILE)
        self.schema_validator = SchemaValidator(self.file_ops, self.paths)
        self.env_handler = EnvironmentHandler()

        if load_env:
            self.file_ops.load_environment_variables()

    @property
    def config(self) -> Dict[str, Any]:
        """Get the current configuration. Loads if not already loaded."""
        if not self._loaded:
            self.load_config()
        return deepcopy(self._config)

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def load_config(self, force_reload: bool = False) -> Dict[str, Any]:
        """
        Load configuration from all sources.

        Args:
            force_reload: Force reloading even if already loaded

        Returns:
            Loaded configuration dictionary

        Raises:
            ConfigurationFileNotFoundError: If an explicit config file is missing
            ConfigurationValidationError: If the merged configuration is invalid
            ConfigurationError: If loading fails for any other reason
        """
        if self._loaded and not force_reload:
            self.logger.debug("Configuration already loaded, returning cached version")
            return deepcopy(self._config)

        try:
            defaults = self.file_ops.load_json_file(self.paths.DEFAULTS_FILE)
            user_config = self._load_user_config()
            merged = self.merge_configs(defaults, user_config)

            self.logger.debug("Applying environment variable overrides")
            merged = self.env_handler.apply_environment_overrides(merged)

            if self.validate:
                self.schema_validator.validate_config_against_schema(
                    merged, config_file=self.config_file
                )

            self._config = merged
            self._loaded = True
            self.logger.debug("Configuration loaded successfully")
            return deepcopy(self._config)

        except (ConfigurationValidationError, ConfigurationSchemaError, ConfigurationFileNotFoundError) as e:
            self.logger.error(f"Configuration loading failed: {e}")
            self._loaded = False
            raise
        except ConfigurationError:
            self._loaded = False
            raise
        except Exception as e:
            error_msg = f"Unexpected error loading configuration: {e}"
            self.logger.error(error_msg, exc_info=True)
            self._loaded = False
            raise ConfigurationError(error_msg, config_file=self.config_file) from e

    def _load_user_config(self) -> Dict[str, Any]:
        path = self.file_ops.resolve_path(self.config_file)
        if not path.exists() and not self.explicit_config_file:
            self.logger.debug(f"No configuration file at {path}, using defaults")
            return {}
        self.logger.info(f"Loading configuration from {path}")
        return self.file_ops.load_json_file(path)

    def reload_config(self) -> Dict[str, Any]:
        return self.load_config(force_reload=True)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value by key using dot notation.

        Args:
            key: Configuration key (supports dot notation like 'chunking.overlap_chars')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        if not self._loaded:
            self.load_config()

        value: Any = self._config
        try:
            for k in key.split('.'):
                value = value[k]
        except (KeyError, TypeError):
            return default
        return deepcopy(value)

    def set(self, key: str, value: Any) -> None:
        """
        Set a configuration value by key using dot notation.

        Note:
            This modifies the in-memory configuration only.
        """
        if not self._loaded:
            self.load_config()

        keys = key.split('.')
        config = self._config
        for k in keys[:-1]:
            if not isinstance(config.get(k), dict):
                config[k] = {}
            config = config[k]
        config[keys[-1]] = value

    def has(self, key: str) -> bool:
        """Check if a configuration key exists."""
        return self.get(key, _MISSING) is not _MISSING

    def reset(self) -> None:
        """Reset configuration state, forcing reload on next access."""
        self._config = {}
        self._loaded = False

    def validate_config(self, config: Optional[Dict[str, Any]] = None) -> bool:
        """
        Validate configuration against the packaged schema.

        Raises:
            ConfigurationValidationError: If validation fails
        """
        if config is None:
            config = self.config
        self.schema_validator.validate_config_against_schema(config, config_file=self.config_file)
        return True

    def merge_configs(self, *configs: Dict[str, Any]) -> Dict[str, Any]:
        """Merge configuration dictionaries; later ones override earlier ones."""
        result: Dict[str, Any] = {}
        for config in configs:
            result = deep_merge_dicts(result, config)
        return result

    def get_config_summary(self) -> Dict[str, Any]:
        """
        Summary of the current configuration state, with secrets masked.

        Returns:
            Dictionary with configuration summary
        """
        summary: Dict[str, Any] = {
            "loaded": self._loaded,
            "config_file": self.config_file,
            "project_root": str(self.project_root),
            "config_keys": [],
            "environment_overrides": [],
        }

        if self._loaded:
            summary["config_keys"] = self._get_all_keys(self._config)
            summary["environment_overrides"] = [
                {"env_var": env_var, "config_key": config_key}
                for env_var, config_key in self.env_handler.get_env_mapping().items()
                if os.getenv(env_var)
            ]

        return summary

    def _get_all_keys(self, config: Dict[str, Any], prefix: str = "") -> List[str]:
        keys = []
        for key, value in config.items():
            full_key = f"{prefix}.{key}" if prefix else key
            keys.append(full_key)
            if isinstance(value, dict):
                keys.extend(self._get_all_keys(value, full_key))
        return keys

    def get_env_var(self, var_name: str, default: Any = None, required: bool = False) -> Any:
        return self.env_handler.get_env_var(var_name, default, required)
