"""
Environment variable handling for configuration management.

This module provides environment variable overrides, type conversion, and
validation for the markdown-ai configuration system.
"""

import json
import logging
import os
from copy import deepcopy
from typing import Any, Dict, List, Tuple

from ...exceptions.config_exceptions import (
    EnvironmentVariableError,
)


logger = logging.getLogger(__name__)

# Later entries win when several variables map to the same key.
ENV_MAPPING: Tuple[Tuple[str, str, str], ...] = (
    # (variable, config key, type)
    ('GEMINI_API_KEY', 'generation.api_key', 'string'),
    ('MARKDOWN_AI_API_KEY', 'generation.api_key', 'string'),
    ('MARKDOWN_AI_MODEL', 'generation.model', 'string'),
    ('MARKDOWN_AI_BASE_URL', 'generation.base_url', 'string'),
    ('MARKDOWN_AI_MAX_RETRIES', 'generation.max_retries', 'integer'),
    ('MARKDOWN_AI_RETRY_DELAY', 'generation.retry_delay', 'float'),
    ('MARKDOWN_AI_TIMEOUT', 'generation.timeout', 'integer'),
    ('MARKDOWN_AI_LOG_LEVEL', 'logging.level', 'string'),
    ('MARKDOWN_AI_LOG_FORMAT', 'logging.format', 'string'),
    ('MARKDOWN_AI_FIX_SYNTAX', 'processing.fix_markdown_syntax', 'boolean'),
)

SECRET_KEYS = frozenset({'generation.api_key'})


class EnvironmentHandler:
    """
    Environment variable handling for configuration management.

    Handles environment variable overrides, type conversion, and validation.
    """

    def __init__(self) -> None:
        self.logger = logger

    def get_env_mapping(self) -> Dict[str, str]:
        """Mapping of environment variable names to configuration keys."""
        return {variable: key for variable, key, _ in ENV_MAPPING}

    def convert_env_value(self, value: str, target_type: str = 'string') -> Any:
        """
        Convert environment variable string to appropriate Python type.

        Args:
            value: Environment variable value (always string)
            target_type: Target type ('string', 'boolean', 'integer', 'float', 'json')

        Returns:
            Converted value, or None for an empty string

        Raises:
            EnvironmentVariableError: If conversion fails
        """
        if not value:
            return None

        try:
            if target_type == 'boolean':
                return value.strip().lower() in ('true', '1', 'yes', 'on', 'enabled')
            elif target_type == 'integer':
                return int(value)
            elif target_type == 'float':
                return float(value)
            elif target_type == 'json':
                return json.loads(value)
            else:
                return value
        except (ValueError, json.JSONDecodeError) as e:
            raise EnvironmentVariableError(
                f"Failed to convert environment variable value '{value}' to {target_type}: {e}",
            ) from e

    def apply_environment_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply environment variable overrides to configuration.

        Args:
            config: Base configuration dictionary

        Returns:
            Copy of config with environment overrides applied
        """
        result = deepcopy(config)

        for env_var, config_key, target_type in ENV_MAPPING:
            env_value = os.getenv(env_var)
            if env_value is None:
                continue
            try:
                converted_value = self.convert_env_value(env_value, target_type)
            except EnvironmentVariableError as e:
                self.logger.warning(f"Ignoring environment variable {env_var}: {e}")
                continue
            if converted_value is None:
                continue
            self._set_nested_value(result, config_key, converted_value)
            shown = "***" if config_key in SECRET_KEYS else converted_value
            self.logger.debug(f"Applied environment override: {env_var} -> {config_key}={shown}")

        return result

    def _set_nested_value(self, config: Dict[str, Any], key_path: str, value: Any) -> None:
        keys = key_path.split('.')
        current = config
        for key in keys[:-1]:
            if not isinstance(current.get(key), dict):
                current[key] = {}
            current = current[key]
        current[keys[-1]] = value

    def get_env_var(self, var_name: str, default: Any = None, required: bool = False) -> Any:
        """
        Get environment variable with optional validation.

        Raises:
            EnvironmentVariableError: If required variable is missing
        """
        value = os.getenv(var_name, default)

        if required and value is None:
            raise EnvironmentVariableError(
                f"Required environment variable '{var_name}' is not set",
                var_name
            )

        return value

    def validate_required_env_vars(self, required_vars: List[str]) -> Dict[str, str]:
        """
        Validate that all required environment variables are set.

        Returns:
            Dictionary of variable names and values

        Raises:
            EnvironmentVariableError: If any required variables are missing
        """
        missing_vars = []
        result = {}

        for var_name in required_vars:
            value = os.getenv(var_name)
            if value is None:
                missing_vars.append(var_name)
            else:
                result[var_name] = value

        if missing_vars:
            raise EnvironmentVariableError(
                f"Missing required environment variables: {', '.join(missing_vars)}",
                None,
                missing_vars
            )

        return result
