"""
Configuration file paths and constants for markdown-ai.

This module provides the ConfigPaths dataclass containing default paths
and constants used throughout the configuration system.
"""

from dataclasses import dataclass
from pathlib import Path

PACKAGE_CONFIG_DIR = Path(__file__).resolve().parent


@dataclass
class ConfigPaths:
    """Configuration file paths and constants."""

    DEFAULT_CONFIG_FILE: str = "markdown_ai.config.json"
    DEFAULTS_FILE: str = str(PACKAGE_CONFIG_DIR / "defaults.json")
    SCHEMA_FILE: str = str(PACKAGE_CONFIG_DIR / "config_schema.json")
    ENV_FILE: str = ".env"
