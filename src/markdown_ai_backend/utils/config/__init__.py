"""Configuration management package.

This package provides a modular configuration system with support for:
- Built-in defaults shipped with the package
- JSON schema validation
- Environment variable and .env overrides
- Path management and file operations

Usage:
    from markdown_ai_backend.utils.config import ConfigManager

    config = ConfigManager()
    value = config.get("chunking.max_chunk_chars", 15000)
"""

from .manager import ConfigManager, deep_merge_dicts
from .paths import ConfigPaths
from .file_operations import FileOperations
from .schema_validation import SchemaValidator
from .environment import EnvironmentHandler

__all__ = [
    'ConfigManager',
    'deep_merge_dicts',
    'ConfigPaths',
    'FileOperations',
    'SchemaValidator',
    'EnvironmentHandler',
]
