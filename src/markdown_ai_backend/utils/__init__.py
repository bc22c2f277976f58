"""
Utilities package for markdown-ai.

Configuration management, logging setup and the processor factory.
"""

from .config import ConfigManager, ConfigPaths
from .logging_config import LogLevel, LogFormat, JSONFormatter, LoggingManager
from .processor_factory import ProcessorFactory

__all__ = [
    "ConfigManager",
    "ConfigPaths",
    "LogLevel",
    "LogFormat",
    "JSONFormatter",
    "LoggingManager",
    "ProcessorFactory",
]
