"""
Exceptions package for markdown-ai.

This package contains custom exception classes for configuration loading
and for failures inside the processing pipeline.
"""

from .config_exceptions import (
    ConfigurationError,
    ConfigurationFileNotFoundError,
    ConfigurationValidationError,
    EnvironmentVariableError,
    ConfigurationSchemaError,
)

from .system_exceptions import (
    MarkdownAIError,
    InitializationError,
    GenerationError,
    ProcessingCancelledError,
    InvalidStateTransitionError,
    ErrorSeverity,
    ErrorContext,
    ErrorRecoveryAction,
)

__all__ = [
    # Configuration exceptions
    "ConfigurationError",
    "ConfigurationFileNotFoundError",
    "ConfigurationValidationError",
    "EnvironmentVariableError",
    "ConfigurationSchemaError",
    # Pipeline exceptions
    "MarkdownAIError",
    "InitializationError",
    "GenerationError",
    "ProcessingCancelledError",
    "InvalidStateTransitionError",
    "ErrorSeverity",
    "ErrorContext",
    "ErrorRecoveryAction",
]
