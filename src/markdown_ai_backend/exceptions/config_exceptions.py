"""
Configuration-related exceptions for markdown-ai.

Raised while loading defaults.json, the project config file, .env values and
the schema. str() of each error is a complete message for the CLI: the
description, the offending file and numbered hints or details.
"""

from typing import List, Optional, Tuple


def _numbered(title: str, items: List[str]) -> str:
    lines = [f"\n\n{title}:"]
    lines.extend(f"  {index}. {item}" for index, item in enumerate(items, 1))
    return "\n".join(lines)


class ConfigurationError(Exception):
    """
    Base exception for configuration errors.

    Args:
        message: Error description
        config_file: File the error relates to, if any
        suggestions: Hints shown under "Suggestions:"
    """

    def __init__(
        self,
        message: str,
        config_file: Optional[str] = None,
        suggestions: Optional[List[str]] = None
    ) -> None:
        super().__init__(message)
        self.config_file = config_file
        self.suggestions = suggestions or []

    def _details(self) -> List[Tuple[str, List[str]]]:
        """Numbered sections rendered after the suggestions."""
        return []

    def __str__(self) -> str:
        msg = super().__str__()
        if self.config_file:
            msg += f"\nConfig file: {self.config_file}"
        sections = [("Suggestions", self.suggestions)] + self._details()
        for title, items in sections:
            if items:
                msg += _numbered(title, items)
        return msg


class ConfigurationFileNotFoundError(ConfigurationError):
    """An explicitly requested configuration file does not exist."""

    def __init__(
        self,
        message: str,
        config_file: Optional[str] = None,
        searched_paths: Optional[List[str]] = None
    ) -> None:
        self.searched_paths = searched_paths or []
        suggestions = [
            "Check that the configuration file exists at the given path",
            "Run without --config to use the built-in defaults",
        ]
        if self.searched_paths:
            suggestions.append(f"Searched in: {', '.join(self.searched_paths)}")
        super().__init__(message, config_file, suggestions)


class ConfigurationValidationError(ConfigurationError):
    """
    The merged configuration (or a section turned into a dataclass) is invalid.

    Attributes:
        validation_errors: One message per violation
        invalid_fields: Dotted paths of the offending fields, e.g. 'chunking.max_chunk_chars'
    """

    def __init__(
        self,
        message: str,
        config_file: Optional[str] = None,
        validation_errors: Optional[List[str]] = None,
        invalid_fields: Optional[List[str]] = None
    ) -> None:
        self.validation_errors = validation_errors or []
        self.invalid_fields = invalid_fields or []
        suggestions = ["Compare the file with the shipped defaults.json"]
        if self.invalid_fields:
            suggestions.append(f"Fix these fields: {', '.join(self.invalid_fields)}")
        super().__init__(message, config_file, suggestions)

    def _details(self) -> List[Tuple[str, List[str]]]:
        return [("Validation errors", self.validation_errors)]


class EnvironmentVariableError(ConfigurationError):
    """An environment variable is missing or holds a value of the wrong type."""

    def __init__(
        self,
        message: str,
        variable_name: Optional[str] = None,
        required_variables: Optional[List[str]] = None
    ) -> None:
        self.variable_name = variable_name
        self.required_variables = required_variables or []
        suggestions = ["Check the .env file in the working directory"]
        if variable_name:
            suggestions.append(f"Set {variable_name} in .env file or environment")
        if self.required_variables:
            suggestions.append(f"Required variables: {', '.join(self.required_variables)}")
        super().__init__(message, None, suggestions)


class ConfigurationSchemaError(ConfigurationError):
    """The packaged config_schema.json cannot be loaded or is not a valid schema."""

    def __init__(
        self,
        message: str,
        schema_file: Optional[str] = None,
        schema_errors: Optional[List[str]] = None
    ) -> None:
        self.schema_errors = schema_errors or []
        super().__init__(message, schema_file, ["Reinstall markdown-ai to restore the packaged schema"])

    def _details(self) -> List[Tuple[str, List[str]]]:
        return [("Schema errors", self.schema_errors)]
