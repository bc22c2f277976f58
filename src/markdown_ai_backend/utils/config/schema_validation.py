"""
Schema validation for markdown-ai configuration.

The packaged config_schema.json describes the merged configuration (defaults,
project file and environment overrides together). Every violation is
collected so one run reports all offending fields, not just the first.
"""

import logging
from typing import Any, Dict, List, Optional

import jsonschema

from ...exceptions.config_exceptions import (
    ConfigurationSchemaError,
    ConfigurationValidationError,
)
from .file_operations import FileOperations
from .paths import ConfigPaths


logger = logging.getLogger(__name__)


def _dotted(path) -> str:
    return ".".join(str(part) for part in path)


class SchemaValidator:
    """
    Validates merged configuration dictionaries against the packaged schema.

    The schema is read once per validator and checked for correctness before
    its first use.
    """

    def __init__(self, file_ops: FileOperations, paths: ConfigPaths) -> None:
        self.file_ops = file_ops
        self.paths = paths
        self._validator: Optional[jsonschema.Draft7Validator] = None

    def load_schema(self) -> Dict[str, Any]:
        """
        Read config_schema.json.

        Raises:
            ConfigurationSchemaError: If the file is missing or is not valid JSON
        """
        schema_path = self.file_ops.resolve_path(self.paths.SCHEMA_FILE)
        try:
            return self.file_ops.load_json_file(schema_path)
        except Exception as e:
            raise ConfigurationSchemaError(
                f"Could not load configuration schema: {e}",
                str(schema_path)
            ) from e

    def _get_validator(self) -> jsonschema.Draft7Validator:
        if self._validator is None:
            schema = self.load_schema()
            try:
                jsonschema.Draft7Validator.check_schema(schema)
            except jsonschema.SchemaError as e:
                raise ConfigurationSchemaError(
                    f"Invalid JSON schema: {e.message}",
                    schema_errors=[e.message]
                ) from e
            self._validator = jsonschema.Draft7Validator(schema)
        return self._validator

    def validate_config_against_schema(
        self,
        config: Dict[str, Any],
        config_file: str = "unknown"
    ) -> None:
        """
        Check a merged configuration dictionary.

        Args:
            config: Configuration to validate
            config_file: File name used in the error message

        Raises:
            ConfigurationValidationError: Listing every violation, with the
                dotted path of each offending field in invalid_fields
            ConfigurationSchemaError: If the packaged schema is broken
        """
        errors = sorted(self._get_validator().iter_errors(config), key=lambda e: _dotted(e.absolute_path))
        if not errors:
            return

        messages: List[str] = []
        invalid_fields: List[str] = []
        for error in errors:
            field = _dotted(error.absolute_path)
            messages.append(f"{field}: {error.message}" if field else error.message)
            if field and field not in invalid_fields:
                invalid_fields.append(field)

        logger.debug(f"Configuration has {len(errors)} schema violation(s): {invalid_fields}")
        raise ConfigurationValidationError(
            f"Configuration validation failed: {messages[0]}",
            config_file,
            messages,
            invalid_fields
        )
