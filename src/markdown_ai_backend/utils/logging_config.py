"""
Logging configuration and management.

Provides the log formats used by the CLI (standard, detailed and JSON lines),
console and optional rotating file handlers, and construction from the
'logging' configuration section.
"""

import json
import logging
import logging.handlers
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Union

# LogRecord attributes that are not user supplied extras
_STANDARD_ATTRS = frozenset({
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname', 'filename',
    'module', 'lineno', 'funcName', 'created', 'msecs', 'relativeCreated',
    'thread', 'threadName', 'processName', 'process', 'exc_info', 'exc_text',
    'stack_info', 'message', 'taskName', 'extra_data',
})


class LogLevel(Enum):
    """Log level enumeration."""
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL

    @classmethod
    def from_name(cls, name: str) -> 'LogLevel':
        """
        Raises:
            ValueError: If name is not a known level
        """
        try:
            return cls[name.strip().upper()]
        except KeyError as e:
            raise ValueError(f"Unknown log level: {name}") from e


class LogFormat(Enum):
    """Log format types."""
    STANDARD = "standard"
    JSON = "json"
    DETAILED = "detailed"


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line.

    Extra fields passed through logging's ``extra=`` argument, or a
    pre-built ``extra_data`` dict on the record, are merged into the object.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }

        extra_data = getattr(record, 'extra_data', None)
        if isinstance(extra_data, dict):
            log_data.update(extra_data)
        for attr_name, attr_value in record.__dict__.items():
            if not attr_name.startswith('_') and attr_name not in _STANDARD_ATTRS and not callable(attr_value):
                log_data[attr_name] = attr_value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str, ensure_ascii=False, separators=(',', ':'))


def parse_size(size: str) -> int:
    """Convert '10MB', '512KB', '1GB' or a plain byte count to bytes."""
    size = size.strip().upper()
    for suffix, factor in (('KB', 1024), ('MB', 1024 ** 2), ('GB', 1024 ** 3)):
        if size.endswith(suffix):
            return int(size[:-2]) * factor
    return int(size)


class LoggingManager:
    """
    Configures the root logger with console and optional file handlers.

    Example:
        >>> manager = LoggingManager(LogLevel.DEBUG, LogFormat.JSON, log_file=Path("run.log"))
        >>> logger = manager.get_logger("markdown_ai_backend")
    """

    def __init__(
        self,
        log_level: LogLevel = LogLevel.INFO,
        log_format: LogFormat = LogFormat.STANDARD,
        log_file: Optional[Path] = None,
        enable_console: bool = True,
        console_handler: Optional[logging.Handler] = None,
        enable_rotation: bool = True,
        max_file_size: str = "10MB",
        backup_count: int = 5
    ):
        """
        Args:
            log_level: Level for the root logger and every handler
            log_format: Format for the console (unless console_handler is given) and file
            log_file: Optional log file
            enable_console: Attach a console handler
            console_handler: Handler to use for the console instead of a plain
                StreamHandler (the CLI passes a RichHandler)
            enable_rotation: Use a RotatingFileHandler for log_file
            max_file_size: Rotation size, e.g. '10MB'
            backup_count: Rotated files kept
        """
        self.log_level = log_level
        self.log_format = log_format
        self.log_file = log_file
        self.enable_console = enable_console
        self.console_handler = console_handler
        self.enable_rotation = enable_rotation
        self.max_file_size = max_file_size
        self.backup_count = backup_count

        self._loggers: Dict[str, logging.Logger] = {}
        self._setup_root_logger()

    @classmethod
    def from_config(
        cls,
        section: Dict[str, Any],
        console_handler: Optional[logging.Handler] = None,
        **overrides
    ) -> 'LoggingManager':
        """Build from a 'logging' configuration section; keyword overrides win."""
        kwargs: Dict[str, Any] = {
            "log_level": LogLevel.from_name(section.get("level") or "WARNING"),
            "log_format": LogFormat(section.get("format") or "standard"),
            "log_file": Path(section["file"]) if section.get("file") else None,
            "console_handler": console_handler,
        }
        kwargs.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**kwargs)

    def _setup_root_logger(self) -> None:
        root_logger = logging.getLogger()
        root_logger.setLevel(self.log_level.value)

        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
            handler.close()

        formatter = self._create_formatters()[self.log_format]

        if self.enable_console:
            handler = self.console_handler or logging.StreamHandler()
            handler.setLevel(self.log_level.value)
            if self.console_handler is None or self.log_format is LogFormat.JSON:
                handler.setFormatter(formatter)
            root_logger.addHandler(handler)

        if self.log_file:
            file_handler = self._create_file_handler()
            file_handler.setLevel(self.log_level.value)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

    def _create_formatters(self) -> Dict[LogFormat, logging.Formatter]:
        return {
            LogFormat.STANDARD: logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            ),
            LogFormat.JSON: JSONFormatter(),
            LogFormat.DETAILED: logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(module)s:%(funcName)s:%(lineno)d - %(message)s'
            ),
        }

    def _create_file_handler(self) -> logging.Handler:
        log_file: Union[str, Path] = self.log_file
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        if self.enable_rotation:
            return logging.handlers.RotatingFileHandler(
                filename=log_file,
                maxBytes=parse_size(self.max_file_size),
                backupCount=self.backup_count,
                encoding='utf-8'
            )
        return logging.FileHandler(log_file, encoding='utf-8')

    def get_logger(self, name: str) -> logging.Logger:
        """Get or create a logger instance."""
        if name not in self._loggers:
            self._loggers[name] = logging.getLogger(name)
        return self._loggers[name]
