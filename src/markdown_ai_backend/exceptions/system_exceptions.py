"""
System-wide exception classes for markdown-ai.

This module defines the processing error hierarchy with severity levels,
context preservation, and recovery action suggestions. Every error that
can leave the processing pipeline derives from MarkdownAIError so the
orchestrator boundary can turn it into a failure response.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Dict, Any, List, Optional, Union


class ErrorSeverity(Enum):
    """Error severity levels with ordering support."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    def __lt__(self, other):
        """Enable ordering of severity levels."""
        if not isinstance(other, ErrorSeverity):
            return NotImplemented

        order = {
            ErrorSeverity.LOW: 1,
            ErrorSeverity.MEDIUM: 2,
            ErrorSeverity.HIGH: 3,
            ErrorSeverity.CRITICAL: 4
        }
        return order[self] < order[other]

    def __ge__(self, other):
        if not isinstance(other, ErrorSeverity):
            return NotImplemented
        return not self < other


class ErrorRecoveryAction(Enum):
    """Recovery action suggestions for different error types."""
    CHECK_CONFIGURATION = "Check configuration file for missing or invalid settings"
    RETRY_OPERATION = "Retry the operation after a brief delay"
    CHECK_NETWORK = "Check network connectivity and endpoint availability"
    UPDATE_CREDENTIALS = "Update or refresh the generation service API key"
    REDUCE_INPUT = "Reduce the size of the document or lower the chunk size"
    CONTACT_SUPPORT = "Contact system administrator or support team"

    def __str__(self):
        return self.value


class ErrorContext:
    """
    Error context information attached to a pipeline failure.

    Carries the operation name and an optional request identifier plus a
    free-form dictionary of extra data (chunk counts, state names).
    """
    __slots__ = ('operation', 'request_id', '_additional_data')

    def __init__(
        self,
        operation: str,
        request_id: Optional[str] = None,
        additional_data: Optional[Dict[str, Any]] = None
    ):
        self.operation = operation
        self.request_id = request_id
        self._additional_data = dict(additional_data or {})

    @property
    def additional_data(self) -> Dict[str, Any]:
        """Get additional data dictionary."""
        return self._additional_data

    def add_data(self, key: str, value: Any) -> None:
        """Attach a value to the context."""
        self._additional_data[key] = value

    def to_dict(self) -> Dict[str, Any]:
        """Convert context to dictionary representation."""
        result = {"operation": self.operation}
        if self.request_id is not None:
            result["request_id"] = self.request_id
        if self._additional_data:
            result["additional_data"] = dict(self._additional_data)
        return result


class MarkdownAIError(Exception):
    """
    Base exception class for markdown-ai.

    Args:
        message: Human readable description
        severity: ErrorSeverity of the failure
        context: ErrorContext or plain dict with an 'operation' key
        suggested_actions: Recovery hints, enum members or free text
        original_exception: Underlying exception, if any
    """

    def __init__(
        self,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        context: Optional[Union[ErrorContext, Dict[str, Any]]] = None,
        suggested_actions: Optional[List[Union[ErrorRecoveryAction, str]]] = None,
        original_exception: Optional[Exception] = None
    ):
        super().__init__(message)
        self._message = message
        self._severity = severity
        self._original_exception = original_exception

        if isinstance(context, dict):
            self._context = ErrorContext(
                operation=context.get('operation', 'unknown'),
                request_id=context.get('request_id'),
                additional_data=context.get('additional_data', {})
            )
        else:
            self._context = context or ErrorContext(operation="unknown")

        self._suggested_actions = self._process_suggested_actions(suggested_actions)
        self._timestamp = None
        self._error_id = None

    @property
    def message(self) -> str:
        """Get error message."""
        return self._message

    @property
    def severity(self) -> ErrorSeverity:
        """Get error severity."""
        return self._severity

    @property
    def context(self) -> ErrorContext:
        """Get error context."""
        return self._context

    @property
    def suggested_actions(self) -> List[ErrorRecoveryAction]:
        """Get suggested recovery actions."""
        return self._suggested_actions

    @property
    def original_exception(self) -> Optional[Exception]:
        """Get original exception if available."""
        return self._original_exception

    @property
    def timestamp(self) -> datetime:
        """Get error timestamp (lazy evaluation)."""
        if self._timestamp is None:
            self._timestamp = datetime.now()
        return self._timestamp

    @property
    def error_id(self) -> str:
        """Get unique error ID (lazy evaluation)."""
        if self._error_id is None:
            self._error_id = str(uuid.uuid4())
        return self._error_id

    def _process_suggested_actions(
        self,
        actions: Optional[List[Union[ErrorRecoveryAction, str]]]
    ) -> List[ErrorRecoveryAction]:
        """Process and convert suggested actions."""
        if not actions:
            return []

        processed_actions = []
        for action in actions:
            if isinstance(action, ErrorRecoveryAction):
                processed_actions.append(action)
            elif isinstance(action, str):
                for recovery_action in ErrorRecoveryAction:
                    if action.lower() in recovery_action.value.lower():
                        processed_actions.append(recovery_action)
                        break
                else:
                    processed_actions.append(ErrorRecoveryAction.CONTACT_SUPPORT)

        return processed_actions

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        result = {
            "error_id": self.error_id,
            "error_type": type(self).__name__,
            "message": self._message,
            "severity": self._severity.value,
            "timestamp": self.timestamp.isoformat(),
            "context": self._context.to_dict(),
            "suggested_actions": [str(action) for action in self._suggested_actions]
        }
        if self._original_exception:
            result["original_exception"] = str(self._original_exception)
        return result

    def __str__(self) -> str:
        """String representation of the error."""
        return self._message


class InitializationError(MarkdownAIError):
    """The generation session or its credentials could not be built."""

    def __init__(self, message: str, severity: ErrorSeverity = ErrorSeverity.HIGH, **kwargs):
        default_actions = [
            ErrorRecoveryAction.UPDATE_CREDENTIALS,
            ErrorRecoveryAction.CHECK_CONFIGURATION
        ]
        suggested_actions = kwargs.pop('suggested_actions', default_actions)
        kwargs.setdefault('context', ErrorContext(operation="initialize_session"))
        super().__init__(message, severity, suggested_actions=suggested_actions, **kwargs)


class GenerationError(MarkdownAIError):
    """
    One external generation call failed.

    Carries how many chunks completed before the failure so callers can
    report partial progress even though the partial output is discarded.
    """

    def __init__(
        self,
        message: str,
        chunks_processed: int = 0,
        total_chunks: int = 1,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        **kwargs
    ):
        default_actions = [
            ErrorRecoveryAction.RETRY_OPERATION,
            ErrorRecoveryAction.CHECK_NETWORK,
            ErrorRecoveryAction.REDUCE_INPUT
        ]
        suggested_actions = kwargs.pop('suggested_actions', default_actions)
        super().__init__(message, severity, suggested_actions=suggested_actions, **kwargs)

        self._chunks_processed = chunks_processed
        self._total_chunks = total_chunks
        self._context.add_data("chunks_processed", chunks_processed)
        self._context.add_data("total_chunks", total_chunks)

    @property
    def chunks_processed(self) -> int:
        """Number of chunks merged before the failure."""
        return self._chunks_processed

    @property
    def total_chunks(self) -> int:
        """Number of chunks in the request."""
        return self._total_chunks


class ProcessingCancelledError(MarkdownAIError):
    """The caller cancelled the request before it finished."""

    def __init__(
        self,
        message: str = "Processing was cancelled",
        chunks_processed: int = 0,
        total_chunks: int = 0,
        **kwargs
    ):
        super().__init__(message, ErrorSeverity.LOW, **kwargs)
        self._chunks_processed = chunks_processed
        self._total_chunks = total_chunks

    @property
    def chunks_processed(self) -> int:
        return self._chunks_processed

    @property
    def total_chunks(self) -> int:
        return self._total_chunks


class InvalidStateTransitionError(MarkdownAIError):
    """A processing request tried to move between states that are not connected."""

    def __init__(self, current: str, target: str):
        super().__init__(
            f"Illegal processing state transition: {current} -> {target}",
            ErrorSeverity.CRITICAL,
            context=ErrorContext(
                operation="state_transition",
                additional_data={"current": current, "target": target}
            ),
            suggested_actions=[ErrorRecoveryAction.CONTACT_SUPPORT]
        )
        self.current = current
        self.target = target
