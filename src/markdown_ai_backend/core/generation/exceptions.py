"""
Generation service exceptions.

Exception classes for failures of the HTTP generation service. The content
processor wraps any of these in a GenerationError carrying chunk counts.

Exception Hierarchy:
    APIError
    ├── RateLimitError
    └── AuthenticationError
"""

from typing import Optional

from ...exceptions import MarkdownAIError, ErrorContext, ErrorRecoveryAction, ErrorSeverity


class APIError(MarkdownAIError):
    """
    Exception raised for general generation API errors.

    Attributes:
        status_code: HTTP status code if available
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(
            message,
            ErrorSeverity.MEDIUM,
            context=ErrorContext(operation="generate_content", additional_data={"status_code": status_code}),
            suggested_actions=[ErrorRecoveryAction.RETRY_OPERATION, ErrorRecoveryAction.CHECK_NETWORK],
        )
        self.status_code = status_code


class RateLimitError(APIError):
    """
    Exception raised when the service rejects a call with HTTP 429.

    Attributes:
        retry_after: Suggested retry delay in seconds (if provided by the service)
    """

    def __init__(self, message: str, retry_after: Optional[int] = None) -> None:
        super().__init__(message, status_code=429)
        self.retry_after = retry_after


class AuthenticationError(APIError):
    """Exception raised for missing or rejected API keys (HTTP 401/403)."""

    def __init__(self, message: str, status_code: int = 401) -> None:
        super().__init__(message, status_code=status_code)
        self._suggested_actions = [ErrorRecoveryAction.UPDATE_CREDENTIALS]
