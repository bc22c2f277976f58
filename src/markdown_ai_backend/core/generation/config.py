"""
Generation service configuration.

Connection settings for the HTTP generation service, loadable from explicit
arguments, environment variables or the project ConfigManager.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

from .exceptions import AuthenticationError

if TYPE_CHECKING:
    from ...utils.config import ConfigManager

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-2.0-flash-exp"
API_KEY_VARIABLES = ("MARKDOWN_AI_API_KEY", "GEMINI_API_KEY")


@dataclass
class GenerationServiceConfig:
    """
    Configuration for the generation service client.

    Attributes:
        api_key: Authentication key for the service
        model: Model name used in the generateContent endpoint
        base_url: Base URL for API endpoints
        max_retries: Maximum number of retry attempts for failed requests
        retry_delay: Base delay in seconds between retries (exponential backoff)
        timeout: HTTP request timeout in seconds

    Example:
        >>> config = GenerationServiceConfig(api_key="AIza...", model="gemini-2.0-flash-exp")

    Raises:
        AuthenticationError: If api_key is None or empty
    """

    api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    base_url: str = DEFAULT_BASE_URL
    max_retries: int = 3
    retry_delay: float = 1.0
    timeout: int = 120

    def __post_init__(self) -> None:
        """
        Validate configuration.

        Raises:
            AuthenticationError: If the API key is missing
            ValueError: If other parameters are invalid
        """
        if not self.api_key:
            raise AuthenticationError("API key is required for the generation service")

        if not self.model:
            raise ValueError("model must be specified")

        self.base_url = (self.base_url or DEFAULT_BASE_URL).rstrip("/")

        if self.max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        if self.retry_delay <= 0:
            raise ValueError("retry_delay must be positive")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")

    @property
    def endpoint(self) -> str:
        """URL of the generateContent call for the configured model."""
        return f"{self.base_url}/models/{self.model}:generateContent"

    @classmethod
    def from_environment(cls) -> 'GenerationServiceConfig':
        """
        Create configuration from environment variables.

        Reads MARKDOWN_AI_API_KEY (or GEMINI_API_KEY), MARKDOWN_AI_MODEL,
        MARKDOWN_AI_BASE_URL, MARKDOWN_AI_MAX_RETRIES, MARKDOWN_AI_RETRY_DELAY
        and MARKDOWN_AI_TIMEOUT.

        Raises:
            AuthenticationError: If no API key variable is set
        """
        api_key = next((os.getenv(name) for name in API_KEY_VARIABLES if os.getenv(name)), None)
        if not api_key:
            raise AuthenticationError(
                f"API key not found in environment variables {' or '.join(API_KEY_VARIABLES)}. "
                "Please set one of them with your generation service API key."
            )

        return cls(
            api_key=api_key,
            model=os.getenv("MARKDOWN_AI_MODEL", DEFAULT_MODEL),
            base_url=os.getenv("MARKDOWN_AI_BASE_URL", DEFAULT_BASE_URL),
            max_retries=int(os.getenv("MARKDOWN_AI_MAX_RETRIES", "3")),
            retry_delay=float(os.getenv("MARKDOWN_AI_RETRY_DELAY", "1.0")),
            timeout=int(os.getenv("MARKDOWN_AI_TIMEOUT", "120")),
        )

    @classmethod
    def from_config_manager(cls, config_manager: 'ConfigManager') -> 'GenerationServiceConfig':
        """Create configuration from the 'generation' section of a ConfigManager."""
        section = config_manager.get("generation", {}) or {}
        return cls(
            api_key=section.get("api_key"),
            model=section.get("model", DEFAULT_MODEL),
            base_url=section.get("base_url", DEFAULT_BASE_URL),
            max_retries=section.get("max_retries", 3),
            retry_delay=section.get("retry_delay", 1.0),
            timeout=section.get("timeout", 120),
        )

    def __repr__(self) -> str:
        return f"GenerationServiceConfig(model={self.model!r}, base_url={self.base_url!r}, api_key=***)"
