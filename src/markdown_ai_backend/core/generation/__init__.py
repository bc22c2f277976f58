"""
Generation service adapter.

HTTP access to the external text generation service behind the
TextGenerator protocol.
"""

from .exceptions import APIError, RateLimitError, AuthenticationError
from .config import GenerationServiceConfig
from .client import GeminiClient
from .protocol import TextGenerator
from .session import GenerationSession

__all__ = [
    "APIError",
    "RateLimitError",
    "AuthenticationError",
    "GenerationServiceConfig",
    "GeminiClient",
    "TextGenerator",
    "GenerationSession",
]
