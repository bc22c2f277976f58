"""
Generation service HTTP client.

This module provides HTTP session management, retry logic, and response
parsing for the generateContent endpoint. Includes exponential backoff and
connection pooling.
"""

import logging
import time
from typing import Any, Dict, Optional

import requests
from requests.adapters import HTTPAdapter

from ..prompting.parameters import GenerationParameters
from .config import GenerationServiceConfig
from .exceptions import APIError, AuthenticationError, RateLimitError

logger = logging.getLogger(__name__)

USER_AGENT = "markdown-ai/0.1.0"


class GeminiClient:
    """
    HTTP client for the generateContent API with error handling and retries.

    Features:
        - HTTP session reuse with connection pooling
        - Exponential backoff on 5xx responses and network errors
        - Immediate failure on authentication errors, rate limits and other 4xx responses
        - Extraction of candidate text and service error messages

    Example:
        >>> client = GeminiClient(GenerationServiceConfig(api_key="AIza..."))
        >>> text = client.generate("Say hello", GenerationParameters())
    """

    def __init__(self, config: GenerationServiceConfig) -> None:
        """
        Initialize the client with configuration.

        Args:
            config: GenerationServiceConfig instance with validated settings
        """
        self.config = config
        self._session = requests.Session()
        self._session.headers.update({
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
            "x-goog-api-key": config.api_key,
        })

        adapter = HTTPAdapter(
            pool_connections=2,
            pool_maxsize=4,
            max_retries=0  # Retries are handled in make_request_with_retry
        )
        self._session.mount('http://', adapter)
        self._session.mount('https://', adapter)

    def generate(self, prompt: str, params: GenerationParameters) -> str:
        """
        Send one prompt and return the generated text.

        Args:
            prompt: Complete prompt text
            params: Sampling settings

        Returns:
            Concatenated text of the first candidate

        Raises:
            AuthenticationError: For 401/403 responses
            RateLimitError: For 429 responses
            APIError: For other failures or an empty response
        """
        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": params.to_request_config(),
        }
        logger.debug(f"Calling {self.config.model} with {len(prompt)} prompt chars")
        response = self.make_request_with_retry("POST", self.config.endpoint, json=payload)
        return self._extract_text(response)

    def make_request_with_retry(self, method: str, url: str, **kwargs) -> requests.Response:
        """
        Make an HTTP request with exponential backoff.

        Args:
            method: HTTP method (GET, POST, etc.)
            url: Request URL
            **kwargs: Additional request arguments

        Returns:
            Response object for successful requests

        Raises:
            AuthenticationError: For 401/403 errors
            RateLimitError: For 429 errors
            APIError: For other 4xx errors, or after all retries are exhausted
        """
        last_exception: Optional[APIError] = None
        kwargs.setdefault("timeout", self.config.timeout)

        for attempt in range(self.config.max_retries + 1):
            try:
                method_func = getattr(self._session, method.lower())
                response = method_func(url, **kwargs)
            except (requests.ConnectionError, requests.Timeout) as e:
                logger.warning(f"Network error on attempt {attempt + 1}: {e}")
                last_exception = APIError(f"Network error: {e}")
            else:
                if response.status_code == 200:
                    return response

                error_msg = self._extract_error_message(response)
                if response.status_code in (401, 403):
                    raise AuthenticationError(error_msg or "Invalid API key", response.status_code)
                if response.status_code == 429:
                    raise RateLimitError(
                        error_msg or "Rate limit exceeded",
                        retry_after=self._retry_after(response)
                    )
                if response.status_code < 500:
                    raise APIError(
                        error_msg or f"API request failed with status {response.status_code}",
                        response.status_code
                    )
                logger.warning(f"Server error {response.status_code} on attempt {attempt + 1}")
                last_exception = APIError(
                    error_msg or f"API request failed with status {response.status_code}",
                    response.status_code
                )

            if attempt < self.config.max_retries:
                time.sleep(self.config.retry_delay * (2 ** attempt))

        if last_exception:
            raise last_exception
        raise APIError("Request failed after all retry attempts")

    def close(self) -> None:
        self._session.close()

    @staticmethod
    def _retry_after(response: requests.Response) -> Optional[int]:
        retry_after = response.headers.get("Retry-After")
        try:
            return int(retry_after) if retry_after else None
        except (ValueError, TypeError):
            return None

    @staticmethod
    def _extract_error_message(response: requests.Response) -> Optional[str]:
        """Pull a message out of an error body, None when the body is not JSON."""
        try:
            error_data = response.json()
        except ValueError:
            return None
        if not isinstance(error_data, dict) or "error" not in error_data:
            return None
        if isinstance(error_data["error"], dict):
            return error_data["error"].get("message", "Unknown API error")
        return str(error_data["error"])

    @staticmethod
    def _extract_text(response: requests.Response) -> str:
        try:
            data: Dict[str, Any] = response.json()
        except ValueError as e:
            raise APIError(f"Response is not valid JSON: {e}")

        candidates = data.get("candidates") or []
        if not candidates:
            block_reason = (data.get("promptFeedback") or {}).get("blockReason")
            if block_reason:
                raise APIError(f"Prompt was blocked by the service: {block_reason}")
            raise APIError("Response contained no candidates")

        parts = (candidates[0].get("content") or {}).get("parts") or []
        text = "".join(part.get("text", "") for part in parts)
        if not text:
            finish_reason = candidates[0].get("finishReason", "unknown")
            raise APIError(f"Response contained no text (finish reason: {finish_reason})")
        return text
