"""
Generation session.

A GenerationSession is the caller-owned handle to the generation service.
The content processor only ever sees it through the TextGenerator protocol
and never holds credentials itself.
"""

import logging
from typing import Optional

from ...exceptions import InitializationError
from ..prompting.parameters import GenerationParameters
from .client import GeminiClient
from .config import GenerationServiceConfig
from .exceptions import APIError

logger = logging.getLogger(__name__)


class GenerationSession:
    """
    Caller-owned connection to the generation service.

    Args:
        config: Service configuration; loaded from the environment when omitted
        client: Pre-built client, mainly for tests

    Raises:
        InitializationError: If the configuration or client cannot be built

    Example:
        >>> with GenerationSession(GenerationServiceConfig(api_key="AIza...")) as session:
        ...     processor = ContentProcessor(session)
        ...     response = processor.reformat(text)
    """

    def __init__(
        self,
        config: Optional[GenerationServiceConfig] = None,
        client: Optional[GeminiClient] = None
    ) -> None:
        try:
            self.config = config or GenerationServiceConfig.from_environment()
            self._client = client or GeminiClient(self.config)
        except (APIError, ValueError) as e:
            raise InitializationError(
                f"Failed to initialize generation session: {e}",
                original_exception=e
            ) from e
        self._closed = False
        logger.info(f"Generation session ready for model {self.config.model}")

    @property
    def model(self) -> str:
        return self.config.model

    @property
    def closed(self) -> bool:
        return self._closed

    def generate(self, prompt: str, params: GenerationParameters) -> str:
        """
        Run one generation call.

        Raises:
            APIError: If the session is closed or the call fails
        """
        if self._closed:
            raise APIError("Generation session is closed")
        return self._client.generate(prompt, params)

    def verify_connection(self) -> None:
        """
        Send a minimal request to confirm the key and model work.

        Raises:
            InitializationError: If the test request fails
        """
        try:
            self._client.generate(
                "Test",
                GenerationParameters(temperature=0.1, top_k=1, top_p=0.8, max_output_tokens=10)
            )
        except APIError as e:
            raise InitializationError(
                f"Generation service check failed: {e}",
                original_exception=e
            ) from e

    def close(self) -> None:
        if not self._closed:
            self._client.close()
            self._closed = True
            logger.debug("Generation session closed")

    def __enter__(self) -> 'GenerationSession':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
