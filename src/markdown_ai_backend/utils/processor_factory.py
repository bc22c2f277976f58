"""
Processor Factory with Configuration Integration

Builds configured ChunkConfig, ProcessingConfig, GenerationSession and
ContentProcessor instances from a ConfigManager.
"""

import logging
from typing import Optional

from ..core.content_processor import ContentProcessor, ProcessingConfig
from ..core.document_processor.chunking import ChunkConfig, StructuralChunker
from ..core.generation import APIError, GenerationServiceConfig, GenerationSession, TextGenerator
from ..exceptions import ConfigurationValidationError, InitializationError
from .config import ConfigManager

logger = logging.getLogger(__name__)


class ProcessorFactory:
    """
    Factory for creating configured processing components.

    Configuration objects are cached until invalidate_cache() is called.
    The factory never closes sessions it creates; callers own them.

    Example:
        >>> factory = ProcessorFactory(ConfigManager())
        >>> with factory.create_session() as session:
        ...     processor = factory.create_processor(session)
        ...     response = processor.reformat(text)
    """

    def __init__(self, config_manager: Optional[ConfigManager] = None) -> None:
        """
        Raises:
            TypeError: If config_manager is not a ConfigManager instance
        """
        config_manager = config_manager or ConfigManager()
        if not isinstance(config_manager, ConfigManager):
            raise TypeError(f"config_manager must be ConfigManager, got: {type(config_manager)}")

        self.config_manager = config_manager
        self._chunk_config: Optional[ChunkConfig] = None
        self._processing_config: Optional[ProcessingConfig] = None

        logger.debug("ProcessorFactory initialized")

    def create_chunk_config(self) -> ChunkConfig:
        """
        ChunkConfig from the 'chunking' section.

        Raises:
            ConfigurationValidationError: If the section holds invalid values
        """
        if self._chunk_config is None:
            section = self.config_manager.get("chunking", {}) or {}
            try:
                self._chunk_config = ChunkConfig.from_dict(section)
            except ValueError as e:
                raise ConfigurationValidationError(
                    f"Invalid chunking configuration: {e}",
                    self.config_manager.config_file,
                    [str(e)],
                    ["chunking"]
                ) from e
        return self._chunk_config

    def create_processing_config(self) -> ProcessingConfig:
        """
        ProcessingConfig from the 'processing' section.

        Raises:
            ConfigurationValidationError: If the section holds invalid values
        """
        if self._processing_config is None:
            try:
                self._processing_config = ProcessingConfig.from_config_manager(self.config_manager)
            except ValueError as e:
                raise ConfigurationValidationError(
                    f"Invalid processing configuration: {e}",
                    self.config_manager.config_file,
                    [str(e)],
                    ["processing"]
                ) from e
        return self._processing_config

    def create_session(self) -> GenerationSession:
        """
        Open a GenerationSession from the 'generation' section.

        Raises:
            InitializationError: If the session cannot be created (e.g. no API key)
        """
        try:
            config = GenerationServiceConfig.from_config_manager(self.config_manager)
        except (APIError, ValueError) as e:
            raise InitializationError(
                f"Failed to initialize generation session: {e}",
                original_exception=e
            ) from e
        return GenerationSession(config)

    def create_chunker(self) -> StructuralChunker:
        return StructuralChunker(self.create_chunk_config())

    def create_processor(self, generator: TextGenerator) -> ContentProcessor:
        """Wire a ContentProcessor around a caller-owned generator."""
        chunk_config = self.create_chunk_config()
        return ContentProcessor(
            generator,
            chunk_config=chunk_config,
            processing_config=self.create_processing_config(),
            chunker=StructuralChunker(chunk_config),
        )

    def invalidate_cache(self) -> None:
        """Drop cached configuration objects, e.g. after ConfigManager.set()."""
        self._chunk_config = None
        self._processing_config = None
        logger.debug("ProcessorFactory cache invalidated")
