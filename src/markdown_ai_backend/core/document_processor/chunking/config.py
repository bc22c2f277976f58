"""
Chunking Configuration Module

Contains the configuration class for the structural chunker and the chunk
context builder. Provides validation and serialization support so chunking
settings can be loaded from the project configuration file.

Components:
- ChunkConfig: Configuration for chunk budgets, overlap and context previews
"""

import json
import logging
from dataclasses import dataclass, asdict
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)


@dataclass
class ChunkConfig:
    """
    Configuration for structural chunking.

    Attributes:
        max_chunk_chars: Budget for a chunk's authoritative span in characters
        overlap_chars: Maximum size of the read-only overlap copied from the
            previous chunk's tail (0 disables overlap)
        preceding_preview_chars: Size of the preceding-text preview in a chunk context
        following_preview_chars: Size of the following-text preview in a chunk context
        following_preview_lines: Number of lines after a chunk used for its preview
        outline_max_headings: Number of headings listed in the document outline

    Example:
        >>> config = ChunkConfig(max_chunk_chars=4000, overlap_chars=300)
        >>> small = config.copy(max_chunk_chars=1000)
    """

    max_chunk_chars: int = 15000
    overlap_chars: int = 500
    preceding_preview_chars: int = 300
    following_preview_chars: int = 200
    following_preview_lines: int = 5
    outline_max_headings: int = 10

    def __post_init__(self) -> None:
        """
        Validate configuration parameters.

        Raises:
            ValueError: If any parameter is out of range
        """
        if not isinstance(self.max_chunk_chars, int) or self.max_chunk_chars <= 0:
            raise ValueError(f"max_chunk_chars must be positive integer, got: {self.max_chunk_chars}")

        if not isinstance(self.overlap_chars, int) or self.overlap_chars < 0:
            raise ValueError(f"overlap_chars must be non-negative integer, got: {self.overlap_chars}")

        if self.overlap_chars >= self.max_chunk_chars:
            raise ValueError(
                f"overlap_chars ({self.overlap_chars}) must be less than max_chunk_chars ({self.max_chunk_chars})"
            )

        if self.overlap_chars > self.max_chunk_chars * 0.5:
            logger.warning(
                f"Large overlap ratio ({self.overlap_chars / self.max_chunk_chars:.1%}) inflates prompt size"
            )

        for name in ("preceding_preview_chars", "following_preview_chars",
                     "following_preview_lines", "outline_max_headings"):
            value = getattr(self, name)
            if not isinstance(value, int) or value < 0:
                raise ValueError(f"{name} must be non-negative integer, got: {value}")

        logger.debug(
            f"ChunkConfig validated: max_chars={self.max_chunk_chars}, overlap={self.overlap_chars}"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ChunkConfig':
        """
        Create configuration from dictionary, ignoring unknown keys.

        Raises:
            ValueError: If parameters are invalid
        """
        known = {key: value for key, value in data.items() if key in cls.__dataclass_fields__}
        unknown = set(data) - set(known)
        if unknown:
            logger.warning(f"Ignoring unknown chunking settings: {sorted(unknown)}")
        return cls(**known)

    def to_json(self, indent: Optional[int] = None) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, json_str: str) -> 'ChunkConfig':
        return cls.from_dict(json.loads(json_str))

    def copy(self, **overrides) -> 'ChunkConfig':
        """
        Create a copy of this configuration with optional parameter overrides.

        Example:
            >>> config = ChunkConfig(max_chunk_chars=1000)
            >>> tight = config.copy(overlap_chars=0)
        """
        data = self.to_dict()
        data.update(overrides)
        return self.from_dict(data)

    def __repr__(self) -> str:
        return f"ChunkConfig(max_chars={self.max_chunk_chars}, overlap={self.overlap_chars})"
