"""
Processing Configuration Module

Thresholds and limits used by the content processor to choose between a
single generation call and chunked processing, and to merge chunk results.
"""

import logging
from dataclasses import dataclass, field, asdict
from typing import Dict, Any, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from ...utils.config import ConfigManager

logger = logging.getLogger(__name__)


def _default_weights() -> Dict[str, float]:
    return {"code": 0.3, "math": 0.3, "table": 0.2, "list": 0.1, "technical": 0.1}


def _default_multipliers() -> Dict[str, Tuple[float, float]]:
    # dimension -> (char limit multiplier, token limit multiplier)
    return {
        "code": (0.6, 0.7),
        "math": (0.7, 0.8),
        "table": (1.3, 1.2),
        "list": (0.9, 0.9),
    }


@dataclass
class ProcessingConfig:
    """
    Configuration for the chunking decision and result merging.

    Attributes:
        reformat_char_limit: Characters above which a reformat is chunked
        reformat_token_limit: Estimated tokens above which a reformat is chunked
        rewrite_char_limit: Characters of content, instruction and context above which a rewrite is chunked
        rewrite_token_limit: Estimated tokens of the same text above which a rewrite is chunked
        complexity_threshold: Complexity score above which chunking is used regardless of size
        complexity_weights: Weights of the complexity score per dimension
        dimension_multipliers: Limit multipliers (chars, tokens) for the dominant dimension
        heading_count_threshold: Documents with more headings than this get tighter limits
        structure_multiplier: Multiplier applied to both limits for heading-dense documents
        reformat_merge_window: Maximum repeated lines removed between reformatted chunks
        rewrite_merge_window: Maximum repeated lines removed between rewritten chunks
        max_output_tokens: Output ceiling used to size chunks
        fix_markdown_syntax: Apply heading, list and fence syntax repairs to responses

    Example:
        >>> config = ProcessingConfig(reformat_char_limit=8000)
        >>> config.limits_for("reformat")
        (8000, 25000)
    """

    reformat_char_limit: int = 15000
    reformat_token_limit: int = 25000
    rewrite_char_limit: int = 50000
    rewrite_token_limit: int = 800000
    complexity_threshold: float = 0.7
    complexity_weights: Dict[str, float] = field(default_factory=_default_weights)
    dimension_multipliers: Dict[str, Tuple[float, float]] = field(default_factory=_default_multipliers)
    heading_count_threshold: int = 5
    structure_multiplier: float = 0.8
    reformat_merge_window: int = 10
    rewrite_merge_window: int = 5
    max_output_tokens: int = 32768
    fix_markdown_syntax: bool = False

    def __post_init__(self) -> None:
        """
        Validate limits and normalise multipliers loaded from JSON lists.

        Raises:
            ValueError: If any limit or window is out of range
        """
        for name in ("reformat_char_limit", "reformat_token_limit",
                     "rewrite_char_limit", "rewrite_token_limit", "max_output_tokens"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got: {getattr(self, name)}")

        if not 0.0 < self.complexity_threshold <= 1.0:
            raise ValueError(f"complexity_threshold must be in (0, 1], got: {self.complexity_threshold}")

        if self.reformat_merge_window < 0 or self.rewrite_merge_window < 0:
            raise ValueError("merge windows must be non-negative")

        if self.structure_multiplier <= 0:
            raise ValueError(f"structure_multiplier must be positive, got: {self.structure_multiplier}")

        self.dimension_multipliers = {
            name: tuple(values) for name, values in self.dimension_multipliers.items()
        }
        for name, values in self.dimension_multipliers.items():
            if len(values) != 2 or min(values) <= 0:
                raise ValueError(f"dimension_multipliers[{name!r}] must be two positive numbers")

    def limits_for(self, mode: str) -> Tuple[int, int]:
        """(char limit, token limit) for 'reformat' or 'rewrite'."""
        if mode == "reformat":
            return self.reformat_char_limit, self.reformat_token_limit
        if mode == "rewrite":
            return self.rewrite_char_limit, self.rewrite_token_limit
        raise ValueError(f"Unknown processing mode: {mode}")

    def merge_window_for(self, mode: str) -> int:
        return self.reformat_merge_window if mode == "reformat" else self.rewrite_merge_window

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["dimension_multipliers"] = {
            name: list(values) for name, values in self.dimension_multipliers.items()
        }
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProcessingConfig':
        known = {key: value for key, value in data.items() if key in cls.__dataclass_fields__}
        return cls(**known)

    @classmethod
    def from_config_manager(cls, config_manager: 'ConfigManager') -> 'ProcessingConfig':
        """Build from the 'processing' section of a ConfigManager."""
        return cls.from_dict(config_manager.get("processing", {}) or {})
