"""
Generation Parameters

Sampling settings sent with every generation call, and the rules that derive
them from a document profile and the user's instruction.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Any

from ..document_processor.analysis import DocumentAnalysis
from ..document_processor.complexity import ContentComplexity

logger = logging.getLogger(__name__)

TEMPERATURE_RANGE = (0.1, 1.0)
TOP_K_RANGE = (1, 100)
TOP_P_RANGE = (0.1, 1.0)
MAX_OUTPUT_TOKENS = 32768

BASE_PROFILE = (0.3, 40, 0.8)
TYPE_PROFILES = {
    "technical": (0.2, 20, 0.7),
    "creative": (0.5, 60, 0.9),
}
BASE_OUTPUT_TOKENS = 8192

REWRITE_WORDS = ("rewrite", "creative", "rephrase", "casual", "expand")
PRECISION_WORDS = ("fix", "correct", "proofread", "grammar")

REFORMAT_FIRST_CHUNK_TOKENS = 32768
REFORMAT_LATER_CHUNK_TOKENS = 24576


def _clamp(value, bounds):
    low, high = bounds
    return max(low, min(high, value))


@dataclass(frozen=True)
class GenerationParameters:
    """
    Sampling settings for one generation call.

    Attributes:
        temperature: In [0.1, 1.0]
        top_k: In [1, 100]
        top_p: In [0.1, 1.0]
        max_output_tokens: Positive, at most 32768
    """
    temperature: float = BASE_PROFILE[0]
    top_k: int = BASE_PROFILE[1]
    top_p: float = BASE_PROFILE[2]
    max_output_tokens: int = BASE_OUTPUT_TOKENS

    def __post_init__(self) -> None:
        if not TEMPERATURE_RANGE[0] <= self.temperature <= TEMPERATURE_RANGE[1]:
            raise ValueError(f"temperature out of range: {self.temperature}")
        if not TOP_K_RANGE[0] <= self.top_k <= TOP_K_RANGE[1]:
            raise ValueError(f"top_k out of range: {self.top_k}")
        if not TOP_P_RANGE[0] <= self.top_p <= TOP_P_RANGE[1]:
            raise ValueError(f"top_p out of range: {self.top_p}")
        if not 0 < self.max_output_tokens <= MAX_OUTPUT_TOKENS:
            raise ValueError(f"max_output_tokens out of range: {self.max_output_tokens}")

    @classmethod
    def clamped(cls, temperature: float, top_k: int, top_p: float, max_output_tokens: int) -> 'GenerationParameters':
        """Build parameters after clamping every value into its safe range."""
        return cls(
            temperature=round(_clamp(temperature, TEMPERATURE_RANGE), 2),
            top_k=int(_clamp(top_k, TOP_K_RANGE)),
            top_p=round(_clamp(top_p, TOP_P_RANGE), 2),
            max_output_tokens=int(_clamp(max_output_tokens, (1, MAX_OUTPUT_TOKENS))),
        )

    def to_request_config(self) -> Dict[str, Any]:
        """Render as the service's generationConfig object."""
        return {
            "temperature": self.temperature,
            "topK": self.top_k,
            "topP": self.top_p,
            "maxOutputTokens": self.max_output_tokens,
        }


def optimize_generation_parameters(
    analysis: DocumentAnalysis,
    complexity: ContentComplexity,
    instruction: str
) -> GenerationParameters:
    """
    Derive sampling settings for a rewrite.

    Starts from 0.3/40/0.8 with 8192 output tokens, or the technical
    (0.2/20/0.7) and creative (0.5/60/0.9) profiles. Code and math heavy
    content and a highly formal document each lower temperature by 0.1.
    Rewrite-style instructions raise temperature and top_p by 0.1, precision
    instructions lower temperature by 0.1. The output ceiling grows with
    code and math content up to 32768.

    Args:
        analysis: Profile of the surrounding document
        complexity: Complexity of the content being rewritten
        instruction: The user's rewrite request

    Returns:
        Clamped GenerationParameters
    """
    temperature, top_k, top_p = TYPE_PROFILES.get(analysis.dominant_type, BASE_PROFILE)

    if complexity.code_ratio > 0.2:
        temperature -= 0.1
    if complexity.math_ratio > 0.1:
        temperature -= 0.1
    if analysis.style_metrics.formality_score >= 80:
        temperature -= 0.1

    lowered = instruction.lower()
    if any(word in lowered for word in REWRITE_WORDS):
        temperature += 0.1
        top_p += 0.1
    if any(word in lowered for word in PRECISION_WORDS):
        temperature -= 0.1

    complexity_factor = 1 + 0.5 * (complexity.code_ratio + complexity.math_ratio)
    output_tokens = min(MAX_OUTPUT_TOKENS, int(BASE_OUTPUT_TOKENS * complexity_factor))

    params = GenerationParameters.clamped(temperature, top_k, top_p, output_tokens)
    logger.debug(f"Rewrite parameters for {analysis.dominant_type} content: {params}")
    return params


def reformat_generation_parameters(position: int = 0) -> GenerationParameters:
    """Near-deterministic settings for reformatting; the first chunk gets the larger ceiling."""
    max_tokens = REFORMAT_FIRST_CHUNK_TOKENS if position == 0 else REFORMAT_LATER_CHUNK_TOKENS
    return GenerationParameters(temperature=0.1, top_k=1, top_p=0.8, max_output_tokens=max_tokens)
