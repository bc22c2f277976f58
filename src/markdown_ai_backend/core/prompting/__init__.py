"""Prompt assembly and generation parameter derivation."""

from .parameters import (
    GenerationParameters,
    optimize_generation_parameters,
    reformat_generation_parameters,
)
from .prompt_builder import (
    build_reformat_prompt,
    build_rewrite_prompt,
    build_chunk_rewrite_prompt,
    build_complexity_guidance,
    describe_writing_style,
    fence_for,
    fenced,
)

__all__ = [
    "GenerationParameters",
    "optimize_generation_parameters",
    "reformat_generation_parameters",
    "build_reformat_prompt",
    "build_rewrite_prompt",
    "build_chunk_rewrite_prompt",
    "build_complexity_guidance",
    "describe_writing_style",
    "fence_for",
    "fenced",
]
