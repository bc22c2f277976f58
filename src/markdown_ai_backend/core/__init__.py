"""
Core modules for the markdown-ai backend.

This package contains the core business logic: markdown analysis and
chunking, prompt assembly, the generation service adapter and the content
processor that ties them together.
"""

from .content_processor import (
    ContentProcessor,
    ProcessingConfig,
    CancellationToken,
    RewriteContext,
    ReformatResponse,
    RewriteResponse,
)

from .generation import (
    GenerationSession,
    GenerationServiceConfig,
    TextGenerator,
)

__all__ = [
    "ContentProcessor",
    "ProcessingConfig",
    "CancellationToken",
    "RewriteContext",
    "ReformatResponse",
    "RewriteResponse",
    "GenerationSession",
    "GenerationServiceConfig",
    "TextGenerator",
]
