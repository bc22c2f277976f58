"""
Document Processor Package

Markdown-aware analysis and chunking used by the content processor.

Components:
- lines: Line classification and fence tracking shared by every component
- complexity: ContentComplexity ratios, token estimates and size optimisation
- chunking/: Structural chunker, chunk results and chunk context
- analysis/: Document profile, semantic context and context windows
"""

from .lines import LineKind, LineInfo, classify_line, split_lines, scan_lines, heading_lines
from .complexity import ComplexityAnalyzer, ContentComplexity, estimate_tokens
from .chunking import (
    ChunkConfig,
    Chunk,
    ContentType,
    ChunkBoundary,
    ChunkContext,
    StructuralChunker,
    build_chunk_context,
    reassemble,
)
from .analysis import (
    ContextWindow,
    DocumentAnalysis,
    DocumentAnalyzer,
    HeadingEntry,
    SemanticContext,
    StyleMetrics,
)

__all__ = [
    # Lines
    "LineKind",
    "LineInfo",
    "classify_line",
    "split_lines",
    "scan_lines",
    "heading_lines",
    # Complexity
    "ComplexityAnalyzer",
    "ContentComplexity",
    "estimate_tokens",
    # Chunking
    "ChunkConfig",
    "Chunk",
    "ContentType",
    "ChunkBoundary",
    "ChunkContext",
    "StructuralChunker",
    "build_chunk_context",
    "reassemble",
    # Analysis
    "ContextWindow",
    "DocumentAnalysis",
    "DocumentAnalyzer",
    "HeadingEntry",
    "SemanticContext",
    "StyleMetrics",
]
