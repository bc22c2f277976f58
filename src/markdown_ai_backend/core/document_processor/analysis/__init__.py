"""Document-level analysis: structure, style, semantics and context windows."""

from .types import (
    HeadingEntry,
    StyleMetrics,
    DocumentAnalysis,
    SemanticContext,
    ContextWindow,
)
from .document_analyzer import DocumentAnalyzer

__all__ = [
    "HeadingEntry",
    "StyleMetrics",
    "DocumentAnalysis",
    "SemanticContext",
    "ContextWindow",
    "DocumentAnalyzer",
]
