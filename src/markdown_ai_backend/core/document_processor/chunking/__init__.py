"""
Chunking Package

Structural chunking of markdown documents.

Components:
- config: ChunkConfig
- result: Chunk, ContentType and reassemble()
- boundary: ChunkBoundary break-point rules
- chunker: StructuralChunker
- context: ChunkContext and build_chunk_context()
"""

from .config import ChunkConfig
from .result import Chunk, ContentType, detect_content_type, reassemble
from .boundary import ChunkBoundary
from .chunker import StructuralChunker
from .context import ChunkContext, build_chunk_context, style_signature, document_outline

__all__ = [
    "ChunkConfig",
    "Chunk",
    "ContentType",
    "detect_content_type",
    "reassemble",
    "ChunkBoundary",
    "StructuralChunker",
    "ChunkContext",
    "build_chunk_context",
    "style_signature",
    "document_outline",
]
