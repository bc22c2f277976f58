"""
Chunk Result Module

Contains the Chunk class produced by the structural chunker. A chunk's
content is an exact slice of the source document; the overlap prefix is
auxiliary context kept apart from it so that joining the authoritative
spans always reproduces the source.

Components:
- ContentType: Dominant content type of a chunk
- Chunk: One ordered slice of a document with its overlap context
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Any, List, Optional

from ..lines import LineKind, classify_line

logger = logging.getLogger(__name__)

SHORT_LINE_CHARS = 100


class ContentType(Enum):
    """Dominant content type of a chunk."""
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    CODE = "code"
    LIST = "list"
    TABLE = "table"
    MIXED = "mixed"

    def __str__(self) -> str:
        return self.value


def detect_content_type(content: str) -> ContentType:
    """
    Classify a chunk by the first matching rule.

    Any heading line wins, then any fence, any list item, any table row.
    A single line or uniformly short lines count as paragraph text,
    anything else is mixed.
    """
    lines = content.strip().split('\n')
    kinds = [classify_line(line) for line in lines]

    if LineKind.HEADING in kinds:
        return ContentType.HEADING
    if LineKind.FENCE in kinds:
        return ContentType.CODE
    if LineKind.LIST_ITEM in kinds:
        return ContentType.LIST
    if LineKind.TABLE_ROW in kinds:
        return ContentType.TABLE
    if len(lines) == 1 or all(not line.strip() or len(line) < SHORT_LINE_CHARS for line in lines):
        return ContentType.PARAGRAPH
    return ContentType.MIXED


@dataclass
class Chunk:
    """
    One ordered slice of a document.

    Attributes:
        content: Authoritative text, an exact slice of the source including line terminators
        ordinal: 0-based position of the chunk
        total_chunks: Number of chunks the document was split into
        dominant_type: ContentType of the authoritative span
        start_line: First source line of the span (1-based, inclusive)
        end_line: Last source line of the span (1-based, inclusive)
        overlap_prefix: Tail of the previous chunk repeated as read-only context
        overlap_start_line: Source line where the overlap begins, None without overlap

    Example:
        >>> chunk = Chunk(content="# Title\\n", ordinal=0, total_chunks=1,
        ...               dominant_type=ContentType.HEADING, start_line=1, end_line=1)
        >>> chunk.get_length()
        8
    """

    content: str
    ordinal: int
    total_chunks: int
    dominant_type: ContentType
    start_line: int
    end_line: int
    overlap_prefix: str = ""
    overlap_start_line: Optional[int] = None

    def __post_init__(self) -> None:
        """
        Validate chunk data.

        Raises:
            ValueError: If positions or counts are inconsistent
        """
        if not isinstance(self.content, str):
            raise ValueError(f"Content must be string, got: {type(self.content)}")

        if self.ordinal < 0:
            raise ValueError(f"ordinal cannot be negative: {self.ordinal}")

        if self.start_line < 1 or self.end_line < self.start_line:
            raise ValueError(f"Invalid line span: {self.start_line}-{self.end_line}")

        if not isinstance(self.dominant_type, ContentType):
            raise ValueError(f"dominant_type must be ContentType, got: {type(self.dominant_type)}")

    @property
    def text_with_overlap(self) -> str:
        """Overlap prefix followed by the authoritative content."""
        return self.overlap_prefix + self.content

    @property
    def line_count(self) -> int:
        return self.end_line - self.start_line + 1

    @property
    def has_overlap(self) -> bool:
        return bool(self.overlap_prefix)

    @property
    def is_first(self) -> bool:
        return self.ordinal == 0

    @property
    def is_last(self) -> bool:
        return self.ordinal == self.total_chunks - 1

    def get_length(self) -> int:
        """Length of the authoritative content."""
        return len(self.content)

    def get_preview(self, max_length: int = 100) -> str:
        """Single-line preview of the content for tables and logs."""
        flattened = " ".join(self.content.split())
        if len(flattened) <= max_length:
            return flattened
        return flattened[:max_length - 3] + "..."

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content": self.content,
            "ordinal": self.ordinal,
            "total_chunks": self.total_chunks,
            "dominant_type": self.dominant_type.value,
            "start_line": self.start_line,
            "end_line": self.end_line,
            "overlap_prefix": self.overlap_prefix,
            "overlap_start_line": self.overlap_start_line,
        }

    def __repr__(self) -> str:
        return (
            f"Chunk({self.ordinal + 1}/{self.total_chunks}, lines={self.start_line}-{self.end_line}, "
            f"type={self.dominant_type.value}, length={self.get_length()})"
        )


def reassemble(chunks: List[Chunk]) -> str:
    """Join the authoritative spans of chunks back into the source text."""
    return "".join(chunk.content for chunk in chunks)
