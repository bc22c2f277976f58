"""
Chunk Context Module

Builds the per-chunk view of the whole document that keeps chunk-by-chunk
transformations consistent: the heading outline, short previews of the text
around the chunk and a signature of the constructs the document uses.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from ..lines import LineKind, heading_lines, scan_lines, split_lines
from .config import ChunkConfig
from .result import Chunk

logger = logging.getLogger(__name__)

DISPLAY_MATH_BLOCK = re.compile(r'\$\$[\s\S]*?\$\$')
INLINE_MATH = re.compile(r'(?<!\$)\$[^$\n]+\$(?!\$)')


@dataclass(frozen=True)
class ChunkContext:
    """
    Read-only document context for one chunk.

    Attributes:
        document_outline: Ordered heading lines of the document
        preceding_preview: Tail of the text before the chunk, starting on a line boundary
        following_preview: First lines after the chunk
        style_signature: Construct name -> count, non-zero entries only
        position: 0-based ordinal of the chunk
        total_chunks: Number of chunks in the request
    """
    document_outline: Tuple[str, ...] = ()
    preceding_preview: str = ""
    following_preview: str = ""
    style_signature: Dict[str, int] = field(default_factory=dict)
    position: int = 0
    total_chunks: int = 1

    @property
    def is_first(self) -> bool:
        return self.position == 0

    @property
    def is_last(self) -> bool:
        return self.position >= self.total_chunks - 1

    def render_outline(self) -> str:
        return "; ".join(self.document_outline)

    def render_style_signature(self) -> str:
        """Render the signature as 'name: count' pairs, e.g. 'code_blocks: 2, table_rows: 4'."""
        return ", ".join(f"{name}: {count}" for name, count in self.style_signature.items())


def style_signature(text: str) -> Dict[str, int]:
    """Count code blocks, display math, inline math, table rows and list items."""
    infos = scan_lines(split_lines(text))

    code_blocks = sum(
        1 for index, info in enumerate(infos)
        if info.kind is LineKind.FENCE and (index == 0 or not infos[index - 1].code_open_after)
    )
    prose = "".join(info.text for info in infos if not info.in_code)
    counts = {
        "code_blocks": code_blocks,
        "display_math": len(DISPLAY_MATH_BLOCK.findall(prose)),
        "inline_math": len(INLINE_MATH.findall(DISPLAY_MATH_BLOCK.sub("", prose))),
        "table_rows": sum(1 for info in infos if info.kind is LineKind.TABLE_ROW),
        "list_items": sum(1 for info in infos if info.kind is LineKind.LIST_ITEM),
    }
    return {name: count for name, count in counts.items() if count > 0}


def document_outline(text: str, max_headings: int) -> Tuple[str, ...]:
    """First max_headings heading lines outside code blocks."""
    return tuple(line.strip() for line in heading_lines(text)[:max_headings])


def _tail_on_line_boundary(text: str, limit: int) -> str:
    if limit <= 0 or not text:
        return ""
    if len(text) <= limit:
        return text
    tail = text[-limit:]
    if text[-limit - 1] == '\n':
        return tail
    newline = tail.find('\n')
    return tail[newline + 1:] if newline >= 0 else tail


def build_chunk_context(
    chunk: Chunk,
    full_text: str,
    config: ChunkConfig,
    document: Optional[str] = None
) -> ChunkContext:
    """
    Build the context for chunk within full_text.

    Args:
        chunk: Chunk produced from full_text
        full_text: The chunked text; previews are cut from it
        config: ChunkConfig with preview and outline sizes
        document: Text the outline and style signature describe when the
            chunked text is only a region of it (default: full_text)

    Returns:
        Frozen ChunkContext
    """
    document = full_text if document is None else document
    lines = split_lines(full_text)
    preceding = "".join(lines[:chunk.start_line - 1])
    following_lines = lines[chunk.end_line:chunk.end_line + config.following_preview_lines]
    following = "".join(following_lines)[:config.following_preview_chars]

    context = ChunkContext(
        document_outline=document_outline(document, config.outline_max_headings),
        preceding_preview=_tail_on_line_boundary(preceding, config.preceding_preview_chars),
        following_preview=following,
        style_signature=style_signature(document),
        position=chunk.ordinal,
        total_chunks=chunk.total_chunks,
    )
    logger.debug(
        f"Context for chunk {chunk.ordinal + 1}/{chunk.total_chunks}: "
        f"{len(context.document_outline)} headings, signature={context.render_style_signature()}"
    )
    return context
