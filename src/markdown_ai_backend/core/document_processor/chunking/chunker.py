"""
Structural Chunker Module

Contains the StructuralChunker class - splits markdown into ordered chunks
whose authoritative spans are contiguous, non-overlapping and never cut
through a fenced code block or a table row-group.
"""

import logging
from typing import List, Optional, Tuple

from ..lines import LineInfo, LineKind, scan_lines, split_lines
from .boundary import ChunkBoundary
from .config import ChunkConfig
from .result import Chunk, detect_content_type

logger = logging.getLogger(__name__)


class StructuralChunker:
    """
    Markdown-aware chunking engine.

    The budget applies to the authoritative span only. When adding a line
    would overflow it, the chunker looks back for the nearest structural seam
    (see ChunkBoundary) and splits there. Inside a code block or table it
    keeps extending until the construct closes, so a single construct larger
    than the budget becomes one oversized chunk.

    Each chunk after the first carries an overlap prefix: whole lines from the
    end of the previous chunk, never part of a code block or table.

    Attributes:
        config: ChunkConfig with the default budget and overlap

    Example:
        >>> chunker = StructuralChunker(ChunkConfig(max_chunk_chars=4000, overlap_chars=200))
        >>> chunks = chunker.chunk(document)
        >>> assert reassemble(chunks) == document
    """

    def __init__(self, config: Optional[ChunkConfig] = None) -> None:
        """
        Initialize the chunker.

        Raises:
            TypeError: If config is not a ChunkConfig instance
        """
        config = config or ChunkConfig()
        if not isinstance(config, ChunkConfig):
            raise TypeError(f"Config must be ChunkConfig, got: {type(config)}")
        self.config = config
        logger.debug(f"StructuralChunker initialized with {config!r}")

    def chunk(
        self,
        text: str,
        max_chunk_chars: Optional[int] = None,
        overlap_chars: Optional[int] = None
    ) -> List[Chunk]:
        """
        Split text into ordered chunks.

        Args:
            text: Markdown document
            max_chunk_chars: Budget override for this call
            overlap_chars: Overlap override for this call

        Returns:
            Chunks in document order; empty list for empty text

        Raises:
            ValueError: If the budget is not positive or overlap is negative
        """
        max_chars = self.config.max_chunk_chars if max_chunk_chars is None else max_chunk_chars
        overlap = self.config.overlap_chars if overlap_chars is None else overlap_chars

        if max_chars <= 0:
            raise ValueError(f"max_chunk_chars must be positive, got: {max_chars}")
        if overlap < 0:
            raise ValueError(f"overlap_chars cannot be negative, got: {overlap}")

        if not text:
            return []

        lines = split_lines(text)

        if len(text) <= max_chars:
            return [Chunk(
                content=text,
                ordinal=0,
                total_chunks=1,
                dominant_type=detect_content_type(text),
                start_line=1,
                end_line=len(lines),
            )]

        infos = scan_lines(lines)
        spans = self._find_spans(infos, max_chars)
        group_starts = self._group_starts(infos)

        chunks: List[Chunk] = []
        previous_start = 0
        for ordinal, (start, end) in enumerate(spans):
            content = "".join(lines[start:end])
            prefix, prefix_start = "", None
            if ordinal > 0 and overlap > 0:
                prefix, prefix_start = self._build_overlap(
                    infos, group_starts, start, previous_start, overlap
                )
            chunks.append(Chunk(
                content=content,
                ordinal=ordinal,
                total_chunks=len(spans),
                dominant_type=detect_content_type(content),
                start_line=start + 1,
                end_line=end,
                overlap_prefix=prefix,
                overlap_start_line=prefix_start,
            ))
            previous_start = start

        logger.info(f"Split {len(text)} chars into {len(chunks)} chunks (budget {max_chars})")
        return chunks

    def _find_spans(self, infos: List[LineInfo], max_chars: int) -> List[Tuple[int, int]]:
        """Half-open line index spans of the authoritative chunks."""
        boundary = ChunkBoundary(infos)
        spans: List[Tuple[int, int]] = []
        start = 0
        size = 0

        for index, info in enumerate(infos):
            length = len(info.text)
            if index > start and size + length > max_chars and boundary.is_permitted(index):
                split = boundary.find_break(index, start)
                spans.append((start, split))
                start = split
                size = sum(len(infos[k].text) for k in range(split, index))
            size += length

        spans.append((start, len(infos)))
        return spans

    @staticmethod
    def _group_starts(infos: List[LineInfo]) -> List[int]:
        """For every line, the index of the first line of its indivisible group."""
        starts: List[int] = []
        for index, info in enumerate(infos):
            previous = infos[index - 1] if index > 0 else None
            if info.in_code and previous is not None and previous.code_open_after:
                starts.append(starts[-1])
            elif (info.kind is LineKind.TABLE_ROW and previous is not None
                  and previous.kind is LineKind.TABLE_ROW and not previous.in_code):
                starts.append(starts[-1])
            else:
                starts.append(index)
        return starts

    @staticmethod
    def _build_overlap(
        infos: List[LineInfo],
        group_starts: List[int],
        break_index: int,
        floor: int,
        overlap_chars: int
    ) -> Tuple[str, Optional[int]]:
        """
        Collect whole lines backward from break_index, bounded by floor.

        Code blocks and table row-groups are taken whole or not at all.
        Stops after a heading once more than one line is collected.
        """
        collected = 0
        first = break_index
        end = break_index

        while end > floor:
            group_start = group_starts[end - 1]
            if group_start < floor:
                break
            group_chars = sum(len(infos[k].text) for k in range(group_start, end))
            if collected + group_chars > overlap_chars:
                break
            collected += group_chars
            first = group_start
            heading = infos[group_start].kind is LineKind.HEADING
            end = group_start
            if heading and break_index - first > 1:
                break

        if first == break_index:
            return "", None
        return "".join(infos[k].text for k in range(first, break_index)), first + 1
