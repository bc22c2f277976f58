"""
Chunk Boundary Module

Contains the ChunkBoundary class that decides where a document may be split.
Boundaries are expressed as line indices: a break "before line b" puts lines
[.., b-1] in one chunk and [b, ..] in the next.
"""

import logging
from typing import List

from ..lines import LineInfo, LineKind

logger = logging.getLogger(__name__)


class ChunkBoundary:
    """
    Break-point rules over a scanned document.

    A break before line b is permitted only when no fenced code block is open
    after line b-1 and lines b-1 and b are not both table rows. A permitted
    break is preferred when it falls:

    - after a heading that is not followed by another heading
    - after a blank line that ends a paragraph
    - before a heading
    - before a fence opening a code block
    - before the first item of a list

    Attributes:
        infos: Scanned lines of the document being chunked
    """

    def __init__(self, infos: List[LineInfo]) -> None:
        self.infos = infos

    def is_permitted(self, b: int) -> bool:
        """True when the document may be split before line index b."""
        if b <= 0 or b >= len(self.infos):
            return False
        previous, current = self.infos[b - 1], self.infos[b]
        if previous.code_open_after:
            return False
        return not (previous.kind is LineKind.TABLE_ROW and current.kind is LineKind.TABLE_ROW)

    def is_preferred(self, b: int) -> bool:
        """True when a permitted split before line index b falls on a structural seam."""
        previous, current = self.infos[b - 1], self.infos[b]

        if previous.kind is LineKind.HEADING and current.kind is not LineKind.HEADING:
            return True
        if previous.kind is LineKind.BLANK and current.kind is not LineKind.BLANK:
            return True
        if current.kind is LineKind.HEADING:
            return True
        if current.kind is LineKind.FENCE:
            return True
        return current.kind is LineKind.LIST_ITEM and previous.kind is not LineKind.LIST_ITEM

    def find_break(self, current: int, start: int) -> int:
        """
        Nearest preferred break at or before current, never at or before start.

        Args:
            current: Index of the line that would overflow the budget
            start: Index of the first line of the chunk being built

        Returns:
            Line index to split before; falls back to current
        """
        for b in range(current, start, -1):
            if self.is_permitted(b) and self.is_preferred(b):
                return b
        return current

    def __repr__(self) -> str:
        return f"ChunkBoundary(lines={len(self.infos)})"
