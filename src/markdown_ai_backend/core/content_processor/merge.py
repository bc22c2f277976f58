"""
Result Merging

Stitches transformed chunks back into one document. A model sometimes echoes
the last lines of the previous chunk at the start of its answer; the longest
such repeated run (up to a window) is dropped before joining. Pieces are
separated by exactly one blank line.
"""

import logging
import re
from typing import List

from ..document_processor.lines import LineKind, classify_line

logger = logging.getLogger(__name__)

LEADING_BLANK_LINES = re.compile(r'\A(?:[ \t]*\n)+')
THEMATIC_BREAK = re.compile(r'^\s{0,3}([-*_])(?:\s*\1){2,}\s*$')
CONTENT_KINDS = (LineKind.PLAIN, LineKind.HEADING, LineKind.LIST_ITEM)


def _carries_content(line: str) -> bool:
    return classify_line(line) in CONTENT_KINDS and not THEMATIC_BREAK.match(line)


def find_overlap(merged: str, piece: str, window: int) -> int:
    """
    Length of the longest run of lines ending merged that also starts piece.

    Lines are compared ignoring trailing whitespace. A run counts only when it
    holds a text, heading or list line: fences, table rows, thematic breaks
    and blank lines repeat legitimately at a seam (a closing fence followed
    by the next block's opener).

    Args:
        merged: Text merged so far
        piece: Next transformed chunk
        window: Maximum run length considered

    Returns:
        Number of leading lines of piece to drop (0 when there is no run)
    """
    if window <= 0 or not merged or not piece:
        return 0

    tail = [line.rstrip() for line in merged.rstrip().split('\n')]
    head = [line.rstrip() for line in piece.split('\n')]

    for k in range(min(window, len(tail), len(head)), 0, -1):
        run = tail[-k:]
        if run == head[:k] and any(_carries_content(line) for line in run):
            return k
    return 0


def merge_texts(merged: str, piece: str, window: int) -> str:
    """
    Append piece to merged, dropping an echoed run and normalising the seam.

    Example:
        >>> merge_texts("# A\\n\\nfirst", "first\\n\\nsecond", window=5)
        '# A\\n\\nfirst\\n\\nsecond'
    """
    piece = LEADING_BLANK_LINES.sub('', piece)
    overlap = find_overlap(merged, piece, window)
    if overlap:
        logger.debug(f"Dropping {overlap} repeated line(s) at chunk seam")
        piece = LEADING_BLANK_LINES.sub('', '\n'.join(piece.split('\n')[overlap:]))

    if not piece.strip():
        return merged
    if not merged.strip():
        return piece
    return merged.rstrip() + '\n\n' + piece


def merge_all(pieces: List[str], window: int) -> str:
    """Merge transformed pieces in order and strip the result."""
    merged = ""
    for piece in pieces:
        merged = merge_texts(merged, piece, window)
    return merged.strip()
