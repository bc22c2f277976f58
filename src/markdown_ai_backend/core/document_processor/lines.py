"""
Line Classification

Line-level view of a markdown document shared by the chunker, the complexity
scan and the chunk context builder. Every consumer sees the same notion of
what a fence, a table row or a list item is, so structural decisions agree
across the pipeline.

Components:
- LineKind: Enumeration of the structural kinds a single line can have
- classify_line: Classify one line in isolation
- split_lines: Split text into lines that keep their terminators
- LineInfo / scan_lines: Classify a whole document while tracking fence state
- heading_lines: ATX heading lines outside fenced code
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

FENCE_PATTERN = re.compile(r'^\s{0,3}(`{3,}|~{3,})(.*)$')
TABLE_ROW_PATTERN = re.compile(r'^\s*\|.*\|\s*$')
LIST_ITEM_PATTERN = re.compile(r'^\s*(?:[-*+]\s|\d+\.\s)')
HEADING_PATTERN = re.compile(r'^#{1,6}\s')
LINE_PATTERN = re.compile(r'[^\n]*\n|[^\n]+')


class LineKind(Enum):
    """Enumeration of structural line kinds."""
    FENCE = "fence"
    TABLE_ROW = "table_row"
    LIST_ITEM = "list_item"
    HEADING = "heading"
    BLANK = "blank"
    PLAIN = "plain"

    def __str__(self) -> str:
        return self.value


def classify_line(line: str) -> LineKind:
    """
    Classify a single line without any document state.

    Line terminators are ignored. A line inside a fenced code block is
    classified by its own text; use scan_lines() when fence state matters.

    Example:
        >>> classify_line("## Setup\\n")
        <LineKind.HEADING: 'heading'>
    """
    stripped = line.rstrip('\r\n')
    if not stripped.strip():
        return LineKind.BLANK
    if FENCE_PATTERN.match(stripped):
        return LineKind.FENCE
    if HEADING_PATTERN.match(stripped):
        return LineKind.HEADING
    if TABLE_ROW_PATTERN.match(stripped):
        return LineKind.TABLE_ROW
    if LIST_ITEM_PATTERN.match(stripped):
        return LineKind.LIST_ITEM
    return LineKind.PLAIN


def split_lines(text: str) -> List[str]:
    """Split text on '\\n' keeping terminators so that ''.join(result) == text."""
    return LINE_PATTERN.findall(text)


@dataclass(frozen=True)
class LineInfo:
    """
    One classified line of a document.

    Attributes:
        text: Raw line including its terminator
        kind: Structural kind; lines inside a code block are PLAIN or BLANK
        in_code: True for fence delimiters and for every line between them
        code_open_after: True when a fenced code block is still open after this line
    """
    text: str
    kind: LineKind
    in_code: bool
    code_open_after: bool


def _closes_fence(stripped: str, opener: str) -> bool:
    match = FENCE_PATTERN.match(stripped)
    if not match:
        return False
    marker, rest = match.group(1), match.group(2)
    return marker[0] == opener[0] and len(marker) >= len(opener) and not rest.strip()


def scan_lines(lines: List[str]) -> List[LineInfo]:
    """
    Classify every line while tracking fenced code state.

    A fence is closed only by a fence of the same character whose marker is
    at least as long as the opener and carries no info string. An unclosed
    fence runs to the end of the document.
    """
    infos: List[LineInfo] = []
    opener: Optional[str] = None

    for line in lines:
        stripped = line.rstrip('\r\n')
        if opener is None:
            kind = classify_line(line)
            if kind is LineKind.FENCE:
                opener = FENCE_PATTERN.match(stripped).group(1)
                infos.append(LineInfo(line, kind, True, True))
            else:
                infos.append(LineInfo(line, kind, False, False))
        elif _closes_fence(stripped, opener):
            opener = None
            infos.append(LineInfo(line, LineKind.FENCE, True, False))
        else:
            kind = LineKind.BLANK if not stripped.strip() else LineKind.PLAIN
            infos.append(LineInfo(line, kind, True, True))

    return infos


def heading_lines(text: str) -> List[str]:
    """
    Heading lines of text, without terminators, skipping fenced code.

    Example:
        >>> heading_lines("# Setup\\n```bash\\n# not a heading\\n```\\n")
        ['# Setup']
    """
    return [
        info.text.rstrip('\r\n')
        for info in scan_lines(split_lines(text))
        if info.kind is LineKind.HEADING
    ]
