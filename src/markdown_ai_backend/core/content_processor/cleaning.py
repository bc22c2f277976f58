"""
Response Cleaning

Generation services like to wrap their answer in a code fence, prefix it with
"Here is the formatted content:" or append a note about what they did. The
rules below strip those artifacts. Every rule is best-effort: a rule that
does not match leaves the text alone, and no rule can fail a request.

Rules come in three scopes:
- response: applied to the whole (stripped) response, in order
- prose: optional syntax repairs applied to lines outside fenced code
- fence: optional syntax repairs applied to fence opener lines
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from ..document_processor.lines import FENCE_PATTERN, LineKind, scan_lines, split_lines

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CleaningRule:
    """
    One substitution applied to a generation response.

    Attributes:
        name: Identifier reported when the rule fires
        pattern: Compiled pattern
        replacement: re.sub replacement template
        wrapper: True for rules that unwrap the whole response; only the first
            matching wrapper applies, and a wrapper rule is skipped when the
            source text carries the same wrapper
        scope: 'response', 'prose' or 'fence'
        guard: Extra check on each match; a match it rejects is left alone
    """
    name: str
    pattern: re.Pattern
    replacement: str
    wrapper: bool = False
    scope: str = "response"
    guard: Optional[Callable[[re.Match], bool]] = None

    def _accepts(self, match: re.Match) -> bool:
        return self.guard is None or self.guard(match)

    def matches(self, text: str) -> bool:
        return any(self._accepts(match) for match in self.pattern.finditer(text))

    def apply(self, text: str) -> Tuple[str, bool]:
        """Return (new text, whether the rule changed anything)."""
        result = self.pattern.sub(
            lambda match: match.expand(self.replacement) if self._accepts(match) else match.group(0),
            text
        )
        return result, result != text


def _is_single_block(match: re.Match) -> bool:
    """
    True when the fenced body is one block rather than several.

    A bare fence at the top level of the body would close the wrapper early,
    and a nested block left open means the final fence closes that block.
    """
    opener = match.group(1)
    infos = scan_lines(split_lines(match.group(2)))
    for index, info in enumerate(infos):
        if info.kind is not LineKind.FENCE or (index > 0 and infos[index - 1].code_open_after):
            continue
        marker, rest = FENCE_PATTERN.match(info.text.rstrip("\r\n")).groups()
        if marker[0] == "`" and len(marker) >= len(opener) and not rest.strip():
            return False
    return not (infos and infos[-1].code_open_after)


RESPONSE_RULES: Tuple[CleaningRule, ...] = (
    CleaningRule(
        "fence_wrapper",
        re.compile(r'\A(`{3,})(?:markdown|md)?[ \t]*\n([\s\S]*?)\n?\1\Z', re.IGNORECASE),
        r'\2',
        wrapper=True,
        guard=_is_single_block,
    ),
    CleaningRule(
        "backtick_wrapper",
        re.compile(r'\A`([^`]+)`\Z'),
        r'\1',
        wrapper=True,
    ),
    CleaningRule(
        "quote_wrapper",
        re.compile(r'\A"([^"]+)"\Z'),
        r'\1',
        wrapper=True,
    ),
    CleaningRule(
        "here_is_preamble",
        re.compile(
            r'\A(?:Here\'s the|Here is the|The)\s+(?:cleaned|formatted|rewritten|improved)\s+'
            r'(?:content|markdown|version):\s*',
            re.IGNORECASE
        ),
        '',
    ),
    CleaningRule(
        "labelled_preamble",
        re.compile(
            r'\A(?:Cleaned|Formatted|Rewritten|Improved)\s+(?:content|markdown|version):\s*',
            re.IGNORECASE
        ),
        '',
    ),
    CleaningRule(
        "output_label",
        re.compile(r'\A(?:Output|Result):\s*', re.IGNORECASE),
        '',
    ),
    CleaningRule(
        "trailing_note",
        re.compile(
            r'\n\n(?:This|The above)\s+(?:content|markdown)\s+(?:has been|is)\s+'
            r'(?:cleaned|formatted|rewritten|improved)[^\n]*\Z',
            re.IGNORECASE
        ),
        '',
    ),
)

MARKDOWN_FIX_RULES: Tuple[CleaningRule, ...] = (
    CleaningRule(
        "heading_spacing",
        re.compile(r'^(#{1,6})([^\s#])', re.MULTILINE),
        r'\1 \2',
        scope="prose",
    ),
    CleaningRule(
        "ordered_list_spacing",
        re.compile(r'^(\s*\d+)\.([^\s\d.])', re.MULTILINE),
        r'\1. \2',
        scope="prose",
    ),
    CleaningRule(
        "fence_info_trailing_space",
        re.compile(r'^(\s{0,3}(?:`{3,}|~{3,})[\w+-]+)[ \t]+$', re.MULTILINE),
        r'\1',
        scope="fence",
    ),
)


@dataclass
class CleaningReport:
    """Cleaned text and the names of the rules that changed it, in order."""
    text: str
    applied_rules: List[str] = field(default_factory=list)


def _apply_response_rules(text: str, source: Optional[str], report: List[str]) -> str:
    source_stripped = source.strip() if source is not None else None
    wrapper_applied = False

    # A second pass unwraps a fence that only became the whole response
    # once a preamble or trailing note was removed.
    for _ in range(2):
        fired = False
        for rule in RESPONSE_RULES:
            if rule.wrapper:
                if wrapper_applied:
                    continue
                if source_stripped is not None and rule.matches(source_stripped):
                    logger.debug(f"Skipping {rule.name}: source carries the same wrapper")
                    continue
            text, changed = rule.apply(text)
            if changed:
                fired = True
                report.append(rule.name)
                text = text.strip()
                if rule.wrapper:
                    wrapper_applied = True
        if not fired or wrapper_applied:
            break
    return text


def _apply_markdown_fixes(text: str, report: List[str]) -> str:
    infos = scan_lines(split_lines(text))
    fixed_lines = []
    fired = set()

    for index, info in enumerate(infos):
        line = info.text
        is_opener = info.kind is LineKind.FENCE and (index == 0 or not infos[index - 1].code_open_after)
        if is_opener:
            scope = "fence"
        elif info.in_code:
            fixed_lines.append(line)
            continue
        else:
            scope = "prose"

        body, ending = (line[:-1], "\n") if line.endswith("\n") else (line, "")
        for rule in MARKDOWN_FIX_RULES:
            if rule.scope != scope:
                continue
            body, changed = rule.apply(body)
            if changed:
                fired.add(rule.name)
        fixed_lines.append(body + ending)

    report.extend(rule.name for rule in MARKDOWN_FIX_RULES if rule.name in fired)
    return "".join(fixed_lines)


def clean_response_with_report(
    response: str,
    source: Optional[str] = None,
    fix_markdown_syntax: bool = False
) -> CleaningReport:
    """
    Strip wrapper and commentary artifacts from a generation response.

    Args:
        response: Raw text returned by the generation service
        source: The text that was sent for transformation; wrapper rules that
            also match the source are skipped
        fix_markdown_syntax: Also repair heading, ordered-list and fence info
            syntax outside fenced code

    Returns:
        CleaningReport with the cleaned text and the rules that fired
    """
    applied: List[str] = []
    text = _apply_response_rules(response.strip(), source, applied)
    if fix_markdown_syntax:
        text = _apply_markdown_fixes(text, applied)
    if applied:
        logger.debug(f"Cleaning rules applied: {', '.join(applied)}")
    return CleaningReport(text=text.strip(), applied_rules=applied)


def clean_response(
    response: str,
    source: Optional[str] = None,
    fix_markdown_syntax: bool = False
) -> str:
    """Cleaned text only; see clean_response_with_report()."""
    return clean_response_with_report(response, source, fix_markdown_syntax).text
