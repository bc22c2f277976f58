"""
Document Analyzer Module

Profiles a whole document so that a rewrite of one region can match the
document's structure, vocabulary and tone, and trims surrounding context to
fit a token budget.
"""

import logging
import re
from collections import Counter
from typing import Dict, List, Optional

from ..complexity import ComplexityAnalyzer
from ..lines import LineKind, heading_lines, scan_lines, split_lines
from .types import (
    ContextWindow,
    DocumentAnalysis,
    HeadingEntry,
    SemanticContext,
    StyleMetrics,
)

logger = logging.getLogger(__name__)

# Declaration order breaks ties between equal scores.
CONTENT_TYPE_PATTERNS = {
    "technical": re.compile(
        r'\b(API|function|class|method|algorithm|implementation|code|syntax|'
        r'programming|software|development|framework|library)\b', re.IGNORECASE),
    "academic": re.compile(
        r'\b(research|study|analysis|conclusion|methodology|hypothesis|theory|'
        r'experiment|data|results|findings)\b', re.IGNORECASE),
    "business": re.compile(
        r'\b(strategy|market|customer|revenue|business|company|product|sales|'
        r'marketing|profit|growth)\b', re.IGNORECASE),
    "creative": re.compile(
        r'\b(story|narrative|character|plot|creative|artistic|design|aesthetic|'
        r'visual|inspiration)\b', re.IGNORECASE),
    "mathematical": re.compile(
        r'\$\$[\s\S]*?\$\$|\$[^$]+\$|\b(equation|formula|theorem|proof|calculation|'
        r'mathematics|algebra|calculus)\b', re.IGNORECASE),
}

FORMAL_WORDS = re.compile(
    r'\b(therefore|however|furthermore|consequently|nevertheless|moreover|thus|'
    r'hence|accordingly|subsequently)\b', re.IGNORECASE)
INFORMAL_WORDS = re.compile(
    r'\b(gonna|wanna|yeah|ok|cool|awesome|stuff|things|kinda|sorta)\b', re.IGNORECASE)
TECHNICAL_DENSITY_TERMS = re.compile(
    r'\b(function|class|method|API|algorithm|implementation|framework|library|'
    r'syntax|programming|development|software|code|variable|parameter|return|'
    r'import|export|interface|type|async|await|promise|callback)\b', re.IGNORECASE)

HEADING_LINE = re.compile(r'^(#{1,6})\s+(.+)$')
SENTENCE_SPLIT = re.compile(r'[.!?]+')
LONG_WORD = re.compile(r'\b\w{7,}\b')
KEYWORD = re.compile(r'\b\w{3,}\b')
CAPITALISED_TERM = re.compile(r'\b[A-Z][a-zA-Z]*\b')
DEPENDENCY_PHRASE = re.compile(r'\b(?:see|refer to|as mentioned in|according to)\s+([^.!?\n]+)', re.IGNORECASE)

STOPWORDS = frozenset([
    'the', 'a', 'an', 'and', 'or', 'but', 'in', 'on', 'at', 'to', 'for', 'of',
    'with', 'by', 'is', 'are', 'was', 'were', 'be', 'been', 'have', 'has', 'had',
    'do', 'does', 'did', 'will', 'would', 'could', 'should', 'may', 'might', 'can',
    'this', 'that', 'these', 'those',
])

READABILITY_LEVELS = (
    (6, "Elementary"),
    (9, "Middle School"),
    (13, "High School"),
    (16, "College"),
)

MAX_KEYWORDS = 20
MAX_RELATED_SECTIONS = 5
MAX_TERMINOLOGY_ENTRIES = 20
MAX_CONTEXT_TOKENS = 200000


def _word_count(text: str) -> int:
    return len(text.split())


class DocumentAnalyzer:
    """
    Structural and stylistic profiling of markdown documents.

    Example:
        >>> analyzer = DocumentAnalyzer()
        >>> analysis = analyzer.analyze(document, target_region=selection)
        >>> analysis.dominant_type
        'technical'
    """

    def __init__(self, complexity_analyzer: Optional[ComplexityAnalyzer] = None) -> None:
        self.complexity_analyzer = complexity_analyzer or ComplexityAnalyzer()

    def analyze(self, full_document: str, target_region: Optional[str] = None) -> DocumentAnalysis:
        """
        Profile full_document, optionally relative to a target region.

        Args:
            full_document: The whole document
            target_region: The passage being transformed; the whole document when omitted

        Returns:
            DocumentAnalysis with headings, type scores, style metrics,
            cross references and the target's relative position
        """
        target = full_document if target_region is None else target_region

        scores = {
            name: self._content_type_score(full_document, pattern)
            for name, pattern in CONTENT_TYPE_PATTERNS.items()
        }
        dominant = max(scores, key=scores.get)

        analysis = DocumentAnalysis(
            heading_hierarchy=self.heading_hierarchy(full_document),
            content_type_scores=scores,
            dominant_type=dominant,
            style_metrics=self.style_metrics(full_document),
            cross_references=self._find_cross_references(target, full_document),
            document_length=len(full_document),
            target_position=self._target_position(target, full_document),
        )
        logger.debug(
            f"Analyzed {len(full_document)} chars: dominant={dominant}, "
            f"headings={len(analysis.heading_hierarchy)}"
        )
        return analysis

    def heading_hierarchy(self, text: str) -> List[HeadingEntry]:
        """ATX headings in document order; '#' lines inside fenced code are not headings."""
        entries = []
        for line in heading_lines(text):
            match = HEADING_LINE.match(line)
            if match:
                entries.append(HeadingEntry(level=len(match.group(1)), text=match.group(2).strip()))
        return entries

    def style_metrics(self, text: str) -> StyleMetrics:
        return StyleMetrics(
            avg_sentence_length=self._average_sentence_length(text),
            formality_score=self._formality_score(text),
            technical_density=self._technical_density(text),
            readability_level=self._readability_level(text),
        )

    def extract_semantic_context(self, content: str, full_document: str) -> SemanticContext:
        """
        Relate a passage to the rest of its document.

        Args:
            content: The passage being transformed
            full_document: The whole document

        Returns:
            SemanticContext with keywords, related sections, terminology and dependencies
        """
        keywords = self.extract_keywords(content)
        return SemanticContext(
            keywords=keywords,
            related_sections=self._find_related_sections(keywords, full_document, content),
            terminology_map=self._build_terminology_map(full_document),
            dependencies=self._find_dependencies(content, full_document),
        )

    def optimal_context_window(
        self,
        content: str,
        before: str,
        after: str,
        token_budget: Optional[int] = None
    ) -> ContextWindow:
        """
        Trim surrounding text to a token budget.

        The budget defaults to min(200000, 0.4 * (input_limit - content_tokens)).
        When both sides together exceed it, the budget is split in proportion
        to each side's size; "before" loses text from its start and "after"
        from its end, each cut at a line boundary.
        """
        estimate = self.complexity_analyzer.estimate_tokens
        if token_budget is None:
            available = self.complexity_analyzer.input_token_limit - estimate(content)
            token_budget = min(MAX_CONTEXT_TOKENS, int(available * 0.4))
        token_budget = max(0, token_budget)

        before_tokens = estimate(before)
        after_tokens = estimate(after)

        if before_tokens + after_tokens > token_budget:
            before_limit = int(token_budget * before_tokens / (before_tokens + after_tokens))
            after_limit = token_budget - before_limit
            logger.debug(
                f"Trimming context {before_tokens}+{after_tokens} tokens to {before_limit}+{after_limit}"
            )
            before = self._truncate(before, before_limit, keep_end=True)
            after = self._truncate(after, after_limit, keep_end=False)

        return ContextWindow(before=before, after=after, total_tokens=estimate(before + after))

    def extract_keywords(self, text: str) -> List[str]:
        """Up to 20 non-stopword words of 3+ characters, most frequent first."""
        words = [word for word in KEYWORD.findall(text.lower()) if word not in STOPWORDS]
        return [word for word, _ in Counter(words).most_common(MAX_KEYWORDS)]

    @staticmethod
    def _content_type_score(text: str, pattern: re.Pattern) -> float:
        words = _word_count(text)
        if not words:
            return 0.0
        return len(pattern.findall(text)) / words * 100

    @staticmethod
    def _average_sentence_length(text: str) -> float:
        sentences = [s for s in SENTENCE_SPLIT.split(text) if s.strip()]
        if not sentences:
            return 0.0
        return _word_count(text) / len(sentences)

    @staticmethod
    def _formality_score(text: str) -> float:
        words = _word_count(text)
        if not words:
            return 0.0
        formal = len(FORMAL_WORDS.findall(text)) / words * 100
        informal = len(INFORMAL_WORDS.findall(text)) / words * 100
        return max(0.0, min(100.0, 50 + formal - informal))

    @staticmethod
    def _technical_density(text: str) -> float:
        words = _word_count(text)
        if not words:
            return 0.0
        return len(TECHNICAL_DENSITY_TERMS.findall(text)) / words * 100

    def _readability_level(self, text: str) -> str:
        words = _word_count(text)
        long_word_ratio = len(LONG_WORD.findall(text)) / words if words else 0.0
        score = self._average_sentence_length(text) * 0.39 + long_word_ratio * 11.8
        for upper, label in READABILITY_LEVELS:
            if score < upper:
                return label
        return "Graduate"

    @staticmethod
    def _sections(full_document: str) -> List[str]:
        """Split before every heading line outside fenced code."""
        sections: List[str] = []
        current: List[str] = []
        for info in scan_lines(split_lines(full_document)):
            if info.kind is LineKind.HEADING and current:
                sections.append("".join(current))
                current = []
            current.append(info.text)
        if current or not sections:
            sections.append("".join(current))
        return sections

    @staticmethod
    def _section_title(section: str) -> str:
        return section.split('\n', 1)[0].lstrip('#').strip()

    def _find_cross_references(self, target: str, full_document: str) -> List[str]:
        target_keywords = set(self.extract_keywords(target))
        references = []
        for section in self._sections(full_document):
            if target and target in section:
                continue
            if target_keywords & set(self.extract_keywords(section)):
                references.append(self._section_title(section))
        return references

    def _find_related_sections(self, keywords: List[str], full_document: str, exclude: str) -> List[str]:
        wanted = set(keywords)
        related = []
        for section in self._sections(full_document):
            if exclude and exclude in section:
                continue
            if len(wanted & set(self.extract_keywords(section))) >= 2:
                related.append(self._section_title(section))
        return related[:MAX_RELATED_SECTIONS]

    @staticmethod
    def _build_terminology_map(full_document: str) -> Dict[str, List[str]]:
        terminology: Dict[str, List[str]] = {}
        frequencies: Dict[str, int] = {}

        for term in dict.fromkeys(CAPITALISED_TERM.findall(full_document)):
            variants = re.findall(rf'\b{re.escape(term)}[a-zA-Z]*\b', full_document, re.IGNORECASE)
            if len(variants) > 1:
                terminology[term] = list(dict.fromkeys(variants))
                frequencies[term] = len(variants)

        top = sorted(frequencies, key=frequencies.get, reverse=True)[:MAX_TERMINOLOGY_ENTRIES]
        return {term: terminology[term] for term in top}

    @staticmethod
    def _find_dependencies(content: str, full_document: str) -> List[str]:
        elsewhere = full_document.replace(content, "", 1) if content else full_document
        dependencies = []
        for match in DEPENDENCY_PHRASE.finditer(content):
            reference = match.group(1).strip()
            if reference and reference in elsewhere and reference not in dependencies:
                dependencies.append(reference)
        return dependencies

    @staticmethod
    def _target_position(target: str, full_document: str) -> float:
        if not full_document or not target:
            return 0.0
        index = full_document.find(target)
        return index / len(full_document) if index >= 0 else 0.0

    def _truncate(self, text: str, token_limit: int, keep_end: bool) -> str:
        tokens = self.complexity_analyzer.estimate_tokens(text)
        if tokens <= token_limit:
            return text
        if token_limit <= 0:
            return ""

        target_length = int(len(text) * token_limit / tokens)
        if keep_end:
            truncated = text[len(text) - target_length:]
            newline = truncated.find('\n')
            return truncated[newline + 1:] if newline > 0 else truncated
        truncated = text[:target_length]
        newline = truncated.rfind('\n')
        return truncated[:newline] if newline > 0 else truncated
