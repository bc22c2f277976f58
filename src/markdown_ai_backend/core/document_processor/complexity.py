"""
Content Complexity Analysis

Single-pass structural scan of markdown text producing the ratios that drive
chunk sizing, the chunking decision, prompt guidance and generation
parameters. Also owns the token estimate and the token-limit helpers.

Components:
- ContentComplexity: Frozen ratios of code, math, tables, lists, technical terms and links
- ComplexityAnalyzer: Token estimation, complexity scan and size optimisation
"""

import logging
import math
import re
from dataclasses import dataclass, asdict
from typing import Dict, Optional

from .lines import LineKind, scan_lines, split_lines

logger = logging.getLogger(__name__)

CHARS_PER_TOKEN = 3.5
CODE_CHARS_PER_TOKEN = 2.5
INPUT_TOKEN_LIMIT = 1048576
OUTPUT_TOKEN_LIMIT = 65535
RECOMMENDED_OUTPUT_TOKENS = 32768
MIN_OUTPUT_TOKENS = 8192

INLINE_MATH_PATTERN = re.compile(r'\$[^$\n]+\$')
DISPLAY_MATH_PATTERN = re.compile(r'\$\$.+?\$\$')
LINK_PATTERN = re.compile(r'\[[^\]\n]*\]\([^)\s]*\)|https?://[^\s)\]>]+')
WORD_PATTERN = re.compile(r'\S+')
TECHNICAL_TERM_PATTERN = re.compile(
    r'\b(API|function|class|method|algorithm|implementation|framework|library|'
    r'syntax|programming|development|software|code|variable|parameter|interface|'
    r'async|await|promise|callback|database|server|client|protocol|authentication|'
    r'authorization|encryption|deployment|configuration|optimization|performance|'
    r'scalability|architecture|microservice|container|kubernetes|docker|DevOps|'
    r'testing|debugging|monitoring|logging|analytics|machine learning|neural network|'
    r'deep learning|cloud computing|REST|GraphQL|JSON|XML|HTTPS?|TCP|UDP|SQL|NoSQL|'
    r'WebSocket|gRPC|OAuth|JWT|thread|process|concurrency|parallelism|mutex|'
    r'semaphore|deadlock|race condition|garbage collection|memory leak|heap|stack|'
    r'pointer|inheritance|polymorphism|encapsulation|abstraction|design pattern|'
    r'dependency injection|refactoring|version control|Git|branch|merge|commit|'
    r'pull request|continuous integration|continuous deployment)\b',
    re.IGNORECASE
)

# Ordered: the first dimension past its threshold is dominant.
DOMINANT_THRESHOLDS = (
    ("code", 0.3),
    ("math", 0.2),
    ("table", 0.2),
    ("list", 0.3),
)

CHUNK_SIZE_MULTIPLIERS = {
    "code": 0.7,
    "math": 0.8,
    "table": 1.2,
}

DEFAULT_COMPLEXITY_WEIGHTS = {
    "code": 0.3,
    "math": 0.3,
    "table": 0.2,
    "list": 0.1,
    "technical": 0.1,
}


@dataclass(frozen=True)
class ContentComplexity:
    """
    Structural ratios of a piece of markdown, each in [0, 1].

    Attributes:
        code_ratio: Lines inside or delimiting fenced code / total lines
        math_ratio: Lines with inline math or inside display math / total lines
        table_ratio: Pipe-row lines / total lines
        list_ratio: List-item lines / total lines
        technical_term_ratio: Technical keyword matches / word count
        link_ratio: Characters covered by links or bare URLs / total characters
    """
    code_ratio: float = 0.0
    math_ratio: float = 0.0
    table_ratio: float = 0.0
    list_ratio: float = 0.0
    technical_term_ratio: float = 0.0
    link_ratio: float = 0.0

    def __post_init__(self) -> None:
        for name, value in asdict(self).items():
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be between 0.0 and 1.0, got: {value}")

    def complexity_score(self, weights: Optional[Dict[str, float]] = None) -> float:
        """
        Weighted sum of the structural ratios.

        Args:
            weights: Mapping of dimension name (code, math, table, list,
                technical) to weight. Defaults to 0.3/0.3/0.2/0.1/0.1.
        """
        weights = weights or DEFAULT_COMPLEXITY_WEIGHTS
        return (
            weights.get("code", 0.0) * self.code_ratio
            + weights.get("math", 0.0) * self.math_ratio
            + weights.get("table", 0.0) * self.table_ratio
            + weights.get("list", 0.0) * self.list_ratio
            + weights.get("technical", 0.0) * self.technical_term_ratio
        )

    def dominant_dimension(self) -> Optional[str]:
        """Return the first of code, math, table, list past its threshold, or None."""
        ratios = {
            "code": self.code_ratio,
            "math": self.math_ratio,
            "table": self.table_ratio,
            "list": self.list_ratio,
        }
        for name, threshold in DOMINANT_THRESHOLDS:
            if ratios[name] > threshold:
                return name
        return None

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


def estimate_tokens(text: str) -> int:
    """Estimate token count as ceil(len / 3.5)."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


class ComplexityAnalyzer:
    """
    Token estimation and structural complexity analysis.

    Stateless apart from the token limits it was built with; safe to share
    between requests.

    Example:
        >>> analyzer = ComplexityAnalyzer()
        >>> analyzer.estimate_tokens("abcdefg")
        2
        >>> analyzer.analyze_content_complexity("```\\ncode\\n```").code_ratio
        1.0
    """

    def __init__(
        self,
        input_token_limit: int = INPUT_TOKEN_LIMIT,
        output_token_limit: int = OUTPUT_TOKEN_LIMIT,
        recommended_output_tokens: int = RECOMMENDED_OUTPUT_TOKENS
    ) -> None:
        if input_token_limit <= 0 or output_token_limit <= 0:
            raise ValueError("Token limits must be positive")
        self.input_token_limit = input_token_limit
        self.output_token_limit = output_token_limit
        self.recommended_output_tokens = recommended_output_tokens

    def estimate_tokens(self, text: str) -> int:
        return estimate_tokens(text)

    def analyze_content_complexity(self, text: str) -> ContentComplexity:
        """
        Scan text once and compute its structural ratios.

        Args:
            text: Markdown text to analyse

        Returns:
            ContentComplexity; all zeros for empty text
        """
        if not text:
            return ContentComplexity()

        infos = scan_lines(split_lines(text))
        total_lines = len(infos)

        code_lines = math_lines = table_lines = list_lines = 0
        in_display_math = False

        for info in infos:
            if info.in_code:
                code_lines += 1
                continue

            stripped = info.text.strip()
            if stripped == "$$":
                in_display_math = not in_display_math
                math_lines += 1
                continue
            if in_display_math:
                math_lines += 1
                continue

            if DISPLAY_MATH_PATTERN.search(stripped) or INLINE_MATH_PATTERN.search(stripped):
                math_lines += 1
            elif stripped.startswith("$$"):
                in_display_math = True
                math_lines += 1
            elif info.kind is LineKind.TABLE_ROW:
                table_lines += 1
            elif info.kind is LineKind.LIST_ITEM:
                list_lines += 1

        word_count = len(WORD_PATTERN.findall(text))
        technical_matches = len(TECHNICAL_TERM_PATTERN.findall(text))
        technical_ratio = min(1.0, technical_matches / word_count) if word_count else 0.0

        link_chars = sum(len(match.group(0)) for match in LINK_PATTERN.finditer(text))

        complexity = ContentComplexity(
            code_ratio=code_lines / total_lines,
            math_ratio=math_lines / total_lines,
            table_ratio=table_lines / total_lines,
            list_ratio=list_lines / total_lines,
            technical_term_ratio=technical_ratio,
            link_ratio=min(1.0, link_chars / len(text)),
        )
        logger.debug(f"Complexity for {len(text)} chars: {complexity}")
        return complexity

    def optimal_chunk_size(
        self,
        text: str,
        base_chunk_chars: int,
        max_output_tokens: int = RECOMMENDED_OUTPUT_TOKENS,
        complexity: Optional[ContentComplexity] = None
    ) -> int:
        """
        Chunk size in characters for text of this shape.

        The base size is scaled by the dominant dimension (code 0.7, math 0.8,
        table 1.2) and clipped so a chunk's transformed output fits within
        max_output_tokens (2.5 chars/token for code-heavy text, 3.5 otherwise).
        """
        if base_chunk_chars <= 0:
            raise ValueError(f"base_chunk_chars must be positive, got: {base_chunk_chars}")

        complexity = complexity or self.analyze_content_complexity(text)
        multiplier = CHUNK_SIZE_MULTIPLIERS.get(complexity.dominant_dimension(), 1.0)
        chars_per_token = CODE_CHARS_PER_TOKEN if complexity.code_ratio > 0.2 else CHARS_PER_TOKEN
        output_ceiling = int(max_output_tokens * chars_per_token)

        return max(1, min(int(base_chunk_chars * multiplier), output_ceiling))

    def optimal_output_token_limit(self, chunk_chars: int) -> int:
        """max(8192, min(recommended, 0.3 * (input_limit - input_tokens)))."""
        input_tokens = math.ceil(chunk_chars / CHARS_PER_TOKEN)
        available = min(
            self.recommended_output_tokens,
            int((self.input_token_limit - input_tokens) * 0.3)
        )
        return max(MIN_OUTPUT_TOKENS, available)

    def validate_token_limits(self, input_text: str, expected_output_tokens: int) -> bool:
        """True when input and expected output both fit the service limits."""
        return (
            self.estimate_tokens(input_text) <= self.input_token_limit
            and expected_output_tokens <= self.output_token_limit
        )
