"""
Document Analysis Types

Value objects produced by the DocumentAnalyzer. All are plain dataclasses
created per request and discarded after it.
"""

from dataclasses import dataclass, field, asdict
from typing import Dict, Any, List


@dataclass(frozen=True)
class HeadingEntry:
    """One ATX heading of a document."""
    level: int
    text: str

    def __str__(self) -> str:
        return f"{'#' * self.level} {self.text}"


@dataclass(frozen=True)
class StyleMetrics:
    """
    Writing-style measurements of a document.

    Attributes:
        avg_sentence_length: Words per sentence
        formality_score: 0-100, 50 is neutral
        technical_density: Technical keywords per 100 words
        readability_level: Elementary, Middle School, High School, College or Graduate
    """
    avg_sentence_length: float = 0.0
    formality_score: float = 50.0
    technical_density: float = 0.0
    readability_level: str = "Elementary"


@dataclass
class DocumentAnalysis:
    """Structural and stylistic profile of a document around a target region."""
    heading_hierarchy: List[HeadingEntry] = field(default_factory=list)
    content_type_scores: Dict[str, float] = field(default_factory=dict)
    dominant_type: str = "technical"
    style_metrics: StyleMetrics = field(default_factory=StyleMetrics)
    cross_references: List[str] = field(default_factory=list)
    document_length: int = 0
    target_position: float = 0.0

    def __post_init__(self) -> None:
        if not 0.0 <= self.target_position <= 1.0:
            raise ValueError(f"target_position must be in [0, 1], got: {self.target_position}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SemanticContext:
    """
    Keyword-level relationships between a passage and its document.

    Attributes:
        keywords: Up to 20 frequency-ranked keywords of the passage
        related_sections: Up to 5 section titles sharing two or more keywords
        terminology_map: Capitalised term -> spelling variants used in the document
        dependencies: Phrases the passage points to ("see ...") found elsewhere
    """
    keywords: List[str] = field(default_factory=list)
    related_sections: List[str] = field(default_factory=list)
    terminology_map: Dict[str, List[str]] = field(default_factory=dict)
    dependencies: List[str] = field(default_factory=list)


@dataclass
class ContextWindow:
    """Surrounding text trimmed to a token budget."""
    before: str = ""
    after: str = ""
    total_tokens: int = 0
