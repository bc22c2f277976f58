"""
Prompt Builder Module

Pure functions assembling instruction strings for the generation service.
Content is always wrapped in a backtick fence longer than any backtick run it
contains, so fences inside the document cannot terminate the wrapper.
Overlap carried over from a previous chunk is shown as read-only context and
kept outside the block the model is asked to transform.
"""

import logging
import re
from typing import List, Optional

from ..document_processor.analysis import (
    ContextWindow,
    DocumentAnalysis,
    HeadingEntry,
    SemanticContext,
    StyleMetrics,
)
from ..document_processor.chunking import Chunk, ChunkContext
from ..document_processor.complexity import ContentComplexity

logger = logging.getLogger(__name__)

BACKTICK_RUN = re.compile(r'`+')

REFORMAT_RULES = """CRITICAL RULES:
1. NEVER change the actual content, meaning, or information
2. NEVER add or remove any substantive text
3. ONLY fix formatting, syntax, and presentation issues
4. Preserve all links, images, code blocks, and special formatting
5. Fix markdown syntax errors and inconsistencies
6. Standardize spacing and indentation
7. Clean up formatting issues:
   - Remove empty HTML comments like <!---->
   - Fix merged or concatenated words around emphasis markers
   - Correct spacing around punctuation and formatting
   - Ensure proper line breaks and paragraph spacing
   - Standardize bullet points and numbering
   - Fix table formatting if present
8. Fix code formatting issues:
   - Separate code that has been merged into single lines
   - Add proper line breaks and indentation in code blocks
   - Fix code block fence markers
   - Preserve the original programming language and syntax
9. Handle mathematical content with KaTeX support:
   - Inline math uses $equation$, display math uses $$equation$$
   - Fix malformed mathematical expressions
   - Preserve mathematical symbols and Greek letters
   - Handle fractions, superscripts, subscripts, matrices, integrals and sums correctly
10. Maintain the original language and tone
11. Return ONLY the cleaned markdown, no explanations"""

CONSISTENCY_REQUIREMENTS = """CONSISTENCY REQUIREMENTS:
- Maintain consistent tone and style with previous chunks
- Ensure smooth transitions
- Preserve terminology and formatting patterns"""

# (attribute, threshold, guidance lines)
COMPLEXITY_GUIDANCE = (
    ("code_ratio", 0.1, ("Preserve all code blocks and syntax highlighting",
                         "Maintain proper indentation and formatting in code")),
    ("math_ratio", 0.05, ("Preserve mathematical notation and LaTeX formatting",
                          "Ensure proper KaTeX syntax for equations")),
    ("table_ratio", 0.05, ("Maintain table structure and alignment",
                           "Preserve data relationships in tables")),
    ("list_ratio", 0.1, ("Preserve list hierarchy and numbering",
                         "Maintain consistent list formatting")),
    ("link_ratio", 0.05, ("Preserve all links and references",
                          "Maintain link text and URLs")),
)


def fence_for(content: str) -> str:
    """Backtick fence longer than the longest backtick run in content (at least 3)."""
    longest = max((len(run) for run in BACKTICK_RUN.findall(content)), default=0)
    return "`" * max(3, longest + 1)


def fenced(content: str, info: str = "markdown") -> str:
    fence = fence_for(content)
    return f"{fence}{info}\n{content}\n{fence}"


def _overlap_block(overlap: str) -> str:
    if not overlap:
        return ""
    return (
        "PREVIOUS CONTEXT (read-only, already processed, do NOT repeat it in your output):\n"
        f"{fenced(overlap)}\n\n"
    )


def _chunk_context_block(context: ChunkContext) -> str:
    lines = [
        f"- Position: Chunk {context.position + 1} of {context.total_chunks}",
        f"- Document structure: {context.render_outline() or 'None'}",
        f"- Style patterns: {context.render_style_signature() or 'None'}",
        f"- Preceding content preview: {context.preceding_preview}",
        f"- Following content preview: {context.following_preview}",
    ]
    return "\n".join(lines)


def build_complexity_guidance(complexity: ContentComplexity) -> str:
    """Guidance lines for every dimension past its threshold; empty when none is."""
    lines: List[str] = []
    for attribute, threshold, guidance in COMPLEXITY_GUIDANCE:
        if getattr(complexity, attribute) > threshold:
            lines.extend(f"- {line}" for line in guidance)
    if not lines:
        return ""
    return "CONTENT COMPLEXITY GUIDANCE:\n" + "\n".join(lines)


def describe_writing_style(metrics: Optional[StyleMetrics]) -> str:
    if metrics is None:
        return "Standard"
    parts = []
    if metrics.formality_score > 50:
        parts.append("Formal")
    if metrics.technical_density > 0.1:
        parts.append("Technical")
    if metrics.avg_sentence_length > 20:
        parts.append("Complex")
    parts.append(metrics.readability_level or "Standard")
    return ", ".join(parts)


def describe_document_structure(headings: List[HeadingEntry], limit: int = 5) -> str:
    structure = "\n".join(f"{'  ' * (h.level - 1)}{h.text}" for h in headings[:limit])
    return structure or "No clear structure detected"


def _context_description(semantic: SemanticContext, analysis: DocumentAnalysis) -> str:
    description = f"This is primarily {analysis.dominant_type} content. "
    if semantic.keywords:
        description += f"Key topics include: {', '.join(semantic.keywords[:5])}. "
    if semantic.dependencies:
        description += f"This content references: {', '.join(semantic.dependencies[:3])}. "
    return description


def build_reformat_prompt(
    content: str,
    context: Optional[ChunkContext] = None,
    overlap: str = ""
) -> str:
    """
    Formatting-only prompt.

    Args:
        content: Markdown to reformat
        context: Chunk context when reformatting one chunk of a larger document
        overlap: Tail of the previous chunk, shown as read-only context

    Returns:
        Prompt string
    """
    context_info = f"\n\nDOCUMENT CONTEXT:\n{_chunk_context_block(context)}" if context else ""

    return (
        "You are an expert markdown and code formatting specialist with advanced knowledge "
        "of mathematical notation and KaTeX. Your task is to clean up and beautify markdown "
        f"content while preserving ALL original content and meaning.{context_info}\n\n"
        f"{REFORMAT_RULES}\n\n"
        f"{_overlap_block(overlap)}"
        f"CONTENT TO REFORMAT:\n{fenced(content)}\n\n"
        "Cleaned content:"
    )


def build_rewrite_prompt(
    content: str,
    instruction: str,
    analysis: DocumentAnalysis,
    complexity: ContentComplexity,
    semantic: SemanticContext,
    window: ContextWindow,
    full_document: Optional[str] = None,
    document_structure: Optional[str] = None
) -> str:
    """
    Single-shot rewrite prompt enriched with the document profile.

    Includes the style description, context description, document structure,
    trimmed preceding and following text, related sections, key terminology
    and complexity guidance, followed by the content and the user request.
    A caller-supplied document_structure replaces the derived outline.
    """
    sections = []
    if window.before or window.after or full_document or document_structure:
        context_lines = ["DOCUMENT CONTEXT:"]
        if document_structure:
            context_lines.append(f"Document Structure:\n{document_structure}")
        elif full_document and full_document != content:
            context_lines.append(
                f"Document Structure:\n{describe_document_structure(analysis.heading_hierarchy)}"
            )
        if window.before:
            context_lines.append(f"\nPRECEDING CONTENT:\n{window.before}")
        if window.after:
            context_lines.append(f"\nFOLLOWING CONTENT:\n{window.after}")
        if semantic.related_sections:
            context_lines.append(f"\nRELATED SECTIONS: {', '.join(semantic.related_sections)}")
        if semantic.terminology_map:
            key_terms = ", ".join(
                f"{term} ({', '.join(variants)})"
                for term, variants in list(semantic.terminology_map.items())[:5]
            )
            context_lines.append(f"\nKEY TERMINOLOGY: {key_terms}")
        sections.append("\n".join(context_lines))

    metrics = analysis.style_metrics
    sections.append(
        "WRITING STYLE REQUIREMENTS:\n"
        f"- Maintain {describe_writing_style(metrics)} tone and style\n"
        f"- Technical density level: {'High' if complexity.technical_term_ratio > 0.1 else 'Moderate'}\n"
        f"- Readability target: {metrics.readability_level}\n"
        f"- Formality level: {'Formal' if metrics.formality_score > 50 else 'Conversational'}"
    )

    guidance = build_complexity_guidance(complexity)
    if guidance:
        sections.append(guidance)

    sections.append(f"CONTENT TO REWRITE:\n{fenced(content)}")
    sections.append(f"USER REQUEST:\n{instruction}")
    sections.append(
        "Rewrite the content according to the user's request while maintaining consistency "
        "with the document's style and context. Return ONLY the rewritten markdown."
    )

    header = (
        f"You are an expert content writer and editor with deep knowledge of "
        f"{analysis.dominant_type} writing. {_context_description(semantic, analysis)}"
    )
    return header.rstrip() + "\n\n" + "\n\n".join(sections)


def build_chunk_rewrite_prompt(
    chunk: Chunk,
    instruction: str,
    context: ChunkContext,
    analysis: Optional[DocumentAnalysis] = None,
    complexity: Optional[ContentComplexity] = None
) -> str:
    """
    Rewrite prompt for one chunk of a larger document.

    Non-first chunks get consistency requirements. The chunk's overlap
    prefix appears as read-only context ahead of the content block.
    """
    parts = [
        f"You are rewriting chunk {chunk.ordinal + 1} of {chunk.total_chunks} chunks. "
        f"Chunk {chunk.ordinal + 1}/{chunk.total_chunks}: {chunk.dominant_type.value} content"
    ]
    if analysis is not None:
        parts.append(
            f"The document is primarily {analysis.dominant_type} content written in a "
            f"{describe_writing_style(analysis.style_metrics)} style."
        )
    if chunk.ordinal > 0:
        parts.append(CONSISTENCY_REQUIREMENTS)

    parts.append(f"CHUNK CONTEXT:\n{_chunk_context_block(context)}")

    if complexity is not None:
        guidance = build_complexity_guidance(complexity)
        if guidance:
            parts.append(guidance)

    overlap = _overlap_block(chunk.overlap_prefix).rstrip("\n")
    if overlap:
        parts.append(overlap)

    parts.append(f"CONTENT TO REWRITE:\n{fenced(chunk.content)}")
    parts.append(f"USER REQUEST:\n{instruction}")
    parts.append(
        "Rewrite this chunk according to the request while maintaining document consistency. "
        "Return ONLY the rewritten markdown for this chunk."
    )
    return "\n\n".join(parts)
