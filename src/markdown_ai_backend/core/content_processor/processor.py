"""
Content Processor Module

Contains the ContentProcessor class - the orchestrator that decides between a
single generation call and chunked processing, drives the chunk loop, merges
results and reports progress.

Each reformat() or rewrite() call owns its ProcessingRequest, chunk list,
contexts and accumulator; the processor itself only holds read-only
collaborators and may serve several requests.
"""

import logging
from functools import partial, reduce
from typing import Optional

from ...exceptions import GenerationError, MarkdownAIError
from ..document_processor.analysis import DocumentAnalyzer
from ..document_processor.chunking import (
    Chunk,
    ChunkConfig,
    StructuralChunker,
    build_chunk_context,
)
from ..document_processor.complexity import ComplexityAnalyzer, ContentComplexity
from ..document_processor.lines import heading_lines
from ..generation.protocol import TextGenerator
from ..prompting import (
    GenerationParameters,
    build_chunk_rewrite_prompt,
    build_reformat_prompt,
    build_rewrite_prompt,
    optimize_generation_parameters,
    reformat_generation_parameters,
)
from .cleaning import clean_response
from .config import ProcessingConfig
from .merge import merge_texts
from .types import (
    CancellationToken,
    MergeAccumulator,
    ProcessingRequest,
    ProcessingState,
    ProgressCallback,
    ReformatResponse,
    RewriteContext,
    RewriteResponse,
)

logger = logging.getLogger(__name__)

REFORMAT = "reformat"
REWRITE = "rewrite"


class ContentProcessor:
    """
    Orchestrates reformat and rewrite requests against a TextGenerator.

    The public methods never raise: every failure becomes a response with
    success=False, the error text and how many chunks completed.

    Attributes:
        generator: Caller-owned TextGenerator, usually a GenerationSession
        chunk_config: ChunkConfig for chunk budgets and context previews
        processing_config: ProcessingConfig with thresholds and merge windows

    Example:
        >>> processor = ContentProcessor(session)
        >>> response = processor.reformat(text, on_progress=lambda done, total: print(done, total))
        >>> if response.success:
        ...     print(response.content)
    """

    def __init__(
        self,
        generator: TextGenerator,
        chunk_config: Optional[ChunkConfig] = None,
        processing_config: Optional[ProcessingConfig] = None,
        complexity_analyzer: Optional[ComplexityAnalyzer] = None,
        document_analyzer: Optional[DocumentAnalyzer] = None,
        chunker: Optional[StructuralChunker] = None
    ) -> None:
        if not isinstance(generator, TextGenerator):
            raise TypeError(f"generator must provide generate(prompt, params), got: {type(generator)}")

        self.generator = generator
        self.chunk_config = chunk_config or ChunkConfig()
        self.processing_config = processing_config or ProcessingConfig()
        self.complexity_analyzer = complexity_analyzer or ComplexityAnalyzer()
        self.document_analyzer = document_analyzer or DocumentAnalyzer(self.complexity_analyzer)
        self.chunker = chunker or StructuralChunker(self.chunk_config)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def reformat(
        self,
        content: str,
        on_progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> ReformatResponse:
        """
        Clean up markdown formatting without changing its meaning.

        Args:
            content: Markdown document
            on_progress: Called with (chunks done, total chunks) after every chunk
            cancel_token: Checked before each generation call and after it returns

        Returns:
            ReformatResponse; on failure content is the unchanged input
        """
        request = ProcessingRequest(mode=REFORMAT)
        token = cancel_token or CancellationToken()
        total = 1

        try:
            request.transition(ProcessingState.ANALYZING)
            if not content.strip():
                return self._empty_response(request, content, ReformatResponse)

            complexity = self.complexity_analyzer.analyze_content_complexity(content)

            if not self.should_use_chunking(content, complexity, REFORMAT):
                request.transition(ProcessingState.SINGLE_SHOT)
                prompt = build_reformat_prompt(content)
                text = self._run_single(prompt, reformat_generation_parameters(0), content, token, on_progress)
                return self._finish(request, text, 1, 1, ReformatResponse)

            request.transition(ProcessingState.CHUNKING)
            chunks = self._chunk(content, complexity)
            total = len(chunks)

            def prompt_for(chunk: Chunk):
                context = build_chunk_context(chunk, content, self.chunk_config)
                prompt = build_reformat_prompt(chunk.content, context, chunk.overlap_prefix)
                return prompt, reformat_generation_parameters(chunk.ordinal)

            accumulator = self._fold_chunks(chunks, prompt_for, REFORMAT, token, on_progress)
            return self._finish(request, accumulator.merged_text, accumulator.chunks_processed, total,
                                ReformatResponse)

        except MarkdownAIError as e:
            return self._failure(request, content, e, total, ReformatResponse)
        except Exception as e:
            logger.exception(f"Unexpected error while reformatting: {e}")
            return self._failure(request, content, e, total, ReformatResponse)

    def rewrite(
        self,
        content: str,
        instruction: str,
        context: Optional[RewriteContext] = None,
        on_progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> RewriteResponse:
        """
        Rewrite content according to a user instruction.

        The surrounding document (from context) is profiled so that the
        rewrite matches its structure, terminology and tone.

        Args:
            content: Region to rewrite
            instruction: The user's request, e.g. "make this more formal"
            context: Surrounding text of the region
            on_progress: Called with (chunks done, total chunks) after every chunk
            cancel_token: Checked before each generation call and after it returns

        Returns:
            RewriteResponse; on failure content is the unchanged input
        """
        request = ProcessingRequest(mode=REWRITE)
        token = cancel_token or CancellationToken()
        context = context or RewriteContext()
        total = 1

        try:
            request.transition(ProcessingState.ANALYZING)
            if not content.strip():
                return self._empty_response(request, content, RewriteResponse)

            full_document = context.full_document
            if full_document is None:
                full_document = context.before + content + context.after

            analysis = self.document_analyzer.analyze(full_document, target_region=content)
            complexity = self.complexity_analyzer.analyze_content_complexity(content)
            semantic = self.document_analyzer.extract_semantic_context(content, full_document)
            window = self.document_analyzer.optimal_context_window(content, context.before, context.after)
            params = optimize_generation_parameters(analysis, complexity, instruction)

            measured = content + instruction + window.before + window.after
            if not self.should_use_chunking(content, complexity, REWRITE, measured_text=measured):
                request.transition(ProcessingState.SINGLE_SHOT)
                prompt = build_rewrite_prompt(
                    content, instruction, analysis, complexity, semantic, window,
                    full_document=full_document,
                    document_structure=context.document_structure or None,
                )
                text = self._run_single(prompt, params, content, token, on_progress)
                return self._finish(request, text, 1, 1, RewriteResponse, analysis=analysis)

            request.transition(ProcessingState.CHUNKING)
            chunks = self._chunk(content, complexity)
            total = len(chunks)

            def prompt_for(chunk: Chunk):
                chunk_context = build_chunk_context(chunk, content, self.chunk_config, document=full_document)
                prompt = build_chunk_rewrite_prompt(chunk, instruction, chunk_context, analysis, complexity)
                return prompt, params

            accumulator = self._fold_chunks(chunks, prompt_for, REWRITE, token, on_progress)
            return self._finish(request, accumulator.merged_text, accumulator.chunks_processed, total,
                                RewriteResponse, analysis=analysis)

        except MarkdownAIError as e:
            return self._failure(request, content, e, total, RewriteResponse)
        except Exception as e:
            logger.exception(f"Unexpected error while rewriting: {e}")
            return self._failure(request, content, e, total, RewriteResponse)

    # ------------------------------------------------------------------
    # Chunking decision
    # ------------------------------------------------------------------

    def should_use_chunking(
        self,
        content: str,
        complexity: ContentComplexity,
        mode: str,
        measured_text: Optional[str] = None
    ) -> bool:
        """
        Decide whether a request needs chunked processing.

        Size limits for the mode are scaled by the dominant complexity
        dimension and tightened for heading-dense documents. Chunking is used
        when the measured text exceeds either limit or when the complexity
        score passes the configured threshold.

        Args:
            content: The text that would be chunked
            complexity: Its ContentComplexity
            mode: 'reformat' or 'rewrite'
            measured_text: Text whose size is compared with the limits;
                defaults to content
        """
        config = self.processing_config
        measured = content if measured_text is None else measured_text
        char_limit, token_limit = config.limits_for(mode)

        dominant = complexity.dominant_dimension()
        char_multiplier, token_multiplier = config.dimension_multipliers.get(dominant, (1.0, 1.0))
        char_limit *= char_multiplier
        token_limit *= token_multiplier

        heading_count = len(heading_lines(content))
        if heading_count > config.heading_count_threshold:
            char_limit *= config.structure_multiplier
            token_limit *= config.structure_multiplier

        tokens = self.complexity_analyzer.estimate_tokens(measured)
        score = complexity.complexity_score(config.complexity_weights)
        decision = len(measured) > char_limit or tokens > token_limit or score > config.complexity_threshold

        logger.debug(
            f"Chunking decision ({mode}): chars={len(measured)}/{char_limit:.0f}, "
            f"tokens={tokens}/{token_limit:.0f}, score={score:.2f}, dominant={dominant} -> {decision}"
        )
        return decision

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _chunk(self, content: str, complexity: ContentComplexity):
        chunk_size = self.complexity_analyzer.optimal_chunk_size(
            content,
            self.chunk_config.max_chunk_chars,
            self.processing_config.max_output_tokens,
            complexity=complexity,
        )
        overlap = min(self.chunk_config.overlap_chars, max(0, chunk_size - 1))
        chunks = self.chunker.chunk(content, chunk_size, overlap)
        logger.info(f"Processing {len(chunks)} chunks (chunk size {chunk_size} chars)")
        return chunks

    def _generate(
        self,
        prompt: str,
        params: GenerationParameters,
        chunks_processed: int,
        total_chunks: int
    ) -> str:
        try:
            return self.generator.generate(prompt, params)
        except Exception as e:
            position = f"chunk {chunks_processed + 1}/{total_chunks}" if total_chunks > 1 else "request"
            raise GenerationError(
                f"Generation failed for {position}: {e}",
                chunks_processed=chunks_processed,
                total_chunks=total_chunks,
                original_exception=e,
            ) from e

    def _run_single(
        self,
        prompt: str,
        params: GenerationParameters,
        source: str,
        token: CancellationToken,
        on_progress: Optional[ProgressCallback]
    ) -> str:
        token.raise_if_cancelled(0, 1)
        raw = self._generate(prompt, params, 0, 1)
        token.raise_if_cancelled(0, 1)
        text = clean_response(raw, source=source, fix_markdown_syntax=self.processing_config.fix_markdown_syntax)
        if on_progress:
            on_progress(1, 1)
        return text

    def _merge_step(
        self,
        prompt_for,
        mode: str,
        total: int,
        token: CancellationToken,
        on_progress: Optional[ProgressCallback],
        accumulator: MergeAccumulator,
        chunk: Chunk
    ) -> MergeAccumulator:
        """Transform one chunk and fold it into the accumulator."""
        token.raise_if_cancelled(accumulator.chunks_processed, total)

        if chunk.content.strip():
            prompt, params = prompt_for(chunk)
            raw = self._generate(prompt, params, accumulator.chunks_processed, total)
            token.raise_if_cancelled(accumulator.chunks_processed, total)
            piece = clean_response(
                raw,
                source=chunk.content,
                fix_markdown_syntax=self.processing_config.fix_markdown_syntax,
            )
            merged = merge_texts(accumulator.merged_text, piece, self.processing_config.merge_window_for(mode))
        else:
            merged = accumulator.merged_text

        result = MergeAccumulator(merged_text=merged, chunks_processed=accumulator.chunks_processed + 1)
        logger.info(f"Processed chunk {result.chunks_processed}/{total}")
        if on_progress:
            on_progress(result.chunks_processed, total)
        return result

    def _fold_chunks(
        self,
        chunks,
        prompt_for,
        mode: str,
        token: CancellationToken,
        on_progress: Optional[ProgressCallback]
    ) -> MergeAccumulator:
        step = partial(self._merge_step, prompt_for, mode, len(chunks), token, on_progress)
        return reduce(step, chunks, MergeAccumulator())

    @staticmethod
    def _finish(request: ProcessingRequest, text: str, processed: int, total: int, response_cls, **extra):
        request.transition(ProcessingState.MERGING)
        result = text.strip()
        request.transition(ProcessingState.DONE)
        return response_cls(
            success=True,
            content=result,
            chunks_processed=processed,
            total_chunks=total,
            state=request.state,
            **extra,
        )

    @staticmethod
    def _empty_response(request: ProcessingRequest, content: str, response_cls):
        request.transition(ProcessingState.SINGLE_SHOT)
        request.transition(ProcessingState.MERGING)
        request.transition(ProcessingState.DONE)
        logger.debug("Empty content, nothing to process")
        return response_cls(success=True, content="", chunks_processed=0, total_chunks=0, state=request.state)

    @staticmethod
    def _failure(request: ProcessingRequest, content: str, error: Exception, total: int, response_cls):
        request.fail()
        processed = getattr(error, "chunks_processed", 0)
        total_chunks = getattr(error, "total_chunks", None) or total
        logger.error(
            f"{request.mode.capitalize()} request {request.request_id} failed after "
            f"{processed}/{total_chunks} chunks: {error}"
        )
        return response_cls(
            success=False,
            content=content,
            error=str(error),
            chunks_processed=processed,
            total_chunks=total_chunks,
            state=request.state,
        )
