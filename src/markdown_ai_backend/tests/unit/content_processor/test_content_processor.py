"""
Tests for ContentProcessor orchestration.
"""

from unittest.mock import Mock

import pytest

from markdown_ai_backend.core.content_processor import (
    CancellationToken,
    ContentProcessor,
    ProcessingConfig,
    ProcessingState,
    RewriteContext,
)
from markdown_ai_backend.core.document_processor import (
    Chunk,
    ChunkConfig,
    ContentComplexity,
    ContentType,
    DocumentAnalysis,
)
from markdown_ai_backend.core.prompting import reformat_generation_parameters


class _UnusedGenerator:
    """Generator for tests that never reach a generation call."""

    def generate(self, prompt, params):
        raise AssertionError("unexpected generation call")


def _chunked_processor(generator, **config_overrides):
    """Processor that splits paragraph_document into four chunks."""
    limits = {"reformat_char_limit": 500, "rewrite_char_limit": 500}
    limits.update(config_overrides)
    return ContentProcessor(
        generator,
        chunk_config=ChunkConfig(max_chunk_chars=510, overlap_chars=0),
        processing_config=ProcessingConfig(**limits),
    )


class TestContentProcessorInit:

    def test_rejects_object_without_generate(self):
        with pytest.raises(TypeError):
            ContentProcessor(object())

    def test_defaults(self, echo_generator):
        processor = ContentProcessor(echo_generator)
        assert processor.chunk_config == ChunkConfig()
        assert processor.processing_config.reformat_char_limit == 15000


class TestReformat:
    """Tests for ContentProcessor.reformat."""

    def test_single_shot(self, echo_generator, simple_document):
        progress = []
        response = ContentProcessor(echo_generator).reformat(
            simple_document, on_progress=lambda done, total: progress.append((done, total))
        )

        assert response.success
        assert response.content == simple_document
        assert (response.chunks_processed, response.total_chunks) == (1, 1)
        assert response.state is ProcessingState.DONE
        assert echo_generator.call_count == 1
        assert echo_generator.params == [reformat_generation_parameters(0)]
        assert progress == [(1, 1)]

    def test_single_shot_response_is_cleaned(self, scripted_generator, simple_document):
        generator = scripted_generator(
            responses=["Here is the formatted content:\n```markdown\n# Title\n\nHello, world\n```"]
        )
        response = ContentProcessor(generator).reformat(simple_document)
        assert response.content == "# Title\n\nHello, world"

    def test_chunked_reassembles_document(self, scripted_generator, paragraph_document):
        generator = scripted_generator(transform=str.upper)
        progress = []
        response = _chunked_processor(generator).reformat(
            paragraph_document, on_progress=lambda done, total: progress.append((done, total))
        )

        assert response.success
        assert response.content == paragraph_document.strip().upper()
        assert (response.chunks_processed, response.total_chunks) == (4, 4)
        assert generator.call_count == 4
        assert progress == [(1, 4), (2, 4), (3, 4), (4, 4)]
        assert [params.max_output_tokens for params in generator.params] == [32768, 24576, 24576, 24576]
        assert "- Position: Chunk 2 of 4" in generator.prompts[1]

    def test_code_blocks_split_between_chunks_keep_their_fences(self, echo_generator):
        fence = "~" * 30 + "\n"
        document = (
            "Intro text line.\n\n"
            + fence + "a = 1\n" * 42 + fence + "\n"
            + fence + "b = 2\n" * 42 + fence
        )
        response = _chunked_processor(echo_generator).reformat(document)

        assert response.success
        assert response.total_chunks == 2
        assert response.content.count(fence.strip()) == 4
        assert response.content == document.strip()

    def test_overlap_is_context_not_content(self, echo_generator, paragraph_document, content_extractor):
        processor = ContentProcessor(
            echo_generator,
            chunk_config=ChunkConfig(max_chunk_chars=510, overlap_chars=100),
            processing_config=ProcessingConfig(reformat_char_limit=500),
        )
        response = processor.reformat(paragraph_document)

        assert response.content == paragraph_document.strip()
        assert "PREVIOUS CONTEXT" not in echo_generator.prompts[0]
        assert "PREVIOUS CONTEXT" in echo_generator.prompts[1]
        assert content_extractor(echo_generator.prompts[1]).startswith("Paragraph 10")

    def test_failure_reports_progress_and_returns_input(self, scripted_generator, paragraph_document):
        generator = scripted_generator(fail_on={2})
        response = _chunked_processor(generator).reformat(paragraph_document)

        assert not response.success
        assert response.content == paragraph_document
        assert (response.chunks_processed, response.total_chunks) == (2, 4)
        assert response.state is ProcessingState.FAILED
        assert "chunk 3/4" in response.error
        assert generator.call_count == 3

    def test_single_shot_failure(self, scripted_generator, simple_document):
        response = ContentProcessor(scripted_generator(fail_on={0})).reformat(simple_document)

        assert not response.success
        assert response.content == simple_document
        assert (response.chunks_processed, response.total_chunks) == (0, 1)
        assert "Generation failed for request" in response.error

    def test_unexpected_generator_errors_are_wrapped(self, scripted_generator, simple_document):
        def explode(index):
            raise RuntimeError("boom")

        generator = scripted_generator(on_call=explode)

        response = ContentProcessor(generator).reformat(simple_document)

        assert not response.success
        assert "boom" in response.error

    def test_unexpected_internal_errors_become_failures(self, echo_generator, paragraph_document):
        chunker = Mock()
        chunker.chunk.side_effect = ValueError("bad budget")
        processor = ContentProcessor(
            echo_generator, processing_config=ProcessingConfig(reformat_char_limit=500), chunker=chunker
        )

        response = processor.reformat(paragraph_document)

        assert not response.success
        assert response.error == "bad budget"
        assert response.state is ProcessingState.FAILED

    def test_cancellation_between_chunks(self, scripted_generator, paragraph_document):
        token = CancellationToken()
        generator = scripted_generator(on_call=lambda index: token.cancel() if index == 1 else None)

        response = _chunked_processor(generator).reformat(paragraph_document, cancel_token=token)

        assert not response.success
        assert response.error == "Processing was cancelled"
        assert (response.chunks_processed, response.total_chunks) == (1, 4)
        assert response.content == paragraph_document
        assert generator.call_count == 2

    def test_cancelled_before_start(self, echo_generator, simple_document):
        token = CancellationToken()
        token.cancel()

        response = ContentProcessor(echo_generator).reformat(simple_document, cancel_token=token)

        assert not response.success
        assert echo_generator.call_count == 0
        assert (response.chunks_processed, response.total_chunks) == (0, 1)

    @pytest.mark.parametrize("content", ["", "   \n\n  "])
    def test_empty_input(self, echo_generator, content):
        response = ContentProcessor(echo_generator).reformat(content)

        assert response.success
        assert response.content == ""
        assert (response.chunks_processed, response.total_chunks) == (0, 0)
        assert echo_generator.call_count == 0

    def test_blank_chunks_are_counted_without_a_call(self, echo_generator):
        chunker = Mock()
        chunker.chunk.return_value = [
            Chunk(content="alpha\n", ordinal=0, total_chunks=2,
                  dominant_type=ContentType.PARAGRAPH, start_line=1, end_line=1),
            Chunk(content="\n\n", ordinal=1, total_chunks=2,
                  dominant_type=ContentType.PARAGRAPH, start_line=2, end_line=3),
        ]
        processor = ContentProcessor(
            echo_generator, processing_config=ProcessingConfig(reformat_char_limit=1), chunker=chunker
        )

        response = processor.reformat("alpha\n\n\n")

        assert response.content == "alpha"
        assert (response.chunks_processed, response.total_chunks) == (2, 2)
        assert echo_generator.call_count == 1

    def test_chunk_budget_follows_content_shape(self, echo_generator, large_code_document):
        chunker = Mock()
        chunker.chunk.return_value = []
        processor = ContentProcessor(
            echo_generator,
            chunk_config=ChunkConfig(max_chunk_chars=1000, overlap_chars=900),
            processing_config=ProcessingConfig(reformat_char_limit=100),
            chunker=chunker,
        )

        processor.reformat(large_code_document)

        # code-dominant content shrinks the budget to 700 and the overlap below it
        chunker.chunk.assert_called_once_with(large_code_document, 700, 699)


class TestRewrite:
    """Tests for ContentProcessor.rewrite."""

    def test_single_shot_with_context(self, echo_generator, content_extractor):
        context = RewriteContext(before="# Doc\n\n", after="\n\nMore text follows.")
        response = ContentProcessor(echo_generator).rewrite("Some text here.", "shorten", context)

        assert response.success
        assert response.content == "Some text here."
        assert isinstance(response.analysis, DocumentAnalysis)
        prompt = echo_generator.prompts[0]
        assert "PRECEDING CONTENT:\n# Doc" in prompt
        assert "USER REQUEST:\nshorten" in prompt
        assert content_extractor(prompt) == "Some text here."

    def test_formal_document_lowers_temperature(self, echo_generator, formal_document):
        paragraph = "Therefore however furthermore moreover thus hence."
        response = ContentProcessor(echo_generator).rewrite(
            paragraph, "make this more formal", RewriteContext(before=formal_document)
        )

        assert response.analysis.style_metrics.formality_score == 100.0
        assert echo_generator.params[0].temperature == 0.1

    def test_caller_document_structure_is_used(self, echo_generator):
        context = RewriteContext(before="Earlier text.\n", document_structure="1. Intro\n2. Body")
        ContentProcessor(echo_generator).rewrite("Body text.", "expand", context)
        assert "Document Structure:\n1. Intro\n2. Body" in echo_generator.prompts[0]

    def test_chunked_rewrite(self, echo_generator, paragraph_document):
        progress = []
        response = _chunked_processor(echo_generator).rewrite(
            paragraph_document, "tighten", on_progress=lambda done, total: progress.append(done)
        )

        assert response.success
        assert response.content == paragraph_document.strip()
        assert response.total_chunks == 4
        assert progress == [1, 2, 3, 4]
        assert echo_generator.prompts[0].startswith("You are rewriting chunk 1 of 4 chunks.")
        assert "CONSISTENCY REQUIREMENTS" not in echo_generator.prompts[0]
        assert "CONSISTENCY REQUIREMENTS" in echo_generator.prompts[3]
        assert len(set(echo_generator.params)) == 1

    def test_chunk_outline_comes_from_surrounding_document(self, echo_generator, paragraph_document):
        context = RewriteContext(before="# Handbook\n\n", after="\n## Appendix\n")
        response = _chunked_processor(echo_generator).rewrite(paragraph_document, "tighten", context)

        assert response.success
        assert response.total_chunks == 4
        for prompt in echo_generator.prompts:
            assert "- Document structure: # Handbook; ## Appendix" in prompt
        assert "- Following content preview: Paragraph 10" in echo_generator.prompts[0]

    def test_failure_keeps_input(self, scripted_generator, paragraph_document):
        response = _chunked_processor(scripted_generator(fail_on={0})).rewrite(paragraph_document, "tighten")

        assert not response.success
        assert response.content == paragraph_document
        assert (response.chunks_processed, response.total_chunks) == (0, 4)

    def test_empty_input(self, echo_generator):
        response = ContentProcessor(echo_generator).rewrite("  ", "expand")
        assert response.success and response.content == ""
        assert echo_generator.call_count == 0


class TestShouldUseChunking:
    """Tests for the chunking decision."""

    def setup_method(self):
        self.processor = ContentProcessor(
            _UnusedGenerator(), processing_config=ProcessingConfig(reformat_char_limit=1000)
        )

    def test_small_content_single_shot(self):
        assert not self.processor.should_use_chunking("a" * 900, ContentComplexity(), "reformat")

    def test_code_dominant_content_tightens_limit(self):
        assert self.processor.should_use_chunking("a" * 900, ContentComplexity(code_ratio=0.5), "reformat")

    def test_table_dominant_content_loosens_limit(self):
        assert self.processor.should_use_chunking("a" * 1200, ContentComplexity(), "reformat")
        assert not self.processor.should_use_chunking(
            "a" * 1200, ContentComplexity(table_ratio=0.5), "reformat"
        )

    def test_heading_dense_content_tightens_limit(self):
        five = "# h\n" * 5 + "a" * 880
        six = "# h\n" * 6 + "a" * 876
        assert not self.processor.should_use_chunking(five, ContentComplexity(), "reformat")
        assert self.processor.should_use_chunking(six, ContentComplexity(), "reformat")

    def test_comments_in_code_are_not_headings(self):
        commented = "```bash\n" + "# step\n" * 8 + "```\n" + "a" * 832
        headed = "# step\n" * 8 + "a" * 844
        assert not self.processor.should_use_chunking(commented, ContentComplexity(), "reformat")
        assert self.processor.should_use_chunking(headed, ContentComplexity(), "reformat")

    def test_complexity_score_forces_chunking(self):
        complexity = ContentComplexity(
            code_ratio=1.0, math_ratio=1.0, table_ratio=1.0, list_ratio=1.0, technical_term_ratio=1.0
        )
        assert self.processor.should_use_chunking("x", complexity, "reformat")

    def test_token_limit(self):
        processor = ContentProcessor(
            _UnusedGenerator(),
            processing_config=ProcessingConfig(reformat_char_limit=100000, reformat_token_limit=10),
        )
        assert processor.should_use_chunking("a" * 100, ContentComplexity(), "reformat")

    def test_rewrite_measures_surrounding_text(self):
        assert not self.processor.should_use_chunking("short", ContentComplexity(), "rewrite")
        assert self.processor.should_use_chunking(
            "short", ContentComplexity(), "rewrite", measured_text="x" * 60000
        )

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            self.processor.should_use_chunking("x", ContentComplexity(), "summarize")
