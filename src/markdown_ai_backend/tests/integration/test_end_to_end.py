"""
End-to-end tests running the full pipeline against a faked HTTP endpoint.

Everything from configuration loading down to the requests session is real;
only ``requests.Session.post`` is replaced with a stand-in for the service.
"""

from unittest.mock import Mock, patch

import pytest
from typer.testing import CliRunner

from markdown_ai_backend.cli.cli import app
from markdown_ai_backend.core.content_processor import RewriteContext
from markdown_ai_backend.utils.config import ConfigManager
from markdown_ai_backend.utils.processor_factory import ProcessorFactory

POST = 'markdown_ai_backend.core.generation.client.requests.Session.post'
SLEEP = 'markdown_ai_backend.core.generation.client.time.sleep'

pytestmark = pytest.mark.integration


class FakeService:
    """Answers generateContent calls by upper-casing the prompt's content block."""

    def __init__(self, content_extractor, statuses=()):
        self.extract = content_extractor
        self.statuses = list(statuses)
        self.requests = []

    def __call__(self, url, json=None, timeout=None, **kwargs):
        self.requests.append({"url": url, "json": json, "timeout": timeout})
        response = Mock()
        response.headers = {}
        if self.statuses:
            response.status_code = self.statuses.pop(0)
            response.json.return_value = {"error": {"message": "backend unavailable"}}
            return response

        prompt = json["contents"][0]["parts"][0]["text"]
        response.status_code = 200
        response.json.return_value = {
            "candidates": [{
                "content": {"parts": [{"text": self.extract(prompt).upper()}]},
                "finishReason": "STOP",
            }]
        }
        return response


@pytest.fixture
def project(tmp_path, monkeypatch):
    """A project directory holding a small-budget config and an API key in .env."""
    monkeypatch.chdir(tmp_path)
    (tmp_path / "markdown_ai.config.json").write_text(
        '{"generation": {"max_retries": 2, "timeout": 30},'
        ' "chunking": {"max_chunk_chars": 510, "overlap_chars": 0},'
        ' "processing": {"reformat_char_limit": 500, "rewrite_char_limit": 500}}',
        encoding="utf-8",
    )
    (tmp_path / ".env").write_text("MARKDOWN_AI_API_KEY=integration-key\n", encoding="utf-8")
    # Registered so the value load_dotenv sets is removed on teardown
    monkeypatch.setenv("MARKDOWN_AI_API_KEY", "placeholder")
    monkeypatch.delenv("MARKDOWN_AI_API_KEY")
    return tmp_path


class TestPipeline:
    """Factory-built processor driving a real session."""

    def test_chunked_reformat(self, project, paragraph_document, content_extractor):
        service = FakeService(content_extractor)
        factory = ProcessorFactory(ConfigManager(project_root=project))

        with patch(POST, side_effect=service):
            with factory.create_session() as session:
                response = factory.create_processor(session).reformat(paragraph_document)

        assert response.success, response.error
        assert (response.chunks_processed, response.total_chunks) == (4, 4)
        assert response.content == paragraph_document.upper().strip()
        assert len(service.requests) == 4
        assert all(r["url"].endswith(":generateContent") for r in service.requests)
        assert all(r["timeout"] == 30 for r in service.requests)

    def test_server_errors_are_retried(self, project, simple_document, content_extractor):
        service = FakeService(content_extractor, statuses=[503, 500])
        factory = ProcessorFactory(ConfigManager(project_root=project))

        with patch(POST, side_effect=service), patch(SLEEP) as mock_sleep:
            with factory.create_session() as session:
                response = factory.create_processor(session).reformat(simple_document)

        assert response.success
        assert response.content == "# TITLE\n\nHELLO WORLD"
        assert len(service.requests) == 3
        assert [c.args[0] for c in mock_sleep.call_args_list] == [1.0, 2.0]

    def test_exhausted_retries_fail_without_partial_output(
        self, project, paragraph_document, content_extractor
    ):
        service = FakeService(content_extractor, statuses=[500, 500, 500])
        factory = ProcessorFactory(ConfigManager(project_root=project))

        with patch(POST, side_effect=service), patch(SLEEP):
            with factory.create_session() as session:
                response = factory.create_processor(session).reformat(paragraph_document)

        assert not response.success
        assert "backend unavailable" in response.error
        assert response.content == paragraph_document
        assert (response.chunks_processed, response.total_chunks) == (0, 4)

    def test_chunked_rewrite(self, project, paragraph_document, content_extractor):
        service = FakeService(content_extractor)
        factory = ProcessorFactory(ConfigManager(project_root=project))
        context = RewriteContext(before="# Notes\n\nEarlier text.\n", after="Closing remarks.\n")

        with patch(POST, side_effect=service):
            with factory.create_session() as session:
                response = factory.create_processor(session).rewrite(
                    paragraph_document, "shout every word", context
                )

        assert response.success, response.error
        assert response.total_chunks == 4
        assert response.content == paragraph_document.upper().strip()
        prompts = [r["json"]["contents"][0]["parts"][0]["text"] for r in service.requests]
        assert all("USER REQUEST:\nshout every word" in prompt for prompt in prompts)


@pytest.mark.usefixtures("restore_root_logger")
class TestCommandLine:
    """The console commands with only the HTTP layer faked."""

    def setup_method(self):
        self.runner = CliRunner()

    def test_reformat_file(self, project, paragraph_document, content_extractor):
        source = project / "long.md"
        source.write_text(paragraph_document, encoding="utf-8")
        service = FakeService(content_extractor)

        with patch(POST, side_effect=service):
            result = self.runner.invoke(app, ["reformat", str(source), "-o", "long.clean.md"])

        assert result.exit_code == 0, result.output
        assert (project / "long.clean.md").read_text(encoding="utf-8") == paragraph_document.upper()
        assert len(service.requests) == 4

    def test_authentication_failure(self, project, simple_document, content_extractor):
        source = project / "short.md"
        source.write_text(simple_document, encoding="utf-8")
        service = FakeService(content_extractor, statuses=[401])

        with patch(POST, side_effect=service):
            result = self.runner.invoke(app, ["reformat", str(source)])

        assert result.exit_code == 1
        assert "0/1" in result.output
        assert len(service.requests) == 1
