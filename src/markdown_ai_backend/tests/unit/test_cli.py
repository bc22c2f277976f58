"""
Tests for the markdown-ai command-line interface.
"""

from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from markdown_ai_backend import __version__
from markdown_ai_backend.cli.cli import app

CREATE_SESSION = 'markdown_ai_backend.cli.cli.ProcessorFactory.create_session'

pytestmark = pytest.mark.usefixtures("restore_root_logger")


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Run every command from an empty directory without config or .env files."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def document(workdir):
    path = workdir / "notes.md"
    path.write_text("# Title\n\nHello world\n", encoding="utf-8")
    return path


class TestReformatCommand:
    """Tests for the reformat command."""

    def setup_method(self):
        self.runner = CliRunner()

    def test_writes_output_file(self, document, workdir, scripted_generator):
        generator = scripted_generator()
        output = workdir / "out" / "clean.md"

        with patch(CREATE_SESSION, return_value=generator):
            result = self.runner.invoke(app, ["reformat", str(document), "-o", str(output)])

        assert result.exit_code == 0, result.output
        assert output.read_text(encoding="utf-8") == "# Title\n\nHello world\n"
        assert "Wrote" in result.output
        assert generator.call_count == 1
        assert generator.closed

    def test_prints_to_stdout(self, document, scripted_generator):
        with patch(CREATE_SESSION, return_value=scripted_generator(transform=str.upper)):
            result = self.runner.invoke(app, ["reformat", str(document)])

        assert result.exit_code == 0
        assert "HELLO WORLD" in result.output

    def test_missing_file(self, workdir):
        result = self.runner.invoke(app, ["reformat", str(workdir / "absent.md")])
        assert result.exit_code == 1
        assert "File Not Found" in result.output

    def test_generation_failure(self, document, scripted_generator):
        generator = scripted_generator(fail_on={0})

        with patch(CREATE_SESSION, return_value=generator):
            result = self.runner.invoke(app, ["reformat", str(document)])

        assert result.exit_code == 1
        assert "failed" in result.output
        assert "0/1" in result.output
        assert generator.closed

    def test_missing_api_key(self, document):
        result = self.runner.invoke(app, ["reformat", str(document)])
        assert result.exit_code == 1
        assert "Initialization Error" in result.output

    def test_keyboard_interrupt(self, document, scripted_generator):
        def interrupt(index):
            raise KeyboardInterrupt

        generator = scripted_generator(on_call=interrupt)
        with patch(CREATE_SESSION, return_value=generator):
            result = self.runner.invoke(app, ["reformat", str(document)])

        assert result.exit_code == 130
        assert "cancelled" in result.output
        assert generator.closed


class TestRewriteCommand:
    """Tests for the rewrite command."""

    def setup_method(self):
        self.runner = CliRunner()

    def test_rewrite_with_context_files(self, document, workdir, scripted_generator):
        before = workdir / "before.md"
        before.write_text("# Handbook\n\nEarlier section text.\n", encoding="utf-8")
        output = workdir / "rewritten.md"
        generator = scripted_generator()

        with patch(CREATE_SESSION, return_value=generator):
            result = self.runner.invoke(app, [
                "rewrite", str(document), "-i", "make this more formal",
                "--before-file", str(before), "-o", str(output),
            ])

        assert result.exit_code == 0, result.output
        assert output.read_text(encoding="utf-8") == "# Title\n\nHello world\n"
        assert "Earlier section text." in generator.prompts[0]
        assert "USER REQUEST:\nmake this more formal" in generator.prompts[0]

    def test_empty_instruction(self, document):
        result = self.runner.invoke(app, ["rewrite", str(document), "-i", "   "])
        assert result.exit_code == 1
        assert "must not be empty" in result.output

    def test_instruction_is_required(self, document):
        result = self.runner.invoke(app, ["rewrite", str(document)])
        assert result.exit_code != 0


class TestInspectionCommands:
    """Tests for chunk, analyze and version."""

    def setup_method(self):
        self.runner = CliRunner()

    def test_chunk_table(self, workdir, paragraph_document):
        path = workdir / "long.md"
        path.write_text(paragraph_document, encoding="utf-8")

        result = self.runner.invoke(app, ["chunk", str(path), "--max-chars", "510", "--overlap", "0"])

        assert result.exit_code == 0, result.output
        assert "Chunks of long.md" in result.output
        assert "1-20" in result.output
        assert "61-79" in result.output

    def test_chunk_empty_document(self, workdir):
        path = workdir / "empty.md"
        path.write_text("", encoding="utf-8")

        result = self.runner.invoke(app, ["chunk", str(path)])

        assert result.exit_code == 0
        assert "Document is empty" in result.output

    def test_analyze(self, workdir, mixed_document):
        path = workdir / "guide.md"
        path.write_text(mixed_document, encoding="utf-8")

        result = self.runner.invoke(app, ["analyze", str(path)])

        assert result.exit_code == 0, result.output
        assert "Document Analysis" in result.output
        assert "Content Complexity" in result.output
        assert "Install" in result.output

    def test_version(self, workdir):
        result = self.runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestGlobalOptions:

    def setup_method(self):
        self.runner = CliRunner()

    def test_missing_config_file(self, workdir):
        result = self.runner.invoke(app, ["--config", "absent.json", "version"])
        assert result.exit_code == 1
        assert "Configuration Error" in result.output

    def test_config_file_changes_chunking(self, workdir, paragraph_document):
        (workdir / "custom.json").write_text(
            '{"chunking": {"max_chunk_chars": 510, "overlap_chars": 0}}', encoding="utf-8"
        )
        path = workdir / "long.md"
        path.write_text(paragraph_document, encoding="utf-8")

        result = self.runner.invoke(app, ["-c", "custom.json", "chunk", str(path)])

        assert result.exit_code == 0, result.output
        assert "61-79" in result.output

    def test_json_logging(self, document, scripted_generator):
        with patch(CREATE_SESSION, return_value=scripted_generator()):
            result = self.runner.invoke(app, ["--verbose", "--log-json", "reformat", str(document)])

        assert result.exit_code == 0, result.output
        assert '"level":"INFO"' in result.output
