"""
Tests for GenerationSession lifecycle.
"""

from unittest.mock import Mock

import pytest

from markdown_ai_backend.core.generation import (
    APIError,
    GenerationServiceConfig,
    GenerationSession,
    TextGenerator,
)
from markdown_ai_backend.core.prompting import GenerationParameters
from markdown_ai_backend.exceptions import InitializationError


class TestGenerationSession:

    def setup_method(self):
        self.config = GenerationServiceConfig(api_key="test-key")
        self.client = Mock()
        self.client.generate.return_value = "generated"

    def test_missing_key_raises_initialization_error(self):
        with pytest.raises(InitializationError) as exc_info:
            GenerationSession()
        assert exc_info.value.original_exception is not None

    def test_reads_key_from_environment(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "env-key")
        session = GenerationSession()
        assert session.config.api_key == "env-key"
        session.close()

    def test_satisfies_text_generator(self):
        assert isinstance(GenerationSession(self.config, client=self.client), TextGenerator)

    def test_generate_delegates_to_client(self):
        session = GenerationSession(self.config, client=self.client)
        params = GenerationParameters()

        assert session.generate("prompt", params) == "generated"
        self.client.generate.assert_called_once_with("prompt", params)
        assert session.model == self.config.model

    def test_closed_session_rejects_calls(self):
        session = GenerationSession(self.config, client=self.client)
        session.close()
        session.close()

        assert session.closed
        self.client.close.assert_called_once()
        with pytest.raises(APIError, match="closed"):
            session.generate("prompt", GenerationParameters())

    def test_context_manager_closes(self):
        with GenerationSession(self.config, client=self.client) as session:
            session.generate("prompt", GenerationParameters())
        assert session.closed

    def test_verify_connection_wraps_failures(self):
        self.client.generate.side_effect = APIError("bad model", 404)
        session = GenerationSession(self.config, client=self.client)

        with pytest.raises(InitializationError, match="bad model"):
            session.verify_connection()
