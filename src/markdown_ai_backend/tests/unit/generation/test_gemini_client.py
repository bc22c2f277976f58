"""
Tests for the generation service HTTP client.
"""

from unittest.mock import Mock, patch

import pytest
import requests

from markdown_ai_backend.core.generation import (
    APIError,
    AuthenticationError,
    GeminiClient,
    GenerationServiceConfig,
    RateLimitError,
)
from markdown_ai_backend.core.prompting import GenerationParameters

POST = 'markdown_ai_backend.core.generation.client.requests.Session.post'
SLEEP = 'markdown_ai_backend.core.generation.client.time.sleep'


def _response(status_code=200, payload=None, headers=None, json_error=False):
    response = Mock()
    response.status_code = status_code
    response.headers = headers or {}
    if json_error:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = payload if payload is not None else {}
    return response


def _candidate(*texts, finish_reason="STOP"):
    return {
        "candidates": [{
            "content": {"parts": [{"text": text} for text in texts]},
            "finishReason": finish_reason,
        }]
    }


class TestGenerationServiceConfig:
    """Tests for GenerationServiceConfig validation and loading."""

    def test_missing_key_raises_authentication_error(self):
        with pytest.raises(AuthenticationError):
            GenerationServiceConfig(api_key="")

    @pytest.mark.parametrize("kwargs", [
        {"model": ""},
        {"max_retries": -1},
        {"retry_delay": 0},
        {"timeout": 0},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            GenerationServiceConfig(api_key="key", **kwargs)

    def test_endpoint_and_trailing_slash(self):
        config = GenerationServiceConfig(api_key="key", model="m1", base_url="https://example.test/v1/")
        assert config.endpoint == "https://example.test/v1/models/m1:generateContent"

    def test_repr_masks_key(self):
        assert "secret-key" not in repr(GenerationServiceConfig(api_key="secret-key"))

    def test_from_environment_prefers_markdown_ai_key(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "gemini-key")
        monkeypatch.setenv("MARKDOWN_AI_API_KEY", "own-key")
        monkeypatch.setenv("MARKDOWN_AI_MAX_RETRIES", "5")
        config = GenerationServiceConfig.from_environment()
        assert config.api_key == "own-key"
        assert config.max_retries == 5

    def test_from_environment_without_key(self):
        with pytest.raises(AuthenticationError):
            GenerationServiceConfig.from_environment()

    def test_from_config_manager(self):
        manager = Mock()
        manager.get.return_value = {"api_key": "key", "model": "m2", "timeout": 30}
        config = GenerationServiceConfig.from_config_manager(manager)
        assert (config.model, config.timeout, config.max_retries) == ("m2", 30, 3)
        manager.get.assert_called_once_with("generation", {})


class TestGeminiClient:
    """Tests for GeminiClient request handling."""

    def setup_method(self):
        self.config = GenerationServiceConfig(api_key="test-key", model="test-model", max_retries=2)
        self.client = GeminiClient(self.config)
        self.params = GenerationParameters(temperature=0.2, top_k=20, top_p=0.7, max_output_tokens=100)

    def teardown_method(self):
        self.client.close()

    def test_key_sent_in_header(self):
        assert self.client._session.headers["x-goog-api-key"] == "test-key"

    @patch(POST)
    def test_generate_success(self, mock_post):
        mock_post.return_value = _response(payload=_candidate("Hello ", "world"))

        assert self.client.generate("Say hello", self.params) == "Hello world"

        args, kwargs = mock_post.call_args
        assert args[0] == self.config.endpoint
        assert kwargs["json"]["contents"][0]["parts"][0]["text"] == "Say hello"
        assert kwargs["json"]["generationConfig"] == self.params.to_request_config()
        assert kwargs["timeout"] == self.config.timeout

    @patch(SLEEP)
    @patch(POST)
    @pytest.mark.parametrize("status_code", [401, 403])
    def test_authentication_errors_are_not_retried(self, mock_post, mock_sleep, status_code):
        mock_post.return_value = _response(status_code, {"error": {"message": "API key not valid"}})

        with pytest.raises(AuthenticationError) as exc_info:
            self.client.generate("prompt", self.params)

        assert exc_info.value.status_code == status_code
        assert "API key not valid" in str(exc_info.value)
        assert mock_post.call_count == 1
        mock_sleep.assert_not_called()

    @patch(SLEEP)
    @patch(POST)
    def test_rate_limit_carries_retry_after(self, mock_post, mock_sleep):
        mock_post.return_value = _response(429, {"error": "quota"}, headers={"Retry-After": "30"})

        with pytest.raises(RateLimitError) as exc_info:
            self.client.generate("prompt", self.params)

        assert exc_info.value.retry_after == 30
        assert exc_info.value.status_code == 429
        assert mock_post.call_count == 1

    @patch(SLEEP)
    @patch(POST)
    def test_client_error_fails_immediately(self, mock_post, mock_sleep):
        mock_post.return_value = _response(400, json_error=True)

        with pytest.raises(APIError) as exc_info:
            self.client.generate("prompt", self.params)

        assert exc_info.value.status_code == 400
        assert "status 400" in str(exc_info.value)
        assert mock_post.call_count == 1

    @patch(SLEEP)
    @patch(POST)
    def test_server_errors_retry_with_backoff(self, mock_post, mock_sleep):
        mock_post.side_effect = [
            _response(500, {"error": {"message": "internal"}}),
            _response(503),
            _response(payload=_candidate("recovered")),
        ]

        assert self.client.generate("prompt", self.params) == "recovered"
        assert mock_post.call_count == 3
        assert [call.args[0] for call in mock_sleep.call_args_list] == [1.0, 2.0]

    @patch(SLEEP)
    @patch(POST)
    def test_retries_exhausted(self, mock_post, mock_sleep):
        mock_post.return_value = _response(500, {"error": {"message": "internal"}})

        with pytest.raises(APIError) as exc_info:
            self.client.generate("prompt", self.params)

        assert mock_post.call_count == 3
        assert exc_info.value.status_code == 500
        assert "internal" in str(exc_info.value)

    @patch(SLEEP)
    @patch(POST)
    def test_network_errors_retry(self, mock_post, mock_sleep):
        mock_post.side_effect = [
            requests.ConnectionError("refused"),
            requests.Timeout("slow"),
            _response(payload=_candidate("ok")),
        ]
        assert self.client.generate("prompt", self.params) == "ok"

    @patch(SLEEP)
    @patch(POST)
    def test_network_errors_exhausted(self, mock_post, mock_sleep):
        mock_post.side_effect = requests.ConnectionError("refused")

        with pytest.raises(APIError, match="Network error"):
            self.client.generate("prompt", self.params)
        assert mock_post.call_count == 3


class TestResponseExtraction:
    """Tests for candidate text extraction."""

    def setup_method(self):
        self.client = GeminiClient(GenerationServiceConfig(api_key="test-key", max_retries=0))
        self.params = GenerationParameters()

    @patch(POST)
    def test_invalid_json(self, mock_post):
        mock_post.return_value = _response(json_error=True)
        with pytest.raises(APIError, match="not valid JSON"):
            self.client.generate("prompt", self.params)

    @patch(POST)
    def test_no_candidates(self, mock_post):
        mock_post.return_value = _response(payload={"candidates": []})
        with pytest.raises(APIError, match="no candidates"):
            self.client.generate("prompt", self.params)

    @patch(POST)
    def test_blocked_prompt(self, mock_post):
        mock_post.return_value = _response(payload={"promptFeedback": {"blockReason": "SAFETY"}})
        with pytest.raises(APIError, match="SAFETY"):
            self.client.generate("prompt", self.params)

    @patch(POST)
    def test_empty_text_reports_finish_reason(self, mock_post):
        mock_post.return_value = _response(payload=_candidate("", finish_reason="MAX_TOKENS"))
        with pytest.raises(APIError, match="MAX_TOKENS"):
            self.client.generate("prompt", self.params)
