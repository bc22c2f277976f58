"""Shared test fixtures for markdown-ai backend tests."""

import logging
import re
from typing import Callable, Iterable, List, Optional

import pytest

from markdown_ai_backend.core.generation import APIError
from markdown_ai_backend.core.prompting import GenerationParameters

CONTENT_BLOCK = re.compile(r"CONTENT TO (?:REFORMAT|REWRITE):\n(`{3,})markdown\n(.*?)\n\1", re.DOTALL)


def extract_content(prompt: str) -> str:
    """Return the text a prompt asks to transform."""
    match = CONTENT_BLOCK.search(prompt)
    assert match, "prompt has no content block"
    return match.group(2)


class ScriptedGenerator:
    """
    TextGenerator double.

    Echoes the content block of every prompt through ``transform`` unless a
    scripted response is queued. Calls whose 0-based index is in ``fail_on``
    raise APIError.
    """

    def __init__(
        self,
        transform: Optional[Callable[[str], str]] = None,
        responses: Optional[Iterable[str]] = None,
        fail_on: Iterable[int] = (),
        on_call: Optional[Callable[[int], None]] = None,
    ) -> None:
        self.transform = transform or (lambda text: text)
        self.responses: List[str] = list(responses or [])
        self.fail_on = set(fail_on)
        self.on_call = on_call
        self.prompts: List[str] = []
        self.params: List[GenerationParameters] = []
        self.closed = False

    @property
    def call_count(self) -> int:
        return len(self.prompts)

    def generate(self, prompt: str, params: GenerationParameters) -> str:
        index = len(self.prompts)
        self.prompts.append(prompt)
        self.params.append(params)
        if self.on_call:
            self.on_call(index)
        if index in self.fail_on:
            raise APIError(f"scripted failure on call {index}", 500)
        if self.responses:
            return self.responses.pop(0)
        return self.transform(extract_content(prompt))

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def scripted_generator():
    """Factory for ScriptedGenerator instances."""
    return ScriptedGenerator


@pytest.fixture
def echo_generator():
    """Generator returning every content block unchanged."""
    return ScriptedGenerator()


@pytest.fixture
def content_extractor():
    return extract_content


@pytest.fixture
def simple_document():
    return "# Title\n\nHello world"


@pytest.fixture
def paragraph_document():
    """40 single-line paragraphs of 49 characters separated by blank lines."""
    paragraphs = [f"Paragraph {index:02d} ".ljust(49, "x") for index in range(40)]
    return "\n\n".join(paragraphs) + "\n"


@pytest.fixture
def large_code_document():
    """A single fenced code block of roughly 5000 characters."""
    body = "".join(f"value_{index:03d} = compute({index})  # step\n" for index in range(160))
    return "```python\n" + body + "```\n"


@pytest.fixture
def mixed_document():
    return (
        "# Guide\n"
        "\n"
        "Intro paragraph describing the library and its API.\n"
        "\n"
        "## Install\n"
        "\n"
        "```bash\n"
        "pip install example\n"
        "```\n"
        "\n"
        "## Options\n"
        "\n"
        "| Name | Default |\n"
        "|------|---------|\n"
        "| size | 10 |\n"
        "| mode | fast |\n"
        "\n"
        "- first item\n"
        "- second item\n"
        "\n"
        "Inline math $a^2 + b^2$ closes the guide.\n"
    )


@pytest.fixture
def formal_document():
    sentence = "Therefore however furthermore moreover thus hence."
    return "\n\n".join([sentence] * 6) + "\n"


@pytest.fixture(autouse=True)
def clean_generation_env(monkeypatch):
    """Keep real credentials and overrides out of every test."""
    for name in (
        "GEMINI_API_KEY", "MARKDOWN_AI_API_KEY", "MARKDOWN_AI_MODEL", "MARKDOWN_AI_BASE_URL",
        "MARKDOWN_AI_MAX_RETRIES", "MARKDOWN_AI_TIMEOUT", "MARKDOWN_AI_RETRY_DELAY",
        "MARKDOWN_AI_LOG_LEVEL", "MARKDOWN_AI_LOG_FORMAT", "MARKDOWN_AI_FIX_SYNTAX",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def restore_root_logger():
    """Put the root logger's handlers and level back after LoggingManager replaced them."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
        if handler not in handlers:
            handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
