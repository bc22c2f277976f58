"""Interface the content processor uses to reach the generation service."""

from typing import Protocol, runtime_checkable

from ..prompting.parameters import GenerationParameters


@runtime_checkable
class TextGenerator(Protocol):
    """Anything that turns a prompt and sampling settings into text."""

    def generate(self, prompt: str, params: GenerationParameters) -> str:
        """Return the generated text; raise on failure."""
        ...
