"""Text-generation backends."""

from typing import Protocol

from .mock import MockRunner
from .runner import LLMRunner, collect_text


class ContentProducer(Protocol):
    """Anything that maps a prompt to generated text."""

    def run(self, prompt: str, *, system: str | None = None) -> str:
        """Return the generated text for ``prompt``."""


__all__ = ["ContentProducer", "LLMRunner", "MockRunner", "collect_text"]
