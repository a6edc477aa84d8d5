"""Core validation data structures for generated pages."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Protocol

from ..postproc.markdown import parse_heading


@dataclass
class ValidationIssue:
    """Represents a single reason a page draft cannot be accepted."""

    validator: str
    detail: str
    excerpt: str = ""


@dataclass
class ValidationContext:
    """A normalized page draft: title heading on the first line, body after it."""

    title: str
    content: str

    @property
    def body(self) -> str:
        _, _, rest = self.content.partition("\n")
        return rest

    def first_paragraph(self) -> str:
        """Return the first prose block of the body (headings skipped), joined into one line."""
        lines: List[str] = []
        for line in self.body.splitlines():
            stripped = line.strip()
            if not lines and parse_heading(stripped) is not None:
                continue
            if stripped:
                lines.append(stripped)
            elif lines:
                break
        return " ".join(lines)


class Validator(Protocol):
    """Protocol implemented by page validators."""

    name: str

    def validate(self, context: ValidationContext) -> List[ValidationIssue]:
        """Run validation and return any issues."""


__all__ = ["ValidationContext", "ValidationIssue", "Validator"]
