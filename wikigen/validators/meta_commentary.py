"""Heuristic detection of responses that talk about the documentation instead of being it."""

from __future__ import annotations

import re
from typing import List, Pattern, Sequence

from .base import ValidationContext, ValidationIssue

# Matched against the first paragraph after the title. Heuristic: false
# positives and negatives are possible.
META_COMMENTARY_PATTERNS: tuple[Pattern[str], ...] = (
    re.compile(
        r"\bI(?:'ve|’ve| have)\s+(?:now\s+)?(?:created|provided|generated|written|prepared|drafted|updated)\b"
        r".{0,80}\b(?:documentation|docs|page|wiki|overview)\b",
        re.IGNORECASE,
    ),
    re.compile(
        r"^(?:this|the\s+following)\s+documentation\s+(?:covers|includes|provides|describes|outlines)\b",
        re.IGNORECASE,
    ),
    re.compile(
        r"^(?:here(?:'s|’s|\s+is|\s+are)|below\s+(?:is|are))\s+(?:the|a|an|your|some)\b"
        r".{0,80}\b(?:documentation|docs|page|wiki|overview)\b",
        re.IGNORECASE,
    ),
    re.compile(r"\b(?:let\s+me\s+know\s+if|feel\s+free\s+to\s+ask)\b", re.IGNORECASE),
    re.compile(r"^(?:sure|certainly|of\s+course)[,!.]", re.IGNORECASE),
)


class MetaCommentaryValidator:
    """Flags drafts whose opening paragraph is commentary about the generated text."""

    name = "meta_commentary"

    def __init__(self, patterns: Sequence[Pattern[str]] | None = None) -> None:
        self.patterns = tuple(patterns) if patterns is not None else META_COMMENTARY_PATTERNS

    def validate(self, context: ValidationContext) -> List[ValidationIssue]:
        paragraph = context.first_paragraph()
        if not paragraph:
            return []
        for pattern in self.patterns:
            if pattern.search(paragraph):
                return [
                    ValidationIssue(
                        validator=self.name,
                        detail="response opens with commentary about the documentation",
                        excerpt=_truncate(paragraph),
                    )
                ]
        return []


def _truncate(text: str, limit: int = 120) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3].rstrip() + "..."


__all__ = ["META_COMMENTARY_PATTERNS", "MetaCommentaryValidator"]
