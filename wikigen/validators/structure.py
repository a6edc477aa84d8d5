"""Structural checks for page drafts."""

from __future__ import annotations

from typing import List

from .base import ValidationContext, ValidationIssue


class EmptyBodyValidator:
    """Rejects drafts that consist of nothing but the title heading."""

    name = "empty_body"

    def validate(self, context: ValidationContext) -> List[ValidationIssue]:
        if context.body.strip():
            return []
        return [ValidationIssue(validator=self.name, detail="page has no content beyond its title")]


__all__ = ["EmptyBodyValidator"]
