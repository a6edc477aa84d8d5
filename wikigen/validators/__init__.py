"""Validation package for generated wiki pages."""

from typing import List

from .base import ValidationContext, ValidationIssue, Validator
from .meta_commentary import META_COMMENTARY_PATTERNS, MetaCommentaryValidator
from .structure import EmptyBodyValidator


def default_validators() -> List[Validator]:
    """Return the validators applied to every page draft, in order."""
    return [EmptyBodyValidator(), MetaCommentaryValidator()]


__all__ = [
    "EmptyBodyValidator",
    "META_COMMENTARY_PATTERNS",
    "MetaCommentaryValidator",
    "ValidationContext",
    "ValidationIssue",
    "Validator",
    "default_validators",
]
