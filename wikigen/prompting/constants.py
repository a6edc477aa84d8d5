"""Shared constants for wiki prompting."""

from __future__ import annotations

HOME_PAGE = "Home"
ARCHITECTURE_PAGE = "Architecture"

DEPTHS: tuple[str, ...] = ("summary", "standard", "deep")
DEFAULT_DEPTH = "standard"

TEMPLATE_NAMES: tuple[str, ...] = (
    "home",
    "architecture",
    "extract_areas",
    "relevant_files",
    "area",
)

SYSTEM_PROMPT = (
    "You are a senior developer documentation writer maintaining a project wiki. "
    "Stay grounded in the repository facts you are given, write the page itself rather "
    "than describing it, and never invent commands, files, or tools."
)


__all__ = [
    "ARCHITECTURE_PAGE",
    "DEFAULT_DEPTH",
    "DEPTHS",
    "HOME_PAGE",
    "SYSTEM_PROMPT",
    "TEMPLATE_NAMES",
]
