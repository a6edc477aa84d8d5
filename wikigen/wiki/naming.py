"""Page name to file slug mapping and sidebar ordering."""

from __future__ import annotations

import re
from typing import Dict, Iterable, List

HOME_SLUG = "Home"
DEFAULT_SLUG = "Page"

_DISALLOWED = re.compile(r"[^A-Za-z0-9\s_-]")
_WHITESPACE = re.compile(r"\s+")


def page_slug(name: str) -> str:
    """Return the wiki file stem (without ``.md``) for a page name."""
    trimmed = name.strip()
    if not trimmed:
        return DEFAULT_SLUG
    if trimmed.lower() == "home":
        return HOME_SLUG
    cleaned = _DISALLOWED.sub("", trimmed).strip()
    cleaned = _WHITESPACE.sub("-", cleaned)
    return cleaned or DEFAULT_SLUG


def assign_slugs(names: Iterable[str]) -> Dict[str, str]:
    """Map each name to a unique slug.

    Names sharing a slug are resolved in sorted order: the first keeps the
    plain slug and later ones receive ``-2``, ``-3`` and so on. Slugs are
    compared case-insensitively because wiki hosts usually are.
    """
    assigned: Dict[str, str] = {}
    taken: set[str] = set()
    for name in sorted(set(names)):
        base = page_slug(name)
        candidate = base
        counter = 2
        while candidate.lower() in taken:
            candidate = f"{base}-{counter}"
            counter += 1
        taken.add(candidate.lower())
        assigned[name] = candidate
    return assigned


def navigation_order(names: Iterable[str]) -> List[str]:
    """Return names ordered for the sidebar: Home, Architecture, then the rest."""
    remaining = list(dict.fromkeys(names))
    ordered: List[str] = []
    for pinned in ("home", "architecture"):
        match = next((name for name in remaining if name.strip().lower() == pinned), None)
        if match is not None:
            ordered.append(match)
            remaining.remove(match)
    ordered.extend(sorted(remaining))
    return ordered


__all__ = ["DEFAULT_SLUG", "HOME_SLUG", "assign_slugs", "navigation_order", "page_slug"]
