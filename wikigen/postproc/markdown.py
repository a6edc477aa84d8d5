"""Small line-level markdown helpers shared by the reconciler and outline rules."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple

_HEADING_PATTERN = re.compile(r"^(#{1,6})[ \t]+(.*?)(?:[ \t]+#+)?[ \t]*$")
_FENCE_PATTERN = re.compile(r"^ {0,3}(`{3,}|~{3,})[ \t]*([^`]*?)[ \t]*$")


@dataclass(frozen=True)
class Heading:
    level: int
    text: str


@dataclass(frozen=True)
class Fence:
    marker: str
    info: str

    def closes(self, other: "Fence") -> bool:
        """Return True when ``self`` is a valid closing fence for ``other``."""
        return (
            not self.info
            and self.marker[0] == other.marker[0]
            and len(self.marker) >= len(other.marker)
        )


def parse_heading(line: str) -> Optional[Heading]:
    match = _HEADING_PATTERN.match(line)
    if not match:
        return None
    text = match.group(2).strip()
    if not text:
        return None
    return Heading(level=len(match.group(1)), text=text)


def parse_fence(line: str) -> Optional[Fence]:
    match = _FENCE_PATTERN.match(line)
    if not match:
        return None
    return Fence(marker=match.group(1), info=match.group(2).strip())


def format_heading(level: int, text: str) -> str:
    """Render a heading line that parses back to ``text``."""
    line = f"{'#' * level} {text}"
    parsed = parse_heading(line)
    if parsed is None or parsed.text != text:
        # A trailing "#" run would be read as a closing sequence; add an explicit one.
        line = f"{line} {'#' * level}"
    return line


def normalize_heading_text(text: str) -> str:
    """Trim, collapse whitespace, and case-fold heading text for comparisons."""
    return " ".join(text.split()).casefold()


def iter_outside_fences(lines: Sequence[str]) -> Iterator[Tuple[int, str, bool]]:
    """Yield ``(index, line, in_code)``; fence delimiter lines count as code."""
    open_fence: Optional[Fence] = None
    for index, line in enumerate(lines):
        fence = parse_fence(line)
        if open_fence is None:
            if fence is not None:
                open_fence = fence
                yield index, line, True
                continue
            yield index, line, False
        else:
            if fence is not None and fence.closes(open_fence):
                open_fence = None
            yield index, line, True


def find_fenced_blocks(lines: Sequence[str], *, info: str | None = None) -> List[Tuple[int, int]]:
    """Return ``(start, end)`` inclusive line ranges of fenced blocks, optionally filtered by info string."""
    blocks: List[Tuple[int, int]] = []
    open_fence: Optional[Fence] = None
    start = 0
    for index, line in enumerate(lines):
        fence = parse_fence(line)
        if open_fence is None:
            if fence is not None:
                open_fence = fence
                start = index
            continue
        if fence is not None and fence.closes(open_fence):
            language = open_fence.info.split()[0].lower() if open_fence.info else ""
            if info is None or language == info.lower():
                blocks.append((start, index))
            open_fence = None
    return blocks


def unclosed_fence(lines: Sequence[str]) -> Optional[Fence]:
    """Return the fence still open after the last line, if any."""
    open_fence: Optional[Fence] = None
    for line in lines:
        fence = parse_fence(line)
        if open_fence is None:
            open_fence = fence
        elif fence is not None and fence.closes(open_fence):
            open_fence = None
    return open_fence


def strip_blank_edges(lines: Sequence[str]) -> List[str]:
    result = list(lines)
    while result and not result[0].strip():
        result.pop(0)
    while result and not result[-1].strip():
        result.pop()
    return result


__all__ = [
    "Fence",
    "Heading",
    "find_fenced_blocks",
    "format_heading",
    "iter_outside_fences",
    "normalize_heading_text",
    "parse_fence",
    "parse_heading",
    "strip_blank_edges",
    "unclosed_fence",
]
