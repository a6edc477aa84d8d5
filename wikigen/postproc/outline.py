"""Declarative section outlines for pages with a fixed schema."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from ..failsafe import PLACEHOLDER_DIAGRAM, placeholder_section_body
from .markdown import find_fenced_blocks, iter_outside_fences, normalize_heading_text, parse_heading, strip_blank_edges


@dataclass(frozen=True)
class SectionRule:
    """Ensure a level-two section titled ``title`` exists, using ``fallback_body`` when missing."""

    title: str
    fallback_body: str = field(default_factory=placeholder_section_body)


@dataclass(frozen=True)
class DiagramRule:
    """Collect a diagram block into a trailing section of its own."""

    title: str = "Diagram"
    language: str = "mermaid"
    fallback_diagram: str = PLACEHOLDER_DIAGRAM


@dataclass
class _Section:
    heading: str
    title: str
    body: List[str]


@dataclass
class _Document:
    head: str
    preamble: List[str]
    sections: List[_Section]


@dataclass(frozen=True)
class Outline:
    """An ordered list of section rules plus an optional diagram rule.

    Applying an outline is idempotent: required sections come first in the
    declared order, other sections follow in their original order, and the
    diagram section is always last.
    """

    sections: Tuple[SectionRule, ...] = ()
    diagram: Optional[DiagramRule] = None

    def apply(self, content: str) -> str:
        document = _parse(content)
        if self.diagram is not None:
            _collect_diagram(document, self.diagram)

        ordered: List[_Section] = []
        remaining = list(document.sections)
        for rule in self.sections:
            existing = _take(remaining, rule.title)
            if existing is None:
                ordered.append(
                    _Section(heading=f"## {rule.title}", title=rule.title, body=rule.fallback_body.split("\n"))
                )
                continue
            if not strip_blank_edges(existing.body):
                existing.body = rule.fallback_body.split("\n")
            ordered.append(existing)

        diagram_section = _take(remaining, self.diagram.title, last=True) if self.diagram is not None else None
        ordered.extend(remaining)
        if diagram_section is not None:
            ordered.append(diagram_section)

        return _render(document.head, document.preamble, ordered)


def _parse(content: str) -> _Document:
    lines = content.split("\n")
    head, rest = lines[0], lines[1:]
    preamble: List[str] = []
    sections: List[_Section] = []
    current: Optional[_Section] = None
    for _, line, in_code in iter_outside_fences(rest):
        heading = None if in_code else parse_heading(line)
        if heading is not None and heading.level == 2:
            current = _Section(heading=line, title=heading.text, body=[])
            sections.append(current)
            continue
        if current is None:
            preamble.append(line)
        else:
            current.body.append(line)
    return _Document(head=head, preamble=preamble, sections=sections)


def _take(sections: List[_Section], title: str, *, last: bool = False) -> Optional[_Section]:
    wanted = normalize_heading_text(title)
    indexes = [i for i, section in enumerate(sections) if normalize_heading_text(section.title) == wanted]
    if not indexes:
        return None
    return sections.pop(indexes[-1] if last else indexes[0])


def _collect_diagram(document: _Document, rule: DiagramRule) -> None:
    wanted = normalize_heading_text(rule.title)
    matches = [section for section in document.sections if normalize_heading_text(section.title) == wanted]
    target = matches[-1] if matches else None
    if target is not None and find_fenced_blocks(target.body, info=rule.language):
        return

    block = _extract_first_block(document.preamble, rule.language)
    if block is None:
        for section in document.sections:
            if section is target:
                continue
            block = _extract_first_block(section.body, rule.language)
            if block is not None:
                break
    diagram_lines = block if block is not None else rule.fallback_diagram.split("\n")

    if target is None:
        document.sections.append(_Section(heading=f"## {rule.title}", title=rule.title, body=diagram_lines))
        return
    existing = strip_blank_edges(target.body)
    target.body = existing + [""] + diagram_lines if existing else diagram_lines


def _extract_first_block(lines: List[str], language: str) -> Optional[List[str]]:
    blocks = find_fenced_blocks(lines, info=language)
    if not blocks:
        return None
    start, end = blocks[0]
    block = lines[start : end + 1]
    del lines[start : end + 1]
    return block


def _render(head: str, preamble: Sequence[str], sections: Sequence[_Section]) -> str:
    parts: List[str] = [head]
    intro = strip_blank_edges(preamble)
    if intro:
        parts.append("\n".join(intro))
    for section in sections:
        body = strip_blank_edges(section.body)
        if body:
            parts.append(f"{section.heading}\n\n" + "\n".join(body))
        else:
            parts.append(section.heading)
    return "\n\n".join(parts)


ARCHITECTURE_OUTLINE = Outline(
    sections=(
        SectionRule("Overview"),
        SectionRule("Components"),
        SectionRule("Data Flow"),
        SectionRule("Dependencies"),
    ),
    diagram=DiagramRule(),
)


__all__ = ["ARCHITECTURE_OUTLINE", "DiagramRule", "Outline", "SectionRule"]
