"""Validate and normalize freshly generated page text against the previous version."""

from __future__ import annotations

from typing import Callable, Iterable, List, Optional

from ..failsafe import build_page_stub
from ..logging import get_logger
from ..models import ReconciliationOutcome, ReconciliationResult
from ..validators import ValidationContext, ValidationIssue, Validator, default_validators
from .markdown import (
    Fence,
    format_heading,
    iter_outside_fences,
    normalize_heading_text,
    parse_fence,
    parse_heading,
    strip_blank_edges,
    unclosed_fence,
)
from .outline import Outline

StubBuilder = Callable[..., str]


def unwrap_fence(text: str) -> str:
    """Return the interior when the whole text is a single fenced block."""
    lines = text.strip().split("\n")
    if len(lines) < 2:
        return text
    opener = parse_fence(lines[0])
    closer = parse_fence(lines[-1])
    if opener is None or closer is None or not closer.closes(opener):
        return text

    inner = lines[1:-1]
    nested: Optional[Fence] = None
    for line in inner:
        fence = parse_fence(line)
        if fence is None:
            continue
        if nested is None:
            if fence.closes(opener):
                # A bare fence here would end the outer block early: not a single block.
                return text
            nested = fence
        elif fence.closes(nested):
            nested = None
    if nested is not None:
        return text
    return "\n".join(inner)


def strip_leading_commentary(lines: List[str]) -> List[str]:
    """Drop everything before the first heading line outside code fences."""
    for index, line, in_code in iter_outside_fences(lines):
        if not in_code and parse_heading(line) is not None:
            return lines[index:]
    return lines


def normalize_page(raw: str, title: str) -> str:
    """Apply fence unwrapping, commentary stripping, and title-heading normalization."""
    title = " ".join(title.split()) or "Page"
    text = raw.replace("\r\n", "\n").replace("\r", "\n")
    text = unwrap_fence(text)
    lines = [line.rstrip() for line in strip_leading_commentary(text.split("\n"))]
    lines = strip_blank_edges(lines)

    heading = parse_heading(lines[0]) if lines else None
    if heading is not None and normalize_heading_text(heading.text) == normalize_heading_text(title):
        head = format_heading(1, heading.text)
        body = lines[1:]
    elif heading is not None:
        head = format_heading(1, title)
        body = [format_heading(min(heading.level + 1, 6), heading.text), *lines[1:]]
    else:
        head = format_heading(1, title)
        body = lines

    body = strip_blank_edges(body)
    # Truncated responses can stop inside a code block.
    dangling = unclosed_fence(body)
    if dangling is not None:
        body.append(dangling.marker)
    if not body:
        return head
    return head + "\n\n" + "\n".join(body)


class ContentReconciler:
    """Turns raw generated text plus optional prior content into the page to persist.

    The decision never raises: invalid drafts resolve to the prior page when
    it is usable, otherwise to a placeholder stating that generation failed.
    """

    def __init__(
        self,
        validators: Optional[Iterable[Validator]] = None,
        *,
        stub_builder: StubBuilder = build_page_stub,
    ) -> None:
        self.validators: List[Validator] = (
            list(validators) if validators is not None else default_validators()
        )
        self.stub_builder = stub_builder
        self.logger = get_logger("postproc.reconcile")

    def reconcile(
        self,
        raw: str,
        *,
        title: str,
        existing: Optional[str] = None,
        outline: Optional[Outline] = None,
    ) -> ReconciliationResult:
        draft = normalize_page(raw or "", title)
        issues = self._validate(title, draft)
        final = draft
        if not issues and outline is not None:
            final = outline.apply(draft)
            # Reordering can bring a different paragraph to the top.
            issues = self._validate(title, final)

        if not issues:
            outcome = (
                ReconciliationOutcome.ACCEPTED
                if final == (raw or "").strip()
                else ReconciliationOutcome.NORMALIZED
            )
            return ReconciliationResult(outcome=outcome, content=final)

        details = [issue.detail for issue in issues]
        for issue in issues:
            self.logger.debug(
                "Page %r failed %s: %s %s", title, issue.validator, issue.detail, issue.excerpt
            )

        if self.is_usable(existing, title):
            self.logger.warning(
                "Generated content for %r rejected (%s); keeping the existing page",
                title,
                "; ".join(details),
            )
            return ReconciliationResult(
                outcome=ReconciliationOutcome.FALLBACK_TO_EXISTING,
                content=existing or "",
                issues=details,
            )

        self.logger.warning(
            "Generated content for %r rejected (%s) and no usable existing page; writing placeholder",
            title,
            "; ".join(details),
        )
        stub = normalize_page(self.stub_builder(title, reason=details[0]), title)
        if outline is not None:
            stub = outline.apply(stub)
        return ReconciliationResult(
            outcome=ReconciliationOutcome.REJECTED,
            content=stub,
            issues=details,
        )

    def is_usable(self, content: Optional[str], title: str) -> bool:
        """Return True when prior content is non-blank and passes every validator."""
        if content is None or not content.strip():
            return False
        return not self._validate(title, normalize_page(content, title))

    def _validate(self, title: str, content: str) -> List[ValidationIssue]:
        context = ValidationContext(title=title, content=content)
        issues: List[ValidationIssue] = []
        for validator in self.validators:
            issues.extend(validator.validate(context))
        return issues


_DEFAULT_RECONCILER: Optional[ContentReconciler] = None


def reconcile(
    raw: str,
    *,
    title: str,
    existing: Optional[str] = None,
    outline: Optional[Outline] = None,
) -> ReconciliationResult:
    """Reconcile with the default validator set."""
    global _DEFAULT_RECONCILER
    if _DEFAULT_RECONCILER is None:
        _DEFAULT_RECONCILER = ContentReconciler()
    return _DEFAULT_RECONCILER.reconcile(raw, title=title, existing=existing, outline=outline)


__all__ = [
    "ContentReconciler",
    "normalize_page",
    "reconcile",
    "strip_leading_commentary",
    "unwrap_fence",
]
