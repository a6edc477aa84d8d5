"""Fail-safe content used when a page cannot be generated."""

from __future__ import annotations

from .postproc.markdown import format_heading

PLACEHOLDER_DIAGRAM = (
    "```mermaid\n"
    "flowchart TD\n"
    "    Source[Repository] --> Docs[Documentation]\n"
    "```"
)

_PLACEHOLDER_SECTION_BODY = "_This section has not been documented yet._"


def build_page_stub(title: str, *, reason: str | None = None) -> str:
    """Return a placeholder page stating that generation failed."""
    lines = [
        format_heading(1, " ".join(title.split()) or "Page"),
        "",
        "_Documentation for this page could not be generated. "
        "It will be regenerated on the next run._",
    ]
    cleaned_reason = _format_reason(reason)
    if cleaned_reason:
        lines.extend(["", f"_Generation note: {cleaned_reason}._"])
    return "\n".join(lines)


def placeholder_section_body() -> str:
    return _PLACEHOLDER_SECTION_BODY


def _format_reason(reason: str | None) -> str | None:
    if not reason:
        return None
    cleaned = " ".join(reason.strip().split()).rstrip(".")
    if not cleaned:
        return None
    return cleaned[:200] + ("…" if len(cleaned) > 200 else "")


__all__ = ["PLACEHOLDER_DIAGRAM", "build_page_stub", "placeholder_section_body"]
