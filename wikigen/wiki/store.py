"""Persist generated pages into the managed wiki checkout."""

from __future__ import annotations

import re
from pathlib import Path
from typing import List, Mapping, Optional, Union

from ..git.repository import RepositoryStateManager
from ..logging import get_logger
from ..models import PageSet
from .naming import assign_slugs, navigation_order, page_slug

SIDEBAR_FILENAME = "_Sidebar.md"
PAGE_SUFFIX = ".md"
_SIDEBAR_LINK = re.compile(r"^\* \[\[(.+?)\]\][ \t]*$", re.MULTILINE)
DEFAULT_COMMIT_MESSAGE = "Update wiki documentation"

Pages = Union[PageSet, Mapping[str, str]]


class DocumentStore:
    """Writes a page set plus a navigation sidebar, then commits and pushes on change."""

    def __init__(
        self,
        repository: RepositoryStateManager,
        *,
        commit_message: str | None = None,
    ) -> None:
        self.repository = repository
        self.commit_message = commit_message or DEFAULT_COMMIT_MESSAGE
        self.logger = get_logger("wiki.store")

    @property
    def root(self) -> Path:
        return self.repository.local_path

    def prepare(self) -> None:
        """Bring the checkout into the state demanded by the repository mode."""
        self.repository.prepare()

    def write_documentation(self, pages: Pages, *, message: str | None = None) -> bool:
        """Write all pages and the sidebar; returns True when a commit was pushed."""
        contents = pages.as_dict() if isinstance(pages, PageSet) else dict(pages)
        if not contents:
            self.logger.warning("No documentation pages provided; skipping wiki write")
            return False

        self.repository.prepare()

        status = self.repository.status()
        if not status.clean:
            self.logger.warning(
                "Wiki checkout has uncommitted changes before writing (%s); "
                "they will be included in this commit",
                ", ".join(status.paths),
            )

        slugs = assign_slugs(contents)
        for name, content in contents.items():
            self._write_file(f"{slugs[name]}{PAGE_SUFFIX}", _ensure_trailing_newline(content))
        self._write_file(SIDEBAR_FILENAME, build_sidebar(contents))
        self.logger.info("Wrote %d page(s) to %s", len(contents), self.root)

        committed = self.repository.commit(message or self.commit_message)
        if not committed:
            self.logger.info("Wiki already up to date; no changes to push")
            return False

        self.repository.push()
        self.logger.info("Wiki changes pushed")
        return True

    def read_page(self, name: str) -> Optional[str]:
        """Return the stored content for a page name, or None when it does not exist.

        The file is located with the same slug assignment used when writing,
        taken over the page names listed in the sidebar.
        """
        slugs = assign_slugs(self._listed_names())
        stem = slugs.get(name)
        if stem is None:
            stem = page_slug(name)
            if stem.lower() in {slug.lower() for slug in slugs.values()}:
                # The file belongs to a different page.
                return None
        path = self.root / f"{stem}{PAGE_SUFFIX}"
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def _listed_names(self) -> List[str]:
        try:
            sidebar = (self.root / SIDEBAR_FILENAME).read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        return parse_sidebar(sidebar)

    def _write_file(self, filename: str, content: str) -> None:
        path = self.root / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


def build_sidebar(names: Mapping[str, str] | list[str]) -> str:
    """Render the sidebar listing every page as a ``[[PageName]]`` link."""
    lines = [f"* [[{name}]]" for name in navigation_order(list(names))]
    return "\n".join(lines) + "\n"


def parse_sidebar(text: str) -> List[str]:
    """Return the page names linked from a sidebar, in order."""
    return [match.group(1) for match in _SIDEBAR_LINK.finditer(text)]


def _ensure_trailing_newline(content: str) -> str:
    return content if content.endswith("\n") else f"{content}\n"


__all__ = ["DEFAULT_COMMIT_MESSAGE", "DocumentStore", "SIDEBAR_FILENAME", "build_sidebar", "parse_sidebar"]
