"""Core data models shared across wikigen components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from .wiki.naming import page_slug


class RepositoryMode(str, Enum):
    """Strategy used to reconcile the local wiki checkout with its remote."""

    FRESH = "fresh"
    INCREMENTAL = "incremental"
    REUSE_OR_CLONE = "reuse-or-clone"

    @classmethod
    def parse(cls, value: str) -> "RepositoryMode":
        normalized = value.strip().lower().replace("_", "-")
        for mode in cls:
            if mode.value == normalized:
                return mode
        raise ValueError(f"Unknown repository mode: {value!r}")


@dataclass
class RepositoryHandle:
    """Connection details for one managed checkout of one remote repository."""

    local_path: Path
    remote_url: str
    token: Optional[str] = field(default=None, repr=False)
    branch: str = "master"
    mode: RepositoryMode = RepositoryMode.INCREMENTAL
    shallow: bool = False


@dataclass
class ChangeEntry:
    """A single uncommitted change reported by ``git status``."""

    path: str
    kind: str


@dataclass
class RepositoryStatus:
    """Point-in-time view of the checkout. Always recomputed, never cached."""

    exists: bool
    clean: bool
    branch: str = ""
    ahead: int = 0
    behind: int = 0
    changes: List[ChangeEntry] = field(default_factory=list)

    @property
    def paths(self) -> List[str]:
        return [change.path for change in self.changes]


@dataclass
class Page:
    """A named documentation page."""

    name: str
    content: str

    @property
    def slug(self) -> str:
        return page_slug(self.name)


class PageSet:
    """Insertion-ordered collection of pages keyed by name."""

    def __init__(self, pages: Optional[Dict[str, str]] = None) -> None:
        self._pages: Dict[str, Page] = {}
        for name, content in (pages or {}).items():
            self.add(name, content)

    def add(self, name: str, content: str) -> Page:
        page = Page(name=name, content=content)
        self._pages[name] = page
        return page

    def get(self, name: str) -> Optional[Page]:
        return self._pages.get(name)

    def names(self) -> List[str]:
        return list(self._pages)

    def as_dict(self) -> Dict[str, str]:
        return {name: page.content for name, page in self._pages.items()}

    def __contains__(self, name: object) -> bool:
        return name in self._pages

    def __iter__(self) -> Iterator[Page]:
        return iter(list(self._pages.values()))

    def __len__(self) -> int:
        return len(self._pages)


class ReconciliationOutcome(str, Enum):
    """How freshly generated text was turned into the persisted page."""

    ACCEPTED = "accepted"
    NORMALIZED = "normalized"
    FALLBACK_TO_EXISTING = "fallback-to-existing"
    REJECTED = "rejected"


@dataclass
class ReconciliationResult:
    """Final page content plus the decision that produced it."""

    outcome: ReconciliationOutcome
    content: str
    issues: List[str] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return self.outcome in (
            ReconciliationOutcome.FALLBACK_TO_EXISTING,
            ReconciliationOutcome.REJECTED,
        )
