"""Repository crawling for prompt context."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterable, Iterator, List, Sequence

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".venv",
    "venv",
    "node_modules",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    ".idea",
    ".vscode",
    ".wiki",
    "dist",
    "build",
}

_EXCLUDED_FILES = {
    ".DS_Store",
    "Thumbs.db",
}


@dataclass
class IgnoreRule:
    """Represents an ignore rule parsed from .gitignore or the configured exclusions."""

    pattern: str
    directory_only: bool
    anchored: bool
    negate: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        if self.directory_only and not is_dir:
            return False

        if self.anchored or self.has_slash:
            if fnmatchcase(rel_path, self.pattern):
                return True
            return self.directory_only and rel_path.startswith(f"{self.pattern}/")

        return any(fnmatchcase(part, self.pattern) for part in rel_path.split("/"))


@dataclass
class RepoTree:
    """Sorted file listing of a crawled repository."""

    root: Path
    paths: List[str] = field(default_factory=list)

    def render(self) -> str:
        """Render the listing as an indented tree, directories before their files."""
        lines: List[str] = []
        seen_dirs: set[str] = set()
        for path in self.paths:
            parts = path.split("/")
            for depth in range(len(parts) - 1):
                directory = "/".join(parts[: depth + 1])
                if directory in seen_dirs:
                    continue
                seen_dirs.add(directory)
                lines.append(f"{'  ' * depth}{parts[depth]}/")
            lines.append(f"{'  ' * (len(parts) - 1)}{parts[-1]}")
        return "\n".join(lines)

    def read(self, rel_path: str, limit: int | None = None) -> str:
        """Return a file's text, truncated to ``limit`` characters when given."""
        text = (self.root / rel_path).read_text(encoding="utf-8", errors="replace")
        if limit is not None and len(text) > limit:
            return text[:limit] + "\n... (truncated)"
        return text

    def __contains__(self, rel_path: object) -> bool:
        return rel_path in self.paths


def build_ignore_rule(pattern: str, negate: bool = False) -> IgnoreRule | None:
    pattern = pattern.strip()
    if not pattern:
        return None

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern[:-1]

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern[1:]

    return IgnoreRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        negate=negate,
        has_slash="/" in pattern,
    )


def _parse_gitignore(path: Path) -> List[IgnoreRule]:
    if not path.exists():
        return []

    rules: List[IgnoreRule] = []
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        negate = line.startswith("!")
        if negate:
            line = line[1:]
        rule = build_ignore_rule(line, negate=negate)
        if rule is not None:
            rules.append(rule)
    return rules


def _should_ignore(rel_path: str, is_dir: bool, rules: Sequence[IgnoreRule]) -> bool:
    ignored = False
    for rule in rules:
        if rule.matches(rel_path, is_dir):
            ignored = not rule.negate
    return ignored


def _iter_files(root: Path, rules: Sequence[IgnoreRule]) -> Iterator[str]:
    for dirpath, dirnames, filenames in os.walk(root):
        current_dir = Path(dirpath)
        rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

        kept = []
        for name in dirnames:
            if name in _EXCLUDED_DIRS:
                continue
            rel_path = f"{rel_dir}/{name}" if rel_dir else name
            if _should_ignore(rel_path, True, rules):
                continue
            kept.append(name)
        dirnames[:] = kept

        for filename in filenames:
            if filename in _EXCLUDED_FILES:
                continue
            rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
            if _should_ignore(rel_path, False, rules):
                continue
            yield rel_path


class RepoScanner:
    """Walks the repository honouring .gitignore and configured exclusions."""

    def __init__(self, exclude_paths: Iterable[str] = ()) -> None:
        self.exclude_paths = list(exclude_paths)

    def scan(self, root: str | Path) -> RepoTree:
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Repository path not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Repository path is not a directory: {root}")

        rules = _parse_gitignore(root_path / ".gitignore")
        for pattern in self.exclude_paths:
            rule = build_ignore_rule(pattern)
            if rule is not None:
                rules.append(rule)

        return RepoTree(root=root_path, paths=sorted(_iter_files(root_path, rules)))


__all__ = ["IgnoreRule", "RepoScanner", "RepoTree", "build_ignore_rule"]
