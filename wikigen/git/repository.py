"""Lifecycle management for the local wiki checkout."""

from __future__ import annotations

import os
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Callable, Iterable, List, Sequence
from urllib.parse import quote, urlsplit, urlunsplit

from ..errors import BlockedByLocalChanges, ExternalToolFailure
from ..logging import get_logger, redact_url
from ..models import ChangeEntry, RepositoryHandle, RepositoryMode, RepositoryStatus

Runner = Callable[..., str]

REDACTED_URL = "<redacted-url>"
_TOKEN_USER = "x-access-token"

_CHANGE_KINDS = {
    "A": "added",
    "M": "modified",
    "D": "deleted",
    "R": "renamed",
    "C": "copied",
    "T": "type-changed",
    "U": "conflicted",
}
_CONFLICT_CODES = {"DD", "AU", "UD", "UA", "DU", "AA", "UU"}


class RepositoryStateManager:
    """Owns one local checkout of one remote repository.

    Every state-dependent decision recomputes :meth:`status` immediately
    beforehand; nothing about the checkout is cached on the instance.
    """

    def __init__(self, handle: RepositoryHandle, runner: Runner | None = None) -> None:
        self.handle = handle
        self._runner = runner or self._default_runner
        self.logger = get_logger("git.repository")

    @property
    def local_path(self) -> Path:
        return Path(self.handle.local_path)

    @property
    def branch(self) -> str:
        return self.handle.branch

    # ------------------------------------------------------------------
    # Queries

    def exists(self) -> bool:
        """Return True when the local path holds a git checkout."""
        return (self.local_path / ".git").exists()

    def status(self) -> RepositoryStatus:
        """Compute the current repository status."""
        if not self.exists():
            return RepositoryStatus(exists=False, clean=True)

        branch = self._git(["branch", "--show-current"]).strip()
        porcelain = self._git(["status", "--porcelain", "-z", "--untracked-files=all"])
        changes = parse_porcelain(porcelain)
        ahead, behind = self._ahead_behind()

        return RepositoryStatus(
            exists=True,
            clean=not changes,
            branch=branch,
            ahead=ahead,
            behind=behind,
            changes=changes,
        )

    # ------------------------------------------------------------------
    # State changes

    def prepare(self) -> None:
        """Make the checkout available according to the configured mode."""
        mode = self.handle.mode
        present = self.exists()
        self.logger.debug(
            "Preparing %s (mode=%s, present=%s)", self.local_path, mode.value, present
        )

        if mode is RepositoryMode.FRESH:
            # A half-removed checkout may have lost .git but kept other files.
            if self.local_path.exists():
                self.clean()
            self.clone()
        elif mode is RepositoryMode.INCREMENTAL:
            if present:
                self.update()
            else:
                self.clone()
        elif mode is RepositoryMode.REUSE_OR_CLONE:
            if not present:
                self.clone()
            else:
                self.logger.info("Reusing existing checkout at %s", self.local_path)
        else:  # pragma: no cover - enum is exhaustive
            raise ValueError(f"Unsupported repository mode: {mode}")

    def clone(self) -> None:
        """Clone the remote into the local path."""
        parent = self.local_path.parent
        parent.mkdir(parents=True, exist_ok=True)

        args = ["clone"]
        if self.branch:
            args.extend(["--branch", self.branch])
        if self.handle.shallow:
            args.extend(["--depth", "1"])
        args.extend([self.build_auth_url(), str(self.local_path.absolute())])

        self.logger.info(
            "Cloning %s into %s", redact_url(self.handle.remote_url), self.local_path
        )
        self._git(args, cwd=parent)

        if self._uses_credentials():
            # The clone stored the credentialed URL as origin; replace it with the plain one.
            self._git(["remote", "set-url", "origin", self.handle.remote_url])

    def update(self) -> None:
        """Align a clean checkout with the remote target branch.

        Raises :class:`BlockedByLocalChanges` instead of discarding
        uncommitted work.
        """
        status = self.status()
        if not status.clean:
            raise BlockedByLocalChanges(status.paths)

        fetch = ["fetch"]
        if self.handle.shallow:
            fetch.extend(["--depth", "1"])
        fetch.extend([self.build_auth_url(), f"+refs/heads/{self.branch}:{self._tracking_ref()}"])
        self._git(fetch)

        if status.branch != self.branch:
            self.logger.info("Switching checkout from %r to %r", status.branch, self.branch)
            self._git(["checkout", self.branch])

        ahead, _ = self._ahead_behind()
        if ahead:
            self.logger.warning(
                "Discarding %d local commit(s) on %s that were never pushed", ahead, self.branch
            )

        self._git(["reset", "--hard", f"origin/{self.branch}"])

    def commit(self, message: str) -> bool:
        """Stage everything and commit. Returns False when there was nothing to record."""
        status = self.status()
        if status.clean:
            self.logger.debug("Working tree clean; skipping commit")
            return False

        self._git(["add", "-A"])
        try:
            self._git(["commit", "-m", message])
        except ExternalToolFailure as exc:
            if "nothing to commit" in exc.detail:
                self.logger.info("No commit created; working tree clean after staging")
                return False
            raise
        self.logger.info("Committed %d change(s): %s", len(status.changes), message)
        return True

    def push(self) -> None:
        """Push local HEAD to the remote target branch."""
        self.logger.info("Pushing HEAD to %s", self.branch)
        self._git(["push", self.build_auth_url(), f"HEAD:{self.branch}"])
        self._git(["update-ref", self._tracking_ref(), "HEAD"])

    def clean(self) -> None:
        """Delete the local checkout. Does nothing when it is already absent."""
        if not self.local_path.exists():
            return
        self.logger.info("Removing local checkout at %s", self.local_path)
        if sys.version_info >= (3, 12):
            shutil.rmtree(self.local_path, onexc=_make_writable_and_retry)
        else:  # pragma: no cover - older interpreters
            shutil.rmtree(self.local_path, onerror=_make_writable_and_retry)

    # ------------------------------------------------------------------
    # Credentials

    def build_auth_url(self) -> str:
        """Return the remote URL with the access token embedded, if one is configured.

        The result must only be passed straight to a single git invocation.
        """
        url = self.handle.remote_url
        token = self.handle.token
        if not token or not url.lower().startswith(("http://", "https://")):
            return url
        parts = urlsplit(url)
        host = parts.hostname or ""
        if parts.port:
            host = f"{host}:{parts.port}"
        netloc = f"{_TOKEN_USER}:{quote(token, safe='')}@{host}"
        return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))

    def redact(self, text: str) -> str:
        """Scrub URL userinfo and the literal token from arbitrary text."""
        scrubbed = redact_url(text)
        token = self.handle.token
        if token:
            for secret in {token, quote(token, safe="")}:
                scrubbed = scrubbed.replace(secret, "***")
        return scrubbed

    def _uses_credentials(self) -> bool:
        return self.build_auth_url() != self.handle.remote_url

    # ------------------------------------------------------------------
    # Helpers

    def _tracking_ref(self) -> str:
        return f"refs/remotes/origin/{self.branch}"

    def _ahead_behind(self) -> tuple[int, int]:
        try:
            output = self._git(
                ["rev-list", "--left-right", "--count", f"origin/{self.branch}...HEAD"]
            )
        except ExternalToolFailure:
            # No tracking ref yet (first push, or an empty remote).
            return 0, 0
        parts = output.split()
        if len(parts) != 2:
            return 0, 0
        try:
            behind, ahead = int(parts[0]), int(parts[1])
        except ValueError:
            return 0, 0
        return ahead, behind

    def _git(self, args: Sequence[str], *, cwd: Path | None = None) -> str:
        command = ["git", *args]
        workdir = cwd or self.local_path
        try:
            return self._runner(command, cwd=workdir, env=self._environment())
        except subprocess.CalledProcessError as exc:
            streams = (_as_text(exc.stderr), _as_text(exc.output))
            detail = "\n".join(part.strip() for part in streams if part.strip())
            raise ExternalToolFailure(
                sanitize_command(command),
                returncode=exc.returncode,
                detail=self.redact(detail),
            ) from None
        except OSError as exc:
            raise ExternalToolFailure(
                sanitize_command(command), detail=self.redact(str(exc))
            ) from None

    @staticmethod
    def _environment() -> dict[str, str]:
        env = os.environ.copy()
        env["GIT_TERMINAL_PROMPT"] = "0"
        env.setdefault("GIT_AUTHOR_NAME", "wikigen")
        env.setdefault("GIT_AUTHOR_EMAIL", "wikigen@users.noreply.github.com")
        env.setdefault("GIT_COMMITTER_NAME", env["GIT_AUTHOR_NAME"])
        env.setdefault("GIT_COMMITTER_EMAIL", env["GIT_AUTHOR_EMAIL"])
        return env

    @staticmethod
    def _default_runner(
        args: Iterable[str],
        *,
        cwd: Path,
        env: dict[str, str] | None = None,
    ) -> str:
        completed = subprocess.run(
            list(args),
            cwd=str(cwd),
            env=env,
            check=True,
            text=True,
            capture_output=True,
        )
        return completed.stdout


def parse_porcelain(output: str) -> List[ChangeEntry]:
    """Parse ``git status --porcelain -z`` output into change entries."""
    entries = output.split("\0")
    changes: List[ChangeEntry] = []
    index = 0
    while index < len(entries):
        entry = entries[index]
        index += 1
        if len(entry) < 4:
            continue
        code, path = entry[:2], entry[3:]
        if code in _CONFLICT_CODES:
            kind = "conflicted"
        elif code == "??":
            kind = "untracked"
        elif code == "!!":
            continue
        else:
            letter = code[0] if code[0] != " " else code[1]
            kind = _CHANGE_KINDS.get(letter, "modified")
        if "R" in code or "C" in code:
            # Renames and copies are followed by the original path.
            index += 1
        changes.append(ChangeEntry(path=path, kind=kind))
    return changes


def sanitize_command(args: Sequence[str]) -> str:
    """Render a command for messages with every URL argument replaced."""
    return " ".join(REDACTED_URL if "://" in arg else arg for arg in args)


def _as_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def _make_writable_and_retry(func, path, _exc) -> None:  # type: ignore[no-untyped-def]
    # git marks pack files read-only, which blocks rmtree on some platforms.
    os.chmod(path, 0o700)
    func(path)


__all__ = [
    "REDACTED_URL",
    "RepositoryStateManager",
    "parse_porcelain",
    "redact_url",
    "sanitize_command",
]
