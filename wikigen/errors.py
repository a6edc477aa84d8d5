"""Error taxonomy shared by the repository, storage, and generation layers."""

from __future__ import annotations

from typing import Sequence


class WikiGenError(RuntimeError):
    """Base class for wikigen failures that callers are expected to handle."""


class BlockedByLocalChanges(WikiGenError):
    """Raised when an update would overwrite uncommitted changes in the checkout."""

    def __init__(self, paths: Sequence[str]) -> None:
        self.paths = list(paths)
        listing = "\n".join(f"  {path}" for path in self.paths)
        super().__init__(
            "Cannot update: repository has uncommitted changes:\n"
            f"{listing}\n"
            "Commit, stash, or remove them before running again."
        )


class ExternalToolFailure(WikiGenError):
    """Raised when git or the text-generation backend fails.

    ``command`` and ``detail`` are always redacted before construction; they
    are safe to print and log.
    """

    def __init__(
        self,
        command: str,
        *,
        returncode: int | None = None,
        detail: str = "",
    ) -> None:
        self.command = command
        self.returncode = returncode
        self.detail = detail.strip()
        message = f"{command} failed"
        if returncode is not None:
            message += f" with exit code {returncode}"
        if self.detail:
            message += f": {self.detail}"
        super().__init__(message)


__all__ = ["BlockedByLocalChanges", "ExternalToolFailure", "WikiGenError"]
