"""Recording stand-in for the git subprocess runner."""

from __future__ import annotations

import os
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple


class RecordingRunner:
    """Records every git invocation and answers from a table of canned outputs.

    ``responses`` maps a leading slice of the argument list (without ``git``)
    to stdout text. ``failures`` maps the same kind of prefix to a
    :class:`subprocess.CalledProcessError` that is raised instead.
    """

    def __init__(
        self,
        responses: Optional[Dict[Tuple[str, ...], str]] = None,
        failures: Optional[Dict[Tuple[str, ...], subprocess.CalledProcessError]] = None,
    ) -> None:
        self.responses = {
            ("branch", "--show-current"): "master\n",
            ("status",): "",
            ("rev-list",): "0\t0\n",
        }
        self.responses.update(responses or {})
        self.failures = dict(failures or {})
        self.calls: List[Tuple[List[str], Path]] = []

    def __call__(self, args: Sequence[str], *, cwd: Path, env: dict[str, str] | None = None) -> str:
        command = list(args)
        self.calls.append((command, Path(cwd)))
        tail = tuple(command[1:])
        for prefix, error in self.failures.items():
            if tail[: len(prefix)] == prefix:
                raise error
        best: Optional[Tuple[str, ...]] = None
        for prefix in self.responses:
            if tail[: len(prefix)] == prefix and (best is None or len(prefix) > len(best)):
                best = prefix
        return self.responses[best] if best is not None else ""

    @property
    def commands(self) -> List[List[str]]:
        return [command[1:] for command, _ in self.calls]

    def subcommands(self) -> List[str]:
        return [command[1] for command, _ in self.calls]


_GIT_IDENTITY = {
    "GIT_AUTHOR_NAME": "Test Author",
    "GIT_AUTHOR_EMAIL": "author@example.com",
    "GIT_COMMITTER_NAME": "Test Author",
    "GIT_COMMITTER_EMAIL": "author@example.com",
}


def run_git(*args: str, cwd: Path) -> str:
    """Run a real git command for test setup and return stdout."""
    env = os.environ.copy()
    env.update(_GIT_IDENTITY)
    completed = subprocess.run(
        ["git", *args], cwd=str(cwd), env=env, check=True, text=True, capture_output=True
    )
    return completed.stdout


__all__ = ["RecordingRunner", "run_git"]
