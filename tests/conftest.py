from __future__ import annotations

import logging
import shutil
from pathlib import Path

import pytest

from tests._fixtures.git_runner import RecordingRunner, run_git
from tests._fixtures.repo_builder import RepoBuilder


@pytest.fixture(autouse=True)
def _reset_wikigen_logger():
    """Undo handler and propagation changes made by configure_logging."""
    yield
    logger = logging.getLogger("wikigen")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def repo_builder(tmp_path: Path) -> RepoBuilder:
    """Provide a reusable repo builder rooted at the pytest tmp_path."""
    return RepoBuilder(tmp_path)


@pytest.fixture
def recording_runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture
def git_remote(tmp_path: Path) -> Path:
    """A bare repository whose ``master`` branch holds a single ``Home.md`` commit."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")

    remote = tmp_path / "remote.git"
    run_git("init", "--bare", str(remote), cwd=tmp_path)
    run_git("symbolic-ref", "HEAD", "refs/heads/master", cwd=remote)

    seed = tmp_path / "seed"
    seed.mkdir()
    run_git("init", cwd=seed)
    run_git("symbolic-ref", "HEAD", "refs/heads/master", cwd=seed)
    (seed / "Home.md").write_text("# Home\n\nWelcome to the wiki.\n", encoding="utf-8")
    run_git("add", "-A", cwd=seed)
    run_git("commit", "-m", "Initial wiki", cwd=seed)
    run_git("push", str(remote), "HEAD:master", cwd=seed)
    return remote
